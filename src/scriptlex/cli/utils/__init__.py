"""CLI utilities."""

from scriptlex.cli.utils.cli_handler import CLIHandler, cli_command
from scriptlex.cli.utils.file_watcher import FountainFileHandler
from scriptlex.cli.utils.loader import load_script, load_settings

__all__ = [
    "CLIHandler",
    "FountainFileHandler",
    "cli_command",
    "load_script",
    "load_settings",
]
