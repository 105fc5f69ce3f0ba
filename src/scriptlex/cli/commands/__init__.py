"""ScriptLex CLI commands."""

from __future__ import annotations

from scriptlex.cli.commands.export import export_command
from scriptlex.cli.commands.outline import outline_command
from scriptlex.cli.commands.parse import parse_command
from scriptlex.cli.commands.stats import stats_command
from scriptlex.cli.commands.watch import watch_command

__all__ = [
    "export_command",
    "outline_command",
    "parse_command",
    "stats_command",
    "watch_command",
]
