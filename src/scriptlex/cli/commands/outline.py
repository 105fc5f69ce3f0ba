"""CLI command for scriptlex outline."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from scriptlex.analyzers import extract_outline
from scriptlex.cli.formatters import ScreenplayFormatter, to_json
from scriptlex.cli.utils.cli_handler import cli_command
from scriptlex.cli.utils.loader import load_script, load_settings

console = Console()


@cli_command
def outline_command(
    path: Annotated[Path, typer.Argument(help="Fountain file to outline")],
    json_output: Annotated[
        bool, typer.Option("--json", help="Output the outline as JSON")
    ] = False,
) -> None:
    """Show the sections, scenes and speaking characters of a screenplay."""
    outline = extract_outline(load_script(path, load_settings()))

    if json_output:
        print(to_json(outline))
        return

    ScreenplayFormatter(console).print_outline(outline)
