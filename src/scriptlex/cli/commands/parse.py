"""CLI command for scriptlex parse."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from scriptlex.cli.formatters import ScreenplayFormatter, to_json
from scriptlex.cli.utils.cli_handler import cli_command
from scriptlex.cli.utils.loader import load_script, load_settings

console = Console()


@cli_command
def parse_command(
    path: Annotated[Path, typer.Argument(help="Fountain file to parse")],
    json_output: Annotated[
        bool, typer.Option("--json", help="Output the full parse result as JSON")
    ] = False,
    no_emphasis: Annotated[
        bool,
        typer.Option("--no-emphasis", help="Keep emphasis markers as literal text"),
    ] = False,
) -> None:
    """Parse a Fountain screenplay and show its elements.

    Line numbers in the table are 1-based; the JSON output uses the 0-based,
    end-exclusive ranges of the parse result.
    """
    settings = load_settings(parser_resolve_emphasis=False if no_emphasis else None)
    result = load_script(path, settings)

    if json_output:
        # Output pure JSON without ANSI escape codes
        print(to_json(result))
        return

    ScreenplayFormatter(console).print_parse_result(result)
