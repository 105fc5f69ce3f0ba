"""CLI command for scriptlex stats."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from scriptlex.analyzers import compute_statistics
from scriptlex.cli.formatters import ScreenplayFormatter, to_json
from scriptlex.cli.utils.cli_handler import cli_command
from scriptlex.cli.utils.loader import load_script, load_settings

console = Console()


@cli_command
def stats_command(
    path: Annotated[Path, typer.Argument(help="Fountain file to measure")],
    json_output: Annotated[
        bool, typer.Option("--json", help="Output statistics as JSON")
    ] = False,
    words_per_page: Annotated[
        int | None,
        typer.Option(
            "--words-per-page",
            min=1,
            help="Words per page for the page estimate",
        ),
    ] = None,
) -> None:
    """Show word, scene and page counts for a screenplay."""
    settings = load_settings(stats_words_per_page=words_per_page)
    result = load_script(path, settings)
    stats = compute_statistics(result, words_per_page=settings.stats_words_per_page)

    if json_output:
        print(to_json(stats))
        return

    ScreenplayFormatter(console).print_statistics(stats)
