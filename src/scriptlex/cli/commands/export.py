"""CLI command for scriptlex export."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from scriptlex.cli.utils.cli_handler import cli_command
from scriptlex.cli.utils.loader import load_script, load_settings
from scriptlex.config import get_logger
from scriptlex.exceptions import ExportError
from scriptlex.parser import to_fountain, to_plain_text

logger = get_logger(__name__)
console = Console(stderr=True)


class ExportFormat(str, Enum):
    """Export targets."""

    FOUNTAIN = "fountain"
    TEXT = "text"


@cli_command
def export_command(
    path: Annotated[Path, typer.Argument(help="Fountain file to export")],
    export_format: Annotated[
        ExportFormat,
        typer.Option("--format", "-f", help="Output format", case_sensitive=False),
    ] = ExportFormat.FOUNTAIN,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write to this file instead of stdout"),
    ] = None,
    width: Annotated[
        int | None,
        typer.Option("--width", min=40, max=200, help="Page width for text export"),
    ] = None,
) -> None:
    """Export a screenplay as normalized Fountain or plain text."""
    settings = load_settings(export_page_width=width)
    result = load_script(path, settings)

    if export_format == ExportFormat.TEXT:
        content = to_plain_text(result, width=settings.export_page_width)
    else:
        content = to_fountain(result)

    if output is None:
        typer.echo(content, nl=False)
        return

    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(content, encoding="utf-8")
    except OSError as e:
        raise ExportError(
            message=f"Could not write {output}",
            hint="Check that the directory is writable",
            details={"output": str(output), "error": str(e)},
        ) from e

    logger.info("Exported screenplay", source=str(path), output=str(output))
    console.print(f"[green]✓[/green] Exported {export_format.value} to {output}")
