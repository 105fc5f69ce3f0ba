"""CLI command for scriptlex watch - reparse a Fountain file as it changes."""

from __future__ import annotations

import signal
import sys
import time
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from watchdog.observers import Observer

from scriptlex.cli.utils.cli_handler import cli_command
from scriptlex.cli.utils.file_watcher import FountainFileHandler
from scriptlex.cli.utils.loader import load_settings
from scriptlex.config import get_logger
from scriptlex.exceptions import ScriptLexFileNotFoundError
from scriptlex.parser import BackgroundParser, IncrementalReparser, SequencedResult

logger = get_logger(__name__)
console = Console()

# Global observer for signal handling
_observer: Any = None
_handler: Any = None
_parser: Any = None

STATUS_LOG_SIZE = 10


def _shutdown(timeout: float) -> None:
    if _observer and _observer.is_alive():
        _observer.stop()
    if _handler:
        _handler.stop_processing(timeout=timeout)
    if _parser:
        _parser.stop(timeout=timeout)


def signal_handler(_signum: int, _frame: Any) -> None:
    """Handle shutdown signals gracefully.

    Args:
        _signum: Signal number (unused)
        _frame: Current stack frame (unused)
    """
    console.print("\n[yellow]Shutting down gracefully...[/yellow]")
    _shutdown(timeout=5.0)
    sys.exit(0)


def summarize(update: SequencedResult) -> str:
    """One status line describing a delivered parse."""
    result = update.result
    return (
        f"#{update.sequence} {update.strategy.value}: "
        f"{len(result.elements)} elements, {len(result.scenes())} scenes, "
        f"{len(result.diagnostics)} diagnostics"
    )


@cli_command
def watch_command(
    path: Annotated[Path, typer.Argument(help="Fountain file to watch")],
    timeout: Annotated[
        int,
        typer.Option(
            "--timeout",
            "-t",
            min=0,
            help="Maximum watch duration in seconds (0 for unlimited)",
        ),
    ] = 0,
) -> None:
    """Watch a Fountain file and reparse it incrementally on every save.

    Each save is parsed on a background thread; only results newer than the
    last one shown are displayed.

    Press Ctrl+C to stop watching.
    """
    global _observer, _handler, _parser

    watch_path = path.resolve()
    if not watch_path.is_file():
        raise ScriptLexFileNotFoundError(
            message=f"Fountain file not found: {path}",
            hint="watch follows a single existing file",
            details={"file": str(path)},
        )

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    settings = load_settings()
    status_log: list[str] = []

    def show(entry: str) -> None:
        timestamp = time.strftime("%H:%M:%S")
        status_log.append(f"[{timestamp}] {entry}")
        if len(status_log) > STATUS_LOG_SIZE:
            status_log.pop(0)

        table = Table(title="Parse Status", show_header=False)
        table.add_column("Status")
        for line in status_log:
            table.add_row(line)
        console.print(
            Panel(
                table,
                title=f"[bold cyan]ScriptLex Watch: {watch_path.name}[/bold cyan]",
                border_style="cyan",
            )
        )

    def on_result(update: SequencedResult) -> None:
        show(summarize(update))

    def on_status(status: str, changed: Path, error: str | None = None) -> None:
        if status == "error":
            safe_error = str(error)[:100] if error else "Unknown error"
            show(f"[red]Error reading {changed.name}: {safe_error}[/red]")

    try:
        _parser = BackgroundParser(
            on_result=on_result, reparser=IncrementalReparser(settings=settings)
        )
        _parser.start()

        _handler = FountainFileHandler(
            target=watch_path, parser=_parser, callback=on_status
        )
        _handler.start_processing()
        _handler.submit_file(watch_path)

        # Watch the directory so atomic saves (write + rename) are seen
        _observer = Observer()
        _observer.schedule(_handler, str(watch_path.parent), recursive=False)
        _observer.start()

        console.print(f"[green]Watching {watch_path}[/green]")
        console.print("[dim]Press Ctrl+C to stop[/dim]\n")

        start_time = time.time()
        try:
            while True:
                time.sleep(0.2)
                if timeout > 0 and (time.time() - start_time) >= timeout:
                    console.print(
                        f"\n[yellow]Watch timeout reached ({timeout}s)[/yellow]"
                    )
                    break
        except KeyboardInterrupt:
            console.print("\n[yellow]Stopping file watch...[/yellow]")

        _parser.wait_until_idle(timeout=5.0)
        console.print("[green]✓ Watch stopped[/green]")
    finally:
        _shutdown(timeout=2.0)
        if _observer:
            _observer.join(timeout=10.0)
