"""Error reporting shared by all CLI commands."""

from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from typing import Any, NoReturn, TypeVar

import typer
from rich.console import Console
from rich.markup import escape

from scriptlex.cli.formatters.json_formatter import error_response
from scriptlex.config import get_logger
from scriptlex.exceptions import ScriptLexError, ValidationError

logger = get_logger(__name__)

T = TypeVar("T")


class CLIHandler:
    """Report a failed command on the console and exit."""

    def __init__(self, console: Console | None = None, json_output: bool = False) -> None:
        """Initialize CLI handler.

        Args:
            console: Rich console for output
            json_output: Report errors as a JSON body instead of markup
        """
        self.console = console or Console()
        self.json_output = json_output

    def fail(self, error: Exception, exit_code: int = 1) -> NoReturn:
        """Print ``error`` and its hint, then exit with ``exit_code``."""
        message = error.message if isinstance(error, ScriptLexError) else str(error)
        logger.error("Command failed", error=message, error_type=type(error).__name__)

        if self.json_output:
            self.console.print(
                error_response(error, exit_code),
                markup=False,
                highlight=False,
                soft_wrap=True,
            )
        else:
            label = "Validation Error" if isinstance(error, ValidationError) else "Error"
            self.console.print(f"[red]{label}: {escape(message)}[/red]")
            hint = getattr(error, "hint", None)
            if hint:
                self.console.print(f"[yellow]Hint: {escape(hint)}[/yellow]")

        raise typer.Exit(exit_code)


def cli_command(func: Callable[..., T]) -> Callable[..., T]:
    """Decorator reporting ScriptLex errors raised by a command.

    The error is printed with its hint, or as JSON when the command was
    called with ``--json``, and the command exits with code 1. Typer exits
    pass through untouched.
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except (ScriptLexError, FileNotFoundError) as e:
            CLIHandler(json_output=kwargs.get("json_output", False)).fail(e)

    return wrapper
