"""Main CLI entry point."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console

from scriptlex import __version__
from scriptlex.cli.commands import (
    export_command,
    outline_command,
    parse_command,
    stats_command,
    watch_command,
)
from scriptlex.cli.formatters import to_json
from scriptlex.cli.utils.cli_handler import CLIHandler
from scriptlex.config import (
    clear_settings_cache,
    configure_logging,
    get_logger,
    get_settings,
    get_settings_for_cli,
    set_settings,
)
from scriptlex.exceptions import (
    ConfigurationError,
    ScriptLexError,
    ScriptLexFileNotFoundError,
)

logger = get_logger(__name__)
console = Console()

app = typer.Typer(
    name="scriptlex",
    help="Fountain screenplay parsing with incremental reparse",
    pretty_exceptions_enable=False,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command(name="parse")(parse_command)
app.command(name="outline")(outline_command)
app.command(name="stats")(stats_command)
app.command(name="export")(export_command)
app.command(name="watch")(watch_command)


@app.command()
def status(
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Show the effective ScriptLex configuration."""
    handler = CLIHandler(console, json_output=json_output)

    try:
        settings = get_settings()
        status_info = {"version": __version__, **settings.model_dump(mode="json")}

        if json_output:
            # Output pure JSON without ANSI escape codes
            print(to_json(status_info))
        else:
            console.print("[bold cyan]ScriptLex Status[/bold cyan]\n")
            for key, value in status_info.items():
                formatted_key = key.replace("_", " ").title()
                console.print(f"  {formatted_key}: {value}")

    except Exception as e:
        handler.fail(e)


@app.command()
def version(
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Show ScriptLex version."""
    version_info = {
        "name": "ScriptLex",
        "version": __version__,
        "description": "Fountain screenplay parsing with incremental reparse",
    }

    if json_output:
        print(to_json(version_info))
    else:
        console.print(f"ScriptLex v{version_info['version']}")


def _reconfigure(level: str, debug: bool = False) -> None:
    os.environ["SCRIPTLEX_LOG_LEVEL"] = level
    if debug:
        os.environ["SCRIPTLEX_DEBUG"] = "true"
    clear_settings_cache()
    configure_logging(get_settings())


@app.callback()
def main_callback(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file (YAML, TOML, or JSON)",
            envvar="SCRIPTLEX_CONFIG",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging (INFO level)"),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Enable debug logging", envvar="SCRIPTLEX_DEBUG"),
    ] = False,
) -> None:
    """Configure global options."""
    if debug:
        _reconfigure("DEBUG", debug=True)
        logger.debug("Debug mode enabled")
    elif verbose:
        _reconfigure("INFO")
        logger.info("Verbose mode enabled")

    if config:
        if not config.is_file():
            CLIHandler(console).fail(
                ScriptLexFileNotFoundError(
                    message=f"Config file not found: {config}",
                    hint="Pass a YAML, TOML or JSON file",
                    details={"config": str(config)},
                )
            )
        try:
            settings = get_settings_for_cli(config_file=config)
        except ScriptLexError as e:
            CLIHandler(console).fail(e)
        except PydanticValidationError as e:
            CLIHandler(console).fail(
                ConfigurationError(
                    message=f"Invalid configuration in {config}",
                    hint="Check the setting names and value ranges",
                    details={"errors": e.error_count()},
                )
            )
        set_settings(settings)
        configure_logging(settings)
        logger.debug("Loaded configuration", config=str(config))


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
