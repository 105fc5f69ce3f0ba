"""Shared helpers for commands that parse a screenplay file."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from scriptlex.config import ScriptLexSettings, get_settings_for_cli
from scriptlex.parser import FountainParser, ParseResult


def load_settings(**overrides: Any) -> ScriptLexSettings:
    """Effective settings for a command; ``None`` overrides are ignored."""
    return get_settings_for_cli(cli_overrides=overrides or None)


def load_script(path: Path, settings: ScriptLexSettings) -> ParseResult:
    """Parse the screenplay at ``path``.

    Raises:
        ScriptLexFileNotFoundError: If the file does not exist.
        ParseError: If the file cannot be read or decoded.
    """
    return FountainParser(settings=settings).parse_file(path)
