"""ScriptLex configuration module."""

from __future__ import annotations

from typing import Any

from scriptlex.config.logging import configure_logging
from scriptlex.config.logging import get_logger as _get_logger
from scriptlex.config.settings import (
    ScriptLexSettings,
    clear_settings_cache,
    get_settings,
    get_settings_for_cli,
    set_settings,
)

__all__ = [
    "ScriptLexSettings",
    "clear_settings_cache",
    "configure_logging",
    "get_logger",
    "get_settings",
    "get_settings_for_cli",
    "reset_settings",
    "set_settings",
]

# Loggers handed out so far; empty until logging has been configured
_loggers: dict[str, Any] = {}


def get_logger(name: str) -> Any:
    """Return the structlog logger for ``name``.

    The first call configures logging from the global settings. Loggers are
    cached so the parser's hot path does not go through structlog each time.
    """
    try:
        return _loggers[name]
    except KeyError:
        pass
    if not _loggers:
        configure_logging(get_settings())
    logger = _loggers[name] = _get_logger(name)
    return logger


def reset_settings() -> None:
    """Drop cached settings and loggers so the next lookup reconfigures."""
    clear_settings_cache()
    _loggers.clear()
