"""Output formatters for the ScriptLex CLI."""

from scriptlex.cli.formatters.json_formatter import error_response, to_json
from scriptlex.cli.formatters.screenplay_formatter import (
    ScreenplayFormatter,
    build_tree,
    element_rows,
)

__all__ = [
    "ScreenplayFormatter",
    "build_tree",
    "element_rows",
    "error_response",
    "to_json",
]
