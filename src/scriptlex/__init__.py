"""ScriptLex: a Fountain screenplay markup parser.

ScriptLex turns plain Fountain text into an ordered stream of typed
screenplay elements that highlighters, outline views, statistics and
exporters can share.
"""

from .config import ScriptLexSettings, get_logger, get_settings
from .parser import (
    ElementKind,
    FountainParser,
    IncrementalReparser,
    ParseOptions,
    ParseResult,
    parse,
    to_fountain,
    to_plain_text,
)

__version__ = "0.1.0"

__all__ = [
    "ElementKind",
    "FountainParser",
    "IncrementalReparser",
    "ParseOptions",
    "ParseResult",
    "ScriptLexSettings",
    "__version__",
    "get_logger",
    "get_settings",
    "parse",
    "to_fountain",
    "to_plain_text",
]
