"""Fountain screenplay markup parser for ScriptLex."""

from __future__ import annotations

from .fountain_models import (
    Action,
    Alignment,
    BaseElement,
    Boneyard,
    CenteredText,
    Character,
    Diagnostic,
    DiagnosticCode,
    Dialogue,
    DialogueBlock,
    Element,
    ElementKind,
    EmphasisSpan,
    EmphasisStyle,
    Lyric,
    Note,
    PageBreak,
    Parenthetical,
    ParseOptions,
    ParseResult,
    SceneHeading,
    Section,
    SourceRange,
    Synopsis,
    TitlePage,
    TitlePageEntry,
    Transition,
    Unknown,
)
from .fountain_parser import FountainParser, parse, split_lines
from .incremental import (
    IncrementalReparser,
    ReparseOutcome,
    ReparseStrategy,
    TextEdit,
)
from .sequencing import BackgroundParser, ParseSequencer, SequencedResult
from .serializer import to_fountain, to_plain_text

__all__ = [
    "Action",
    "Alignment",
    "BackgroundParser",
    "BaseElement",
    "Boneyard",
    "CenteredText",
    "Character",
    "Diagnostic",
    "DiagnosticCode",
    "Dialogue",
    "DialogueBlock",
    "Element",
    "ElementKind",
    "EmphasisSpan",
    "EmphasisStyle",
    "FountainParser",
    "IncrementalReparser",
    "Lyric",
    "Note",
    "PageBreak",
    "Parenthetical",
    "ParseOptions",
    "ParseResult",
    "ParseSequencer",
    "ReparseOutcome",
    "ReparseStrategy",
    "SceneHeading",
    "Section",
    "SequencedResult",
    "SourceRange",
    "Synopsis",
    "TextEdit",
    "TitlePage",
    "TitlePageEntry",
    "Transition",
    "Unknown",
    "parse",
    "split_lines",
    "to_fountain",
    "to_plain_text",
]
