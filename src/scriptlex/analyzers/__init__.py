"""Consumers of parse results: outline and statistics."""

from __future__ import annotations

from .outline import (
    CharacterSummary,
    Outline,
    SceneSummary,
    SectionNode,
    extract_outline,
)
from .statistics import ScriptStatistics, compute_statistics, count_words

__all__ = [
    "CharacterSummary",
    "Outline",
    "SceneSummary",
    "ScriptStatistics",
    "SectionNode",
    "compute_statistics",
    "count_words",
    "extract_outline",
]
