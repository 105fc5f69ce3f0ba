"""Word and page statistics for parsed screenplays."""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Any

from scriptlex.config import get_settings
from scriptlex.parser.fountain_models import ElementKind, ParseResult
from scriptlex.utils.screenplay import ScreenplayUtils

WORD_PATTERN = re.compile(r"[^\W_]+(?:['’][^\W_]+)*")

DIALOGUE_KINDS = frozenset(
    {ElementKind.DIALOGUE, ElementKind.PARENTHETICAL, ElementKind.LYRIC}
)


def count_words(text: str) -> int:
    """Count words; contractions such as "can't" count as one word."""
    return len(WORD_PATTERN.findall(text))


@dataclass
class ScriptStatistics:
    """Counts describing a screenplay body."""

    word_count: int
    estimated_pages: int
    words_per_page: int
    line_count: int
    scene_count: int
    character_count: int
    dialogue_word_count: int
    action_word_count: int
    element_counts: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary for JSON output."""
        return asdict(self)


def estimate_pages(word_count: int, words_per_page: int) -> int:
    """Estimate the page count; any non-empty script is at least one page."""
    if word_count <= 0:
        return 0
    return max(1, word_count // words_per_page)


def compute_statistics(
    result: ParseResult, words_per_page: int | None = None
) -> ScriptStatistics:
    """Compute statistics over the body elements of a parse result.

    Notes, synopses and boneyard are not counted.

    Args:
        result: Parse result to measure.
        words_per_page: Words per page for the estimate; defaults to the
            ``stats_words_per_page`` setting.

    Returns:
        The statistics.
    """
    if words_per_page is None:
        words_per_page = get_settings().stats_words_per_page

    word_count = 0
    dialogue_words = 0
    action_words = 0
    kinds: Counter[str] = Counter()
    speakers: set[str] = set()

    for element in result.elements:
        kinds[element.kind.value] += 1
        if element.is_excluded_from_body:
            continue
        words = count_words(element.text)
        word_count += words
        if element.kind in DIALOGUE_KINDS:
            dialogue_words += words
        elif element.kind == ElementKind.ACTION:
            action_words += words
        elif element.kind == ElementKind.CHARACTER:
            speakers.add(ScreenplayUtils.normalize_character_name(element.name))

    return ScriptStatistics(
        word_count=word_count,
        estimated_pages=estimate_pages(word_count, words_per_page),
        words_per_page=words_per_page,
        line_count=result.line_count,
        scene_count=kinds[ElementKind.SCENE_HEADING.value],
        character_count=len(speakers),
        dialogue_word_count=dialogue_words,
        action_word_count=action_words,
        element_counts=dict(sorted(kinds.items())),
    )
