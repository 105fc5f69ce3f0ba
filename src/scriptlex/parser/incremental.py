"""Incremental reparsing after an edit.

Only the lines around an edit are reclassified. The region starts at a line
whose classification cannot depend on anything after it changed, and it
ends at the first boundary past the edit where the new classifier state
matches the one the previous parse had at the same place. Everything
outside the region is reused from the previous result, shifted by the
number of inserted or deleted lines, and dialogue blocks are relinked over
the whole element list. A scoped reparse always produces the same result as
a full parse of the new text.
"""

from __future__ import annotations

import time
from bisect import bisect_right
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from scriptlex.config import ScriptLexSettings, get_logger, get_settings
from scriptlex.exceptions import ValidationError
from scriptlex.parser.assembler import (
    UNTERMINATED_KINDS,
    BlockAssembler,
    unterminated_diagnostic,
)
from scriptlex.parser.classifier import LineClassifier, ScanState, scan
from scriptlex.parser.fountain_models import (
    TRANSPARENT_KINDS,
    DiagnosticCode,
    ElementKind,
    ParseOptions,
    ParseResult,
)
from scriptlex.parser.fountain_parser import parse_lines, split_lines

logger = get_logger(__name__)

ASSEMBLY_CODES = frozenset(UNTERMINATED_KINDS)

# Lines after the title page that may still change how it is recognized: the
# closing blank, a bare key line and the indented value that would open it
TITLE_ZONE_MARGIN = 3


class ReparseStrategy(str, Enum):
    """How a reparse was carried out."""

    UNCHANGED = "unchanged"
    SCOPED = "scoped"
    FULL = "full"


@dataclass(frozen=True)
class TextEdit:
    """Replacement of old lines ``[start_line, old_end_line)`` by new lines
    ``[start_line, new_end_line)``."""

    start_line: int
    old_end_line: int
    new_end_line: int

    @property
    def line_delta(self) -> int:
        """Change in document length, in lines."""
        return self.new_end_line - self.old_end_line

    @classmethod
    def between(cls, old_lines: Sequence[str], new_lines: Sequence[str]) -> TextEdit:
        """Derive the edit from the common line prefix and suffix."""
        limit = min(len(old_lines), len(new_lines))
        prefix = 0
        while prefix < limit and old_lines[prefix] == new_lines[prefix]:
            prefix += 1
        suffix = 0
        while (
            suffix < limit - prefix
            and old_lines[-1 - suffix] == new_lines[-1 - suffix]
        ):
            suffix += 1
        return cls(
            start_line=prefix,
            old_end_line=len(old_lines) - suffix,
            new_end_line=len(new_lines) - suffix,
        )

    def validate(self, old_lines: Sequence[str], new_lines: Sequence[str]) -> None:
        """Check that the edit describes how ``old_lines`` became ``new_lines``.

        Raises:
            ValidationError: If the bounds are out of range or the lines
                outside the edit differ.
        """
        old_count, new_count = len(old_lines), len(new_lines)
        in_bounds = (
            0 <= self.start_line <= self.old_end_line <= old_count
            and self.start_line <= self.new_end_line <= new_count
            and old_count - self.old_end_line == new_count - self.new_end_line
        )
        if not in_bounds:
            raise ValidationError(
                message="Edit range does not fit the document",
                hint="Line ranges are 0-based and end-exclusive",
                details={
                    "start_line": self.start_line,
                    "old_end_line": self.old_end_line,
                    "new_end_line": self.new_end_line,
                    "old_line_count": old_count,
                    "new_line_count": new_count,
                },
            )
        unchanged_prefix = old_lines[: self.start_line] == new_lines[: self.start_line]
        unchanged_suffix = list(old_lines[self.old_end_line :]) == list(
            new_lines[self.new_end_line :]
        )
        if not (unchanged_prefix and unchanged_suffix):
            raise ValidationError(
                message="Lines outside the edit range changed",
                hint="Pass edit=None to derive the edit from the two texts",
                details={
                    "start_line": self.start_line,
                    "old_end_line": self.old_end_line,
                    "new_end_line": self.new_end_line,
                },
            )


@dataclass(frozen=True)
class ReparseOutcome:
    """Result of a reparse and how it was obtained.

    ``region`` is the reclassified line range in the new text for scoped
    reparses.
    """

    result: ParseResult
    strategy: ReparseStrategy
    region: tuple[int, int] | None = None


class _LineIndex:
    """Map source lines to the elements of a parse result."""

    def __init__(self, result: ParseResult) -> None:
        self.elements = result.elements
        self.starts = [element.source_range.start for element in result.elements]

    def covering(self, line: int) -> int | None:
        position = bisect_right(self.starts, line) - 1
        if position >= 0 and self.elements[position].source_range.contains(line):
            return position
        return None

    def starting_at(self, line: int) -> int | None:
        position = bisect_right(self.starts, line) - 1
        if position >= 0 and self.starts[position] == line:
            return position
        return None

    def first_at_or_after(self, line: int) -> int:
        position = bisect_right(self.starts, line - 1)
        return position


class IncrementalReparser:
    """Reparse edited documents, reclassifying only the affected lines."""

    def __init__(
        self,
        settings: ScriptLexSettings | None = None,
        options: ParseOptions | None = None,
    ) -> None:
        """Initialize the reparser.

        Args:
            settings: Settings to use, defaults to the global settings.
            options: Parse options. Must match the options the previous
                results were produced with.
        """
        self.settings = settings or get_settings()
        self.options = options or ParseOptions.from_settings(self.settings)
        self.assembler = BlockAssembler(self.options)
        self.classifier = LineClassifier()

    def reparse(
        self,
        previous: ParseResult,
        old_text: str,
        new_text: str,
        edit: TextEdit | None = None,
    ) -> ReparseOutcome:
        """Parse ``new_text`` reusing ``previous``, the parse of ``old_text``.

        Args:
            previous: Result of parsing ``old_text`` with the same options.
            old_text: Text ``previous`` was produced from.
            new_text: Edited text.
            edit: Optional description of the edit; derived from the two
                texts when omitted.

        Returns:
            The new result together with the strategy that produced it.

        Raises:
            ValidationError: If ``edit`` does not describe the change.
        """
        old_lines = split_lines(old_text)
        new_lines = split_lines(new_text)

        if previous.line_count != len(old_lines):
            logger.warning(
                "Previous result does not match the old text, reparsing fully",
                previous_lines=previous.line_count,
                old_lines=len(old_lines),
            )
            return self._full(new_lines)

        if edit is None:
            edit = TextEdit.between(old_lines, new_lines)
        else:
            edit.validate(old_lines, new_lines)

        if old_lines == new_lines:
            return ReparseOutcome(result=previous, strategy=ReparseStrategy.UNCHANGED)

        if not self.settings.parser_incremental:
            return self._full(new_lines)

        if edit.start_line < self._title_zone_end(previous, old_lines):
            logger.debug("Edit touches the title page zone", start=edit.start_line)
            return self._full(new_lines)

        started = time.perf_counter()
        index = _LineIndex(previous)
        start = self._stable_start(previous, index, edit)
        state = self._state_at(previous, index, start)
        delta = edit.line_delta

        def at_boundary(line: int, current: ScanState) -> bool:
            if line < edit.new_end_line or not current.is_clean:
                return False
            old_line = line - delta
            if (
                current.blank_run > 0
                and old_line - 1 >= previous.body_start
                and index.covering(old_line - 1) is None
            ):
                return True
            if new_lines[line].lstrip().startswith("#"):
                position = index.starting_at(old_line)
                return (
                    position is not None
                    and previous.elements[position].kind == ElementKind.SECTION
                )
            return False

        classified, end = scan(
            new_lines, start, state, stop=at_boundary, classifier=self.classifier
        )

        if end >= len(new_lines) and (
            not state.is_clean or start == previous.body_start
        ):
            return self._full(new_lines)

        result = self._splice(previous, index, classified, start, end, delta, len(new_lines))
        logger.debug(
            "Scoped reparse",
            region_start=start,
            region_end=end,
            reclassified=end - start,
            elapsed_ms=round((time.perf_counter() - started) * 1000, 3),
        )
        return ReparseOutcome(
            result=result,
            strategy=ReparseStrategy.SCOPED,
            region=(start, end) if end > start else None,
        )

    def _full(self, new_lines: Sequence[str]) -> ReparseOutcome:
        return ReparseOutcome(
            result=parse_lines(new_lines, self.options),
            strategy=ReparseStrategy.FULL,
        )

    @staticmethod
    def _title_zone_end(previous: ParseResult, old_lines: Sequence[str]) -> int:
        """First line at which edits can no longer change the title page."""
        title_range = previous.title_page.source_range
        if title_range is not None:
            return title_range.end + TITLE_ZONE_MARGIN
        end = 0
        while end < len(old_lines) and not old_lines[end].strip():
            end += 1
        while end < len(old_lines) and old_lines[end].strip():
            end += 1
        return end + TITLE_ZONE_MARGIN

    @staticmethod
    def _stable_start(previous: ParseResult, index: _LineIndex, edit: TextEdit) -> int:
        """Walk back from the edit to a line that can be reclassified alone.

        A line is a stable start when the line before it is an uncovered
        blank line, or when an unchanged Section or SceneHeading begins there
        and does not follow Action.
        """
        line = edit.start_line
        while line > previous.body_start:
            if index.covering(line - 1) is None:
                return line
            position = index.starting_at(line)
            if (
                line < edit.start_line
                and position is not None
                and previous.elements[position].kind
                in (ElementKind.SECTION, ElementKind.SCENE_HEADING)
                and (
                    position == 0
                    or previous.elements[position - 1].kind != ElementKind.ACTION
                )
            ):
                return line
            line -= 1
        return previous.body_start

    @staticmethod
    def _state_at(previous: ParseResult, index: _LineIndex, start: int) -> ScanState:
        """Rebuild the classifier state the previous parse had at ``start``."""
        prior = previous.elements[: index.first_at_or_after(start)]
        state = ScanState()

        transparent_lines = 0
        last: Any = None
        for element in reversed(prior):
            if element.kind in TRANSPARENT_KINDS:
                transparent_lines += element.line_count
                continue
            last = element
            break

        if last is None:
            state.blank_run = 1 + (start - previous.body_start) - transparent_lines
            return state

        state.previous_kind = last.kind
        state.blank_run = start - last.source_range.end - transparent_lines
        state.first_body_line = False
        is_member = last.kind in (
            ElementKind.CHARACTER,
            ElementKind.PARENTHETICAL,
            ElementKind.DIALOGUE,
        ) or (last.kind == ElementKind.LYRIC and last.block_id is not None)
        state.dialogue_open = is_member and state.blank_run < 2
        return state

    def _splice(
        self,
        previous: ParseResult,
        index: _LineIndex,
        classified: Sequence[Any],
        start: int,
        end: int,
        delta: int,
        line_count: int,
    ) -> ParseResult:
        resume = end - delta
        prefix = previous.elements[: index.first_at_or_after(start)]
        suffix = [
            element
            if delta == 0
            else element.model_copy(
                update={"source_range": element.source_range.shifted(delta)}
            )
            for element in previous.elements[index.first_at_or_after(resume) :]
        ]
        region, region_diagnostics = self.assembler.assemble(classified)
        linked, blocks, link_diagnostics = self.assembler.link(
            [*prefix, *region, *suffix]
        )

        title_diagnostics = [
            d
            for d in previous.diagnostics
            if d.code == DiagnosticCode.MALFORMED_TITLE_LINE
        ]
        prefix_diagnostics = [
            d for d in previous.diagnostics if d.code in ASSEMBLY_CODES and d.line < start
        ]
        suffix_diagnostics = [
            d
            if delta == 0
            else unterminated_diagnostic(UNTERMINATED_KINDS[d.code], d.line + delta)
            for d in previous.diagnostics
            if d.code in ASSEMBLY_CODES and d.line >= resume
        ]
        return ParseResult(
            title_page=previous.title_page,
            elements=linked,
            dialogue_blocks=blocks,
            diagnostics=(
                *title_diagnostics,
                *prefix_diagnostics,
                *region_diagnostics,
                *suffix_diagnostics,
                *link_diagnostics,
            ),
            line_count=line_count,
            body_start=previous.body_start,
        )
