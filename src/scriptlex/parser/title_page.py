"""Title page recognition for Fountain documents.

The title page is an optional block of ``Key: Value`` lines at the very top
of the document. It ends at the first blank line that is not immediately
followed by another key line with a value, or at a line consisting solely
of ``:``.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from scriptlex.parser.fountain_models import (
    Diagnostic,
    DiagnosticCode,
    SourceRange,
    TitlePage,
    TitlePageEntry,
    normalize_title_key,
)

KEY_PATTERN = re.compile(r"^([A-Za-z][A-Za-z0-9 _\-]*?)\s*:\s*(.*)$")


@dataclass
class _PendingEntry:
    """Mutable accumulator for one entry while the block is scanned."""

    key: str
    raw_key: str
    values: list[str]
    start: int
    end: int


@dataclass
class TitlePageParse:
    """Outcome of title page recognition."""

    title_page: TitlePage
    body_start: int
    diagnostics: list[Diagnostic] = field(default_factory=list)


def _is_blank(line: str) -> bool:
    return not line.strip()


def _is_indented(line: str) -> bool:
    return bool(line) and line[0].isspace() and not _is_blank(line)


def _match_key(line: str) -> re.Match[str] | None:
    if not line or line[0].isspace():
        return None
    return KEY_PATTERN.match(line.rstrip())


class TitlePageParser:
    """Recognize the optional title page prefix of a document."""

    def parse(self, lines: Sequence[str]) -> TitlePageParse:
        """Parse the title page at the top of ``lines``.

        Args:
            lines: Document split into lines, without line terminators.

        Returns:
            The title page (possibly empty), the index of the first body line
            and any diagnostics for malformed lines inside the block.
        """
        count = len(lines)
        first = 0
        while first < count and _is_blank(lines[first]):
            first += 1

        if first >= count or not self._opens_title_page(lines, first):
            return TitlePageParse(title_page=TitlePage(), body_start=0)

        entries: dict[str, _PendingEntry] = {}
        current: _PendingEntry | None = None
        diagnostics: list[Diagnostic] = []
        last_consumed = first
        index = first

        while index < count:
            line = lines[index]

            if line.strip() == ":":
                last_consumed = index
                break

            if _is_blank(line):
                if index + 1 < count and self._opens_title_page(lines, index + 1):
                    index += 1
                    continue
                break

            if _is_indented(line) and current is not None:
                current.values.append(line.strip())
                current.end = index + 1
                last_consumed = index
                index += 1
                continue

            match = _match_key(line)
            if match is None:
                diagnostics.append(
                    Diagnostic(
                        line=index,
                        code=DiagnosticCode.MALFORMED_TITLE_LINE,
                        message=f"Ignored title page line without a key: {line.strip()!r}",
                    )
                )
                last_consumed = index
                index += 1
                continue

            raw_key = match.group(1).strip()
            key = normalize_title_key(raw_key)
            inline_value = match.group(2).strip()
            existing = entries.get(key)
            if existing is None:
                current = _PendingEntry(
                    key=key,
                    raw_key=raw_key,
                    values=[inline_value] if inline_value else [],
                    start=index,
                    end=index + 1,
                )
                entries[key] = current
            else:
                # Repeated keys extend the earlier entry
                current = existing
                if inline_value:
                    current.values.append(inline_value)
                current.end = index + 1
            last_consumed = index
            index += 1

        title_page = TitlePage(
            entries=tuple(
                TitlePageEntry(
                    key=pending.key,
                    raw_key=pending.raw_key,
                    value="\n".join(pending.values),
                    source_range=SourceRange(start=pending.start, end=pending.end),
                )
                for pending in entries.values()
            ),
            source_range=SourceRange(start=first, end=last_consumed + 1),
        )
        return TitlePageParse(
            title_page=title_page,
            body_start=last_consumed + 1,
            diagnostics=diagnostics,
        )

    @staticmethod
    def _opens_title_page(lines: Sequence[str], index: int) -> bool:
        """Check whether the line at ``index`` can start a title page.

        The first key needs an inline value or an indented continuation, so a
        lone ``FADE IN:`` stays in the body.
        """
        match = _match_key(lines[index])
        if match is None:
            return False
        if match.group(2).strip():
            return True
        return index + 1 < len(lines) and _is_indented(lines[index + 1])


def parse_title_page(lines: Sequence[str]) -> TitlePageParse:
    """Module-level shortcut for :meth:`TitlePageParser.parse`."""
    return TitlePageParser().parse(lines)
