"""Inline emphasis resolution for Fountain text.

Markers are ``*`` (italic), ``**`` (bold), ``***`` (bold italic), ``_``
(underline) and ``___`` (bold italic). An opener must be followed by a
non-space character and a closer preceded by one; underscores never open or
close inside a word. A backslash before a marker keeps it literal.

Resolution repeats until no marker pair is left, so resolving already
resolved text never produces new spans.
"""

from __future__ import annotations

from dataclasses import dataclass

from scriptlex.parser.fountain_models import EmphasisSpan, EmphasisStyle

MARKER_CHARS = frozenset("*_")

ITALIC = 1
BOLD = 2
UNDERLINE = 4

# (marker character, run length) -> style flags
RUN_STYLES: dict[tuple[str, int], int] = {
    ("*", 1): ITALIC,
    ("*", 2): BOLD,
    ("*", 3): BOLD | ITALIC,
    ("_", 1): UNDERLINE,
    ("_", 3): BOLD | ITALIC,
}


@dataclass(frozen=True)
class ResolvedEmphasis:
    """Text with markers removed and the spans they described."""

    text: str
    spans: tuple[EmphasisSpan, ...]


@dataclass(frozen=True)
class _Run:
    start: int
    length: int
    char: str
    can_open: bool
    can_close: bool


def _find_runs(chars: list[str]) -> list[_Run]:
    """Locate marker runs that may act as delimiters."""
    runs: list[_Run] = []
    count = len(chars)
    index = 0
    while index < count:
        char = chars[index]
        if char == "\\" and index + 1 < count and chars[index + 1] in MARKER_CHARS:
            index += 2
            continue
        if char not in MARKER_CHARS:
            index += 1
            continue

        end = index
        while end < count and chars[end] == char:
            end += 1
        length = end - index

        if (char, length) in RUN_STYLES:
            before = chars[index - 1] if index > 0 else ""
            after = chars[end] if end < count else ""
            can_open = bool(after) and not after.isspace()
            can_close = bool(before) and not before.isspace()
            if char == "_":
                can_open = can_open and not before.isalnum()
                can_close = can_close and not after.isalnum()
            runs.append(
                _Run(
                    start=index,
                    length=length,
                    char=char,
                    can_open=can_open,
                    can_close=can_close,
                )
            )
        index = end
    return runs


def _pair_runs(runs: list[_Run]) -> list[tuple[_Run, _Run]]:
    """Match closers to openers of the same marker and length."""
    pairs: list[tuple[_Run, _Run]] = []
    stack: list[_Run] = []
    for run in runs:
        if run.can_close:
            for position in range(len(stack) - 1, -1, -1):
                opener = stack[position]
                if opener.char == run.char and opener.length == run.length:
                    pairs.append((opener, run))
                    # Unmatched openers inside the pair stay literal
                    del stack[position:]
                    break
            else:
                if run.can_open:
                    stack.append(run)
            continue
        if run.can_open:
            stack.append(run)
    return pairs


def style_for_flags(flags: int) -> EmphasisStyle | None:
    """Map combined style flags onto the single style a span carries."""
    if flags & BOLD and flags & ITALIC:
        return EmphasisStyle.BOLD_ITALIC
    if flags & BOLD:
        return EmphasisStyle.BOLD
    if flags & ITALIC:
        return EmphasisStyle.ITALIC
    if flags & UNDERLINE:
        return EmphasisStyle.UNDERLINE
    return None


def flags_for_style(style: EmphasisStyle) -> int:
    """Inverse of :func:`style_for_flags`."""
    return {
        EmphasisStyle.BOLD_ITALIC: BOLD | ITALIC,
        EmphasisStyle.BOLD: BOLD,
        EmphasisStyle.ITALIC: ITALIC,
        EmphasisStyle.UNDERLINE: UNDERLINE,
    }[style]


def _build_spans(flags: list[int]) -> tuple[EmphasisSpan, ...]:
    spans: list[EmphasisSpan] = []
    start = 0
    current: EmphasisStyle | None = None
    for index, value in enumerate([*flags, 0]):
        style = style_for_flags(value) if index < len(flags) else None
        if style == current:
            continue
        if current is not None:
            spans.append(EmphasisSpan(start=start, end=index, style=current))
        current = style
        start = index
    return tuple(spans)


def resolve_emphasis(text: str) -> ResolvedEmphasis:
    """Strip emphasis markers from ``text`` and record the spans they mark.

    Args:
        text: Element text that may contain emphasis markers.

    Returns:
        The text without paired markers and its sorted, disjoint spans.
        Unbalanced markers stay in the text unchanged.
    """
    chars = list(text)
    flags = [0] * len(chars)

    while True:
        pairs = _pair_runs(_find_runs(chars))
        if not pairs:
            break
        removed = [False] * len(chars)
        for opener, closer in pairs:
            style = RUN_STYLES[(opener.char, opener.length)]
            for position in range(opener.start + opener.length, closer.start):
                flags[position] |= style
            for position in range(opener.start, opener.start + opener.length):
                removed[position] = True
            for position in range(closer.start, closer.start + closer.length):
                removed[position] = True
        chars = [char for char, gone in zip(chars, removed, strict=True) if not gone]
        flags = [flag for flag, gone in zip(flags, removed, strict=True) if not gone]

    return ResolvedEmphasis(text="".join(chars), spans=_build_spans(flags))


class InlineEmphasisResolver:
    """Resolve emphasis markers for element text."""

    def resolve(self, text: str) -> ResolvedEmphasis:
        """Resolve markers in ``text``; see :func:`resolve_emphasis`."""
        return resolve_emphasis(text)
