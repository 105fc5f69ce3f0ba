"""Serialize parse results back to Fountain markup or plain text.

``to_fountain`` reinserts each kind's structural markers and the emphasis
markers described by the spans, keeping the blank line layout of the source
so that reparsing the output yields the same element stream.
``to_plain_text`` is the export boundary: markup removed, notes, synopses,
boneyard and sections left out, and the per-element alignment applied.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from scriptlex.parser.emphasis import (
    BOLD,
    ITALIC,
    UNDERLINE,
    ResolvedEmphasis,
    flags_for_style,
    resolve_emphasis,
)
from scriptlex.parser.fountain_models import (
    Alignment,
    ElementKind,
    EmphasisSpan,
    ParseResult,
    TitlePage,
)
from scriptlex.parser.title_page import KEY_PATTERN

TITLE_INDENT = "    "

# Opening order; closing happens in reverse
MARKER_ORDER: tuple[tuple[int, str], ...] = (
    (BOLD, "**"),
    (ITALIC, "*"),
    (UNDERLINE, "_"),
)

PLAIN_EXCLUDED_KINDS = frozenset(
    {
        ElementKind.NOTE,
        ElementKind.SYNOPSIS,
        ElementKind.BONEYARD,
        ElementKind.SECTION,
    }
)


def _markup_spans(text: str, spans: Sequence[EmphasisSpan]) -> str:
    """Insert emphasis markers for ``spans`` into ``text``."""
    flags = [0] * len(text)
    for span in spans:
        for position in range(span.start, span.end):
            flags[position] = flags_for_style(span.style)

    out: list[str] = []
    stack: list[tuple[int, str]] = []
    for position in range(len(text) + 1):
        wanted = flags[position] if position < len(text) else 0

        # Close from the innermost style down to the first unwanted one
        keep = len(stack)
        for depth, (style, _) in enumerate(stack):
            if not wanted & style:
                keep = depth
                break
        while len(stack) > keep:
            out.append(stack.pop()[1])

        for style, marker in MARKER_ORDER:
            if wanted & style and all(open_style != style for open_style, _ in stack):
                stack.append((style, marker))
                out.append(marker)

        if position < len(text):
            out.append(text[position])
    return "".join(out)


def emphasis_markup(text: str, spans: Sequence[EmphasisSpan]) -> str | None:
    """Rebuild marked-up text for ``text`` and ``spans``.

    Returns:
        Markup that resolves back to exactly ``text`` and ``spans``, or None
        when the span layout has no such markup.
    """
    if not spans:
        return text
    markup = _markup_spans(text, spans)
    if resolve_emphasis(markup) == ResolvedEmphasis(text=text, spans=tuple(spans)):
        return markup
    return None


def _inline(element: Any) -> str | None:
    return emphasis_markup(element.text, element.emphasis_spans)


def element_markup(element: Any) -> str:
    """Fountain markup for a single element.

    Args:
        element: Any element model.

    Returns:
        Source text for the element; multi-line notes contain line breaks.
    """
    kind = element.kind
    text = element.text

    if kind in (
        ElementKind.ACTION,
        ElementKind.DIALOGUE,
        ElementKind.PARENTHETICAL,
        ElementKind.LYRIC,
        ElementKind.CENTERED_TEXT,
    ):
        inline = _inline(element)
        if inline is None:
            # Span layouts no marker sequence produces fall back to the source
            return element.raw_text.strip() or text
        text = inline

    if kind == ElementKind.SCENE_HEADING:
        heading = f".{text}" if element.is_forced else text
        if element.scene_number:
            heading = f"{heading} #{element.scene_number}#"
        return heading
    if kind == ElementKind.ACTION:
        return f"!{text}" if element.is_forced else text
    if kind == ElementKind.CHARACTER:
        cue = f"@{text}" if element.is_forced else text
        return f"{cue}^" if element.has_dual_marker else cue
    if kind == ElementKind.DIALOGUE:
        return text if text else "  "
    if kind == ElementKind.PARENTHETICAL:
        return text
    if kind == ElementKind.TRANSITION:
        return f">{text}" if element.is_forced else text
    if kind == ElementKind.SECTION:
        marker = "#" * element.level
        return f"{marker} {text}" if text else marker
    if kind == ElementKind.SYNOPSIS:
        return f"= {text}"
    if kind == ElementKind.NOTE:
        return f"[[{text}]]"
    if kind == ElementKind.BONEYARD:
        return f"/*{text}*/"
    if kind == ElementKind.CENTERED_TEXT:
        return f"> {text} <" if text else "><"
    if kind == ElementKind.PAGE_BREAK:
        return "==="
    if kind == ElementKind.LYRIC:
        return f"~{text}~"
    return element.raw_text


def _title_lines(title_page: TitlePage, indent: str) -> list[str]:
    lines: list[str] = []
    for entry in title_page.entries:
        values = entry.value.split("\n") if entry.value else []
        if len(values) == 1:
            lines.append(f"{entry.raw_key}: {values[0]}")
        else:
            lines.append(f"{entry.raw_key}:")
            lines.extend(f"{indent}{value}" for value in values)
    return lines


def to_fountain(result: ParseResult) -> str:
    """Serialize a parse result back to Fountain markup.

    Blank lines between elements are kept as they were in the source, so
    classification that depends on blank lines is preserved.

    Args:
        result: Parse result to serialize.

    Returns:
        Fountain text.
    """
    lines = _title_lines(result.title_page, TITLE_INDENT)
    cursor = result.body_start
    for position, element in enumerate(result.elements):
        markup = element_markup(element).split("\n")
        gap = element.source_range.start - cursor
        if position == 0 and lines:
            if KEY_PATTERN.match(markup[0]):
                # A key-like first body line would extend the title page
                lines.append(":")
            else:
                gap = max(gap, 1)
        lines.extend([""] * gap)
        lines.extend(markup)
        cursor = element.source_range.end

    lines.extend([""] * max(0, result.line_count - cursor))
    return "\n".join(lines)


def _plain_line(element: Any, width: int) -> str:
    kind = element.kind
    text = element.text
    dialogue_indent = " " * (width // 6)

    if kind == ElementKind.SCENE_HEADING:
        heading = text.upper()
        return f"{element.scene_number} {heading}" if element.scene_number else heading
    if kind == ElementKind.PAGE_BREAK:
        return "=" * width
    if kind == ElementKind.CHARACTER:
        return text.upper().center(width).rstrip()
    if element.alignment == Alignment.CENTER:
        return text.center(width).rstrip()
    if element.alignment == Alignment.PARENTHETICAL:
        return text.center(width).rstrip()
    if element.alignment == Alignment.DIALOGUE:
        return f"{dialogue_indent}{text}" if text else ""
    if element.alignment == Alignment.RIGHT:
        return text.upper().rjust(width)
    return text


def to_plain_text(result: ParseResult, width: int = 60) -> str:
    """Render a parse result as plain, unformatted screenplay text.

    Args:
        result: Parse result to render.
        width: Line width used for centered and right-aligned elements.

    Returns:
        Plain text with one blank line wherever the source had blank lines.
    """
    lines = _title_lines(result.title_page, TITLE_INDENT)
    if lines:
        lines.append("")

    covered = [False] * result.line_count
    for element in result.elements:
        for line in range(element.source_range.start, element.source_range.end):
            if line < result.line_count:
                covered[line] = True

    previous_end: int | None = None
    for element in result.elements:
        if element.kind in PLAIN_EXCLUDED_KINDS:
            continue
        start = element.source_range.start
        if previous_end is not None and not all(covered[previous_end:start]):
            lines.append("")
        lines.append(_plain_line(element, width))
        previous_end = element.source_range.end

    return "\n".join(lines) + "\n" if lines else ""
