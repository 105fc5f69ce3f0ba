"""Tests for the parse result models."""

import pytest
from pydantic import TypeAdapter, ValidationError

from scriptlex.config import ScriptLexSettings
from scriptlex.parser import (
    Action,
    Alignment,
    Character,
    Element,
    ElementKind,
    EmphasisSpan,
    EmphasisStyle,
    Lyric,
    Note,
    ParseOptions,
    Section,
    SourceRange,
    parse,
)


class TestSourceRange:
    """Half-open line ranges."""

    def test_contains_and_count(self):
        source = SourceRange(start=2, end=5)

        assert source.line_count == 3
        assert source.contains(2)
        assert not source.contains(5)

    def test_shifted(self):
        assert SourceRange(start=2, end=5).shifted(-2) == SourceRange(start=0, end=3)

    def test_empty_range_is_rejected(self):
        with pytest.raises(ValidationError):
            SourceRange(start=3, end=3)


class TestElements:
    """Per-kind element variants."""

    def test_spans_must_fit_text(self):
        with pytest.raises(ValidationError):
            Action(
                text="abc",
                raw_text="abc",
                source_range=SourceRange(start=0, end=1),
                emphasis_spans=(
                    EmphasisSpan(start=1, end=9, style=EmphasisStyle.ITALIC),
                ),
            )

    def test_spans_must_not_overlap(self):
        with pytest.raises(ValidationError):
            Action(
                text="abcdef",
                raw_text="abcdef",
                source_range=SourceRange(start=0, end=1),
                emphasis_spans=(
                    EmphasisSpan(start=0, end=3, style=EmphasisStyle.ITALIC),
                    EmphasisSpan(start=2, end=4, style=EmphasisStyle.BOLD),
                ),
            )

    def test_section_level_must_be_positive(self):
        with pytest.raises(ValidationError):
            Section(
                text="Act", raw_text="Act", source_range=SourceRange(start=0, end=1), level=0
            )

    def test_discriminated_union(self):
        adapter = TypeAdapter(Element)

        element = adapter.validate_python(
            {
                "kind": "character",
                "text": "BOB",
                "raw_text": "BOB^",
                "source_range": {"start": 0, "end": 1},
            }
        )

        assert isinstance(element, Character)
        assert element.has_dual_marker is True

    def test_alignment_conventions(self):
        result = parse("BOB\n(beat)\nHi.\n~Sing~\n\nCUT TO:\n\n~Alone~")

        alignments = {
            element.kind: element.alignment for element in result.elements[:3]
        }
        assert alignments == {
            ElementKind.CHARACTER: Alignment.CENTER,
            ElementKind.PARENTHETICAL: Alignment.PARENTHETICAL,
            ElementKind.DIALOGUE: Alignment.DIALOGUE,
        }
        lyrics = result.elements_of(ElementKind.LYRIC)
        assert [lyric.alignment for lyric in lyrics] == [
            Alignment.DIALOGUE,
            Alignment.LEFT,
        ]
        assert result.elements_of(ElementKind.TRANSITION)[0].alignment == (
            Alignment.RIGHT
        )

    def test_excluded_kinds(self):
        note = Note(text="n", raw_text="[[n]]", source_range=SourceRange(start=0, end=1))
        lyric = Lyric(text="l", raw_text="~l~", source_range=SourceRange(start=0, end=1))

        assert note.is_excluded_from_body
        assert not lyric.is_excluded_from_body


class TestParseResult:
    """Lookup helpers."""

    def test_element_at_line(self):
        result = parse("Action.\n\n[[a\nb]]")

        assert result.element_at_line(0).kind == ElementKind.ACTION
        assert result.element_at_line(1) is None
        assert result.element_at_line(3).kind == ElementKind.NOTE

    def test_block_lookup(self):
        result = parse("Action.\n\nBOB\nHi.")

        assert result.block(2).element_indices == (1, 2)
        assert result.block(0) is None
        assert result.block_elements(99) == ()


class TestParseOptions:
    """Options derived from settings."""

    def test_from_settings(self):
        settings = ScriptLexSettings(parser_resolve_emphasis=False)

        assert ParseOptions.from_settings(settings).resolve_emphasis is False

    def test_from_global_settings(self):
        assert ParseOptions.from_settings().resolve_emphasis is True
