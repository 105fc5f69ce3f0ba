"""Tests for full-document Fountain parsing."""

import pytest

from scriptlex.exceptions import ParseError, ScriptLexFileNotFoundError
from scriptlex.parser import (
    Alignment,
    DiagnosticCode,
    ElementKind,
    EmphasisSpan,
    EmphasisStyle,
    FountainParser,
    ParseOptions,
    parse,
    split_lines,
)


def kinds(result):
    return [element.kind for element in result.elements]


def texts(result):
    return [element.text for element in result.elements]


class TestScenarios:
    """Reference documents and the element streams they produce."""

    def test_scene_action_and_dialogue(self):
        result = parse(
            "INT. COFFEE SHOP - DAY\n\nSarah sits.\n\nSARAH\n(smiling)\nHello."
        )

        assert kinds(result) == [
            ElementKind.SCENE_HEADING,
            ElementKind.ACTION,
            ElementKind.CHARACTER,
            ElementKind.PARENTHETICAL,
            ElementKind.DIALOGUE,
        ]
        assert texts(result) == [
            "INT. COFFEE SHOP - DAY",
            "Sarah sits.",
            "SARAH",
            "(smiling)",
            "Hello.",
        ]

    def test_section_and_synopsis(self):
        result = parse("# ACT ONE\n\n= Story begins here")

        assert kinds(result) == [ElementKind.SECTION, ElementKind.SYNOPSIS]
        section, synopsis = result.elements
        assert section.level == 1
        assert section.text == "ACT ONE"
        assert synopsis.text == "Story begins here"

    def test_centered_text(self):
        result = parse(">THE END<")

        assert kinds(result) == [ElementKind.CENTERED_TEXT]
        assert result.elements[0].text == "THE END"
        assert result.elements[0].alignment == Alignment.CENTER

    def test_page_break(self):
        result = parse("===")

        assert kinds(result) == [ElementKind.PAGE_BREAK]

    def test_title_page_followed_by_fade_in(self):
        result = parse(
            "Title: Big Fish\nAuthor: John August\n\nFADE IN:\n\n"
            "INT. HOUSE - DAY\n\nBob walks."
        )

        assert result.title_page.items() == [
            ("title", "Big Fish"),
            ("author", "John August"),
        ]
        assert kinds(result) == [
            ElementKind.TRANSITION,
            ElementKind.SCENE_HEADING,
            ElementKind.ACTION,
        ]
        assert result.elements[0].text == "FADE IN:"
        assert result.elements[0].source_range.start == 3

    def test_dual_dialogue(self):
        result = parse("SARAH^\nHi.\n\nMIKE\nHey.")

        assert kinds(result) == [
            ElementKind.CHARACTER,
            ElementKind.DIALOGUE,
            ElementKind.CHARACTER,
            ElementKind.DIALOGUE,
        ]
        sarah, _, mike, _ = result.elements
        assert sarah.text == "SARAH"
        assert sarah.is_dual_dialogue is True
        assert result.elements[1].is_dual_dialogue is True
        assert mike.is_dual_dialogue is False
        assert result.elements[3].is_dual_dialogue is False

        first, second = result.dialogue_blocks
        assert first.dual_partner == second.block_id
        assert second.dual_partner == first.block_id

    def test_dialogue_emphasis(self):
        line = "I can't believe I'm *finally* writing this **amazing** screenplay."
        result = parse(f"SARAH\n{line}")

        dialogue = result.elements[1]
        assert dialogue.kind == ElementKind.DIALOGUE
        assert dialogue.text == (
            "I can't believe I'm finally writing this amazing screenplay."
        )
        finally_at = dialogue.text.index("finally")
        amazing_at = dialogue.text.index("amazing")
        assert dialogue.emphasis_spans == (
            EmphasisSpan(
                start=finally_at, end=finally_at + 7, style=EmphasisStyle.ITALIC
            ),
            EmphasisSpan(start=amazing_at, end=amazing_at + 7, style=EmphasisStyle.BOLD),
        )


class TestForcedElements:
    """Leading markers assert the element kind."""

    def test_forced_scene_heading(self):
        result = parse(".FLASHBACK")

        heading = result.elements[0]
        assert heading.kind == ElementKind.SCENE_HEADING
        assert heading.text == "FLASHBACK"
        assert heading.is_forced is True

    def test_ellipsis_is_not_a_scene_heading(self):
        result = parse("...and then silence.")

        assert kinds(result) == [ElementKind.ACTION]

    def test_forced_character_allows_lowercase(self):
        result = parse("@McCLANE\nYippee ki-yay.")

        assert kinds(result) == [ElementKind.CHARACTER, ElementKind.DIALOGUE]
        assert result.elements[0].text == "McCLANE"
        assert result.elements[0].is_forced is True

    def test_forced_action_keeps_caps_line_as_action(self):
        result = parse("!SCANNING THE AREA\nNothing moves.")

        assert kinds(result)[0] == ElementKind.ACTION
        assert result.elements[0].text == "SCANNING THE AREA"
        assert result.elements[0].is_forced is True

    def test_forced_transition(self):
        result = parse(">Burn to white.")

        assert kinds(result) == [ElementKind.TRANSITION]
        assert result.elements[0].text == "Burn to white."
        assert result.elements[0].alignment == Alignment.RIGHT


class TestPrecedence:
    """Lines that match several patterns resolve in a fixed order."""

    def test_transition_wins_over_character(self):
        result = parse("CUT TO:\nSomething")

        assert kinds(result)[0] == ElementKind.TRANSITION

    def test_caps_line_without_dialogue_is_action(self):
        result = parse("THE DOOR SLAMS.\n\nSilence.")

        assert kinds(result) == [ElementKind.ACTION, ElementKind.ACTION]

    def test_character_needs_dialogue_before_blank_line(self):
        result = parse("SARAH\n\nHello.")

        assert kinds(result) == [ElementKind.ACTION, ElementKind.ACTION]

    def test_scene_heading_needs_blank_line_before(self):
        result = parse("Walking in.\nINT. HOUSE - DAY")

        assert kinds(result) == [ElementKind.ACTION, ElementKind.ACTION]

    def test_scene_heading_prefixes_are_case_insensitive(self):
        result = parse("int. house - day\n\next. yard - night\n\nI/E. CAR - DAY")

        assert kinds(result) == [ElementKind.SCENE_HEADING] * 3

    def test_scene_number_is_split_off(self):
        result = parse("INT. HOUSE - DAY #12A#")

        heading = result.elements[0]
        assert heading.text == "INT. HOUSE - DAY"
        assert heading.scene_number == "12A"

    def test_centered_wins_over_transition(self):
        result = parse("> INTERMISSION <")

        assert kinds(result) == [ElementKind.CENTERED_TEXT]
        assert result.elements[0].text == "INTERMISSION"

    def test_page_break_wins_over_synopsis(self):
        result = parse("====")

        assert kinds(result) == [ElementKind.PAGE_BREAK]

    def test_section_levels(self):
        result = parse("# Act\n\n## Sequence\n\n### Scene group")

        assert [element.level for element in result.elements] == [1, 2, 3]

    def test_lyric(self):
        result = parse("~Happy birthday to you~")

        assert kinds(result) == [ElementKind.LYRIC]
        assert result.elements[0].text == "Happy birthday to you"

    def test_character_extension(self):
        result = parse("SARAH (V.O.)\nWhere are you?")

        character = result.elements[0]
        assert character.extension == "(V.O.)"
        assert character.name == "SARAH"
        assert character.text == "SARAH (V.O.)"

    def test_bare_parenthetical_is_not_a_character(self):
        result = parse("(V.O.)\nWhere are you?")

        assert ElementKind.CHARACTER not in kinds(result)


class TestDialogueBlocks:
    """Character cues and the lines they govern."""

    def test_block_members_share_identity(self):
        result = parse("SARAH\n(quietly)\nHello.\nAnyone home?")

        assert len(result.dialogue_blocks) == 1
        block = result.dialogue_blocks[0]
        members = result.block_elements(block.block_id)
        assert [e.kind for e in members] == [
            ElementKind.CHARACTER,
            ElementKind.PARENTHETICAL,
            ElementKind.DIALOGUE,
            ElementKind.DIALOGUE,
        ]
        assert {e.block_id for e in members} == {0}

    def test_two_blank_lines_close_the_block(self):
        result = parse("SARAH\nHello.\n\n\nThe lights go out.")

        assert kinds(result)[-1] == ElementKind.ACTION

    def test_spaces_only_line_is_empty_dialogue(self):
        result = parse("SARAH\nFirst line.\n  \nSecond line.")

        assert kinds(result) == [
            ElementKind.CHARACTER,
            ElementKind.DIALOGUE,
            ElementKind.DIALOGUE,
            ElementKind.DIALOGUE,
        ]
        assert result.elements[2].text == ""

    def test_note_inside_block_is_transparent(self):
        result = parse("SARAH\n[[check this]]\nHello.")

        assert kinds(result) == [
            ElementKind.CHARACTER,
            ElementKind.NOTE,
            ElementKind.DIALOGUE,
        ]
        assert result.dialogue_blocks[0].element_indices == (0, 2)

    def test_dual_marker_pairs_with_preceding_block(self):
        result = parse("MIKE\nHey.\n\nSARAH^\nHi.")

        mike_block, sarah_block = result.dialogue_blocks
        assert mike_block.is_dual and sarah_block.is_dual
        assert sarah_block.dual_partner == mike_block.block_id

    def test_dual_marker_without_neighbour_stays_unpaired(self):
        result = parse("SARAH^\nHi.\n\nShe leaves.")

        block = result.dialogue_blocks[0]
        assert block.is_dual is True
        assert block.dual_partner is None


class TestNotesAndBoneyard:
    """Multi-line runs and their recovery."""

    def test_multiline_note(self):
        result = parse("[[First line\nsecond line]]\n\nAction.")

        note = result.elements[0]
        assert note.kind == ElementKind.NOTE
        assert note.text == "First line\nsecond line"
        assert note.source_range.start == 0
        assert note.source_range.end == 2

    def test_unterminated_note_closes_at_end(self):
        result = parse("Action.\n\n[[never closed\nstill a note")

        assert kinds(result) == [ElementKind.ACTION, ElementKind.NOTE]
        assert result.elements[1].source_range.end == 4
        assert [d.code for d in result.diagnostics] == [
            DiagnosticCode.UNTERMINATED_NOTE
        ]

    def test_boneyard_hides_content(self):
        result = parse("/* INT. CUT SCENE - DAY\n\nSARAH\nGone. */\n\nAction.")

        assert kinds(result) == [ElementKind.BONEYARD, ElementKind.ACTION]
        assert result.elements[0].is_excluded_from_body

    def test_notes_and_synopses_are_excluded_from_body(self):
        result = parse("= Summary\n\n[[note]]\n\nAction.")

        assert [e.kind for e in result.body_elements()] == [ElementKind.ACTION]


class TestTitlePage:
    """Title page handling inside a full parse."""

    def test_title_page_then_body(self):
        result = parse("Title: Big Fish\nAuthor: John August\n\nINT. RIVER - DAY")

        assert result.title_page.get("title") == "Big Fish"
        assert result.title_page["AUTHOR"] == "John August"
        assert result.body_start == 2
        assert kinds(result) == [ElementKind.SCENE_HEADING]

    def test_fade_in_is_not_a_title_page(self):
        result = parse("FADE IN:\n\nINT. HOUSE - DAY")

        assert len(result.title_page) == 0
        assert kinds(result)[0] == ElementKind.TRANSITION


class TestParseResult:
    """Invariants of the result model."""

    def test_source_ranges_are_ordered_and_disjoint(self, sample_script):
        result = parse(sample_script)

        previous_end = result.body_start
        for element in result.elements:
            assert element.source_range.start >= previous_end
            previous_end = element.source_range.end
        assert previous_end <= result.line_count

    def test_every_non_blank_body_line_is_covered(self, sample_script):
        result = parse(sample_script)
        lines = split_lines(sample_script)

        for index in range(result.body_start, len(lines)):
            if lines[index].strip():
                assert result.element_at_line(index) is not None, lines[index]

    def test_sample_structure(self, sample_script):
        result = parse(sample_script)

        assert result.title_page.get("title") == "The Coffee Shop"
        assert len(result.scenes()) == 2
        assert result.scenes()[0].scene_number == "1"
        assert len(result.dialogue_blocks) == 4
        dual = [block for block in result.dialogue_blocks if block.is_dual]
        assert len(dual) == 2
        assert result.elements[-1].kind == ElementKind.CENTERED_TEXT

    def test_parse_is_deterministic(self, sample_script):
        assert parse(sample_script) == parse(sample_script)

    def test_result_is_immutable(self):
        result = parse("Action.")

        with pytest.raises(Exception):
            result.elements = ()

    def test_empty_document(self):
        result = parse("")

        assert result.elements == ()
        assert result.line_count == 0

    def test_emphasis_can_be_disabled(self):
        result = parse("A *bold* move.", ParseOptions(resolve_emphasis=False))

        assert result.elements[0].text == "A *bold* move."
        assert result.elements[0].emphasis_spans == ()

    def test_json_round_trip_of_result(self, sample_script):
        result = parse(sample_script)

        restored = type(result).model_validate_json(result.model_dump_json())
        assert restored == result


class TestFountainParser:
    """File handling of the parser facade."""

    def test_parse_file(self, script_file):
        result = FountainParser().parse_file(script_file)

        assert result.title_page.get("author") == "Jane Doe"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ScriptLexFileNotFoundError) as exc_info:
            FountainParser().parse_file(tmp_path / "missing.fountain")

        assert "not found" in exc_info.value.message

    def test_undecodable_file(self, tmp_path):
        path = tmp_path / "broken.fountain"
        path.write_bytes(b"\xff\xfe\xfa broken")

        with pytest.raises(ParseError):
            FountainParser().parse_file(path)

    def test_bom_is_stripped(self, tmp_path):
        path = tmp_path / "bom.fountain"
        path.write_bytes("\ufeffINT. HOUSE - DAY".encode())

        result = FountainParser().parse_file(path)

        assert result.elements[0].kind == ElementKind.SCENE_HEADING

    def test_settings_control_emphasis(self):
        from scriptlex.config import ScriptLexSettings

        parser = FountainParser(settings=ScriptLexSettings(parser_resolve_emphasis=False))

        assert parser.parse("*x*").elements[0].text == "*x*"
