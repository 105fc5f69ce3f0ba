"""Tests for element assembly and dialogue block linking."""

from scriptlex.parser.assembler import BlockAssembler
from scriptlex.parser.classifier import scan
from scriptlex.parser.fountain_models import (
    Character,
    Dialogue,
    DiagnosticCode,
    ElementKind,
    Note,
    ParseOptions,
    SourceRange,
)


def assemble(lines, options=None):
    assembler = BlockAssembler(options)
    classified, _ = scan(lines, 0)
    return assembler.assemble(classified)


def at(start, end=None):
    return SourceRange(start=start, end=(start + 1) if end is None else end)


class TestAssemble:
    """Building element models from classified lines."""

    def test_multiline_boneyard_is_one_element(self):
        elements, diagnostics = assemble(["/* one", "two", "three */"])

        assert len(elements) == 1
        assert elements[0].kind == ElementKind.BONEYARD
        assert elements[0].text == "one\ntwo\nthree"
        assert elements[0].raw_text == "/* one\ntwo\nthree */"
        assert elements[0].source_range == at(0, 3)
        assert diagnostics == []

    def test_unterminated_boneyard_reports_diagnostic(self):
        elements, diagnostics = assemble(["/* open", "forever"])

        assert elements[0].source_range == at(0, 2)
        assert diagnostics[0].code == DiagnosticCode.UNTERMINATED_BONEYARD
        assert diagnostics[0].line == 0

    def test_emphasis_is_resolved_for_action(self):
        elements, _ = assemble(["He is *very* late."])

        assert elements[0].text == "He is very late."
        assert len(elements[0].emphasis_spans) == 1

    def test_emphasis_is_not_resolved_for_headings(self):
        elements, _ = assemble(["INT. *STAR* BAR - NIGHT"])

        assert elements[0].text == "INT. *STAR* BAR - NIGHT"
        assert elements[0].emphasis_spans == ()

    def test_emphasis_option_off(self):
        elements, _ = assemble(
            ["He is *very* late."], ParseOptions(resolve_emphasis=False)
        )

        assert elements[0].text == "He is *very* late."


class TestLink:
    """Block identity, orphans and dual dialogue pairing."""

    def test_orphan_dialogue_becomes_action(self):
        assembler = BlockAssembler()
        orphan = Dialogue(text="Lost words.", raw_text="Lost words.", source_range=at(4))

        linked, blocks, diagnostics = assembler.link([orphan])

        assert linked[0].kind == ElementKind.ACTION
        assert linked[0].text == "Lost words."
        assert blocks == ()
        assert diagnostics[0].code == DiagnosticCode.ORPHAN_DIALOGUE
        assert diagnostics[0].line == 4

    def test_gap_breaks_block(self):
        assembler = BlockAssembler()
        elements = [
            Character(text="BOB", raw_text="BOB", source_range=at(0)),
            Dialogue(text="Hi.", raw_text="Hi.", source_range=at(1)),
            Dialogue(text="Later.", raw_text="Later.", source_range=at(3)),
        ]

        linked, blocks, diagnostics = assembler.link(elements)

        assert [e.kind for e in linked] == [
            ElementKind.CHARACTER,
            ElementKind.DIALOGUE,
            ElementKind.ACTION,
        ]
        assert blocks[0].element_indices == (0, 1)
        assert len(diagnostics) == 1

    def test_link_is_idempotent(self):
        elements, _ = assemble(["BOB^", "Hi.", "", "ALICE", "Hello."])
        assembler = BlockAssembler()

        once = assembler.link(elements)
        twice = assembler.link(once[0])

        assert once[0] == twice[0]
        assert once[1] == twice[1]

    def test_note_between_blocks_keeps_them_adjacent(self):
        elements, _ = assemble(["BOB", "Hi.", "", "[[aside]]", "", "ALICE^", "Hello."])
        linked, blocks, _ = BlockAssembler().link(elements)

        assert blocks[0].dual_partner == blocks[1].block_id
        assert [
            e.is_dual_dialogue for e in linked if e.kind != ElementKind.NOTE
        ] == [False, False, True, True]

    def test_action_between_blocks_prevents_pairing(self):
        elements, _ = assemble(["BOB", "Hi.", "", "He waves.", "", "ALICE^", "Hello."])
        _, blocks, _ = BlockAssembler().link(elements)

        assert blocks[0].is_dual is False
        assert blocks[1].is_dual is True
        assert blocks[1].dual_partner is None

    def test_three_marked_blocks_pair_left_to_right(self):
        elements, _ = assemble(
            ["A^", "One.", "", "B^", "Two.", "", "C^", "Three."]
        )
        _, blocks, _ = BlockAssembler().link(elements)

        assert blocks[0].dual_partner == blocks[1].block_id
        assert blocks[1].dual_partner == blocks[0].block_id
        assert blocks[2].dual_partner is None
        assert blocks[2].is_dual is True

    def test_transparent_note_keeps_block_contiguous(self):
        elements = [
            Character(text="BOB", raw_text="BOB", source_range=at(0)),
            Note(text="n", raw_text="[[n]]", source_range=at(1)),
            Dialogue(text="Hi.", raw_text="Hi.", source_range=at(2)),
        ]

        linked, blocks, diagnostics = BlockAssembler().link(elements)

        assert diagnostics == []
        assert linked[2].block_id == 0
        assert blocks[0].element_indices == (0, 2)
