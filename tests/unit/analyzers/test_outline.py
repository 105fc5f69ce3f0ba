"""Tests for outline extraction."""

from scriptlex.analyzers.outline import extract_outline
from scriptlex.parser import parse


class TestExtractOutline:
    """Test outline extraction from parsed scripts."""

    def test_sample_script_structure(self, sample_script):
        """Sections own the scenes that follow them."""
        outline = extract_outline(parse(sample_script))

        assert outline.title == "The Coffee Shop"
        assert len(outline.sections) == 1
        act = outline.sections[0]
        assert act.title == "ACT ONE"
        assert act.level == 1
        assert act.synopsis == "Sarah meets an old friend."
        assert [scene.number for scene in act.scenes] == [1, 2]

    def test_sample_script_scenes(self, sample_script):
        outline = extract_outline(parse(sample_script))

        first, second = outline.scenes
        assert first.heading == "INT. COFFEE SHOP - DAY"
        assert first.scene_number == "1"
        assert first.scene_type == "INT"
        assert first.location == "COFFEE SHOP"
        assert first.time_of_day == "DAY"
        assert first.characters == ["SARAH", "MIKE"]
        assert first.section_path == ["ACT ONE"]
        assert first.line == 9

        assert second.scene_type == "EXT"
        assert second.location == "PARK"
        assert second.time_of_day == "NIGHT"
        assert second.characters == ["MIKE"]

    def test_sample_script_characters(self, sample_script):
        """Characters are ordered by dialogue count, then name."""
        outline = extract_outline(parse(sample_script))

        names = [character.name for character in outline.characters]
        assert names == ["MIKE", "SARAH"]
        mike, sarah = outline.characters
        assert mike.dialogue_count == 2
        assert mike.scenes == [1, 2]
        assert mike.first_line == 19
        assert sarah.scenes == [1]
        assert sarah.first_line == 15

    def test_nested_sections(self):
        text = "# Act\n\n## Sequence A\n\n## Sequence B\n\n# Act Two"
        outline = extract_outline(parse(text))

        assert [node.title for node in outline.sections] == ["Act", "Act Two"]
        assert [node.title for node in outline.sections[0].children] == [
            "Sequence A",
            "Sequence B",
        ]

    def test_synopsis_attaches_to_scene(self):
        text = "INT. HOUSE - DAY\n\n[[note]]\n\n= The family wakes up.\n\nAction."
        outline = extract_outline(parse(text))

        assert outline.scenes[0].synopsis == "The family wakes up."

    def test_synopsis_after_action_is_ignored(self):
        text = "INT. HOUSE - DAY\n\nAction.\n\n= Too late."
        outline = extract_outline(parse(text))

        assert outline.scenes[0].synopsis is None

    def test_scenes_without_sections(self):
        outline = extract_outline(parse("EXT. BEACH - DAWN\n\nWaves."))

        assert outline.sections == []
        assert outline.scenes[0].section_path == []
        assert outline.title is None

    def test_scene_hash_tracks_content(self):
        before = extract_outline(parse("INT. HOUSE - DAY\n\nQuiet."))
        after = extract_outline(parse("INT. HOUSE - DAY\n\nLoud."))
        same = extract_outline(parse("INT. HOUSE - DAY\n\n[[note]]\n\nQuiet."))

        assert before.scenes[0].content_hash != after.scenes[0].content_hash
        assert before.scenes[0].content_hash == same.scenes[0].content_hash

    def test_to_dict(self, sample_script):
        data = extract_outline(parse(sample_script)).to_dict()

        assert data["title"] == "The Coffee Shop"
        assert data["sections"][0]["scenes"][0]["heading"] == (
            "INT. COFFEE SHOP - DAY"
        )
