"""Tests for screenplay utility functions."""

import pytest

from scriptlex.utils.screenplay import ScreenplayUtils


class TestParseSceneHeading:
    """Test scene heading parsing."""

    @pytest.mark.parametrize(
        ("heading", "expected"),
        [
            ("INT. COFFEE SHOP - DAY", ("INT", "COFFEE SHOP", "DAY")),
            ("EXT. PARK - NIGHT", ("EXT", "PARK", "NIGHT")),
            ("INT./EXT. CAR - MOVING - DAY", ("INT/EXT", "CAR - MOVING", "DAY")),
            ("I/E TRAIN - CONTINUOUS", ("INT/EXT", "TRAIN", "CONTINUOUS")),
            ("EST. CITY SKYLINE", ("EST", "CITY SKYLINE", None)),
            ("int. kitchen - morning", ("INT", "kitchen", "MORNING")),
            ("INT. OFFICE - MIDNIGHT", ("INT", "OFFICE", "NIGHT")),
            ("FLASHBACK", ("", "FLASHBACK", None)),
        ],
    )
    def test_parse_scene_heading(self, heading, expected):
        assert ScreenplayUtils.parse_scene_heading(heading) == expected

    def test_empty_heading(self):
        assert ScreenplayUtils.parse_scene_heading("") == ("", None, None)
        assert ScreenplayUtils.extract_location("") is None
        assert ScreenplayUtils.extract_time("") is None

    def test_bare_prefix_needs_separator(self):
        """INTERIOR is not read as the INT prefix."""
        assert ScreenplayUtils.extract_location("INTERIOR DESIGN") == (
            "INTERIOR DESIGN"
        )

    def test_time_only_heading(self):
        assert ScreenplayUtils.extract_location("INT. - DAY") is None

    def test_time_word_inside_location_is_ignored(self):
        assert ScreenplayUtils.extract_time("INT. DAYCARE") is None


class TestNormalizeCharacterName:
    """Test character name normalization."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("SARAH", "SARAH"),
            ("SARAH (CONT'D)", "SARAH"),
            ("Sarah (cont'd)", "SARAH"),
            ("MARY  JANE", "MARY JANE"),
            ("BOB (CONTINUED)", "BOB"),
            ("DR. SMITH", "DR. SMITH"),
        ],
    )
    def test_normalize(self, name, expected):
        assert ScreenplayUtils.normalize_character_name(name) == expected


class TestComputeSceneHash:
    """Test scene hashing."""

    def test_hash_is_stable(self):
        first = ScreenplayUtils.compute_scene_hash("INT. HOUSE - DAY\nQuiet.")
        second = ScreenplayUtils.compute_scene_hash("INT. HOUSE - DAY\nQuiet.")

        assert first == second
        assert len(first) == 16

    def test_surrounding_whitespace_is_ignored(self):
        assert ScreenplayUtils.compute_scene_hash(
            "  scene \n"
        ) == ScreenplayUtils.compute_scene_hash("scene")

    def test_full_digest(self):
        assert len(ScreenplayUtils.compute_scene_hash("scene", truncate=False)) == 64
