"""Screenplay-specific utility functions."""

from __future__ import annotations

import hashlib
import re

# Longest prefixes first so INT./EXT. is not read as INT.
SCENE_TYPE_PREFIXES: tuple[tuple[str, str], ...] = (
    ("INT./EXT.", "INT/EXT"),
    ("EXT./INT.", "INT/EXT"),
    ("INT/EXT.", "INT/EXT"),
    ("EXT/INT.", "INT/EXT"),
    ("INT./EXT", "INT/EXT"),
    ("EXT./INT", "INT/EXT"),
    ("INT/EXT", "INT/EXT"),
    ("EXT/INT", "INT/EXT"),
    ("I/E.", "INT/EXT"),
    ("E/I.", "INT/EXT"),
    ("I/E", "INT/EXT"),
    ("E/I", "INT/EXT"),
    ("INT.", "INT"),
    ("EXT.", "EXT"),
    ("EST.", "EST"),
    ("INT", "INT"),
    ("EXT", "EXT"),
    ("EST", "EST"),
)

TIME_INDICATORS = (
    "MOMENTS LATER",
    "CONTINUOUS",
    "AFTERNOON",
    "MORNING",
    "EVENING",
    "SUNRISE",
    "SUNSET",
    "NIGHT",
    "LATER",
    "DAWN",
    "DUSK",
    "NOON",
    "DAY",
)

CONTINUED_PATTERN = re.compile(r"\s*\((?:CONT'?D|CONTINUED|CONT\.)\)\s*$", re.IGNORECASE)


class ScreenplayUtils:
    """Utility functions for screenplay processing."""

    @staticmethod
    def _split_prefix(heading: str) -> tuple[str, str]:
        """Split a heading into its scene type and the remaining text."""
        heading_upper = heading.upper()
        for prefix, scene_type in SCENE_TYPE_PREFIXES:
            if not heading_upper.startswith(prefix):
                continue
            rest = heading[len(prefix) :]
            # Bare prefixes must be followed by a separator
            if prefix[-1] != "." and rest[:1] not in ("", " ", "."):
                continue
            return scene_type, rest.lstrip(". ").strip()
        return "", heading.strip()

    @staticmethod
    def extract_location(heading: str) -> str | None:
        """Extract location from scene heading.

        Args:
            heading: Scene heading text (e.g., "INT. COFFEE SHOP - DAY")

        Returns:
            Extracted location or None
        """
        if not heading:
            return None

        _, rest = ScreenplayUtils._split_prefix(heading)

        # Extract location (everything before the last " - " if present)
        if " - " in rest:
            location, _ = rest.rsplit(" - ", 1)
            location = location.strip()
            return location if location else None

        # Time only, no location
        if rest.startswith("- "):
            return None

        return rest if rest else None

    @staticmethod
    def extract_time(heading: str) -> str | None:
        """Extract time of day from scene heading.

        Args:
            heading: Scene heading text (e.g., "INT. COFFEE SHOP - DAY")

        Returns:
            Extracted time or None
        """
        if not heading:
            return None

        last_part = heading.upper().rsplit(" - ", 1)[-1]
        if re.search(r"\bMIDNIGHT\b", last_part):
            return "NIGHT"
        for indicator in TIME_INDICATORS:
            if re.search(rf"\b{re.escape(indicator)}\b", last_part):
                return indicator
        return None

    @staticmethod
    def parse_scene_heading(heading: str) -> tuple[str, str | None, str | None]:
        """Parse a scene heading into its components.

        Args:
            heading: Scene heading text (e.g., "INT. COFFEE SHOP - DAY")

        Returns:
            Tuple of (scene_type, location, time_of_day)
        """
        if not heading:
            return "", None, None

        scene_type, _ = ScreenplayUtils._split_prefix(heading)
        location = ScreenplayUtils.extract_location(heading)
        time_of_day = ScreenplayUtils.extract_time(heading)
        return scene_type, location, time_of_day

    @staticmethod
    def normalize_character_name(name: str) -> str:
        """Normalize a character cue for grouping.

        Removes a trailing (CONT'D) marker and collapses whitespace, so
        "SARAH (CONT'D)" and "SARAH" count as the same speaker.

        Args:
            name: Character name as written in the cue

        Returns:
            Upper-cased, normalized name
        """
        name = CONTINUED_PATTERN.sub("", name)
        return " ".join(name.split()).upper()

    @staticmethod
    def compute_scene_hash(scene_text: str, truncate: bool = True) -> str:
        """Compute a stable hash for scene content.

        Args:
            scene_text: Scene text, typically the joined element texts
            truncate: If True, truncate hash to 16 characters (default: True)

        Returns:
            Hex digest of the scene content hash (SHA256)
        """
        hash_digest = hashlib.sha256(scene_text.strip().encode("utf-8")).hexdigest()
        return hash_digest[:16] if truncate else hash_digest
