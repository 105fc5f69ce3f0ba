"""Outline extraction: sections, scenes and characters of a parsed script."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from scriptlex.parser.fountain_models import (
    TRANSPARENT_KINDS,
    ElementKind,
    ParseResult,
)
from scriptlex.utils.screenplay import ScreenplayUtils


@dataclass
class SceneSummary:
    """One scene of the outline."""

    number: int
    heading: str
    line: int
    scene_type: str
    location: str | None
    time_of_day: str | None
    scene_number: str | None = None
    synopsis: str | None = None
    characters: list[str] = field(default_factory=list)
    section_path: list[str] = field(default_factory=list)
    content_hash: str = ""


@dataclass
class SectionNode:
    """Section of the outline with its nested sections and scenes."""

    title: str
    level: int
    line: int
    synopsis: str | None = None
    children: list[SectionNode] = field(default_factory=list)
    scenes: list[SceneSummary] = field(default_factory=list)


@dataclass
class CharacterSummary:
    """Speaking character and where they speak."""

    name: str
    first_line: int
    dialogue_count: int = 0
    scenes: list[int] = field(default_factory=list)


@dataclass
class Outline:
    """Structure of a screenplay as shown in an outline view."""

    title: str | None
    sections: list[SectionNode] = field(default_factory=list)
    scenes: list[SceneSummary] = field(default_factory=list)
    characters: list[CharacterSummary] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to plain dictionaries for JSON output."""
        return asdict(self)


def extract_outline(result: ParseResult) -> Outline:
    """Build the outline of a parsed screenplay.

    Synopses attach to the section or scene heading directly above them
    (notes in between are ignored). Characters are counted once per dialogue
    block, keyed by their normalized name.

    Args:
        result: Parse result to summarize.

    Returns:
        The outline.
    """
    outline = Outline(title=result.title_page.get("title"))
    stack: list[SectionNode] = []
    characters: dict[str, CharacterSummary] = {}
    current_scene: SceneSummary | None = None
    scene_texts: list[str] = []
    synopsis_target: SectionNode | SceneSummary | None = None

    def close_scene() -> None:
        if current_scene is not None:
            current_scene.content_hash = ScreenplayUtils.compute_scene_hash(
                "\n".join(scene_texts)
            )

    for element in result.elements:
        kind = element.kind

        if kind == ElementKind.SECTION:
            node = SectionNode(
                title=element.text,
                level=element.level,
                line=element.source_range.start,
            )
            while stack and stack[-1].level >= node.level:
                stack.pop()
            (stack[-1].children if stack else outline.sections).append(node)
            stack.append(node)
            synopsis_target = node
            continue

        if kind == ElementKind.SYNOPSIS:
            if synopsis_target is not None and synopsis_target.synopsis is None:
                synopsis_target.synopsis = element.text
            synopsis_target = None
            continue

        if kind in TRANSPARENT_KINDS:
            continue

        if kind == ElementKind.SCENE_HEADING:
            close_scene()
            scene_type, location, time_of_day = ScreenplayUtils.parse_scene_heading(
                element.text
            )
            current_scene = SceneSummary(
                number=len(outline.scenes) + 1,
                heading=element.text,
                line=element.source_range.start,
                scene_type=scene_type,
                location=location,
                time_of_day=time_of_day,
                scene_number=element.scene_number,
                section_path=[node.title for node in stack],
            )
            scene_texts = [element.text]
            outline.scenes.append(current_scene)
            if stack:
                stack[-1].scenes.append(current_scene)
            synopsis_target = current_scene
            continue

        synopsis_target = None
        if current_scene is not None:
            scene_texts.append(element.text)

        if kind == ElementKind.CHARACTER:
            name = ScreenplayUtils.normalize_character_name(element.name)
            summary = characters.get(name)
            if summary is None:
                summary = CharacterSummary(
                    name=name, first_line=element.source_range.start
                )
                characters[name] = summary
            summary.dialogue_count += 1
            if current_scene is not None:
                if current_scene.number not in summary.scenes:
                    summary.scenes.append(current_scene.number)
                if name not in current_scene.characters:
                    current_scene.characters.append(name)

    close_scene()
    outline.characters = sorted(
        characters.values(), key=lambda c: (-c.dialogue_count, c.name)
    )
    return outline
