"""Data models for Fountain screenplay parsing.

Every element kind is its own frozen pydantic model; ``Element`` is the
discriminated union over ``kind``. A ``ParseResult`` is immutable and can be
shared between consumers without copying.
"""

from __future__ import annotations

from bisect import bisect_right
from enum import Enum
from typing import TYPE_CHECKING, Annotated, Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

if TYPE_CHECKING:
    from scriptlex.config.settings import ScriptLexSettings


class ElementKind(str, Enum):
    """Fountain screenplay element types."""

    SCENE_HEADING = "scene_heading"
    ACTION = "action"
    CHARACTER = "character"
    DIALOGUE = "dialogue"
    PARENTHETICAL = "parenthetical"
    TRANSITION = "transition"
    SECTION = "section"
    SYNOPSIS = "synopsis"
    NOTE = "note"
    BONEYARD = "boneyard"
    CENTERED_TEXT = "centered_text"
    PAGE_BREAK = "page_break"
    LYRIC = "lyric"
    UNKNOWN = "unknown"


class EmphasisStyle(str, Enum):
    """Inline emphasis styles."""

    ITALIC = "italic"
    BOLD = "bold"
    BOLD_ITALIC = "bold_italic"
    UNDERLINE = "underline"


class Alignment(str, Enum):
    """Layout convention exported with every element."""

    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"
    DIALOGUE = "dialogue"
    PARENTHETICAL = "parenthetical"


class DiagnosticCode(str, Enum):
    """Recoverable conditions reported alongside a parse."""

    UNTERMINATED_NOTE = "unterminated_note"
    UNTERMINATED_BONEYARD = "unterminated_boneyard"
    MALFORMED_TITLE_LINE = "malformed_title_line"
    ORPHAN_DIALOGUE = "orphan_dialogue"


# Kinds left out of word counts and exported body text
EXCLUDED_KINDS = frozenset(
    {ElementKind.NOTE, ElementKind.SYNOPSIS, ElementKind.BONEYARD}
)

# Kinds that never affect the classification of their neighbours
TRANSPARENT_KINDS = frozenset({ElementKind.NOTE, ElementKind.BONEYARD})


class SourceRange(BaseModel):
    """Half-open range of 0-based source line indices."""

    model_config = ConfigDict(frozen=True)

    start: int = Field(ge=0)
    end: int

    @model_validator(mode="after")
    def _check_order(self) -> SourceRange:
        if self.end <= self.start:
            raise ValueError(
                f"Source range end ({self.end}) must be after start ({self.start})"
            )
        return self

    @property
    def line_count(self) -> int:
        """Number of lines covered by the range."""
        return self.end - self.start

    def contains(self, line: int) -> bool:
        """Whether ``line`` falls inside the range."""
        return self.start <= line < self.end

    def shifted(self, delta: int) -> SourceRange:
        """Return the same range moved by ``delta`` lines."""
        return SourceRange(start=self.start + delta, end=self.end + delta)


class EmphasisSpan(BaseModel):
    """Emphasized run of characters inside an element's text."""

    model_config = ConfigDict(frozen=True)

    start: int = Field(ge=0)
    end: int
    style: EmphasisStyle

    @model_validator(mode="after")
    def _check_order(self) -> EmphasisSpan:
        if self.end <= self.start:
            raise ValueError("Emphasis span must not be empty")
        return self


class BaseElement(BaseModel):
    """Fields shared by every element kind."""

    model_config = ConfigDict(frozen=True)

    alignment_convention: ClassVar[Alignment] = Alignment.LEFT

    kind: ElementKind
    text: str
    raw_text: str
    source_range: SourceRange
    is_forced: bool = False
    emphasis_spans: tuple[EmphasisSpan, ...] = ()

    @model_validator(mode="after")
    def _check_spans(self) -> BaseElement:
        previous_end = 0
        for span in self.emphasis_spans:
            if span.start < previous_end:
                raise ValueError("Emphasis spans must be sorted and must not overlap")
            if span.end > len(self.text):
                raise ValueError(
                    f"Emphasis span {span.start}:{span.end} exceeds text length "
                    f"{len(self.text)}"
                )
            previous_end = span.end
        return self

    @property
    def is_excluded_from_body(self) -> bool:
        """Notes, synopses and boneyard are not screenplay body text."""
        return self.kind in EXCLUDED_KINDS

    @property
    def alignment(self) -> Alignment:
        """Alignment an exporter should use for this element."""
        return self.alignment_convention

    @property
    def line_count(self) -> int:
        """Number of source lines the element spans."""
        return self.source_range.line_count


class SceneHeading(BaseElement):
    """Scene heading (INT. LOCATION - TIME)."""

    kind: Literal[ElementKind.SCENE_HEADING] = ElementKind.SCENE_HEADING
    scene_number: str | None = None


class Action(BaseElement):
    """Action or description line."""

    kind: Literal[ElementKind.ACTION] = ElementKind.ACTION


class Character(BaseElement):
    """Character cue that opens a dialogue block."""

    alignment_convention: ClassVar[Alignment] = Alignment.CENTER

    kind: Literal[ElementKind.CHARACTER] = ElementKind.CHARACTER
    extension: str | None = None
    is_dual_dialogue: bool = False
    block_id: int | None = None

    @property
    def name(self) -> str:
        """Character name without extensions such as (V.O.)."""
        if self.extension and self.text.endswith(self.extension):
            return self.text[: -len(self.extension)].rstrip()
        return self.text

    @property
    def has_dual_marker(self) -> bool:
        """Whether the cue was written with the trailing ``^`` marker."""
        return self.raw_text.rstrip().endswith("^")


class Parenthetical(BaseElement):
    """Parenthetical direction inside a dialogue block."""

    alignment_convention: ClassVar[Alignment] = Alignment.PARENTHETICAL

    kind: Literal[ElementKind.PARENTHETICAL] = ElementKind.PARENTHETICAL
    is_dual_dialogue: bool = False
    block_id: int | None = None


class Dialogue(BaseElement):
    """Spoken line inside a dialogue block."""

    alignment_convention: ClassVar[Alignment] = Alignment.DIALOGUE

    kind: Literal[ElementKind.DIALOGUE] = ElementKind.DIALOGUE
    is_dual_dialogue: bool = False
    block_id: int | None = None


class Transition(BaseElement):
    """Transition (CUT TO:, FADE OUT., ...)."""

    alignment_convention: ClassVar[Alignment] = Alignment.RIGHT

    kind: Literal[ElementKind.TRANSITION] = ElementKind.TRANSITION


class Section(BaseElement):
    """Outline section; ``level`` counts the leading ``#`` markers."""

    kind: Literal[ElementKind.SECTION] = ElementKind.SECTION
    level: int = Field(default=1, ge=1)


class Synopsis(BaseElement):
    """Synopsis line for the preceding section or scene."""

    kind: Literal[ElementKind.SYNOPSIS] = ElementKind.SYNOPSIS


class Note(BaseElement):
    """Writer's note enclosed in [[ ]]."""

    kind: Literal[ElementKind.NOTE] = ElementKind.NOTE


class Boneyard(BaseElement):
    """Commented-out source enclosed in /* */."""

    kind: Literal[ElementKind.BONEYARD] = ElementKind.BONEYARD


class CenteredText(BaseElement):
    """Centered text (>THE END<)."""

    alignment_convention: ClassVar[Alignment] = Alignment.CENTER

    kind: Literal[ElementKind.CENTERED_TEXT] = ElementKind.CENTERED_TEXT


class PageBreak(BaseElement):
    """Forced page break (===)."""

    kind: Literal[ElementKind.PAGE_BREAK] = ElementKind.PAGE_BREAK


class Lyric(BaseElement):
    """Lyric line; belongs to a dialogue block when sung inside one."""

    kind: Literal[ElementKind.LYRIC] = ElementKind.LYRIC
    block_id: int | None = None

    @property
    def alignment(self) -> Alignment:
        """Lyrics inside a dialogue block follow the dialogue column."""
        return Alignment.DIALOGUE if self.block_id is not None else Alignment.LEFT


class Unknown(BaseElement):
    """Unclassified content; available to consumers building elements by hand."""

    kind: Literal[ElementKind.UNKNOWN] = ElementKind.UNKNOWN


Element = Annotated[
    SceneHeading
    | Action
    | Character
    | Parenthetical
    | Dialogue
    | Transition
    | Section
    | Synopsis
    | Note
    | Boneyard
    | CenteredText
    | PageBreak
    | Lyric
    | Unknown,
    Field(discriminator="kind"),
]

ELEMENT_TYPES: dict[ElementKind, type[BaseElement]] = {
    ElementKind.SCENE_HEADING: SceneHeading,
    ElementKind.ACTION: Action,
    ElementKind.CHARACTER: Character,
    ElementKind.PARENTHETICAL: Parenthetical,
    ElementKind.DIALOGUE: Dialogue,
    ElementKind.TRANSITION: Transition,
    ElementKind.SECTION: Section,
    ElementKind.SYNOPSIS: Synopsis,
    ElementKind.NOTE: Note,
    ElementKind.BONEYARD: Boneyard,
    ElementKind.CENTERED_TEXT: CenteredText,
    ElementKind.PAGE_BREAK: PageBreak,
    ElementKind.LYRIC: Lyric,
    ElementKind.UNKNOWN: Unknown,
}


def normalize_title_key(key: str) -> str:
    """Normalize a title page key for case-insensitive lookups."""
    return " ".join(key.split()).lower()


class TitlePageEntry(BaseModel):
    """One ``Key: Value`` entry of the title page."""

    model_config = ConfigDict(frozen=True)

    key: str
    raw_key: str
    value: str
    source_range: SourceRange


class TitlePage(BaseModel):
    """Ordered, case-insensitive title page mapping."""

    model_config = ConfigDict(frozen=True)

    entries: tuple[TitlePageEntry, ...] = ()
    source_range: SourceRange | None = None

    def get(self, key: str, default: str | None = None) -> str | None:
        """Return the value for ``key`` (case-insensitive) or ``default``."""
        wanted = normalize_title_key(key)
        for entry in self.entries:
            if entry.key == wanted:
                return entry.value
        return default

    def __getitem__(self, key: str) -> str:
        value = self.get(key)
        if value is None:
            raise KeyError(key)
        return value

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None

    def __len__(self) -> int:
        return len(self.entries)

    def keys(self) -> list[str]:
        """Normalized keys in document order."""
        return [entry.key for entry in self.entries]

    def items(self) -> list[tuple[str, str]]:
        """(key, value) pairs in document order."""
        return [(entry.key, entry.value) for entry in self.entries]

    def as_dict(self) -> dict[str, str]:
        """Plain dictionary copy, insertion ordered."""
        return dict(self.items())


class DialogueBlock(BaseModel):
    """A Character cue with the Parenthetical/Dialogue/Lyric lines it governs.

    ``block_id`` is the source line of the Character cue.
    """

    model_config = ConfigDict(frozen=True)

    block_id: int
    character_index: int
    element_indices: tuple[int, ...]
    is_dual: bool = False
    dual_partner: int | None = None


class Diagnostic(BaseModel):
    """Non-fatal parse finding, suitable for surfacing in an editor gutter."""

    model_config = ConfigDict(frozen=True)

    line: int = Field(ge=0)
    code: DiagnosticCode
    message: str


class ParseOptions(BaseModel):
    """Formatting options that influence a parse."""

    model_config = ConfigDict(frozen=True)

    resolve_emphasis: bool = True

    @classmethod
    def from_settings(cls, settings: ScriptLexSettings | None = None) -> ParseOptions:
        """Build options from application settings."""
        if settings is None:
            from scriptlex.config import get_settings

            settings = get_settings()
        return cls(resolve_emphasis=settings.parser_resolve_emphasis)


class ParseResult(BaseModel):
    """Complete, immutable output of one parse call."""

    model_config = ConfigDict(frozen=True)

    title_page: TitlePage = Field(default_factory=TitlePage)
    elements: tuple[Element, ...] = ()
    dialogue_blocks: tuple[DialogueBlock, ...] = ()
    diagnostics: tuple[Diagnostic, ...] = ()
    line_count: int = Field(default=0, ge=0)
    body_start: int = Field(default=0, ge=0)

    def elements_of(self, *kinds: ElementKind) -> tuple[Any, ...]:
        """Elements whose kind is one of ``kinds``, in document order."""
        wanted = set(kinds)
        return tuple(element for element in self.elements if element.kind in wanted)

    def scenes(self) -> tuple[SceneHeading, ...]:
        """Scene headings in document order."""
        return self.elements_of(ElementKind.SCENE_HEADING)

    def body_elements(self) -> tuple[Any, ...]:
        """Elements that belong to the screenplay body text."""
        return tuple(e for e in self.elements if not e.is_excluded_from_body)

    def block(self, block_id: int) -> DialogueBlock | None:
        """Dialogue block with the given identifier, if any."""
        for block in self.dialogue_blocks:
            if block.block_id == block_id:
                return block
        return None

    def block_elements(self, block_id: int) -> tuple[Any, ...]:
        """Elements of a dialogue block, Character cue first."""
        block = self.block(block_id)
        if block is None:
            return ()
        return tuple(self.elements[index] for index in block.element_indices)

    def element_at_line(self, line: int) -> Any | None:
        """Element covering ``line``; None for blank or title page lines."""
        starts = [element.source_range.start for element in self.elements]
        index = bisect_right(starts, line) - 1
        if index >= 0 and self.elements[index].source_range.contains(line):
            return self.elements[index]
        return None
