"""Context-sensitive line classification for the Fountain body.

``LineClassifier.classify`` decides the kind of one line given a
``LineContext``; ``scan`` drives it over a range of lines while keeping the
``ScanState`` that the context is derived from. Precedence, highest first:

1. forced markers (``.`` scene heading, ``@`` character, ``!`` action)
2. page break (``===``)
3. section (``#``)
4. synopsis (``= text``)
5. note (``[[ ]]``) and boneyard (``/* */``), single or multi-line
6. lyric (``~text~``)
7. centered text (``>text<``)
8. transition (``>`` forced, or an ALL-CAPS ``... TO:`` line after a blank)
9. scene heading (after a blank line)
10. character cue (after a blank line, followed by dialogue)
11. parenthetical inside an open dialogue block
12. dialogue inside an open dialogue block
13. action
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, replace
from enum import Enum

from scriptlex.parser.fountain_models import TRANSPARENT_KINDS, ElementKind

PAGE_BREAK_PATTERN = re.compile(r"^={3,}$")
SYNOPSIS_PATTERN = re.compile(r"^=\s+(\S.*)$")
SCENE_HEADING_PATTERN = re.compile(
    r"^(?:INT\.?/EXT|EXT\.?/INT|INT|EXT|EST|I/E|E/I)(?:\.|\s)", re.IGNORECASE
)
SCENE_NUMBER_PATTERN = re.compile(r"^(.*?)\s*#([^#\s]+)#$")
TRANSITION_TO_PATTERN = re.compile(r"^[^a-z]*[A-Z][^a-z]*TO:$")
TRANSITION_PATTERN = re.compile(
    r"^(?:FADE IN|FADE OUT|FADE TO BLACK|CUT TO BLACK|CUT TO|DISSOLVE TO|"
    r"SMASH CUT TO|MATCH CUT TO|JUMP CUT TO|WIPE TO|IRIS IN|IRIS OUT)[.:]?$"
)
EXTENSION_PATTERN = re.compile(r"^(.*?)\s*((?:\([^()]*\)\s*)+)$")

NOTE_OPEN, NOTE_CLOSE = "[[", "]]"
BONEYARD_OPEN, BONEYARD_CLOSE = "/*", "*/"

# Elements that keep a dialogue block open when they follow one another
BLOCK_MEMBER_KINDS = frozenset(
    {
        ElementKind.CHARACTER,
        ElementKind.PARENTHETICAL,
        ElementKind.DIALOGUE,
        ElementKind.LYRIC,
    }
)


class RunState(str, Enum):
    """Position of a line inside a multi-line note or boneyard."""

    OPEN = "open"
    CONTINUE = "continue"
    CLOSE = "close"


@dataclass(frozen=True)
class LineContext:
    """What the classifier may know about the surroundings of a line."""

    previous_kind: ElementKind | None = None
    blank_before: bool = True
    dialogue_open: bool = False
    first_body_line: bool = True
    in_note: bool = False
    in_boneyard: bool = False
    following: Sequence[str] = ()


@dataclass(frozen=True)
class ClassifiedLine:
    """Classification of a single source line."""

    kind: ElementKind
    text: str
    raw: str
    index: int
    is_forced: bool = False
    level: int = 1
    scene_number: str | None = None
    extension: str | None = None
    is_dual: bool = False
    in_block: bool = False
    run: RunState | None = None


class _LinesAfter(Sequence[str]):
    """Lazy view of the lines following a position."""

    def __init__(self, lines: Sequence[str], start: int) -> None:
        self._lines = lines
        self._start = start

    def __len__(self) -> int:
        return max(0, len(self._lines) - self._start)

    def __getitem__(self, index):  # type: ignore[no-untyped-def]
        if isinstance(index, slice):
            return [self[i] for i in range(*index.indices(len(self)))]
        if index < 0:
            index += len(self)
        if not 0 <= index < len(self):
            raise IndexError(index)
        return self._lines[self._start + index]

    def __iter__(self) -> Iterator[str]:
        for index in range(self._start, len(self._lines)):
            yield self._lines[index]


def _is_parenthetical(text: str) -> bool:
    return text.startswith("(") and text.endswith(")")


def _is_single_line_note(text: str) -> bool:
    return (
        len(text) >= 4
        and text.startswith(NOTE_OPEN)
        and text.endswith(NOTE_CLOSE)
    ) or (
        len(text) >= 4
        and text.startswith(BONEYARD_OPEN)
        and text.endswith(BONEYARD_CLOSE)
    )


def _is_structural(text: str) -> bool:
    """Lines that never read as dialogue directly below a character cue."""
    if text.startswith("#"):
        return True
    if len(text) > 1:
        if text[0] == "." and text[1].isalnum():
            return True
        if text[0] in "@!>" and text[1:].strip():
            return True
    if text.startswith(NOTE_OPEN):
        return NOTE_CLOSE not in text[len(NOTE_OPEN) :]
    if text.startswith(BONEYARD_OPEN):
        return BONEYARD_CLOSE not in text[len(BONEYARD_OPEN) :]
    return bool(PAGE_BREAK_PATTERN.match(text) or SYNOPSIS_PATTERN.match(text))


def _opens_dialogue(following: Sequence[str]) -> bool:
    """Check that a character cue candidate is followed by dialogue.

    Parentheticals and single-line notes may sit between the cue and the
    first dialogue line; a blank line ends the search.
    """
    for line in following:
        text = line.strip()
        if not text:
            # Two or more spaces form an intentional empty dialogue line
            return len(line) >= 2
        if _is_parenthetical(text) or _is_single_line_note(text):
            continue
        return not _is_structural(text)
    return False


def split_character_cue(text: str) -> tuple[str, str | None, bool]:
    """Split a cue into name, extension(s) and the dual dialogue marker."""
    is_dual = text.endswith("^")
    if is_dual:
        text = text[:-1].rstrip()
    extension: str | None = None
    match = EXTENSION_PATTERN.match(text)
    if match and match.group(1):
        text = match.group(1)
        extension = " ".join(match.group(2).split())
    return text, extension, is_dual


def _is_character_name(name: str) -> bool:
    return (
        not name.startswith("(")
        and any(char.isalpha() for char in name)
        and name == name.upper()
    )


class LineClassifier:
    """Classify single Fountain lines using their context."""

    def classify(
        self, line: str, context: LineContext, index: int = 0
    ) -> ClassifiedLine | None:
        """Classify one line.

        Args:
            line: Raw source line without its terminator.
            context: Surrounding state produced by the scanner.
            index: Source line index, recorded on the result.

        Returns:
            The classification, or None for a blank separator line.
        """
        if context.in_note:
            return self._continue_run(line, index, ElementKind.NOTE, NOTE_CLOSE)
        if context.in_boneyard:
            return self._continue_run(
                line, index, ElementKind.BONEYARD, BONEYARD_CLOSE
            )

        text = line.strip()
        continues_block = self._continues_block(context)

        if not text:
            if continues_block and len(line) >= 2:
                return ClassifiedLine(
                    kind=ElementKind.DIALOGUE, text="", raw=line, index=index
                )
            return None

        forced = self._classify_forced(text, line, index, context)
        if forced is not None:
            return forced

        if PAGE_BREAK_PATTERN.match(text):
            return ClassifiedLine(
                kind=ElementKind.PAGE_BREAK, text="", raw=line, index=index
            )

        if text.startswith("#"):
            level = len(text) - len(text.lstrip("#"))
            return ClassifiedLine(
                kind=ElementKind.SECTION,
                text=text[level:].strip(),
                raw=line,
                index=index,
                level=level,
            )

        synopsis = SYNOPSIS_PATTERN.match(text)
        if synopsis:
            return ClassifiedLine(
                kind=ElementKind.SYNOPSIS,
                text=synopsis.group(1).strip(),
                raw=line,
                index=index,
            )

        for kind, opener, closer in (
            (ElementKind.NOTE, NOTE_OPEN, NOTE_CLOSE),
            (ElementKind.BONEYARD, BONEYARD_OPEN, BONEYARD_CLOSE),
        ):
            if text.startswith(opener):
                enclosed = self._classify_enclosed(
                    text, line, index, kind, opener, closer
                )
                if enclosed is not None:
                    return enclosed
                break

        if len(text) >= 2 and text.startswith("~") and text.endswith("~"):
            return ClassifiedLine(
                kind=ElementKind.LYRIC,
                text=text[1:-1].strip(),
                raw=line,
                index=index,
                in_block=continues_block,
            )

        if len(text) >= 2 and text.startswith(">") and text.endswith("<"):
            return ClassifiedLine(
                kind=ElementKind.CENTERED_TEXT,
                text=text[1:-1].strip(),
                raw=line,
                index=index,
            )

        if text.startswith(">") and text[1:].strip():
            return ClassifiedLine(
                kind=ElementKind.TRANSITION,
                text=text[1:].strip(),
                raw=line,
                index=index,
                is_forced=True,
            )

        if context.blank_before and self._is_transition(text):
            return ClassifiedLine(
                kind=ElementKind.TRANSITION, text=text, raw=line, index=index
            )

        if (context.blank_before or context.first_body_line) and (
            SCENE_HEADING_PATTERN.match(text)
        ):
            return self._scene_heading(text, line, index, is_forced=False)

        if context.blank_before or context.previous_kind == ElementKind.SCENE_HEADING:
            character = self._classify_character(text, line, index, context)
            if character is not None:
                return character

        if continues_block:
            if _is_parenthetical(text):
                return ClassifiedLine(
                    kind=ElementKind.PARENTHETICAL, text=text, raw=line, index=index
                )
            return ClassifiedLine(
                kind=ElementKind.DIALOGUE, text=text, raw=line, index=index
            )

        return ClassifiedLine(kind=ElementKind.ACTION, text=text, raw=line, index=index)

    @staticmethod
    def _continues_block(context: LineContext) -> bool:
        return (
            context.dialogue_open
            and not context.blank_before
            and context.previous_kind in BLOCK_MEMBER_KINDS
        )

    @staticmethod
    def _is_transition(text: str) -> bool:
        return bool(TRANSITION_TO_PATTERN.match(text) or TRANSITION_PATTERN.match(text))

    def _classify_forced(
        self, text: str, line: str, index: int, context: LineContext
    ) -> ClassifiedLine | None:
        if len(text) < 2:
            return None
        marker, rest = text[0], text[1:].strip()
        if marker == "." and text[1].isalnum():
            return self._scene_heading(rest, line, index, is_forced=True)
        if marker == "@" and rest:
            name, extension, is_dual = split_character_cue(rest)
            return ClassifiedLine(
                kind=ElementKind.CHARACTER,
                text=f"{name} {extension}" if extension else name,
                raw=line,
                index=index,
                is_forced=True,
                extension=extension,
                is_dual=is_dual,
            )
        if marker == "!" and rest:
            return ClassifiedLine(
                kind=ElementKind.ACTION, text=rest, raw=line, index=index, is_forced=True
            )
        return None

    @staticmethod
    def _scene_heading(
        text: str, line: str, index: int, *, is_forced: bool
    ) -> ClassifiedLine:
        scene_number: str | None = None
        match = SCENE_NUMBER_PATTERN.match(text)
        if match and match.group(1):
            text, scene_number = match.group(1), match.group(2)
        return ClassifiedLine(
            kind=ElementKind.SCENE_HEADING,
            text=text,
            raw=line,
            index=index,
            is_forced=is_forced,
            scene_number=scene_number,
        )

    @staticmethod
    def _classify_enclosed(
        text: str,
        line: str,
        index: int,
        kind: ElementKind,
        opener: str,
        closer: str,
    ) -> ClassifiedLine | None:
        """Classify a line starting with a note or boneyard opener.

        Returns None when the closer appears mid-line, which leaves the line
        to the later rules.
        """
        if len(text) >= len(opener) + len(closer) and text.endswith(closer):
            return ClassifiedLine(
                kind=kind,
                text=text[len(opener) : -len(closer)].strip(),
                raw=line,
                index=index,
            )
        if closer not in text[len(opener) :]:
            return ClassifiedLine(
                kind=kind,
                text=text[len(opener) :].strip(),
                raw=line,
                index=index,
                run=RunState.OPEN,
            )
        return None

    @staticmethod
    def _continue_run(
        line: str, index: int, kind: ElementKind, closer: str
    ) -> ClassifiedLine:
        position = line.find(closer)
        if position < 0:
            return ClassifiedLine(
                kind=kind,
                text=line.strip(),
                raw=line,
                index=index,
                run=RunState.CONTINUE,
            )
        return ClassifiedLine(
            kind=kind,
            text=line[:position].strip(),
            raw=line,
            index=index,
            run=RunState.CLOSE,
        )

    def _classify_character(
        self, text: str, line: str, index: int, context: LineContext
    ) -> ClassifiedLine | None:
        name, extension, is_dual = split_character_cue(text)
        if not name or not _is_character_name(name):
            return None
        if not _opens_dialogue(context.following):
            return None
        return ClassifiedLine(
            kind=ElementKind.CHARACTER,
            text=f"{name} {extension}" if extension else name,
            raw=line,
            index=index,
            extension=extension,
            is_dual=is_dual,
        )


@dataclass
class ScanState:
    """Classifier state carried from one line to the next."""

    previous_kind: ElementKind | None = None
    blank_run: int = 1
    dialogue_open: bool = False
    in_note: bool = False
    in_boneyard: bool = False
    first_body_line: bool = True

    @property
    def is_clean(self) -> bool:
        """No multi-line note or boneyard is open."""
        return not (self.in_note or self.in_boneyard)

    def context(self, lines: Sequence[str], index: int) -> LineContext:
        """Build the classification context for ``lines[index]``."""
        return LineContext(
            previous_kind=self.previous_kind,
            blank_before=self.blank_run > 0,
            dialogue_open=self.dialogue_open,
            first_body_line=self.first_body_line,
            in_note=self.in_note,
            in_boneyard=self.in_boneyard,
            following=_LinesAfter(lines, index + 1),
        )

    def advance(self, classified: ClassifiedLine | None) -> None:
        """Update the state with the classification of the current line."""
        if classified is None:
            self.blank_run += 1
            if self.blank_run >= 2:
                self.dialogue_open = False
            return

        if classified.run is not None:
            in_run = classified.run != RunState.CLOSE
            if classified.kind == ElementKind.NOTE:
                self.in_note = in_run
            else:
                self.in_boneyard = in_run
            return
        if classified.kind in TRANSPARENT_KINDS:
            return

        kind = classified.kind
        if kind == ElementKind.CHARACTER:
            self.dialogue_open = True
        elif kind in (ElementKind.PARENTHETICAL, ElementKind.DIALOGUE) or (
            kind == ElementKind.LYRIC and classified.in_block
        ):
            pass
        else:
            # Any other element ends the block
            self.dialogue_open = False
        self.previous_kind = kind
        self.blank_run = 0
        self.first_body_line = False

    def copy(self) -> ScanState:
        """Independent copy of the state."""
        return replace(self)


def scan(
    lines: Sequence[str],
    start: int,
    state: ScanState | None = None,
    stop: Callable[[int, ScanState], bool] | None = None,
    classifier: LineClassifier | None = None,
) -> tuple[list[ClassifiedLine], int]:
    """Classify ``lines`` from ``start`` onwards.

    Args:
        lines: All lines of the document.
        start: Index of the first line to classify.
        state: State before ``start``; updated in place.
        stop: Optional predicate checked before each line; scanning ends
            when it returns True.
        classifier: Classifier to use.

    Returns:
        The non-blank classifications and the index where scanning stopped.
    """
    state = state if state is not None else ScanState()
    classifier = classifier or LineClassifier()
    classified: list[ClassifiedLine] = []
    index = start
    while index < len(lines):
        if stop is not None and stop(index, state):
            break
        result = classifier.classify(lines[index], state.context(lines, index), index)
        state.advance(result)
        if result is not None:
            classified.append(result)
        index += 1
    return classified, index
