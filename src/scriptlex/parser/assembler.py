"""Group classified lines into elements and link dialogue blocks."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from scriptlex.config import get_logger
from scriptlex.parser.classifier import ClassifiedLine, RunState
from scriptlex.parser.emphasis import InlineEmphasisResolver
from scriptlex.parser.fountain_models import (
    ELEMENT_TYPES,
    TRANSPARENT_KINDS,
    Action,
    Diagnostic,
    DiagnosticCode,
    DialogueBlock,
    ElementKind,
    ParseOptions,
    SourceRange,
)

logger = get_logger(__name__)

EMPHASIS_KINDS = frozenset(
    {
        ElementKind.ACTION,
        ElementKind.DIALOGUE,
        ElementKind.PARENTHETICAL,
        ElementKind.LYRIC,
        ElementKind.CENTERED_TEXT,
    }
)

UNTERMINATED_CODES = {
    ElementKind.NOTE: DiagnosticCode.UNTERMINATED_NOTE,
    ElementKind.BONEYARD: DiagnosticCode.UNTERMINATED_BONEYARD,
}
UNTERMINATED_KINDS = {code: kind for kind, code in UNTERMINATED_CODES.items()}

MEMBER_KINDS = frozenset(
    {ElementKind.PARENTHETICAL, ElementKind.DIALOGUE, ElementKind.LYRIC}
)


def unterminated_diagnostic(kind: ElementKind, line: int) -> Diagnostic:
    """Diagnostic for a note or boneyard opened on ``line`` and never closed."""
    return Diagnostic(
        line=line,
        code=UNTERMINATED_CODES[kind],
        message=f"{kind.value.capitalize()} opened on line {line + 1} is never closed",
    )


@dataclass
class _OpenBlock:
    """Dialogue block being collected by :meth:`BlockAssembler.link`."""

    character_index: int
    block_id: int
    has_marker: bool
    end_line: int
    member_indices: list[int] = field(default_factory=list)
    last_index: int = 0


class BlockAssembler:
    """Build elements from classified lines and link them into blocks."""

    def __init__(self, options: ParseOptions | None = None) -> None:
        """Initialize the assembler.

        Args:
            options: Parse options; emphasis resolution follows
                ``options.resolve_emphasis``.
        """
        self.options = options or ParseOptions()
        self.emphasis = InlineEmphasisResolver()

    def assemble(
        self, classified: Sequence[ClassifiedLine]
    ) -> tuple[list[Any], list[Diagnostic]]:
        """Merge multi-line runs and build element models.

        Args:
            classified: Non-blank line classifications in source order.

        Returns:
            Elements in source order and diagnostics for unterminated
            notes or boneyard sections.
        """
        elements: list[Any] = []
        diagnostics: list[Diagnostic] = []
        index = 0
        while index < len(classified):
            line = classified[index]
            if line.run != RunState.OPEN:
                elements.append(self._build(line, [line]))
                index += 1
                continue

            run = [line]
            index += 1
            closed = False
            while index < len(classified):
                member = classified[index]
                run.append(member)
                index += 1
                if member.run == RunState.CLOSE:
                    closed = True
                    break
            if not closed:
                diagnostics.append(unterminated_diagnostic(line.kind, line.index))
                logger.info(
                    "Closing unterminated block at end of document",
                    kind=line.kind.value,
                    line=line.index,
                )
            elements.append(self._build(line, run))
        return elements, diagnostics

    def _build(self, head: ClassifiedLine, lines: list[ClassifiedLine]) -> Any:
        text = "\n".join(line.text for line in lines)
        fields: dict[str, Any] = {
            "text": text,
            "raw_text": "\n".join(line.raw for line in lines),
            "source_range": SourceRange(
                start=head.index, end=lines[-1].index + 1
            ),
            "is_forced": head.is_forced,
        }
        kind = head.kind
        if kind == ElementKind.SCENE_HEADING:
            fields["scene_number"] = head.scene_number
        elif kind == ElementKind.SECTION:
            fields["level"] = head.level
        elif kind == ElementKind.CHARACTER:
            fields["extension"] = head.extension
            fields["is_dual_dialogue"] = head.is_dual

        if self.options.resolve_emphasis and kind in EMPHASIS_KINDS:
            resolved = self.emphasis.resolve(text)
            fields["text"] = resolved.text
            fields["emphasis_spans"] = resolved.spans

        return ELEMENT_TYPES[kind](**fields)

    def link(
        self, elements: Sequence[Any]
    ) -> tuple[tuple[Any, ...], tuple[DialogueBlock, ...], list[Diagnostic]]:
        """Assign dialogue blocks and pair dual dialogue.

        Can be run again over an already linked element sequence, which is
        how incremental reparses refresh block identifiers after a splice.

        Args:
            elements: Elements in source order.

        Returns:
            Linked elements, dialogue blocks and orphan diagnostics.
        """
        result = list(elements)
        diagnostics: list[Diagnostic] = []
        blocks: list[_OpenBlock] = []
        current: _OpenBlock | None = None

        for index, element in enumerate(result):
            kind = element.kind
            start = element.source_range.start

            if kind in TRANSPARENT_KINDS:
                if current is not None and start == current.end_line:
                    current.end_line = element.source_range.end
                continue

            contiguous = current is not None and start == current.end_line

            if kind == ElementKind.CHARACTER:
                current = _OpenBlock(
                    character_index=index,
                    block_id=start,
                    has_marker=element.has_dual_marker,
                    end_line=element.source_range.end,
                    last_index=index,
                )
                blocks.append(current)
                continue

            if kind in MEMBER_KINDS and current is not None and contiguous:
                current.member_indices.append(index)
                current.end_line = element.source_range.end
                current.last_index = index
                continue

            current = None
            if kind in (ElementKind.DIALOGUE, ElementKind.PARENTHETICAL):
                result[index] = Action(
                    text=element.text,
                    raw_text=element.raw_text,
                    source_range=element.source_range,
                    emphasis_spans=element.emphasis_spans,
                )
                diagnostics.append(
                    Diagnostic(
                        line=start,
                        code=DiagnosticCode.ORPHAN_DIALOGUE,
                        message=(
                            f"{kind.value.capitalize()} on line {start + 1} has no "
                            "character cue; treated as action"
                        ),
                    )
                )

        partners = self._pair_dual(result, blocks)

        records: list[DialogueBlock] = []
        # Element flags follow the ^ marker; pairing lives on the block records
        in_block: dict[int, tuple[int, bool]] = {}
        for block in blocks:
            partner = partners.get(block.block_id)
            is_dual = block.has_marker or partner is not None
            records.append(
                DialogueBlock(
                    block_id=block.block_id,
                    character_index=block.character_index,
                    element_indices=(block.character_index, *block.member_indices),
                    is_dual=is_dual,
                    dual_partner=partner,
                )
            )
            for member in (block.character_index, *block.member_indices):
                in_block[member] = (block.block_id, block.has_marker)

        for index, element in enumerate(result):
            update = self._block_update(element, in_block.get(index))
            if update:
                result[index] = element.model_copy(update=update)

        return tuple(result), tuple(records), diagnostics

    @staticmethod
    def _block_update(
        element: Any, membership: tuple[int, bool] | None
    ) -> dict[str, Any]:
        kind = element.kind
        if kind not in (
            ElementKind.CHARACTER,
            ElementKind.PARENTHETICAL,
            ElementKind.DIALOGUE,
            ElementKind.LYRIC,
        ):
            return {}
        block_id, is_dual = membership if membership else (None, False)
        update: dict[str, Any] = {}
        if element.block_id != block_id:
            update["block_id"] = block_id
        if kind != ElementKind.LYRIC and element.is_dual_dialogue != is_dual:
            update["is_dual_dialogue"] = is_dual
        return update

    @staticmethod
    def _pair_dual(
        elements: Sequence[Any], blocks: Sequence[_OpenBlock]
    ) -> dict[int, int]:
        """Pair each ``^`` block with an adjacent unpaired block.

        The preceding block wins; the following block is used when there is
        no adjacent preceding one. Only notes and blank lines may separate
        paired blocks.
        """

        def adjacent(first: _OpenBlock, second: _OpenBlock) -> bool:
            between = elements[first.last_index + 1 : second.character_index]
            return all(element.kind in TRANSPARENT_KINDS for element in between)

        partners: dict[int, int] = {}
        for position, block in enumerate(blocks):
            if not block.has_marker or block.block_id in partners:
                continue
            candidates = []
            if position > 0 and adjacent(blocks[position - 1], block):
                candidates.append(blocks[position - 1])
            if position + 1 < len(blocks) and adjacent(block, blocks[position + 1]):
                candidates.append(blocks[position + 1])
            for candidate in candidates:
                if candidate.block_id not in partners:
                    partners[block.block_id] = candidate.block_id
                    partners[candidate.block_id] = block.block_id
                    break
        return partners
