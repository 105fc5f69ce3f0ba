"""Fountain screenplay parser.

``parse`` runs the whole pipeline: title page, line classification, block
assembly with emphasis resolution, and dialogue block linking. It is pure
and deterministic; ``FountainParser`` adds file handling, settings and
timing logs around it.
"""

from __future__ import annotations

import re
import time
from collections.abc import Sequence
from pathlib import Path

from scriptlex.config import ScriptLexSettings, get_logger, get_settings
from scriptlex.exceptions import ParseError, ScriptLexFileNotFoundError
from scriptlex.parser.assembler import BlockAssembler
from scriptlex.parser.classifier import LineClassifier, ScanState, scan
from scriptlex.parser.fountain_models import ParseOptions, ParseResult
from scriptlex.parser.title_page import TitlePageParser

logger = get_logger(__name__)

LINE_BREAK_PATTERN = re.compile(r"\r\n|\r|\n")

FOUNTAIN_SUFFIXES = frozenset({".fountain", ".spmd", ".txt"})


def split_lines(text: str) -> list[str]:
    """Split text on any line terminator; empty text has no lines."""
    if not text:
        return []
    return LINE_BREAK_PATTERN.split(text)


def parse_lines(
    lines: Sequence[str], options: ParseOptions | None = None
) -> ParseResult:
    """Parse already split lines.

    Args:
        lines: Document lines without terminators.
        options: Parse options, defaults to ``ParseOptions()``.

    Returns:
        The complete parse result.
    """
    options = options or ParseOptions()
    title = TitlePageParser().parse(lines)
    classified, _ = scan(lines, title.body_start, ScanState(), classifier=LineClassifier())
    assembler = BlockAssembler(options)
    elements, assembly_diagnostics = assembler.assemble(classified)
    linked, blocks, link_diagnostics = assembler.link(elements)
    return ParseResult(
        title_page=title.title_page,
        elements=linked,
        dialogue_blocks=blocks,
        diagnostics=(
            *title.diagnostics,
            *assembly_diagnostics,
            *link_diagnostics,
        ),
        line_count=len(lines),
        body_start=title.body_start,
    )


def parse(text: str, options: ParseOptions | None = None) -> ParseResult:
    """Parse Fountain text into a ``ParseResult``.

    Screenplay content never raises: anything unrecognized becomes Action
    and recoverable problems are reported as diagnostics.

    Args:
        text: Complete Fountain document.
        options: Parse options, defaults to ``ParseOptions()``.

    Returns:
        The complete parse result.
    """
    return parse_lines(split_lines(text), options)


class FountainParser:
    """Parse Fountain screenplays with logging and file support."""

    def __init__(
        self,
        settings: ScriptLexSettings | None = None,
        options: ParseOptions | None = None,
    ) -> None:
        """Initialize the fountain parser.

        Args:
            settings: Settings to use, defaults to the global settings.
            options: Explicit parse options; derived from settings otherwise.
        """
        self.settings = settings or get_settings()
        self.options = options or ParseOptions.from_settings(self.settings)

    def parse(self, text: str) -> ParseResult:
        """Parse Fountain content.

        Args:
            text: Raw Fountain text.

        Returns:
            Parsed result.
        """
        started = time.perf_counter()
        result = parse(text, self.options)
        self._log_parse(result, (time.perf_counter() - started) * 1000)
        return result

    def parse_file(self, file_path: Path | str) -> ParseResult:
        """Parse a Fountain file.

        Args:
            file_path: Path to the Fountain file.

        Returns:
            Parsed result.

        Raises:
            ScriptLexFileNotFoundError: If the file does not exist.
            ParseError: If the file cannot be read or is not valid UTF-8.
        """
        path = Path(file_path)
        if not path.is_file():
            raise ScriptLexFileNotFoundError(
                message=f"Fountain file not found: {path}",
                hint="Check the path and make sure the file exists",
                details={"file": str(path)},
            )
        if path.suffix.lower() not in FOUNTAIN_SUFFIXES:
            logger.warning(
                "File does not have a Fountain extension",
                file=str(path),
                suffix=path.suffix,
            )

        try:
            content = path.read_text(encoding="utf-8-sig")
        except UnicodeDecodeError as e:
            raise ParseError(
                message=f"Could not decode {path.name} as UTF-8",
                hint="Fountain files must be UTF-8 encoded text",
                details={"file": str(path), "position": e.start},
            ) from e
        except OSError as e:
            raise ParseError(
                message=f"Could not read {path}",
                hint="Check the file permissions",
                details={"file": str(path), "error": str(e)},
            ) from e

        logger.debug("Parsing fountain file", file=str(path), size=len(content))
        return self.parse(content)

    def _log_parse(self, result: ParseResult, elapsed_ms: float) -> None:
        logger.debug(
            "Parsed fountain text",
            lines=result.line_count,
            elements=len(result.elements),
            elapsed_ms=round(elapsed_ms, 3),
        )
        if elapsed_ms > self.settings.parser_latency_budget_ms:
            logger.warning(
                "Parse exceeded latency budget",
                lines=result.line_count,
                elapsed_ms=round(elapsed_ms, 3),
                budget_ms=self.settings.parser_latency_budget_ms,
            )
        for diagnostic in result.diagnostics:
            logger.info(
                "Parse diagnostic",
                line=diagnostic.line,
                code=diagnostic.code.value,
                message=diagnostic.message,
            )
