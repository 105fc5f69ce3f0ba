"""Sequenced parse delivery for editors that reparse on every keystroke.

Each submitted text gets a monotonically increasing sequence number. A
result is only delivered when it is newer than the last delivered one, so a
slow parse of an old edit can never overwrite the result of a newer edit.
"""

from __future__ import annotations

import queue
import threading
from collections.abc import Callable
from dataclasses import dataclass

from scriptlex.config import get_logger
from scriptlex.parser.fountain_models import ParseResult
from scriptlex.parser.fountain_parser import parse_lines, split_lines
from scriptlex.parser.incremental import (
    IncrementalReparser,
    ReparseOutcome,
    ReparseStrategy,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class SequencedResult:
    """Parse result tagged with the sequence number of its edit."""

    sequence: int
    text: str
    result: ParseResult
    strategy: ReparseStrategy


class ParseSequencer:
    """Issue sequence numbers and gate results so the latest edit wins."""

    def __init__(self) -> None:
        """Initialize the sequencer."""
        self._lock = threading.RLock()
        self._issued = 0
        self._applied = 0
        self._latest: SequencedResult | None = None

    def next_sequence(self) -> int:
        """Reserve the sequence number for a new edit."""
        with self._lock:
            self._issued += 1
            return self._issued

    @property
    def latest_applied(self) -> int:
        """Sequence number of the newest accepted result (0 if none)."""
        with self._lock:
            return self._applied

    @property
    def latest(self) -> SequencedResult | None:
        """Newest accepted result."""
        with self._lock:
            return self._latest

    def offer(
        self,
        result: SequencedResult,
        on_accept: Callable[[SequencedResult], None] | None = None,
    ) -> bool:
        """Accept ``result`` if it is newer than everything applied so far.

        Args:
            result: Result to offer.
            on_accept: Called with the result while the gate is held, so
                deliveries happen in sequence order.

        Returns:
            True if the result was accepted.
        """
        with self._lock:
            if result.sequence <= self._applied:
                logger.debug(
                    "Discarding stale parse result",
                    sequence=result.sequence,
                    applied=self._applied,
                )
                return False
            self._applied = result.sequence
            self._latest = result
            if on_accept is not None:
                on_accept(result)
            return True


class BackgroundParser:
    """Parse submitted texts on a worker thread and deliver the newest result."""

    def __init__(
        self,
        on_result: Callable[[SequencedResult], None],
        reparser: IncrementalReparser | None = None,
        sequencer: ParseSequencer | None = None,
        max_queue_size: int = 100,
    ) -> None:
        """Initialize the background parser.

        Args:
            on_result: Receives each accepted result, in sequence order.
            reparser: Reparser used for incremental updates.
            sequencer: Gate shared with other producers, if any.
            max_queue_size: Maximum number of pending texts.
        """
        self.on_result = on_result
        self.reparser = reparser or IncrementalReparser()
        self.sequencer = sequencer or ParseSequencer()

        self.pending: queue.Queue[tuple[int, str]] = queue.Queue(maxsize=max_queue_size)
        self.shutdown_event = threading.Event()
        self.idle_event = threading.Event()
        self.idle_event.set()
        self.worker_thread: threading.Thread | None = None

        self._outstanding = 0
        self._outstanding_lock = threading.Lock()
        self._text: str | None = None
        self._result: ParseResult | None = None

    def start(self) -> None:
        """Start the worker thread."""
        if self.worker_thread is None or not self.worker_thread.is_alive():
            self.shutdown_event.clear()
            self.worker_thread = threading.Thread(
                target=self._run, name="scriptlex-parser", daemon=True
            )
            self.worker_thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the worker thread.

        Args:
            timeout: Maximum time to wait for the thread to finish
        """
        self.shutdown_event.set()
        if self.worker_thread and self.worker_thread.is_alive():
            self.worker_thread.join(timeout=timeout)

    def submit(self, text: str) -> int:
        """Queue ``text`` for parsing.

        Args:
            text: Complete document text after an edit.

        Returns:
            The sequence number assigned to this edit.
        """
        sequence = self.sequencer.next_sequence()
        with self._outstanding_lock:
            self._outstanding += 1
            self.idle_event.clear()
        item = (sequence, text)
        while True:
            try:
                self.pending.put_nowait(item)
                break
            except queue.Full:
                # Older edits are superseded anyway
                try:
                    self.pending.get_nowait()
                    self._finish(1)
                    logger.warning("Parse queue is full, dropping oldest edit")
                except queue.Empty:
                    continue
        return sequence

    def wait_until_idle(self, timeout: float | None = None) -> bool:
        """Block until every submitted text has been handled.

        Returns:
            True if the parser became idle before the timeout.
        """
        return self.idle_event.wait(timeout)

    def _finish(self, count: int) -> None:
        with self._outstanding_lock:
            self._outstanding -= count
            if self._outstanding <= 0:
                self._outstanding = 0
                self.idle_event.set()

    def _run(self) -> None:
        while not self.shutdown_event.is_set():
            try:
                item = self.pending.get(timeout=0.1)
            except queue.Empty:
                continue

            # Only the newest queued edit matters
            skipped = 0
            while True:
                try:
                    item = self.pending.get_nowait()
                    skipped += 1
                except queue.Empty:
                    break

            try:
                self._process(*item)
            except Exception as e:
                logger.error(
                    "Background parse failed",
                    sequence=item[0],
                    error=str(e),
                    exc_info=True,
                )
            finally:
                self._finish(skipped + 1)

    def _process(self, sequence: int, text: str) -> None:
        if self._result is None or self._text is None:
            outcome = ReparseOutcome(
                result=parse_lines(split_lines(text), self.reparser.options),
                strategy=ReparseStrategy.FULL,
            )
        else:
            outcome = self.reparser.reparse(self._result, self._text, text)

        self._text = text
        self._result = outcome.result
        logger.debug(
            "Background parse finished",
            sequence=sequence,
            strategy=outcome.strategy.value,
        )
        self.sequencer.offer(
            SequencedResult(
                sequence=sequence,
                text=text,
                result=outcome.result,
                strategy=outcome.strategy,
            ),
            on_accept=self.on_result,
        )
