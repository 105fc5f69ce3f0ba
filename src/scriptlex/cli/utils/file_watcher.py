"""File watching utilities for the ScriptLex CLI."""

from __future__ import annotations

import queue
import threading
from pathlib import Path
from typing import Protocol

from watchdog.events import FileSystemEvent, FileSystemEventHandler

from scriptlex.config import get_logger
from scriptlex.parser.fountain_parser import FOUNTAIN_SUFFIXES
from scriptlex.parser.sequencing import BackgroundParser

logger = get_logger(__name__)


class StatusCallback(Protocol):
    """Protocol for status update callbacks."""

    def __call__(self, status: str, path: Path, error: str | None = None) -> None:
        """Update status callback.

        Args:
            status: Status type (submitted, error)
            path: File path being processed
            error: Optional error message
        """
        ...


class FountainFileHandler(FileSystemEventHandler):
    """Feed the current text of a watched Fountain file to a background parser.

    Editors often emit several events per save, so a text identical to the
    last submitted one is not submitted again.
    """

    def __init__(
        self,
        target: Path,
        parser: BackgroundParser,
        callback: StatusCallback | None = None,
        max_queue_size: int = 100,
    ) -> None:
        """Initialize the handler.

        Args:
            target: File to follow; other paths in the watched directory
                are ignored
            parser: Background parser receiving the file contents
            callback: Callback for status updates
            max_queue_size: Maximum queue size for pending events
        """
        self.target = target.resolve()
        self.parser = parser
        self.callback = callback
        self.last_text: str | None = None

        self.event_queue: queue.Queue[Path] = queue.Queue(maxsize=max_queue_size)
        self.shutdown_event = threading.Event()
        self.processor_thread: threading.Thread | None = None

    def start_processing(self) -> None:
        """Start the event processor thread."""
        if self.processor_thread is None or not self.processor_thread.is_alive():
            self.shutdown_event.clear()
            self.processor_thread = threading.Thread(
                target=self._process_events, daemon=True
            )
            self.processor_thread.start()

    def stop_processing(self, timeout: float = 10.0) -> None:
        """Stop the event processor thread gracefully.

        Args:
            timeout: Maximum time to wait for thread shutdown
        """
        self.shutdown_event.set()
        if self.processor_thread and self.processor_thread.is_alive():
            self.processor_thread.join(timeout=timeout)

    def should_process(self, path: Path) -> bool:
        """Check if an event path refers to the watched file.

        Args:
            path: File path to check

        Returns:
            True if file should be processed
        """
        if path.suffix.lower() not in FOUNTAIN_SUFFIXES:
            return False
        try:
            return path.resolve() == self.target
        except OSError:
            return False

    def on_modified(self, event: FileSystemEvent) -> None:
        """Handle file modification events.

        Args:
            event: Filesystem event
        """
        self._handle(event, event.src_path)

    def on_created(self, event: FileSystemEvent) -> None:
        """Handle file creation events.

        Args:
            event: Filesystem event
        """
        self._handle(event, event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        """Handle moves; editors that save atomically rename onto the target.

        Args:
            event: Filesystem event
        """
        self._handle(event, event.dest_path)

    def _handle(self, event: FileSystemEvent, src_path: str | bytes) -> None:
        if event.is_directory or not isinstance(src_path, str):
            return
        path = Path(src_path)
        if self.should_process(path):
            self._queue_file(path)

    def _queue_file(self, path: Path) -> None:
        """Queue a file for processing.

        Args:
            path: Path to queue
        """
        try:
            self.event_queue.put_nowait(path)
        except queue.Full:
            logger.warning("Event queue is full, dropping event", path=str(path))

    def _process_events(self) -> None:
        """Read queued files and submit their text."""
        while not self.shutdown_event.is_set():
            try:
                path = self.event_queue.get(timeout=0.2)
            except queue.Empty:
                continue

            # Collapse bursts of events into a single read
            while True:
                try:
                    path = self.event_queue.get_nowait()
                except queue.Empty:
                    break

            self.submit_file(path)

    def submit_file(self, path: Path) -> int | None:
        """Submit the current text of ``path`` to the parser.

        Args:
            path: Path to the Fountain file

        Returns:
            The sequence number of the submitted edit, or None when the text
            was unchanged or could not be read.
        """
        try:
            text = path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Failed to read watched file", path=str(path), error=str(e))
            if self.callback:
                self.callback("error", path, str(e))
            return None

        if text == self.last_text:
            return None
        self.last_text = text
        sequence = self.parser.submit(text)
        logger.debug("Submitted edit", path=str(path), sequence=sequence)
        if self.callback:
            self.callback("submitted", path)
        return sequence
