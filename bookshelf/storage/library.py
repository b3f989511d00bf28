"""Folder of Markdown book documents."""

import logging
import os
import tempfile
import threading
from pathlib import Path

import chardet

from bookshelf.context import LedgerContext, resolve_context
from bookshelf.models.book import Book
from bookshelf.models.session import ReadingSession
from bookshelf.models.statistics import LibraryStatistics
from bookshelf.reading.progress import ProgressUpdate, read_book, update_reading_progress
from bookshelf.stats.aggregator import aggregate, decode_document

logger = logging.getLogger(__name__)


class BookLibrary:
    """Reads and updates the book documents under one folder.

    Updates to the same document are serialized with a per-path lock and
    written atomically; reads never lock.

    Args:
        folder: Directory holding the documents.
        pattern: Glob selecting document files.
        context: Settings and clock passed to every operation.
    """

    def __init__(
        self,
        folder: str | Path,
        pattern: str = "*.md",
        context: LedgerContext | None = None,
    ) -> None:
        self.folder = Path(folder)
        self.pattern = pattern
        self.context = resolve_context(context)
        self._locks: dict[Path, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def paths(self) -> list[Path]:
        """Document paths, sorted, searched recursively."""
        if not self.folder.is_dir():
            return []
        return sorted(p for p in self.folder.rglob(self.pattern) if p.is_file())

    def read_text(self, path: str | Path) -> str:
        """Read a document, detecting its encoding when it is not UTF-8.

        Raises:
            FileNotFoundError: If path does not exist.
        """
        path = Path(path)
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            pass

        raw_bytes = path.read_bytes()
        detected = chardet.detect(raw_bytes)
        encoding = detected.get("encoding") or "utf-8"
        confidence = detected.get("confidence", 0)

        if confidence < 0.7:
            logger.warning(
                "Low confidence encoding detection for %s: %s (%.0f%%)",
                path,
                encoding,
                confidence * 100,
            )

        try:
            return raw_bytes.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            logger.error("Failed to decode file: %s", path)
            return raw_bytes.decode("utf-8", errors="replace")

    def read_book(self, path: str | Path) -> tuple[Book, list[ReadingSession]]:
        return read_book(self.read_text(path), self.context)

    def update_progress(
        self,
        path: str | Path,
        end_page: int,
        start_page: int | None = None,
        notes: str | None = None,
    ) -> ProgressUpdate:
        """Record a session in one document and write it back.

        Raises:
            FileNotFoundError: If path does not exist.
            OSError: If the document cannot be written.
        """
        path = Path(path)
        with self._lock_for(path):
            update = update_reading_progress(
                self.read_text(path), end_page, start_page, notes, self.context
            )
            write_atomic(path, update.text)
        logger.info(
            "Recorded pages %d-%d in %s",
            update.session.start_page,
            update.session.end_page,
            path.name,
        )
        return update

    def statistics(self) -> LibraryStatistics:
        """Snapshot over every document; failures are skipped and counted."""
        entries = []
        skipped = 0
        for path in self.paths():
            try:
                entries.append(decode_document(self.read_text(path), self.context))
            except Exception:
                logger.exception("Failed to load %s for statistics, skipping it", path)
                skipped += 1
        stats = aggregate(entries)
        stats.skipped_documents += skipped
        return stats

    def _lock_for(self, path: Path) -> threading.Lock:
        key = path.resolve()
        with self._locks_guard:
            return self._locks.setdefault(key, threading.Lock())


def write_atomic(path: Path, text: str) -> None:
    """Replace ``path`` with ``text`` via a temporary file in the same folder."""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
