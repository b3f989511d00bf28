"""Progress updates applied to a whole book document."""

import logging
from typing import NamedTuple

from bookshelf.context import LedgerContext, resolve_context
from bookshelf.document.frontmatter import (
    SUMMARY_KEY,
    Metadata,
    compose_document,
    parse_document,
)
from bookshelf.document.mapper import book_to_metadata, metadata_to_book, summary_entries
from bookshelf.models.book import Book
from bookshelf.models.session import ReadingSession
from bookshelf.reading.history import parse_sessions, record_session

logger = logging.getLogger(__name__)


class ProgressUpdate(NamedTuple):
    """A rewritten document and what changed in it."""

    text: str
    book: Book
    session: ReadingSession


def update_reading_progress(
    text: str,
    end_page: int,
    start_page: int | None = None,
    notes: str | None = None,
    context: LedgerContext | None = None,
) -> ProgressUpdate:
    """Record a session in a document and update its header to match.

    Header keys the tracker does not know about are kept, in place. The
    returned text must be written back as a single write; concurrent updates
    to the same document have to be serialized by the caller.

    Args:
        text: Full document text.
        end_page: Page reached.
        start_page: Page the session began on; inferred when omitted.
        notes: Optional notes for the body log.
        context: Settings and clock.

    Returns:
        The new document text, the decoded book and the new session.
    """
    ctx = resolve_context(context)
    settings = ctx.reading
    metadata, body = parse_document(text)
    book = metadata_to_book(metadata, ctx)

    update = record_session(
        body,
        summary_entries(metadata),
        end_page,
        start_page,
        notes,
        current_page=book.current_page,
        context=ctx,
    )

    now = update.session.timestamp or ctx.timestamp()
    if settings.auto_status_change:
        _apply_status_change(metadata, end_page, book.total_pages, now)
    if settings.auto_update_timestamp or not metadata.get("updated"):
        metadata["updated"] = now
    metadata["read_page"] = end_page

    raw_records = [r for r in metadata.get(SUMMARY_KEY) or [] if isinstance(r, dict)]
    metadata[SUMMARY_KEY] = [*raw_records, update.session.to_summary().to_record()]

    return ProgressUpdate(
        compose_document(metadata, update.body),
        metadata_to_book(metadata, ctx),
        update.session,
    )


def _apply_status_change(
    metadata: Metadata, end_page: int, total_pages: int | None, now: str
) -> None:
    status = metadata.get("status")
    if total_pages and end_page >= total_pages:
        if status != "finished":
            logger.info("Marking %r finished", metadata.get("title"))
        metadata["status"] = "finished"
        if not metadata.get("read_finished"):
            metadata["read_finished"] = now
        if not metadata.get("read_started"):
            metadata["read_started"] = now
    elif end_page > 0 and status in (None, "", "unread"):
        metadata["status"] = "reading"
        if not metadata.get("read_started"):
            metadata["read_started"] = now


def new_book_metadata(book: Book, context: LedgerContext | None = None) -> Metadata:
    """Header for a freshly created book document.

    Status falls back to the configured default when the book is still
    unread, timestamps are stamped and the summary starts empty.
    """
    ctx = resolve_context(context)
    now = ctx.timestamp()
    status = book.status
    if status == "unread":
        status = ctx.reading.default_status
    fresh = book.model_copy(
        update={
            "status": status,
            "created_at": book.created_at or now,
            "updated_at": now,
        }
    )
    metadata = book_to_metadata(fresh)
    metadata[SUMMARY_KEY] = []
    return metadata


def read_book(text: str, context: LedgerContext | None = None) -> tuple[Book, list[ReadingSession]]:
    """Decode a document into its book and detailed sessions (oldest first)."""
    ctx = resolve_context(context)
    metadata, body = parse_document(text)
    return metadata_to_book(metadata, ctx), parse_sessions(body, ctx.reading.history_heading)
