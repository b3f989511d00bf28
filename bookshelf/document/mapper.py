"""Mapping between header metadata and ``Book`` records.

Header keys follow the layout book documents have always used (``author``,
``category``, ``total``, ``read_page`` ...), which differs from the model's
field names.
"""

import logging
import math

from pydantic import ValidationError

from bookshelf.context import LedgerContext, resolve_context
from bookshelf.document.frontmatter import SUMMARY_KEY, Metadata
from bookshelf.models.book import VALID_STATUSES, Book
from bookshelf.models.session import HistorySummaryEntry

logger = logging.getLogger(__name__)


def book_to_metadata(book: Book) -> Metadata:
    """Encode a book as an ordered header mapping.

    Unset optional scalars are left out, except the status, creation/update
    and start/finish timestamps which are always written so every document
    shares the same header shape.
    """
    metadata: Metadata = {
        "title": book.title,
        "subtitle": book.subtitle,
        "author": list(book.authors),
        "category": list(book.categories),
        "publisher": book.publisher,
        "publish": book.publish_date,
    }

    total = book.total_pages
    if total is not None and math.isfinite(total) and total >= 0:
        metadata["total"] = total

    isbn = f"{book.isbn10 or ''} {book.isbn13 or ''}".strip()
    if isbn:
        metadata["isbn"] = isbn

    metadata.update(
        {
            "cover": book.cover_reference,
            "status": book.status,
            "created": book.created_at,
            "updated": book.updated_at,
            "read_started": book.started_at or "",
            "read_finished": book.finished_at or "",
            "read_page": book.current_page or 0,
        }
    )
    return {key: value for key, value in metadata.items() if value is not None}


def metadata_to_book(metadata: Metadata, context: LedgerContext | None = None) -> Book:
    """Decode a header mapping into a ``Book``.

    Never raises. Missing or mistyped fields fall back to defaults, and the
    progress counter is raised to the total recorded in the reading history
    summary when the stored counter lags behind it.
    """
    isbn10, isbn13 = split_isbn(metadata.get("isbn"))
    now = None
    if not _as_text(metadata.get("created")) or not _as_text(metadata.get("updated")):
        now = resolve_context(context).timestamp()

    status = metadata.get("status")
    if status not in VALID_STATUSES:
        if status not in (None, ""):
            logger.warning("Unknown status %r, treating book as unread", status)
        status = "unread"

    return Book(
        title=_as_text(metadata.get("title")) or "",
        subtitle=_as_text(metadata.get("subtitle")),
        authors=_as_text_list(metadata.get("author")),
        categories=_as_text_list(metadata.get("category")),
        publisher=_as_text(metadata.get("publisher")),
        publish_date=_as_text(metadata.get("publish")),
        total_pages=_as_page(metadata.get("total")),
        isbn10=isbn10,
        isbn13=isbn13,
        cover_reference=_as_text(metadata.get("cover")),
        status=status,
        current_page=reconcile_current_page(metadata),
        started_at=_as_text(metadata.get("read_started")),
        finished_at=_as_text(metadata.get("read_finished")),
        created_at=_as_text(metadata.get("created")) or now,
        updated_at=_as_text(metadata.get("updated")) or now,
    )


def split_isbn(value: object) -> tuple[str | None, str | None]:
    """Classify whitespace-separated identifiers as ISBN-10 or ISBN-13 by length.

    The first token of each length wins.
    """
    isbn10: str | None = None
    isbn13: str | None = None
    if value is None or isinstance(value, bool):
        return isbn10, isbn13
    for token in str(value).split():
        if len(token) == 10 and isbn10 is None:
            isbn10 = token
        elif len(token) == 13 and isbn13 is None:
            isbn13 = token
    return isbn10, isbn13


def summary_entries(metadata: Metadata) -> list[HistorySummaryEntry]:
    """Decode the header's reading history summary, skipping bad records."""
    entries: list[HistorySummaryEntry] = []
    for index, record in enumerate(metadata.get(SUMMARY_KEY) or []):
        if not isinstance(record, dict):
            continue
        try:
            entries.append(HistorySummaryEntry.model_validate(record))
        except ValidationError as exc:
            logger.warning(
                "Skipping %s record %d: %s", SUMMARY_KEY, index, exc.errors()[0]["msg"]
            )
    return entries


def reconcile_current_page(metadata: Metadata) -> int:
    """``max(read_page, sum of pagesRead over the summary)``."""
    explicit = _as_page(metadata.get("read_page")) or 0
    from_history = sum(entry.pages_read or 0 for entry in summary_entries(metadata))
    if from_history > explicit:
        logger.debug("read_page %d lags history total %d", explicit, from_history)
        return from_history
    return explicit


def _as_text(value: object) -> str | None:
    if value is None or isinstance(value, (list, dict)):
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    text = str(value)
    return text if text.strip() else None


def _as_text_list(value: object) -> list[str]:
    if isinstance(value, list):
        return [str(item) for item in value if item is not None and not isinstance(item, dict)]
    text = _as_text(value)
    return [text] if text else []


def _as_page(value: object) -> int | None:
    """Non-negative page count from an int, float or numeric string."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, (int, float)) or not math.isfinite(value) or value < 0:
        return None
    return int(value)
