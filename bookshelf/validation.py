"""Validation of decoded books and sessions.

These checks report problems as messages and, where asked, correct them.
Decoding itself never rejects a value.
"""

import logging

from bookshelf.models.book import VALID_STATUSES, Book

logger = logging.getLogger(__name__)

UNKNOWN_TITLE = "Unknown Title"


def validate_book(book: Book) -> list[str]:
    """Return a list of problems with ``book`` (empty if valid)."""
    errors: list[str] = []

    if not book.title.strip():
        errors.append("Title is required")
    if book.current_page < 0:
        errors.append("Read page must be non-negative")
    if book.total_pages is not None and book.total_pages < 0:
        errors.append("Total pages must be non-negative")
    if book.total_pages is not None and book.current_page > book.total_pages:
        errors.append("Read page cannot exceed total pages")
    if book.status not in VALID_STATUSES:
        errors.append("Invalid status")

    return errors


def validate_session(
    start_page: int | None = None,
    end_page: int | None = None,
    pages_read: int | None = None,
) -> list[str]:
    """Problems with a session's page numbers, checked before recording it."""
    errors: list[str] = []

    if start_page is not None and start_page < 0:
        errors.append("Start page must be non-negative")
    if end_page is not None and end_page < 0:
        errors.append("End page must be non-negative")
    if start_page is not None and end_page is not None and end_page < start_page:
        errors.append("End page must be greater than or equal to start page")
    if pages_read is not None and pages_read < 0:
        errors.append("Pages read must be non-negative")

    return errors


def validate_and_fix_book(book: Book) -> Book:
    """Return a copy of ``book`` with correctable problems fixed."""
    fixes: dict = {}

    current_page = book.current_page
    if current_page < 0:
        current_page = 0
    total_pages = book.total_pages
    if total_pages is not None and total_pages < 0:
        total_pages = None
    if total_pages is not None and current_page > total_pages:
        current_page = total_pages

    if current_page != book.current_page:
        fixes["current_page"] = current_page
    if total_pages != book.total_pages:
        fixes["total_pages"] = total_pages
    if not book.title.strip():
        fixes["title"] = UNKNOWN_TITLE
    if book.status not in VALID_STATUSES:
        fixes["status"] = "unread"

    if fixes:
        logger.warning("Corrected %s for %r", ", ".join(sorted(fixes)), book.title)
    return book.model_copy(update=fixes)


def is_book_valid(book: Book) -> bool:
    return not validate_book(book)
