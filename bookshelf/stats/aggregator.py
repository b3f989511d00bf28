"""Library-wide reading statistics."""

import logging
import math
from collections import Counter
from collections.abc import Iterable, Sequence

from pydantic import BaseModel, Field

from bookshelf.context import LedgerContext, resolve_context
from bookshelf.dates import date_key, month_key, year_key
from bookshelf.document.frontmatter import parse_document
from bookshelf.document.mapper import metadata_to_book, summary_entries
from bookshelf.models.book import Book
from bookshelf.models.session import HistorySummaryEntry
from bookshelf.models.statistics import LibraryStatistics, PeriodStats

logger = logging.getLogger(__name__)

LibraryEntry = tuple[Book, Sequence[HistorySummaryEntry]]


class _BookFacts(BaseModel):
    """What one book contributes to the snapshot."""

    status: str
    total_pages: int | None
    current_page: int
    categories: list[str]
    year: str | None = None
    month: str | None = None
    dates: set[str] = Field(default_factory=set)


def decode_document(text: str, context: LedgerContext | None = None) -> LibraryEntry:
    """Book and header summary of one document, as the aggregator consumes them."""
    metadata, _ = parse_document(text)
    return metadata_to_book(metadata, context), summary_entries(metadata)


def aggregate_documents(
    texts: Iterable[str], context: LedgerContext | None = None
) -> LibraryStatistics:
    """Decode and aggregate raw documents, skipping any that fail to decode."""
    ctx = resolve_context(context)
    entries: list[LibraryEntry] = []
    skipped = 0
    for index, text in enumerate(texts):
        try:
            entries.append(decode_document(text, ctx))
        except Exception:
            logger.exception("Failed to decode document %d, skipping it", index)
            skipped += 1

    stats = aggregate(entries)
    stats.skipped_documents += skipped
    return stats


def aggregate(entries: Iterable[LibraryEntry]) -> LibraryStatistics:
    """Build a statistics snapshot from decoded books.

    Args:
        entries: ``(book, sessions)`` pairs. Sessions may be header summary
            entries or detailed sessions; only their dates are used.

    Returns:
        The snapshot. An empty input gives an all-zero snapshot.
    """
    stats = LibraryStatistics()
    categories: Counter[str] = Counter()
    all_dates: set[str] = set()
    finished_day_counts: list[int] = []

    for index, (book, sessions) in enumerate(entries):
        try:
            facts = book_facts(book, sessions)
        except Exception:
            logger.exception("Failed to read statistics for entry %d, skipping it", index)
            stats.skipped_documents += 1
            continue

        stats.total_books += 1
        if facts.status == "reading":
            stats.reading += 1
        elif facts.status == "finished":
            stats.finished += 1
        else:
            stats.unread += 1

        stats.total_pages += facts.total_pages or 0
        stats.read_pages += facts.current_page
        categories.update(facts.categories)
        all_dates |= facts.dates

        if facts.status != "finished":
            continue
        if facts.dates:
            finished_day_counts.append(len(facts.dates))
        if facts.year and facts.month:
            _add_to_bucket(stats.yearly.setdefault(facts.year, PeriodStats()), facts)
            _add_to_bucket(stats.monthly.setdefault(facts.month, PeriodStats()), facts)

    stats.category_counts = dict(categories)
    stats.total_reading_days = len(all_dates)
    if finished_day_counts:
        stats.average_sessions_to_finish = sum(finished_day_counts) / len(finished_day_counts)
    stats.yearly = finalize_buckets(stats.yearly)
    stats.monthly = finalize_buckets(stats.monthly)
    return stats


def book_facts(book: Book, sessions: Sequence[HistorySummaryEntry]) -> _BookFacts:
    """Distinct reading dates and bucket keys for one book.

    Touched dates are the start date plus every session date.
    """
    dates: set[str] = set()
    started = date_key(book.started_at)
    if started:
        dates.add(started)
    for session in sessions:
        day = date_key(session.date)
        if day:
            dates.add(day)

    year = month = None
    if book.status == "finished" and book.finished_at:
        year, month = year_key(book.finished_at), month_key(book.finished_at)
        if year is None:
            logger.warning("Unreadable finish date %r for %r", book.finished_at, book.title)

    return _BookFacts(
        status=book.status,
        total_pages=book.total_pages,
        current_page=book.current_page,
        categories=list(book.categories),
        year=year,
        month=month,
        dates=dates,
    )


def finalize_buckets(buckets: dict[str, PeriodStats]) -> dict[str, PeriodStats]:
    """Sort buckets by key and fill in averages and change from the previous one."""
    ordered: dict[str, PeriodStats] = {}
    previous: PeriodStats | None = None
    for key in sorted(buckets):
        current = buckets[key]
        if current.count:
            current.average_days_to_finish = current.reading_days / current.count
        if previous is not None:
            current.change = current.count - previous.count
            current.change_percent = change_percent(previous.count, current.count)
        ordered[key] = current
        previous = current
    return ordered


def change_percent(previous: int, current: int) -> int:
    """Percentage change, rounded half up; 100 when growing from zero."""
    if previous == 0:
        return 100 if current > 0 else 0
    return math.floor((current - previous) / previous * 100 + 0.5)


def _add_to_bucket(bucket: PeriodStats, facts: _BookFacts) -> None:
    bucket.count += 1
    bucket.pages += facts.total_pages or 0
    bucket.reading_days += len(facts.dates)
