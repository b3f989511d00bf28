"""Data models for the Bookshelf reading tracker."""

from bookshelf.models.book import VALID_STATUSES, Book, BookStatus
from bookshelf.models.session import HistorySummaryEntry, ReadingSession
from bookshelf.models.statistics import LibraryStatistics, PeriodStats

__all__ = [
    "Book",
    "BookStatus",
    "HistorySummaryEntry",
    "LibraryStatistics",
    "PeriodStats",
    "ReadingSession",
    "VALID_STATUSES",
]
