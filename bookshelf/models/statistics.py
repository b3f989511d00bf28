"""Library statistics snapshot models."""

from pydantic import BaseModel, Field


class PeriodStats(BaseModel):
    """Finished books within one year or year-month bucket."""

    count: int = 0
    pages: int = 0
    reading_days: int = 0
    average_days_to_finish: float = 0.0
    change: int | None = None  # None for the earliest bucket
    change_percent: int | None = None


class LibraryStatistics(BaseModel):
    """Derived analytics over a whole library."""

    total_books: int = 0
    unread: int = 0
    reading: int = 0
    finished: int = 0
    total_pages: int = 0
    read_pages: int = 0
    category_counts: dict[str, int] = Field(default_factory=dict)
    yearly: dict[str, PeriodStats] = Field(default_factory=dict)
    monthly: dict[str, PeriodStats] = Field(default_factory=dict)
    average_sessions_to_finish: float = 0.0
    total_reading_days: int = 0
    skipped_documents: int = 0
