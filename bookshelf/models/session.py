"""Reading session data models.

A ``ReadingSession`` lives in the document body with its notes; the
matching ``HistorySummaryEntry`` lives in the header without them.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class HistorySummaryEntry(BaseModel):
    """Note-free projection of a session kept in the header.

    Unknown keys are retained so a record written by another tool survives
    a read/write cycle unchanged.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    date: str
    start_page: int = Field(0, alias="startPage")
    end_page: int = Field(0, alias="endPage")
    pages_read: int | None = Field(None, alias="pagesRead")
    timestamp: str | None = None

    @model_validator(mode="after")
    def fill_pages_read(self) -> HistorySummaryEntry:
        if self.pages_read is None:
            self.pages_read = max(0, self.end_page - self.start_page)
        return self

    def to_record(self) -> dict:
        """Header record with the original camelCase keys."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ReadingSession(HistorySummaryEntry):
    """A ledger entry as stored in the document body."""

    notes: str | None = None

    def to_summary(self) -> HistorySummaryEntry:
        return HistorySummaryEntry(
            date=self.date,
            start_page=self.start_page,
            end_page=self.end_page,
            pages_read=self.pages_read,
            timestamp=self.timestamp,
        )

    def sort_key(self) -> str:
        return self.timestamp or self.date
