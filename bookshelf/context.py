"""Explicit settings and clock threaded through ledger operations."""

from collections.abc import Callable
from datetime import datetime

from pydantic import BaseModel, Field

from bookshelf.config import ReadingConfig


class LedgerContext(BaseModel):
    """Settings plus the time source used when stamping sessions.

    Tests inject a fixed ``clock`` to make dates deterministic.
    """

    reading: ReadingConfig = Field(default_factory=ReadingConfig)
    clock: Callable[[], datetime] = datetime.now

    def now(self) -> datetime:
        return self.clock()

    def today(self, at: datetime | None = None) -> str:
        """Date formatted with ``reading.date_format`` (now unless ``at`` is given)."""
        return (at or self.now()).strftime(self.reading.date_format)

    def timestamp(self, at: datetime | None = None) -> str:
        """Date-time formatted with ``reading.datetime_format``."""
        return (at or self.now()).strftime(self.reading.datetime_format)


def resolve_context(context: LedgerContext | None) -> LedgerContext:
    return context if context is not None else LedgerContext()
