"""Reading history ledger and progress updates."""

from bookshelf.reading.history import parse_sessions, record_session
from bookshelf.reading.progress import update_reading_progress

__all__ = ["parse_sessions", "record_session", "update_reading_progress"]
