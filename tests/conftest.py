"""Shared fixtures."""

from datetime import datetime
from pathlib import Path

import pytest

from bookshelf.config import ReadingConfig
from bookshelf.context import LedgerContext

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "books"

FIXED_NOW = datetime(2026, 1, 28, 15, 30, 0)


@pytest.fixture
def context() -> LedgerContext:
    """Context whose clock always reads 2026-01-28 15:30:00."""
    return LedgerContext(reading=ReadingConfig(), clock=lambda: FIXED_NOW)


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR
