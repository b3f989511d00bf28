"""Tolerant extraction of calendar dates from stored timestamps."""

import re
from datetime import date, datetime

_LEADING_DATE = re.compile(r"^\s*(\d{4})-(\d{1,2})-(\d{1,2})")


def parse_date(value: object) -> date | None:
    """Return the calendar date carried by a stored timestamp.

    Accepts ``date``/``datetime`` objects, ISO-8601 strings (with a space or
    ``T`` separator, optional ``Z``) and anything that merely starts with
    ``YYYY-MM-DD``. Returns None for empty or unrecognisable input.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass

    match = _LEADING_DATE.match(text)
    if not match:
        return None
    try:
        return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError:
        return None


def date_key(value: object) -> str | None:
    """``YYYY-MM-DD`` for a stored timestamp, or None."""
    parsed = parse_date(value)
    return parsed.isoformat() if parsed else None


def year_key(value: object) -> str | None:
    parsed = parse_date(value)
    return f"{parsed.year:04d}" if parsed else None


def month_key(value: object) -> str | None:
    parsed = parse_date(value)
    return f"{parsed.year:04d}-{parsed.month:02d}" if parsed else None
