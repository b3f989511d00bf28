"""Field labels accepted in detailed reading history entries.

Older documents spelled the entry fields differently. Each field maps to an
ordered list of matchers; the first one that finds a value wins.
"""

import re
from collections.abc import Callable

Matcher = Callable[[str], str | None]

LABEL_SYNONYMS: dict[str, tuple[str, ...]] = {
    "start_page": ("Start Page", "Start", "From"),
    "end_page": ("End Page", "End", "To", "Page"),
    "pages_read": ("Pages Read", "Pages", "Read"),
    "timestamp": ("Timestamp", "Time"),
    "notes": ("Notes", "Note"),
}

NUMBER = r"(-?\d+)"
REST_OF_LINE = r"(.*?)"


def label_matcher(label: str, value_pattern: str) -> Matcher:
    """Build a matcher for one ``label: value`` line.

    The label must open its line (after an optional list bullet) and may be
    bold on its own (``**Start Page:**``) or with the colon outside
    (``**Start Page**:``). Matching ignores case.
    """
    pattern = re.compile(
        r"^[ \t]*(?:[-*+][ \t]+)?(?:\*\*)?"
        + re.escape(label)
        + r"(?:\*\*)?[ \t]*:[ \t]*(?:\*\*[ \t]*)?"
        + value_pattern
        + r"[ \t]*$",
        re.IGNORECASE | re.MULTILINE,
    )

    def match(text: str) -> str | None:
        found = pattern.search(text)
        return found.group(1) if found else None

    return match


def _matchers(field: str, value_pattern: str) -> list[Matcher]:
    return [label_matcher(label, value_pattern) for label in LABEL_SYNONYMS[field]]


FIELD_MATCHERS: dict[str, list[Matcher]] = {
    "start_page": _matchers("start_page", NUMBER),
    "end_page": _matchers("end_page", NUMBER),
    "pages_read": _matchers("pages_read", NUMBER),
    "timestamp": _matchers("timestamp", REST_OF_LINE),
}


def first_match(matchers: list[Matcher], text: str) -> str | None:
    """Value from the highest-priority matcher that succeeds."""
    for matcher in matchers:
        value = matcher(text)
        if value is not None and value != "":
            return value
    return None


def match_field(field: str, text: str) -> str | None:
    return first_match(FIELD_MATCHERS[field], text)
