"""Reading history ledger.

Every session is stored twice: with its notes under the body's reading
history section, and without them in the header's ``reading_history_summary``.
``record_session`` is the only writer and always produces both.
"""

import logging
import re
import textwrap
from typing import NamedTuple

from bookshelf.context import LedgerContext, resolve_context
from bookshelf.dates import date_key
from bookshelf.document.sections import find_sections, upsert_section
from bookshelf.models.session import HistorySummaryEntry, ReadingSession
from bookshelf.reading.labels import LABEL_SYNONYMS, match_field

logger = logging.getLogger(__name__)

DEFAULT_HEADING = "## Reading History"

# "### 2026-01-28" or the older "- **Date:** 2026-01-28"
_ENTRY_START_RE = re.compile(
    r"^(?:###[ \t]+(?P<heading>.+?)"
    r"|[-*+][ \t]+\*\*Date(?::\*\*|\*\*[ \t]*:)[ \t]*(?P<legacy>.+?))[ \t]*$",
    re.MULTILINE,
)
_NOTES_RE = re.compile(
    r"^[ \t]*(?:[-*+][ \t]+)?(?:\*\*)?(?:"
    + "|".join(re.escape(label) for label in LABEL_SYNONYMS["notes"])
    + r")(?:\*\*)?[ \t]*:[ \t]*(?:\*\*)?[ \t]*(?P<inline>.*)$",
    re.IGNORECASE | re.MULTILINE,
)
_NOTES_STOP_RE = re.compile(r"^(?:[-*+][ \t]|#|\w[\w ]*:)")


class LedgerUpdate(NamedTuple):
    """Result of appending one session."""

    body: str
    summary: list[HistorySummaryEntry]
    session: ReadingSession


def record_session(
    body: str,
    summary: list[HistorySummaryEntry],
    end_page: int,
    start_page: int | None = None,
    notes: str | None = None,
    *,
    current_page: int = 0,
    context: LedgerContext | None = None,
) -> LedgerUpdate:
    """Append a reading session to both the body log and the summary list.

    Neither input is modified. The start page defaults to where the latest
    recorded session ended, then to ``current_page``. ``end_page`` below the
    start page is not rejected; pages read is clamped to zero instead.

    Args:
        body: Document body (without header).
        summary: Current header summary entries.
        end_page: Page reached in this session.
        start_page: Page the session started on, if known.
        notes: Free-form notes, kept in the body only.
        current_page: The book's progress counter before this session.
        context: Settings and clock; defaults when omitted.

    Returns:
        The new body, the new summary list and the recorded session. The
        caller writes header and body back together.
    """
    ctx = resolve_context(context)
    heading = ctx.reading.history_heading
    sessions = parse_sessions(body, heading)

    if start_page is None:
        start_page = resume_page(sessions, summary, current_page)

    moment = ctx.now()
    session = ReadingSession(
        date=ctx.today(moment),
        start_page=start_page,
        end_page=end_page,
        pages_read=max(0, end_page - start_page),
        timestamp=ctx.timestamp(moment),
        notes=notes.strip() if notes and notes.strip() else None,
    )
    logger.debug("Recording session %s: %d -> %d", session.date, start_page, end_page)

    new_body = upsert_section(body, heading, render_sessions([*sessions, session]))
    return LedgerUpdate(new_body, [*summary, session.to_summary()], session)


def resume_page(
    sessions: list[ReadingSession],
    summary: list[HistorySummaryEntry],
    current_page: int = 0,
) -> int:
    """Where the next session starts when the caller does not say."""
    for entries in (sessions, summary):
        if entries:
            return _chronological(entries)[-1].end_page
    return current_page or 0


def parse_sessions(body: str, heading: str = DEFAULT_HEADING) -> list[ReadingSession]:
    """Read the detailed sessions from the body, oldest first.

    Entries that cannot be read (no recognisable date or end page) are
    dropped with a warning; the rest of the section is still returned.
    """
    sessions: list[ReadingSession] = []
    for span in find_sections(body, heading):
        sessions.extend(parse_entries(span.content(body)))
    # The section is written newest first
    return _chronological(sessions[::-1])


def parse_entries(section_text: str) -> list[ReadingSession]:
    """Sessions in the order they appear in a history section's content."""
    starts = list(_ENTRY_START_RE.finditer(section_text))
    sessions: list[ReadingSession] = []
    for index, start in enumerate(starts):
        end = starts[index + 1].start() if index + 1 < len(starts) else len(section_text)
        label = start.group("heading") or start.group("legacy")
        session = parse_entry(label, section_text[start.end():end])
        if session is None:
            logger.warning("Dropping unreadable reading history entry %r", label)
            continue
        sessions.append(session)
    return sessions


def parse_entry(date_label: str, block: str) -> ReadingSession | None:
    """One detailed entry, or None when it lacks a date or end page."""
    date = date_key(date_label)
    if date is None:
        return None

    fields_text, notes = _split_notes(block)
    end_raw = match_field("end_page", fields_text)
    if end_raw is None:
        return None
    end_page = int(end_raw)

    read_raw = match_field("pages_read", fields_text)
    start_raw = match_field("start_page", fields_text)
    if start_raw is not None:
        start_page = int(start_raw)
    elif read_raw is not None:
        start_page = max(0, end_page - int(read_raw))
    else:
        start_page = 0

    pages_read = int(read_raw) if read_raw is not None else max(0, end_page - start_page)

    return ReadingSession(
        date=date,
        start_page=start_page,
        end_page=end_page,
        pages_read=pages_read,
        timestamp=match_field("timestamp", fields_text),
        notes=notes,
    )


def render_sessions(sessions: list[ReadingSession]) -> str:
    """Markdown for the history section content, newest session first."""
    lines: list[str] = []
    for session in _newest_first(sessions):
        lines.append(f"### {session.date}")
        lines.append(f"- **Start Page:** {session.start_page}")
        lines.append(f"- **End Page:** {session.end_page}")
        lines.append(f"- **Pages Read:** {session.pages_read}")
        if session.timestamp:
            lines.append(f"- **Timestamp:** {session.timestamp}")
        if session.notes:
            lines.append("- **Notes:**")
            lines.extend(f"  {line}" if line else "" for line in session.notes.split("\n"))
        lines.append("")
    return "\n".join(lines)


def _split_notes(block: str) -> tuple[str, str | None]:
    """Separate the notes paragraph from the field lines of an entry."""
    match = _NOTES_RE.search(block)
    if not match:
        return block, None

    note_lines = [match.group("inline")]
    rest = block[match.end():].split("\n")
    consumed = 0
    for line in rest[1:]:
        if line and not line[0].isspace() and _NOTES_STOP_RE.match(line):
            break
        note_lines.append(line)
        consumed += 1

    after = "\n".join(rest[1 + consumed:])
    fields_text = block[:match.start()] + "\n" + after
    notes = textwrap.dedent("\n".join(note_lines[1:])).strip()
    inline = note_lines[0].strip()
    if inline:
        notes = f"{inline}\n{notes}" if notes else inline
    return fields_text, notes or None


def _chronological(entries: list) -> list:
    # Stable, so entries sharing a timestamp keep their relative order
    return sorted(entries, key=lambda entry: entry.timestamp or entry.date)


def _newest_first(sessions: list[ReadingSession]) -> list[ReadingSession]:
    indexed = list(enumerate(sessions))
    indexed.sort(key=lambda pair: (pair[1].sort_key(), pair[0]), reverse=True)
    return [session for _, session in indexed]
