"""Locate, replace and insert Markdown sections in a document body.

A section runs from its heading line to the next heading of the same or a
higher level (or the end of the body). Headings inside fenced code blocks
are ignored. Text outside the edited section is never touched.
"""

import re

from pydantic import BaseModel

_HEADING_RE = re.compile(
    r"^(?P<hashes>#{1,6})[ \t]+(?P<title>.*?)(?:[ \t]+#+)?[ \t]*$"
)
_FENCE_RE = re.compile(r"^[ \t]{0,3}(```|~~~)")


class Heading(BaseModel):
    """A Markdown ATX heading found in a body."""

    level: int
    title: str
    start: int  # offset of the heading line
    end: int  # offset just past the heading line's newline


class SectionSpan(BaseModel):
    """Character span of a section within a body."""

    heading: Heading
    start: int
    content_start: int
    end: int

    def content(self, body: str) -> str:
        return body[self.content_start:self.end]


def parse_heading(heading: str) -> tuple[int, str]:
    """Split ``"## Reading History"`` into ``(2, "Reading History")``."""
    match = _HEADING_RE.match(heading.strip())
    if not match:
        raise ValueError(f"Not a Markdown heading: {heading!r}")
    return len(match.group("hashes")), match.group("title")


def iter_headings(body: str) -> list[Heading]:
    """All ATX headings in ``body`` outside fenced code blocks."""
    headings: list[Heading] = []
    fence: str | None = None
    offset = 0
    for line in body.splitlines(keepends=True):
        start, offset = offset, offset + len(line)
        text = line.rstrip("\r\n")

        fence_match = _FENCE_RE.match(text)
        if fence_match:
            marker = fence_match.group(1)
            if fence is None:
                fence = marker
            elif marker == fence:
                fence = None
            continue
        if fence is not None:
            continue

        match = _HEADING_RE.match(text)
        if match:
            headings.append(
                Heading(
                    level=len(match.group("hashes")),
                    title=match.group("title"),
                    start=start,
                    end=offset,
                )
            )
    return headings


def find_sections(body: str, heading: str) -> list[SectionSpan]:
    """Every section titled ``heading``, in document order."""
    level, title = parse_heading(heading)
    headings = iter_headings(body)
    spans: list[SectionSpan] = []
    for index, found in enumerate(headings):
        if found.level != level or found.title.casefold() != title.casefold():
            continue
        end = len(body)
        for following in headings[index + 1:]:
            if following.level <= level:
                end = following.start
                break
        spans.append(
            SectionSpan(heading=found, start=found.start, content_start=found.end, end=end)
        )
    return spans


def find_section(body: str, heading: str) -> SectionSpan | None:
    """The first section titled ``heading``, or None."""
    spans = find_sections(body, heading)
    return spans[0] if spans else None


def render_section(heading: str, content: str) -> str:
    """Heading line, blank line, content, single trailing newline."""
    content = content.strip("\n")
    if not content:
        return f"{heading.strip()}\n"
    return f"{heading.strip()}\n\n{content}\n"


def upsert_section(body: str, heading: str, content: str) -> str:
    """Replace the section titled ``heading`` or insert it.

    An existing section is replaced in place; later duplicates of it are
    removed. Otherwise the section goes before the first heading of the same
    level, or at the end of the body.

    Args:
        body: Document body.
        heading: Full heading line, e.g. ``"## Reading History"``.
        content: Section content without the heading.

    Returns:
        The new body.
    """
    level, _ = parse_heading(heading)
    section = render_section(heading, content)
    spans = find_sections(body, heading)

    if spans:
        parts: list[str] = []
        cursor = 0
        for index, span in enumerate(spans):
            parts.append(body[cursor:span.start])
            if index == 0:
                parts.append(_terminated(section, followed=span.end < len(body)))
            cursor = span.end
        parts.append(body[cursor:])
        return "".join(parts)

    for found in iter_headings(body):
        if found.level == level:
            before = body[:found.start]
            return before + _terminated(section, followed=True) + body[found.start:]

    if not body.strip():
        return section
    if body.endswith("\n\n"):
        return body + section
    return body + ("\n" if body.endswith("\n") else "\n\n") + section


def _terminated(section: str, followed: bool) -> str:
    # A blank line separates the section from whatever heading follows it
    return section + "\n" if followed else section
