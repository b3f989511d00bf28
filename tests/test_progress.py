"""Tests for whole-document progress updates."""

from datetime import datetime

from bookshelf.config import ReadingConfig
from bookshelf.context import LedgerContext
from bookshelf.document.frontmatter import SUMMARY_KEY, compose_document, parse_document
from bookshelf.models.book import Book
from bookshelf.reading.history import parse_sessions
from bookshelf.reading.progress import new_book_metadata, read_book, update_reading_progress

UNREAD_DOC = """---
title: "Project Hail Mary"
author: ["Andy Weir"]
status: unread
total: 400
read_page: 0
rating: 5
created: "2026-01-01 08:00:00"
updated: "2026-01-01 08:00:00"
reading_history_summary: []
---
Recommended by a friend.
"""


class TestUpdateReadingProgress:
    """Recording sessions against a full document."""

    def test_first_session_starts_reading(self, context: LedgerContext) -> None:
        result = update_reading_progress(UNREAD_DOC, 50, context=context)
        metadata, body = parse_document(result.text)

        assert result.session.start_page == 0
        assert result.session.pages_read == 50
        assert metadata["status"] == "reading"
        assert metadata["read_started"] == "2026-01-28 15:30:00"
        assert metadata["read_page"] == 50
        assert metadata["updated"] == "2026-01-28 15:30:00"
        assert metadata["created"] == "2026-01-01 08:00:00"
        assert metadata[SUMMARY_KEY] == [
            {
                "date": "2026-01-28",
                "startPage": 0,
                "endPage": 50,
                "pagesRead": 50,
                "timestamp": "2026-01-28 15:30:00",
            }
        ]
        assert body.startswith("Recommended by a friend.\n\n## Reading History\n")
        assert result.book.status == "reading"
        assert result.book.current_page == 50

    def test_unknown_keys_preserved_in_place(self, context: LedgerContext) -> None:
        result = update_reading_progress(UNREAD_DOC, 50, context=context)
        metadata, _ = parse_document(result.text)
        assert metadata["rating"] == 5
        assert list(metadata)[:6] == ["title", "author", "status", "total", "read_page", "rating"]

    def test_reaching_total_finishes_book(self, context: LedgerContext) -> None:
        first = update_reading_progress(UNREAD_DOC, 50, context=context)
        second = update_reading_progress(first.text, 400, context=context)
        metadata, _ = parse_document(second.text)

        assert second.session.start_page == 50
        assert second.session.pages_read == 350
        assert metadata["status"] == "finished"
        assert metadata["read_finished"] == "2026-01-28 15:30:00"
        assert second.book.current_page == 400
        assert [r["endPage"] for r in metadata[SUMMARY_KEY]] == [50, 400]

    def test_finishing_straight_from_unread(self, context: LedgerContext) -> None:
        result = update_reading_progress(UNREAD_DOC, 420, context=context)
        metadata, _ = parse_document(result.text)
        assert metadata["status"] == "finished"
        assert metadata["read_started"] == "2026-01-28 15:30:00"
        assert metadata["read_finished"] == "2026-01-28 15:30:00"

    def test_existing_start_date_kept(self, context: LedgerContext) -> None:
        text = UNREAD_DOC.replace("status: unread", 'status: reading\nread_started: "2026-01-10 07:00:00"')
        result = update_reading_progress(text, 100, context=context)
        metadata, _ = parse_document(result.text)
        assert metadata["read_started"] == "2026-01-10 07:00:00"

    def test_unknown_total_never_finishes(self, context: LedgerContext) -> None:
        text = UNREAD_DOC.replace("total: 400\n", "")
        result = update_reading_progress(text, 5000, context=context)
        assert result.book.status == "reading"

    def test_zero_end_page_keeps_unread(self, context: LedgerContext) -> None:
        result = update_reading_progress(UNREAD_DOC, 0, context=context)
        assert result.book.status == "unread"
        assert result.session.pages_read == 0

    def test_automatic_changes_disabled(self) -> None:
        context = LedgerContext(
            reading=ReadingConfig(auto_status_change=False, auto_update_timestamp=False),
            clock=lambda: datetime(2026, 2, 1, 12, 0, 0),
        )
        result = update_reading_progress(UNREAD_DOC, 400, context=context)
        metadata, _ = parse_document(result.text)
        assert metadata["status"] == "unread"
        assert metadata["updated"] == "2026-01-01 08:00:00"
        assert metadata["read_page"] == 400
        assert "read_finished" not in metadata

    def test_missing_updated_is_stamped(self) -> None:
        context = LedgerContext(
            reading=ReadingConfig(auto_update_timestamp=False),
            clock=lambda: datetime(2026, 2, 1, 12, 0, 0),
        )
        text = UNREAD_DOC.replace('updated: "2026-01-01 08:00:00"\n', "")
        result = update_reading_progress(text, 10, context=context)
        metadata, _ = parse_document(result.text)
        assert metadata["updated"] == "2026-02-01 12:00:00"

    def test_explicit_start_page(self, context: LedgerContext) -> None:
        result = update_reading_progress(UNREAD_DOC, 120, start_page=100, context=context)
        assert result.session.start_page == 100
        assert result.session.pages_read == 20

    def test_notes_stay_out_of_header(self, context: LedgerContext) -> None:
        result = update_reading_progress(UNREAD_DOC, 30, notes="Great opening.", context=context)
        metadata, body = parse_document(result.text)
        assert "Great opening." not in result.text.split("---")[1]
        assert "notes" not in metadata[SUMMARY_KEY][0]
        assert parse_sessions(body)[0].notes == "Great opening."

    def test_foreign_summary_fields_survive(self, context: LedgerContext) -> None:
        text = UNREAD_DOC.replace(
            "reading_history_summary: []",
            "reading_history_summary:\n"
            '  - date: "2026-01-05"\n'
            "    startPage: 0\n"
            "    endPage: 20\n"
            "    pagesRead: 20\n"
            "    mood: cozy\n",
        )
        result = update_reading_progress(text, 45, context=context)
        metadata, _ = parse_document(result.text)
        assert metadata[SUMMARY_KEY][0]["mood"] == "cozy"
        assert result.session.start_page == 20

    def test_document_without_header(self, context: LedgerContext) -> None:
        result = update_reading_progress("Loose notes\n", 12, context=context)
        metadata, body = parse_document(result.text)
        assert metadata["read_page"] == 12
        assert metadata["status"] == "reading"
        assert len(metadata[SUMMARY_KEY]) == 1
        assert body.startswith("Loose notes\n")


class TestNewBookMetadata:
    def test_defaults(self, context: LedgerContext) -> None:
        metadata = new_book_metadata(Book(title="Dune", authors=["Frank Herbert"]), context)
        assert metadata["status"] == "unread"
        assert metadata["created"] == "2026-01-28 15:30:00"
        assert metadata["updated"] == "2026-01-28 15:30:00"
        assert metadata[SUMMARY_KEY] == []
        assert list(metadata)[-1] == SUMMARY_KEY

    def test_configured_default_status(self) -> None:
        context = LedgerContext(reading=ReadingConfig(default_status="reading"))
        assert new_book_metadata(Book(title="Dune"), context)["status"] == "reading"

    def test_created_kept(self, context: LedgerContext) -> None:
        book = Book(title="Dune", created_at="2025-12-24 18:00:00")
        assert new_book_metadata(book, context)["created"] == "2025-12-24 18:00:00"

    def test_new_document_accepts_progress(self, context: LedgerContext) -> None:
        text = compose_document(new_book_metadata(Book(title="Dune", total_pages=412), context), "")
        result = update_reading_progress(text, 100, context=context)
        assert result.book.title == "Dune"
        assert result.book.current_page == 100


class TestReadBook:
    def test_book_and_sessions(self, context: LedgerContext) -> None:
        text = update_reading_progress(UNREAD_DOC, 50, notes="Hooked.", context=context).text
        book, sessions = read_book(text, context)
        assert book.title == "Project Hail Mary"
        assert book.authors == ["Andy Weir"]
        assert [(s.start_page, s.end_page, s.notes) for s in sessions] == [(0, 50, "Hooked.")]


class TestByteOrderMark:
    def test_bom_document_keeps_single_header(self, context: LedgerContext) -> None:
        text = '\ufeff---\ntitle: "Dune"\nread_page: 10\n---\nBody\n'
        result = update_reading_progress(text, 20, context=context)

        assert result.text.startswith("---\n")
        assert result.text.count("---\n") == 2
        assert result.session.start_page == 10
        metadata, body = parse_document(result.text)
        assert metadata["title"] == "Dune"
        assert body.startswith("Body\n")
