"""Tests for mapping header metadata to books and back."""

import pytest

from bookshelf.context import LedgerContext
from bookshelf.document.frontmatter import SUMMARY_KEY, parse_document
from bookshelf.document.mapper import (
    book_to_metadata,
    metadata_to_book,
    reconcile_current_page,
    split_isbn,
    summary_entries,
)
from bookshelf.models.book import Book


def _summary(*pages: int) -> list[dict]:
    return [
        {"date": f"2026-01-{day:02d}", "startPage": 0, "endPage": p, "pagesRead": p}
        for day, p in enumerate(pages, start=1)
    ]


class TestMetadataToBook:
    """Decoding headers into books."""

    def test_full_header(self, context: LedgerContext) -> None:
        book = metadata_to_book(
            {
                "title": "Dune",
                "subtitle": "Book One",
                "author": ["Frank Herbert"],
                "category": ["Sci-Fi", "Classic"],
                "publisher": "Ace",
                "publish": "1965",
                "total": 412,
                "isbn": "0441013597 9780441013593",
                "cover": "https://covers.example/dune.jpg",
                "status": "reading",
                "read_page": 120,
                "read_started": "2026-01-02 09:00:00",
                "read_finished": "",
                "created": "2026-01-01 08:00:00",
                "updated": "2026-01-02 09:00:00",
            },
            context,
        )
        assert book.title == "Dune"
        assert book.subtitle == "Book One"
        assert book.authors == ["Frank Herbert"]
        assert book.categories == ["Sci-Fi", "Classic"]
        assert book.publish_date == "1965"
        assert book.total_pages == 412
        assert book.isbn10 == "0441013597"
        assert book.isbn13 == "9780441013593"
        assert book.cover_reference == "https://covers.example/dune.jpg"
        assert book.status == "reading"
        assert book.current_page == 120
        assert book.started_at == "2026-01-02 09:00:00"
        assert book.finished_at is None
        assert book.created_at == "2026-01-01 08:00:00"

    def test_empty_header_gives_defaults(self, context: LedgerContext) -> None:
        book = metadata_to_book({}, context)
        assert book.title == ""
        assert book.status == "unread"
        assert book.current_page == 0
        assert book.authors == []
        assert book.total_pages is None
        assert book.created_at == "2026-01-28 15:30:00"
        assert book.updated_at == "2026-01-28 15:30:00"

    @pytest.mark.parametrize("status", [None, "", "abandoned", 3, ["reading"]])
    def test_invalid_status_defaults_to_unread(self, status: object) -> None:
        assert metadata_to_book({"status": status}).status == "unread"

    @pytest.mark.parametrize("total", ["many", -5, float("nan"), True, [400]])
    def test_invalid_total_is_unknown(self, total: object) -> None:
        assert metadata_to_book({"total": total}).total_pages is None

    def test_numeric_string_total(self) -> None:
        assert metadata_to_book({"total": "320"}).total_pages == 320

    def test_single_author_string(self) -> None:
        assert metadata_to_book({"author": "Ursula K. Le Guin"}).authors == ["Ursula K. Le Guin"]

    def test_duplicate_categories_kept(self) -> None:
        book = metadata_to_book({"category": ["Fantasy", "Fantasy"]})
        assert book.categories == ["Fantasy", "Fantasy"]

    def test_numeric_title_becomes_text(self) -> None:
        assert metadata_to_book({"title": 1984}).title == "1984"


class TestReconciliation:
    """The progress counter never trails the recorded history."""

    def test_history_sum_raises_counter(self) -> None:
        metadata = {"read_page": 100, SUMMARY_KEY: _summary(50, 100)}
        assert metadata_to_book(metadata).current_page == 150

    def test_counter_kept_when_larger(self) -> None:
        metadata = {"read_page": 300, SUMMARY_KEY: _summary(50)}
        assert metadata_to_book(metadata).current_page == 300

    def test_no_history_uses_counter(self) -> None:
        assert reconcile_current_page({"read_page": 42}) == 42

    def test_missing_counter_uses_history(self) -> None:
        assert reconcile_current_page({SUMMARY_KEY: _summary(10, 20)}) == 30

    @pytest.mark.parametrize("read_page", [0, 10, 150, 151, 1000])
    def test_never_below_explicit_counter(self, read_page: int) -> None:
        metadata = {"read_page": read_page, SUMMARY_KEY: _summary(100, 50)}
        assert metadata_to_book(metadata).current_page >= read_page

    def test_bad_records_ignored(self, caplog: pytest.LogCaptureFixture) -> None:
        records = _summary(40) + [{"startPage": 0, "endPage": 10}, {"date": "2026-02-01", "endPage": "x"}]
        assert reconcile_current_page({SUMMARY_KEY: records}) == 40
        assert "Skipping reading_history_summary record" in caplog.text


class TestSummaryEntries:
    def test_decodes_records(self) -> None:
        entries = summary_entries({SUMMARY_KEY: _summary(10, 20)})
        assert [e.end_page for e in entries] == [10, 20]

    def test_missing_summary(self) -> None:
        assert summary_entries({}) == []


class TestSplitIsbn:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("0441013597 9780441013593", ("0441013597", "9780441013593")),
            ("9780441013593", (None, "9780441013593")),
            ("  0441013597  ", ("0441013597", None)),
            ("0441013597 1111111111", ("0441013597", None)),
            ("12345", (None, None)),
            ("", (None, None)),
            (None, (None, None)),
            (9780441013593, (None, "9780441013593")),
        ],
    )
    def test_classification(self, value: object, expected: tuple) -> None:
        assert split_isbn(value) == expected


class TestBookToMetadata:
    """Encoding books into headers."""

    def test_minimal_book(self) -> None:
        metadata = book_to_metadata(
            Book(title="Dune", created_at="2026-01-01 08:00:00", updated_at="2026-01-01 08:00:00")
        )
        assert metadata == {
            "title": "Dune",
            "author": [],
            "category": [],
            "status": "unread",
            "created": "2026-01-01 08:00:00",
            "updated": "2026-01-01 08:00:00",
            "read_started": "",
            "read_finished": "",
            "read_page": 0,
        }

    def test_isbn_combined(self) -> None:
        metadata = book_to_metadata(Book(title="Dune", isbn10="0441013597", isbn13="9780441013593"))
        assert metadata["isbn"] == "0441013597 9780441013593"

    def test_isbn13_only(self) -> None:
        metadata = book_to_metadata(Book(title="Dune", isbn13="9780441013593"))
        assert metadata["isbn"] == "9780441013593"

    def test_negative_total_omitted(self) -> None:
        assert "total" not in book_to_metadata(Book(title="Dune", total_pages=-1))

    def test_zero_total_kept(self) -> None:
        assert book_to_metadata(Book(title="Dune", total_pages=0))["total"] == 0

    def test_round_trip(self) -> None:
        book = Book(
            title="Dune",
            subtitle="Book One",
            authors=["Frank Herbert"],
            categories=["Sci-Fi"],
            total_pages=412,
            isbn10="0441013597",
            isbn13="9780441013593",
            status="finished",
            current_page=412,
            started_at="2026-01-02 09:00:00",
            finished_at="2026-01-20 21:00:00",
            created_at="2026-01-01 08:00:00",
            updated_at="2026-01-20 21:00:00",
        )
        assert metadata_to_book(book_to_metadata(book)) == book


class TestDecodedHeaders:
    def test_unquoted_padded_isbn10(self) -> None:
        metadata, _ = parse_document("---\ntitle: Penguin\nisbn: 0142437174\nread_page: 0150\n---\n")
        book = metadata_to_book(metadata)
        assert book.isbn10 == "0142437174"
        assert book.current_page == 150
