"""Book documents: header codec, record mapping and body sections."""

from bookshelf.document.frontmatter import (
    SUMMARY_KEY,
    compose_document,
    parse_document,
    serialize_header,
)
from bookshelf.document.mapper import book_to_metadata, metadata_to_book
from bookshelf.document.sections import find_section, upsert_section

__all__ = [
    "SUMMARY_KEY",
    "book_to_metadata",
    "compose_document",
    "find_section",
    "metadata_to_book",
    "parse_document",
    "serialize_header",
    "upsert_section",
]
