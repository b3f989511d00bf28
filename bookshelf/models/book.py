"""Book data model."""

from typing import Literal

from pydantic import BaseModel, Field

BookStatus = Literal["unread", "reading", "finished"]
VALID_STATUSES: tuple[str, ...] = ("unread", "reading", "finished")


class Book(BaseModel):
    """One book document's metadata.

    ``current_page <= total_pages`` is not enforced here; see
    ``bookshelf.validation``.
    """

    title: str
    subtitle: str | None = None
    authors: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    publisher: str | None = None
    publish_date: str | None = None
    total_pages: int | None = None
    isbn10: str | None = None
    isbn13: str | None = None
    cover_reference: str | None = None
    status: BookStatus = "unread"
    current_page: int = 0
    started_at: str | None = None
    finished_at: str | None = None
    created_at: str = ""
    updated_at: str = ""
