# ABOUTME: Core metadata data structures for the book catalog.
# ABOUTME: BookMetadata flows between extraction, persistence, naming and editing.

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from booklore.metadata.locks import LockableField


@dataclass
class BookMetadata:
    """Structured metadata for a cataloged book.

    This is the central data structure that flows through the pipeline:
    extraction -> shell book -> catalog -> naming pattern / editing. Every field
    is optional because a freshly created shell book may know nothing beyond
    its file name.
    """

    title: str | None = None
    subtitle: str | None = None
    authors: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    moods: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    publisher: str | None = None
    published_date: date | None = None
    description: str | None = None
    series_name: str | None = None
    series_number: float | None = None
    series_total: int | None = None
    isbn13: str | None = None
    isbn10: str | None = None
    language: str | None = None
    page_count: int | None = None
    identifiers: dict[str, str] = field(default_factory=dict)
    amazon_rating: float | None = None
    amazon_review_count: int | None = None
    goodreads_rating: float | None = None
    goodreads_review_count: int | None = None
    hardcover_rating: float | None = None
    hardcover_review_count: int | None = None
    cover_updated_on: str | None = None
    locked_fields: set[LockableField] = field(default_factory=set)
    source_path: Path | None = None

    @property
    def author(self) -> str:
        """Convenience property: joined author string for display."""
        return ", ".join(self.authors) if self.authors else ""

    @property
    def isbn(self) -> str | None:
        """Preferred ISBN: ISBN-13 when known, otherwise ISBN-10."""
        return self.isbn13 or self.isbn10

    def is_locked(self, lock: LockableField) -> bool:
        return lock in self.locked_fields

    def set_locked(self, lock: LockableField, locked: bool) -> None:
        if locked:
            self.locked_fields.add(lock)
        else:
            self.locked_fields.discard(lock)

    def apply_lock_to_all_fields(self, locked: bool) -> None:
        """Lock or unlock every lockable field at once."""
        if locked:
            self.locked_fields = set(LockableField)
        else:
            self.locked_fields = set()
