# ABOUTME: Metadata edits on cataloged books: lock-aware field updates, lock toggling and rescoring.
# ABOUTME: Optionally moves the book's file afterwards so its path keeps following the pattern.

import logging
from collections.abc import Callable, Iterable
from datetime import date
from typing import Any

from booklore.core.mover import FileMoveService
from booklore.db.catalog import LibraryCatalog
from booklore.metadata.locks import ATTRIBUTE_LOCKS, LockableField, LockAction
from booklore.metadata.scoring import MetadataMatchWeights, calculate_match_score
from booklore.models import BookRecord

logger = logging.getLogger(__name__)

_LIST_FIELDS = frozenset({"authors", "categories", "moods", "tags"})
_INT_FIELDS = frozenset(
    {
        "series_total",
        "page_count",
        "amazon_review_count",
        "goodreads_review_count",
        "hardcover_review_count",
    }
)
_FLOAT_FIELDS = frozenset(
    {"series_number", "amazon_rating", "goodreads_rating", "hardcover_rating"}
)

# Editable attributes that have no lock of their own.
_UNLOCKABLE_FIELDS = frozenset(
    {
        "amazon_rating",
        "amazon_review_count",
        "goodreads_rating",
        "goodreads_review_count",
        "hardcover_rating",
        "hardcover_review_count",
    }
)

EDITABLE_FIELDS = frozenset(ATTRIBUTE_LOCKS) | _UNLOCKABLE_FIELDS


def coerce_value(name: str, raw: str) -> Any:
    """Convert a textual field value (e.g. from the command line) to its metadata type.

    Blank text clears the field. Lists are comma separated; dates accept
    YYYY or YYYY-MM-DD.

    Raises:
        ValueError: If the field is unknown or the text does not parse.
    """
    if name not in EDITABLE_FIELDS:
        raise ValueError(f"Unknown metadata field: {name}")
    raw = raw.strip()
    if name in _LIST_FIELDS:
        return [part.strip() for part in raw.split(",") if part.strip()]
    if not raw:
        return None
    if name in _INT_FIELDS:
        return int(raw)
    if name in _FLOAT_FIELDS:
        return float(raw)
    if name == "published_date":
        return date(int(raw), 1, 1) if raw.isdigit() and len(raw) == 4 else date.fromisoformat(raw)
    return raw


class MetadataEditor:
    """Applies user metadata changes to books."""

    def __init__(
        self,
        catalog: LibraryCatalog,
        mover: FileMoveService | None = None,
        weights: Callable[[], MetadataMatchWeights] = MetadataMatchWeights,
    ) -> None:
        self._catalog = catalog
        self._mover = mover
        self._weights = weights

    def update_metadata(
        self, book_id: int, changes: dict[str, Any], move_file: bool = False
    ) -> BookRecord:
        """Change metadata fields of a book, skipping locked ones.

        Args:
            book_id: The book to edit.
            changes: Attribute name -> new value (BookMetadata attribute names).
            move_file: Move the file afterwards if the naming pattern now
                resolves to a different path, and record the new location.

        Returns:
            The book as stored after the edit.

        Raises:
            ValueError: If the book does not exist or a field is not editable.
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown metadata fields: {', '.join(sorted(unknown))}")

        book = self._catalog.get_by_id(book_id)
        if book is None:
            raise ValueError(f"Book with id {book_id} not found")

        metadata = book.metadata
        for name, value in changes.items():
            lock = ATTRIBUTE_LOCKS.get(name)
            if lock is not None and metadata.is_locked(lock):
                logger.info("Skipping locked field %s on book %d", name, book_id)
                continue
            if name in _LIST_FIELDS:
                value = list(value or [])
            setattr(metadata, name, value)

        with self._catalog.transaction():
            self._catalog.save_metadata(book_id, metadata)
            self._catalog.set_match_score(book_id, calculate_match_score(metadata, self._weights()))

        book = self._refetch(book_id)
        if move_file and self._mover is not None:
            if self._mover.move_single_file(book).moved:
                book = self._refetch(book_id)
        return book

    def _refetch(self, book_id: int) -> BookRecord:
        book = self._catalog.get_by_id(book_id)
        if book is None:
            raise LookupError(f"Book with id {book_id} disappeared during edit")
        return book


def toggle_field_locks(
    catalog: LibraryCatalog, book_ids: Iterable[int], actions: dict[str, str]
) -> None:
    """Lock or unlock named fields on several books.

    Args:
        actions: Public lock name (e.g. "titleLocked", or the alias
            "thumbnailLocked") -> "LOCK" or "UNLOCK".

    Raises:
        ValueError: If a lock name or action is unknown.
    """
    locks: dict[LockableField, bool] = {}
    for name, action in actions.items():
        locks[LockableField.from_name(name)] = LockAction.parse(action) is LockAction.LOCK
    catalog.set_locks(list(book_ids), locks)


def toggle_all_locks(catalog: LibraryCatalog, book_ids: Iterable[int], action: str) -> None:
    """Lock or unlock every lockable field on several books."""
    locked = LockAction.parse(action) is LockAction.LOCK
    catalog.set_locks(list(book_ids), {lock: locked for lock in LockableField})


def recalculate_all_match_scores(catalog: LibraryCatalog, weights: MetadataMatchWeights) -> int:
    """Recompute the match score of every active book. Returns the number updated."""
    count = 0
    with catalog.transaction():
        for book in catalog.list_books():
            catalog.set_match_score(book.id, calculate_match_score(book.metadata, weights))
            count += 1
    return count
