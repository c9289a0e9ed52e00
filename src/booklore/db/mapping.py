# ABOUTME: Converts between domain records and SQLite rows.
# ABOUTME: Handles JSON identifiers, ISO dates, lock flag columns and the books/metadata join.

import json
from datetime import date
from typing import Any

from booklore.metadata.locks import LOCK_COLUMNS
from booklore.metadata.types import BookMetadata
from booklore.models import AdditionalFile, BookFileType, BookRecord, Library, LibraryPath

# Scalar book_metadata columns that map 1:1 onto BookMetadata attributes.
METADATA_COLUMNS: tuple[str, ...] = (
    "title",
    "subtitle",
    "publisher",
    "published_date",
    "description",
    "series_name",
    "series_number",
    "series_total",
    "isbn13",
    "isbn10",
    "language",
    "page_count",
    "identifiers",
    "amazon_rating",
    "amazon_review_count",
    "goodreads_rating",
    "goodreads_review_count",
    "hardcover_rating",
    "hardcover_review_count",
    "cover_updated_on",
)

# Joined SELECT used by every book lookup: book row + metadata row + library path root.
BOOK_SELECT = (
    "SELECT b.*, lp.path AS library_path, m.* "
    "FROM books b "
    "JOIN library_paths lp ON lp.id = b.library_path_id "
    "LEFT JOIN book_metadata m ON m.book_id = b.id"
)


def metadata_to_row(metadata: BookMetadata) -> dict[str, Any]:
    """Convert BookMetadata to a dict of book_metadata columns.

    Vocabulary lists (authors, categories, ...) live in join tables and are
    not part of the row. The published date is stored as an ISO string and
    identifiers as a JSON object.
    """
    row: dict[str, Any] = {}
    for column in METADATA_COLUMNS:
        row[column] = getattr(metadata, column)
    row["published_date"] = (
        metadata.published_date.isoformat() if metadata.published_date else None
    )
    row["identifiers"] = json.dumps(metadata.identifiers) if metadata.identifiers else None
    for lock, column in LOCK_COLUMNS.items():
        row[column] = 1 if lock in metadata.locked_fields else 0
    return row


def row_to_metadata(row: Any) -> BookMetadata:
    """Convert a joined book/metadata row to BookMetadata (without vocabularies)."""
    keys = row.keys()
    if "book_id" not in keys or row["book_id"] is None:
        return BookMetadata()

    values = {column: row[column] for column in METADATA_COLUMNS}
    published = values.pop("published_date")
    identifiers = values.pop("identifiers")
    metadata = BookMetadata(
        published_date=date.fromisoformat(published) if published else None,
        identifiers=json.loads(identifiers) if identifiers else {},
        **values,
    )
    metadata.locked_fields = {lock for lock, column in LOCK_COLUMNS.items() if row[column]}
    return metadata


def row_to_record(row: Any) -> BookRecord:
    """Convert a BOOK_SELECT row to a BookRecord."""
    return BookRecord(
        id=row["id"],
        library_id=row["library_id"],
        library_path_id=row["library_path_id"],
        library_path=row["library_path"],
        file_sub_path=row["file_sub_path"] or "",
        file_name=row["file_name"],
        book_type=BookFileType(row["book_type"]),
        metadata=row_to_metadata(row),
        file_size_kb=row["file_size_kb"],
        initial_hash=row["initial_hash"],
        current_hash=row["current_hash"],
        deleted=bool(row["deleted"]),
        deleted_at=row["deleted_at"],
        added_on=row["added_on"],
        metadata_match_score=row["metadata_match_score"],
    )


def row_to_library_path(row: Any) -> LibraryPath:
    return LibraryPath(id=row["id"], library_id=row["library_id"], path=row["path"])


def row_to_library(row: Any, paths: list[LibraryPath]) -> Library:
    return Library(
        id=row["id"],
        name=row["name"],
        file_naming_pattern=row["file_naming_pattern"],
        paths=paths,
    )


def row_to_additional_file(row: Any) -> AdditionalFile:
    return AdditionalFile(
        id=row["id"],
        book_id=row["book_id"],
        library_path_id=row["library_path_id"],
        file_sub_path=row["file_sub_path"] or "",
        file_name=row["file_name"],
        additional_file_type=row["additional_file_type"],
        current_hash=row["current_hash"],
        initial_hash=row["initial_hash"],
    )
