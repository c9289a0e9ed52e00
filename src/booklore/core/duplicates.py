# ABOUTME: Decides the identity of a discovered file against the catalog by content hash.
# ABOUTME: Revives soft-deleted books, follows moved files, and recognizes alternate formats.

import logging
from dataclasses import dataclass
from enum import Enum

from booklore.db.catalog import LibraryCatalog
from booklore.models import BookRecord, LibraryFile

logger = logging.getLogger(__name__)


class FileProcessStatus(Enum):
    NEW = "NEW"
    DUPLICATE = "DUPLICATE"
    DUPLICATE_ADDITIONAL_FORMAT = "DUPLICATE_ADDITIONAL_FORMAT"
    UPDATED = "UPDATED"
    REVIVED = "REVIVED"


@dataclass(frozen=True)
class DuplicateFileInfo:
    """What a user needs to know about a file that matched an existing book."""

    book_id: int
    file_name: str
    full_path: str
    hash: str


@dataclass
class Resolution:
    """Outcome of resolving one discovered file.

    book is the matched book as re-read from the catalog after any rebinding;
    it is None only for NEW.
    """

    status: FileProcessStatus
    book: BookRecord | None = None
    duplicate: DuplicateFileInfo | None = None

    @property
    def changed(self) -> bool:
        """Whether the matched book's row was rebound to the discovered file."""
        return self.status in (FileProcessStatus.UPDATED, FileProcessStatus.REVIVED)


def _duplicate_info(
    book_id: int, library_file: LibraryFile, content_hash: str
) -> DuplicateFileInfo:
    return DuplicateFileInfo(
        book_id=book_id,
        file_name=library_file.file_name,
        full_path=str(library_file.full_path),
        hash=content_hash,
    )


class DuplicateResolver:
    """Classifies discovered files as new books or as known ones.

    Checks run in a fixed order and the first match wins: soft-deleted hash,
    active hash, additional-file hash, then same file name in the same
    library. Rebinding writes go through the catalog and should run inside
    the caller's per-file transaction.
    """

    def __init__(self, catalog: LibraryCatalog) -> None:
        self._catalog = catalog

    def resolve(self, library_file: LibraryFile, content_hash: str) -> Resolution | None:
        """Resolve a discovered file.

        Returns:
            The Resolution, or None when content_hash is blank (the file
            cannot be classified and must be skipped).

        Raises:
            LookupError: If a rebound book cannot be re-read.
        """
        if not content_hash or not content_hash.strip():
            logger.warning("Skipping file due to missing hash: %s", library_file.full_path)
            return None

        deleted = self._catalog.find_deleted_by_current_hash(content_hash)
        if deleted is not None:
            return self._revive(deleted, library_file, content_hash)

        active = self._catalog.find_by_current_hash(content_hash)
        if active is not None:
            return self._rebind(active, library_file, content_hash)

        additional = self._catalog.find_additional_file_by_hash(content_hash)
        if additional is not None:
            owner = self._refetch(additional.book_id)
            return Resolution(
                FileProcessStatus.DUPLICATE_ADDITIONAL_FORMAT,
                owner,
                _duplicate_info(owner.id, library_file, content_hash),
            )

        same_name = self._catalog.find_by_file_name_and_library(
            library_file.file_name, library_file.library.id
        )
        if same_name is not None:
            return Resolution(
                FileProcessStatus.DUPLICATE,
                same_name,
                _duplicate_info(same_name.id, library_file, content_hash),
            )

        return Resolution(FileProcessStatus.NEW)

    def _revive(self, book: BookRecord, library_file: LibraryFile, content_hash: str) -> Resolution:
        logger.info(
            "Found soft-deleted book with same hash, undeleting: bookId=%d file='%s'",
            book.id,
            library_file.file_name,
        )
        self._catalog.undelete(book.id)
        self._catalog.update_book(
            book.id,
            file_name=library_file.file_name,
            file_sub_path=library_file.file_sub_path,
            library_path_id=library_file.library_path.id,
            library_id=library_file.library.id,
            current_hash=content_hash,
        )
        revived = self._refetch(book.id)
        return Resolution(
            FileProcessStatus.REVIVED,
            revived,
            _duplicate_info(revived.id, library_file, content_hash),
        )

    def _rebind(self, book: BookRecord, library_file: LibraryFile, content_hash: str) -> Resolution:
        changes: dict[str, str | int] = {}
        if book.file_name != library_file.file_name:
            changes["file_name"] = library_file.file_name
        if book.file_sub_path != library_file.file_sub_path:
            changes["file_sub_path"] = library_file.file_sub_path
        if book.library_path_id != library_file.library_path.id:
            # A sub path only means something under its own library path.
            changes["library_path_id"] = library_file.library_path.id
            changes["library_id"] = library_file.library.id
            changes["file_sub_path"] = library_file.file_sub_path

        self._catalog.update_book(book.id, current_hash=content_hash, **changes)
        refreshed = self._refetch(book.id)
        info = _duplicate_info(refreshed.id, library_file, content_hash)

        if changes:
            logger.info("Book %d rebound to %s", refreshed.id, refreshed.full_file_path)
            return Resolution(FileProcessStatus.UPDATED, refreshed, info)
        return Resolution(FileProcessStatus.DUPLICATE, refreshed, info)

    def _refetch(self, book_id: int) -> BookRecord:
        book = self._catalog.get_by_id(book_id)
        if book is None:
            raise LookupError(f"Book with id {book_id} disappeared during duplicate resolution")
        return book
