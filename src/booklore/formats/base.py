# ABOUTME: Shared behavior of the per-format book file processors.
# ABOUTME: Builds shell books from extracted metadata and saves extracted covers.

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from booklore.covers import CoverStore
from booklore.db.hashing import file_size_kb
from booklore.metadata.normalizer import fill_from_file_name
from booklore.metadata.types import BookMetadata
from booklore.models import BookFileType, BookRecord, LibraryFile, ShellBook

logger = logging.getLogger(__name__)


class BookReadError(Exception):
    """Raised when a book file cannot be read or parsed."""


class FormatProcessor(ABC):
    """Base class for processors of one book file type.

    Subclasses implement read_metadata and read_cover; this class turns their
    output into shell books and stored covers.
    """

    book_type: BookFileType

    def __init__(self, covers: CoverStore) -> None:
        self._covers = covers

    @property
    def supported_types(self) -> frozenset[BookFileType]:
        return frozenset({self.book_type})

    @abstractmethod
    def read_metadata(self, path: Path) -> BookMetadata:
        """Read the metadata embedded in the file.

        Raises:
            BookReadError: If the file cannot be parsed.
        """

    @abstractmethod
    def read_cover(self, path: Path) -> tuple[bytes, str] | None:
        """Return (image bytes, file suffix) for the file's cover, or None."""

    def extract_new_book(self, library_file: LibraryFile) -> ShellBook:
        """Build an unsaved book from a file's embedded metadata.

        Fields the file does not carry are filled from its name.

        Raises:
            BookReadError: If the file cannot be parsed.
        """
        path = library_file.full_path
        metadata = self.read_metadata(path)
        fill_from_file_name(metadata, library_file.file_name)
        return ShellBook(
            library_file=library_file,
            book_type=self.book_type,
            metadata=metadata,
            file_size_kb=file_size_kb(path),
        )

    def generate_cover(self, book: BookRecord) -> bool:
        """Extract and store the cover of a cataloged book.

        Returns:
            True if a cover was found and saved.
        """
        try:
            cover = self.read_cover(book.full_file_path)
        except BookReadError as exc:
            logger.warning("Could not read cover for book %d: %s", book.id, exc)
            return False
        if cover is None:
            logger.debug("No cover found in %s", book.full_file_path)
            return False
        data, suffix = cover
        self._covers.save(book.id, data, suffix)
        return True
