# ABOUTME: Turns discovered library files into cataloged books.
# ABOUTME: Hashes, resolves duplicates and creates new books, one transaction per file.

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from booklore.core.duplicates import DuplicateFileInfo, DuplicateResolver, FileProcessStatus
from booklore.covers import CoverStore
from booklore.db.catalog import LibraryCatalog
from booklore.db.hashing import compute_file_hash
from booklore.formats import CbxProcessor, EpubProcessor, PdfProcessor
from booklore.metadata.locks import LockableField
from booklore.metadata.scoring import MetadataMatchWeights, calculate_match_score
from booklore.models import BookFileType, BookRecord, LibraryFile, ShellBook

logger = logging.getLogger(__name__)


class UnsupportedFileTypeError(Exception):
    """Raised when no processor is registered for a book file type."""


class BookFileProcessor(Protocol):
    """Format-specific half of file processing."""

    @property
    def supported_types(self) -> frozenset[BookFileType]: ...

    def extract_new_book(self, library_file: LibraryFile) -> ShellBook: ...

    def generate_cover(self, book: BookRecord) -> bool: ...


class BookFileProcessorRegistry:
    """Selects the processor for a book file type."""

    def __init__(self, processors: Iterable[BookFileProcessor]) -> None:
        self._processors: dict[BookFileType, BookFileProcessor] = {}
        for processor in processors:
            for book_type in processor.supported_types:
                self._processors[book_type] = processor

    @classmethod
    def default(cls, covers: CoverStore) -> "BookFileProcessorRegistry":
        """Registry with the built-in EPUB, PDF and comic archive processors."""
        return cls([EpubProcessor(covers), PdfProcessor(covers), CbxProcessor(covers)])

    def get_processor(self, book_type: BookFileType) -> BookFileProcessor | None:
        return self._processors.get(book_type)

    def get_processor_or_raise(self, book_type: BookFileType) -> BookFileProcessor:
        processor = self._processors.get(book_type)
        if processor is None:
            raise UnsupportedFileTypeError(f"No processor registered for {book_type.value}")
        return processor


@dataclass
class FileProcessResult:
    """A processed file: the resulting book, how it was classified, and duplicate details."""

    book: BookRecord
    status: FileProcessStatus
    duplicate: DuplicateFileInfo | None = None


class BookCreator:
    """Persists shell books with their vocabularies and an initial match score."""

    def __init__(
        self,
        catalog: LibraryCatalog,
        weights: Callable[[], MetadataMatchWeights] = MetadataMatchWeights,
    ) -> None:
        self._catalog = catalog
        self._weights = weights

    def create(self, shell: ShellBook, content_hash: str) -> BookRecord:
        with self._catalog.transaction():
            book_id = self._catalog.create_book(shell, content_hash)
            score = calculate_match_score(shell.metadata, self._weights())
            self._catalog.set_match_score(book_id, score)
        book = self._catalog.get_by_id(book_id)
        if book is None:
            raise LookupError(f"Book with id {book_id} disappeared after creation")
        return book


class FileProcessingPipeline:
    """Processes discovered files one at a time, each in its own transaction.

    A failure while processing a file rolls back that file's writes only;
    files committed before it stay committed.
    """

    def __init__(
        self,
        catalog: LibraryCatalog,
        registry: BookFileProcessorRegistry,
        weights: Callable[[], MetadataMatchWeights] = MetadataMatchWeights,
        hasher: Callable[[Path], str] = compute_file_hash,
    ) -> None:
        self._catalog = catalog
        self._registry = registry
        self._resolver = DuplicateResolver(catalog)
        self._creator = BookCreator(catalog, weights)
        self._hasher = hasher

    def process_file(self, library_file: LibraryFile) -> FileProcessResult | None:
        """Catalog one discovered file.

        Returns:
            The result, or None when the file is of an unknown type or its
            content cannot be hashed.

        Raises:
            UnsupportedFileTypeError: If the file's type has no processor.
            BookReadError: If a new file's metadata cannot be extracted.
        """
        book_type = library_file.book_type or BookFileType.from_file_name(library_file.file_name)
        if book_type is None:
            logger.warning("Unsupported file type for file: %s", library_file.file_name)
            return None
        processor = self._registry.get_processor_or_raise(book_type)
        library_file.book_type = book_type

        path = library_file.full_path
        try:
            content_hash = self._hasher(path)
        except OSError as exc:
            logger.error("Skipping %s: cannot hash file: %s", path, exc)
            return None

        with self._catalog.transaction():
            resolution = self._resolver.resolve(library_file, content_hash)
            if resolution is None:
                return None
            if resolution.status is not FileProcessStatus.NEW:
                assert resolution.book is not None
                return FileProcessResult(resolution.book, resolution.status, resolution.duplicate)

            shell = processor.extract_new_book(library_file)
            book = self._creator.create(shell, content_hash)

        self._generate_cover(processor, book)
        return FileProcessResult(book, FileProcessStatus.NEW)

    def _generate_cover(self, processor: BookFileProcessor, book: BookRecord) -> None:
        try:
            if processor.generate_cover(book):
                self._catalog.touch_cover(book.id)
        except Exception:
            logger.exception(
                "Cover generation failed for book %d (%s)", book.id, book.full_file_path
            )


@dataclass
class CoverRegenerationResult:
    regenerated: int = 0
    skipped: int = 0
    failed: list[int] = field(default_factory=list)


def regenerate_covers(
    catalog: LibraryCatalog, registry: BookFileProcessorRegistry
) -> CoverRegenerationResult:
    """Re-extract the cover of every active book whose cover is not locked.

    Each book is isolated: a failure is logged and recorded, and the run
    continues with the next book.
    """
    result = CoverRegenerationResult()
    for book in catalog.list_books():
        if book.metadata.is_locked(LockableField.COVER):
            result.skipped += 1
            continue
        processor = registry.get_processor(book.book_type)
        if processor is None:
            result.skipped += 1
            continue
        try:
            if processor.generate_cover(book):
                catalog.touch_cover(book.id)
                result.regenerated += 1
            else:
                result.skipped += 1
        except Exception:
            logger.exception("Cover regeneration failed for book %d", book.id)
            result.failed.append(book.id)
    return result
