# ABOUTME: Library scanner: walks library folders and feeds book files through the pipeline.
# ABOUTME: Publishes add/duplicate events per file and scans different libraries in parallel.

import logging
from collections import Counter
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from booklore.core.duplicates import FileProcessStatus
from booklore.core.processing import (
    BookFileProcessorRegistry,
    FileProcessingPipeline,
    FileProcessResult,
    UnsupportedFileTypeError,
)
from booklore.covers import CoverStore
from booklore.db.catalog import LibraryCatalog
from booklore.db.connection import open_library
from booklore.events import EventSink, NotificationService
from booklore.formats import BookReadError
from booklore.models import BOOK_EXTENSIONS, BookFileType, Library, LibraryFile
from booklore.settings import AppSettingService

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4


@dataclass
class LibraryScanResult:
    """Per-library summary of a scan."""

    library_id: int
    library_name: str
    statuses: Counter = field(default_factory=Counter)
    skipped: int = 0
    removed: int = 0
    errors: list[tuple[Path, str]] = field(default_factory=list)

    def count(self, status: FileProcessStatus) -> int:
        return self.statuses[status]

    @property
    def processed(self) -> int:
        return sum(self.statuses.values())


def _is_candidate(path: Path) -> bool:
    return (
        path.is_file()
        and not path.name.startswith(".")
        and path.suffix.lower() in BOOK_EXTENSIONS
    )


def discover_library_files(library: Library) -> list[LibraryFile]:
    """Walk every root folder of a library and collect its book files.

    Files are returned in a stable order (per root, by relative path).
    Missing root folders are logged and skipped.
    """
    files: list[LibraryFile] = []
    for library_path in library.paths:
        root = Path(library_path.path)
        if not root.is_dir():
            logger.warning("Library path %s of library '%s' is not a directory", root, library.name)
            continue
        for path in sorted(root.rglob("*")):
            if not _is_candidate(path):
                continue
            sub_path = path.parent.relative_to(root).as_posix()
            files.append(
                LibraryFile(
                    library=library,
                    library_path=library_path,
                    file_sub_path="" if sub_path == "." else sub_path,
                    file_name=path.name,
                    book_type=BookFileType.from_file_name(path.name),
                )
            )
    return files


def locate_library_file(libraries: Iterable[Library], path: Path) -> LibraryFile | None:
    """Find the library root that contains path and describe the file relative to it."""
    path = Path(path).expanduser().absolute()
    for library in libraries:
        for library_path in library.paths:
            try:
                relative = path.relative_to(library_path.root)
            except ValueError:
                continue
            sub_path = relative.parent.as_posix()
            return LibraryFile(
                library=library,
                library_path=library_path,
                file_sub_path="" if sub_path == "." else sub_path,
                file_name=path.name,
                book_type=BookFileType.from_file_name(path.name),
            )
    return None


class LibraryScanner:
    """Runs discovered files through the pipeline and reports what happened."""

    def __init__(
        self,
        catalog: LibraryCatalog,
        pipeline: FileProcessingPipeline,
        notifications: NotificationService,
    ) -> None:
        self._catalog = catalog
        self._pipeline = pipeline
        self._notifications = notifications

    @classmethod
    def create(
        cls,
        catalog: LibraryCatalog,
        data_dir: Path | None = None,
        sink: EventSink | None = None,
    ) -> "LibraryScanner":
        """Wire a scanner with the built-in processors and catalog-backed settings."""
        settings = AppSettingService(catalog)
        registry = BookFileProcessorRegistry.default(CoverStore(data_dir))
        pipeline = FileProcessingPipeline(
            catalog,
            registry,
            weights=lambda: settings.get_app_settings().metadata_match_weights,
        )
        return cls(catalog, pipeline, NotificationService(sink))

    def scan_library(self, library_id: int, *, remove_missing: bool = True) -> LibraryScanResult:
        """Scan all root folders of one library.

        With remove_missing, active books whose file is gone are soft-deleted
        afterwards, so that the file coming back later revives them.

        Raises:
            ValueError: If the library does not exist.
        """
        library = self._catalog.get_library(library_id)
        if library is None:
            raise ValueError(f"Library with id {library_id} not found")

        logger.info("Scanning library '%s'", library.name)
        result = self.process_library_files(discover_library_files(library), library)
        if remove_missing:
            result.removed = self._soft_delete_missing(library)
        return result

    def process_library_files(
        self, library_files: Iterable[LibraryFile], library: Library
    ) -> LibraryScanResult:
        """Process files one by one; a failing file is logged and the scan goes on."""
        result = LibraryScanResult(library_id=library.id, library_name=library.name)
        for library_file in library_files:
            logger.info("Processing file: %s", library_file.file_name)
            try:
                processed = self._pipeline.process_file(library_file)
            except (BookReadError, UnsupportedFileTypeError, OSError) as exc:
                logger.error("Failed to process %s: %s", library_file.full_path, exc)
                result.errors.append((library_file.full_path, str(exc)))
                continue
            except Exception as exc:
                logger.exception("Unexpected error processing %s", library_file.full_path)
                result.errors.append((library_file.full_path, str(exc)))
                continue

            if processed is None:
                result.skipped += 1
                continue
            result.statuses[processed.status] += 1
            self._publish(processed, library)

        logger.info("Finished processing library '%s'", library.name)
        return result

    def _publish(self, processed: FileProcessResult, library: Library) -> None:
        if processed.duplicate is not None:
            self._notifications.notify_duplicate(library.id, library.name, processed.duplicate)
        if processed.status is not FileProcessStatus.DUPLICATE:
            self._notifications.broadcast_book_add(processed.book)

    def _soft_delete_missing(self, library: Library) -> int:
        missing = [
            book.id
            for book in self._catalog.list_books(library_id=library.id)
            if not book.full_file_path.exists()
        ]
        if missing:
            logger.info(
                "Soft-deleting %d books with missing files in '%s'", len(missing), library.name
            )
        return self._catalog.soft_delete_books(missing)


def _scan_worker(
    db_path: Path, library_id: int, data_dir: Path | None, sink: EventSink | None
) -> LibraryScanResult:
    conn = open_library(db_path)
    try:
        scanner = LibraryScanner.create(LibraryCatalog(conn), data_dir, sink)
        return scanner.scan_library(library_id)
    finally:
        conn.close()


def scan_libraries(
    db_path: Path,
    library_ids: Iterable[int],
    *,
    data_dir: Path | None = None,
    sink: EventSink | None = None,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> list[LibraryScanResult]:
    """Scan several libraries concurrently, one database connection per worker.

    Files within a library are processed sequentially. Results come back in
    the order of library_ids.
    """
    library_ids = list(library_ids)
    if not library_ids:
        return []
    workers = max(1, min(max_workers, len(library_ids)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="library-scan") as pool:
        futures = [
            pool.submit(_scan_worker, db_path, library_id, data_dir, sink)
            for library_id in library_ids
        ]
        return [future.result() for future in futures]
