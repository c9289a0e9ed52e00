# ABOUTME: Moves book files on disk to match naming patterns and keeps the catalog in sync.
# ABOUTME: Bulk moves between libraries and single-file auto-correction after metadata edits.

import errno
import logging
import os
import shutil
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from booklore.core.naming import resolve_book_pattern
from booklore.db.catalog import LibraryCatalog
from booklore.events import NotificationService
from booklore.models import BookRecord, Library, LibraryPath
from booklore.monitoring import MonitoringRegistrar
from booklore.settings import AppSettingService

logger = logging.getLogger(__name__)

FALLBACK_PATTERN = "{currentFilename}"

# OS metadata files that do not keep a directory alive during cleanup.
IGNORED_FILENAMES = frozenset({".DS_Store", "Thumbs.db"})


class MoveConflictError(Exception):
    """Raised when a move target is the location of another active book."""


@dataclass(frozen=True)
class MoveRequest:
    """Move one book into a root folder of another library."""

    book_id: int
    target_library_id: int
    target_library_path_id: int


@dataclass
class FileMoveResult:
    moved: bool
    new_file_name: str | None = None
    new_file_sub_path: str | None = None


@dataclass
class BulkMoveResult:
    moved: list[int] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)


class FileMoveHelper:
    """Filesystem primitives shared by bulk and single-file moves."""

    def __init__(self, settings: AppSettingService | None = None) -> None:
        self._settings = settings

    def get_file_naming_pattern(self, library: Library) -> str:
        """Pick the naming pattern for a library.

        Falls back from the library's own pattern to the upload_pattern
        setting and finally to {currentFilename}. A pattern naming only a
        folder gets the current file name appended.
        """
        pattern = library.file_naming_pattern
        if not pattern or not pattern.strip():
            pattern = None
            if self._settings is not None:
                try:
                    pattern = self._settings.get_app_settings().upload_pattern
                    logger.debug("Using default pattern for library %s", library.name)
                except Exception as exc:
                    logger.warning(
                        "Failed to get default upload pattern for library %s: %s", library.name, exc
                    )
        if not pattern or not pattern.strip():
            pattern = FALLBACK_PATTERN
            logger.info(
                "No file naming pattern available for library %s. Using %s",
                library.name,
                FALLBACK_PATTERN,
            )
        if pattern.endswith("/") or pattern.endswith("\\"):
            pattern += FALLBACK_PATTERN
        return pattern

    def generate_new_file_path(
        self, book: BookRecord, library_path: LibraryPath, pattern: str
    ) -> Path:
        relative = resolve_book_pattern(book, pattern)
        if relative.startswith("/") or relative.startswith("\\"):
            relative = relative[1:]
        return Path(library_path.path) / relative

    def move_file(self, source: Path, target: Path) -> None:
        """Move a file, creating parent folders and replacing any existing target."""
        target.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Moving file from %s to %s", source, target)
        try:
            os.replace(source, target)
        except OSError as exc:
            if exc.errno != errno.EXDEV:
                raise
            shutil.move(str(source), str(target))

    def extract_sub_path(self, file_path: Path, library_path: LibraryPath) -> str:
        """Folder of file_path relative to the library root, with forward slashes."""
        root = Path(os.path.normpath(Path(library_path.path).absolute()))
        parent = Path(os.path.normpath(file_path.parent.absolute()))
        relative = parent.relative_to(root).as_posix()
        return "" if relative == "." else relative

    def delete_empty_parent_dirs_up_to_library_folders(
        self, start: Path, library_roots: Iterable[Path]
    ) -> None:
        """Remove now-empty folders from start upward, never touching a library root.

        A folder holding only IGNORED_FILENAMES counts as empty. The walk
        stops at a library root, at an unreadable folder, or at a folder with
        any other content.
        """
        roots = [Path(os.path.normpath(Path(root).absolute())) for root in library_roots]
        current: Path | None = Path(os.path.normpath(start.absolute()))
        while current is not None:
            if self._is_library_root(current, roots):
                break
            try:
                entries = list(current.iterdir())
            except OSError:
                logger.warning("Cannot read directory: %s. Stopping cleanup.", current)
                break
            if any(entry.name not in IGNORED_FILENAMES for entry in entries):
                break
            for entry in entries:
                try:
                    entry.unlink()
                    logger.info("Deleted ignored file: %s", entry)
                except OSError:
                    logger.warning("Failed to delete ignored file: %s", entry)
            try:
                current.rmdir()
                logger.info("Deleted empty directory: %s", current)
            except OSError:
                logger.warning("Failed to delete directory: %s", current, exc_info=True)
                break
            parent = current.parent
            current = parent if parent != current else None

    def _is_library_root(self, directory: Path, roots: list[Path]) -> bool:
        for root in roots:
            if root == directory:
                return True
            try:
                if os.path.samefile(root, directory):
                    return True
            except OSError:
                logger.debug("Failed to compare paths: %s and %s", root, directory)
        return False


class FileMoveService:
    """Orchestrates file moves with monitoring suspended around them."""

    def __init__(
        self,
        catalog: LibraryCatalog,
        helper: FileMoveHelper,
        monitoring: MonitoringRegistrar,
        notifications: NotificationService,
    ) -> None:
        self._catalog = catalog
        self._helper = helper
        self._monitoring = monitoring
        self._notifications = notifications

    def bulk_move_files(self, moves: list[MoveRequest]) -> BulkMoveResult:
        """Move books into other libraries, one item at a time.

        Monitoring is unregistered for every target library up front and for
        each source library on first sight, then re-registered for all of
        them once the batch is done. A failing item is logged and the batch
        continues; items already moved stay moved.
        """
        result = BulkMoveResult()
        target_library_ids = list(dict.fromkeys(move.target_library_id for move in moves))
        source_library_ids: list[int] = []
        for library_id in target_library_ids:
            self._monitoring.unregister(library_id)

        try:
            for move in moves:
                try:
                    outcome = self._move_one(move, source_library_ids)
                except Exception:
                    logger.exception("Error moving file for book ID %d", move.book_id)
                    result.failed.append(move.book_id)
                    continue
                if outcome:
                    result.moved.append(move.book_id)
                else:
                    result.skipped.append(move.book_id)
        finally:
            for library_id in dict.fromkeys([*target_library_ids, *source_library_ids]):
                self._register_library(library_id)
        return result

    def _move_one(self, move: MoveRequest, source_library_ids: list[int]) -> bool:
        book = self._catalog.get_by_id(move.book_id)
        target_library = self._catalog.get_library(move.target_library_id)
        if book is None or target_library is None:
            return False
        target_path = target_library.find_path(move.target_library_path_id)
        if target_path is None:
            return False
        if book.library_id == target_library.id:
            return False

        if book.library_id not in source_library_ids:
            self._monitoring.unregister(book.library_id)
            source_library_ids.append(book.library_id)

        current_path = book.full_file_path
        pattern = self._helper.get_file_naming_pattern(target_library)
        new_path = self._helper.generate_new_file_path(book, target_path, pattern)
        if current_path == new_path:
            return False

        new_sub_path = self._helper.extract_sub_path(new_path, target_path)
        self._check_destination(book, target_path, new_sub_path, new_path.name)
        with self._catalog.transaction():
            self._catalog.update_file_and_library(
                book.id,
                library_id=target_library.id,
                library_path_id=target_path.id,
                file_sub_path=new_sub_path,
                file_name=new_path.name,
            )
            self._helper.move_file(current_path, new_path)
        self._helper.delete_empty_parent_dirs_up_to_library_folders(
            current_path.parent, self._library_roots(book.library_id)
        )

        fresh = self._catalog.get_by_id(book.id)
        if fresh is None:
            raise LookupError(f"Book with id {book.id} disappeared after move")
        self._notifications.broadcast_book_update(fresh)
        return True

    def move_single_file(self, book: BookRecord) -> FileMoveResult:
        """Move a book's file to where its own library's pattern says it belongs.

        The new name and sub path are stored in the same transaction as the
        move, so a failed move leaves the catalog untouched. Monitoring for
        the book's library is paused during the move and always resumed.
        """
        library = self._catalog.get_library(book.library_id)
        if library is None:
            raise LookupError(f"Library with id {book.library_id} not found for book {book.id}")
        library_path = library.find_path(book.library_path_id)
        if library_path is None:
            raise LookupError(f"Library path {book.library_path_id} not found for book {book.id}")

        pattern = self._helper.get_file_naming_pattern(library)
        current_path = book.full_file_path
        expected_path = self._helper.generate_new_file_path(book, library_path, pattern)
        if current_path == expected_path:
            return FileMoveResult(moved=False)

        logger.info(
            "File for book ID %d needs to be moved from %s to %s to match library pattern",
            book.id,
            current_path,
            expected_path,
        )
        new_sub_path = self._helper.extract_sub_path(expected_path, library_path)
        self._monitoring.pause(library.id)
        try:
            self._check_destination(book, library_path, new_sub_path, expected_path.name)
            with self._catalog.transaction():
                self._catalog.update_book(
                    book.id, file_name=expected_path.name, file_sub_path=new_sub_path
                )
                self._helper.move_file(current_path, expected_path)
            self._helper.delete_empty_parent_dirs_up_to_library_folders(
                current_path.parent, [Path(p.path) for p in library.paths]
            )
            return FileMoveResult(
                moved=True,
                new_file_name=expected_path.name,
                new_file_sub_path=new_sub_path,
            )
        except MoveConflictError as exc:
            logger.warning("Not moving book ID %d: %s", book.id, exc)
            return FileMoveResult(moved=False)
        except OSError:
            logger.exception("Failed to move file for book ID %d", book.id)
            return FileMoveResult(moved=False)
        finally:
            self._monitoring.resume(library.id)

    def _check_destination(
        self, book: BookRecord, library_path: LibraryPath, sub_path: str, file_name: str
    ) -> None:
        """Refuse a target that another active book is cataloged at.

        Uncataloged files at the target are overwritten by the move.
        """
        occupant = self._catalog.find_by_location(library_path.id, sub_path, file_name)
        if occupant is not None and occupant.id != book.id:
            raise MoveConflictError(
                f"{Path(library_path.path) / sub_path / file_name} belongs to book {occupant.id}"
            )

    def _library_roots(self, library_id: int) -> list[Path]:
        library = self._catalog.get_library(library_id)
        return [Path(p.path) for p in library.paths] if library else []

    def _register_library(self, library_id: int) -> None:
        library = self._catalog.get_library(library_id)
        if library is not None:
            self._monitoring.register_paths(library.id, [Path(p.path) for p in library.paths])
