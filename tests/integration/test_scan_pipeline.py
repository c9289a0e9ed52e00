# ABOUTME: Integration tests for the scan pipeline over real folders, real EPUBs and a real catalog.
# ABOUTME: Walks a library through first scan, rescan, move, removal, revival and parallel scans.

import shutil
from collections.abc import Callable
from pathlib import Path

from booklore.core.duplicates import FileProcessStatus
from booklore.core.scanner import LibraryScanner, scan_libraries
from booklore.covers import CoverStore
from booklore.db.catalog import LibraryCatalog
from booklore.db.connection import open_library
from booklore.events import CollectingEventSink, Topic
from booklore.models import Library

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


class TestScanLifecycle:
    """A library followed through several scans."""

    def test_first_scan_catalogs_every_book(
        self,
        catalog: LibraryCatalog,
        library: Library,
        library_root: Path,
        tmp_path: Path,
        make_epub: Callable[..., Path],
    ) -> None:
        make_epub(library_root / "Frank Herbert" / "Dune.epub", title="Dune", cover=PNG_BYTES)
        make_epub(library_root / "Rose.epub")
        (library_root / "notes.txt").write_text("not a book")
        (library_root / ".hidden.epub").write_text("dotfile")
        sink = CollectingEventSink()
        data_dir = tmp_path / "data"

        result = LibraryScanner.create(catalog, data_dir, sink).scan_library(library.id)

        assert result.count(FileProcessStatus.NEW) == 2
        assert result.errors == []
        books = {b.file_name: b for b in catalog.list_books()}
        assert set(books) == {"Dune.epub", "Rose.epub"}
        dune = books["Dune.epub"]
        assert dune.file_sub_path == "Frank Herbert"
        assert dune.metadata.title == "Dune"
        assert dune.initial_hash == dune.current_hash
        assert dune.metadata_match_score is not None and dune.metadata_match_score > 0
        assert CoverStore(data_dir).path_for(dune.id) is not None
        assert len(sink.of(Topic.BOOK_ADD)) == 2

    def test_rescan_reports_duplicates_only(
        self,
        catalog: LibraryCatalog,
        library: Library,
        library_root: Path,
        tmp_path: Path,
        make_epub: Callable[..., Path],
    ) -> None:
        make_epub(library_root / "Rose.epub")
        LibraryScanner.create(catalog, tmp_path / "data").scan_library(library.id)
        sink = CollectingEventSink()

        result = LibraryScanner.create(catalog, tmp_path / "data", sink).scan_library(library.id)

        assert result.count(FileProcessStatus.DUPLICATE) == 1
        assert result.count(FileProcessStatus.NEW) == 0
        assert sink.of(Topic.BOOK_ADD) == []
        (duplicate,) = sink.of(Topic.DUPLICATE_FILE)
        assert duplicate["libraryName"] == "Books"
        assert len(catalog.list_books()) == 1

    def test_moved_file_is_rebound(
        self,
        catalog: LibraryCatalog,
        library: Library,
        library_root: Path,
        tmp_path: Path,
        make_epub: Callable[..., Path],
    ) -> None:
        path = make_epub(library_root / "Rose.epub")
        LibraryScanner.create(catalog, tmp_path / "data").scan_library(library.id)
        (book_before,) = catalog.list_books()
        target = library_root / "Umberto Eco" / "Rose.epub"
        target.parent.mkdir()
        shutil.move(path, target)

        result = LibraryScanner.create(catalog, tmp_path / "data").scan_library(library.id)

        assert result.count(FileProcessStatus.UPDATED) == 1
        assert result.removed == 0
        (book_after,) = catalog.list_books()
        assert book_after.id == book_before.id
        assert book_after.file_sub_path == "Umberto Eco"

    def test_removed_then_restored_file_is_revived(
        self,
        catalog: LibraryCatalog,
        library: Library,
        library_root: Path,
        tmp_path: Path,
        make_epub: Callable[..., Path],
    ) -> None:
        path = make_epub(library_root / "Rose.epub")
        LibraryScanner.create(catalog, tmp_path / "data").scan_library(library.id)
        (original,) = catalog.list_books()
        stash = tmp_path / "stash.epub"
        shutil.move(path, stash)

        removed = LibraryScanner.create(catalog, tmp_path / "data").scan_library(library.id)
        assert removed.removed == 1
        assert catalog.list_books() == []

        restored = library_root / "Back" / "Rose.epub"
        restored.parent.mkdir()
        shutil.move(stash, restored)
        revived = LibraryScanner.create(catalog, tmp_path / "data").scan_library(library.id)

        assert revived.count(FileProcessStatus.REVIVED) == 1
        (book,) = catalog.list_books()
        assert book.id == original.id
        assert book.file_sub_path == "Back"
        assert book.deleted is False

    def test_same_title_with_different_bytes_is_new(
        self,
        catalog: LibraryCatalog,
        library: Library,
        library_root: Path,
        tmp_path: Path,
        make_epub: Callable[..., Path],
    ) -> None:
        make_epub(library_root / "Rose.epub")
        make_epub(library_root / "Rose Copy.epub", extra_text="different bytes")

        result = LibraryScanner.create(catalog, tmp_path / "data").scan_library(library.id)

        assert result.count(FileProcessStatus.NEW) == 2

    def test_corrupt_file_is_reported_and_scan_continues(
        self,
        catalog: LibraryCatalog,
        library: Library,
        library_root: Path,
        tmp_path: Path,
        make_epub: Callable[..., Path],
    ) -> None:
        (library_root / "broken.epub").write_text("not an epub")
        make_epub(library_root / "Rose.epub")

        result = LibraryScanner.create(catalog, tmp_path / "data").scan_library(library.id)

        assert result.count(FileProcessStatus.NEW) == 1
        assert [path.name for path, _ in result.errors] == ["broken.epub"]


class TestParallelScan:
    """scan_libraries() over several libraries at once."""

    def test_scans_each_library(
        self, db_path: Path, tmp_path: Path, make_epub: Callable[..., Path]
    ) -> None:
        conn = open_library(db_path)
        catalog = LibraryCatalog(conn)
        first = catalog.create_library("Fiction", [tmp_path / "fiction"])
        second = catalog.create_library("Comics", [tmp_path / "comics"])
        conn.close()
        make_epub(tmp_path / "fiction" / "a.epub", title="A")
        make_epub(tmp_path / "fiction" / "b.epub", title="B")
        make_epub(tmp_path / "comics" / "c.epub", title="C")
        sink = CollectingEventSink()

        results = scan_libraries(
            db_path, [first.id, second.id], data_dir=tmp_path / "data", sink=sink
        )

        assert [r.library_name for r in results] == ["Fiction", "Comics"]
        assert [r.count(FileProcessStatus.NEW) for r in results] == [2, 1]
        assert len(sink.of(Topic.BOOK_ADD)) == 3

        conn = open_library(db_path)
        try:
            assert len(LibraryCatalog(conn).list_books()) == 3
        finally:
            conn.close()

    def test_many_files_across_libraries_without_lock_errors(
        self, db_path: Path, tmp_path: Path, make_epub: Callable[..., Path]
    ) -> None:
        """Four workers writing at once all get their files in."""
        conn = open_library(db_path)
        catalog = LibraryCatalog(conn)
        library_ids = []
        for lib in range(4):
            root = tmp_path / f"lib{lib}"
            library_ids.append(catalog.create_library(f"Library {lib}", [root]).id)
            for n in range(15):
                make_epub(root / f"b{n}.epub", title=f"Book {lib}-{n}")
        conn.close()

        results = scan_libraries(db_path, library_ids, data_dir=tmp_path / "data", max_workers=4)

        assert [r.errors for r in results] == [[], [], [], []]
        assert [r.count(FileProcessStatus.NEW) for r in results] == [15, 15, 15, 15]
        conn = open_library(db_path)
        try:
            assert len(LibraryCatalog(conn).list_books()) == 60
        finally:
            conn.close()

    def test_no_libraries(self, db_path: Path) -> None:
        assert scan_libraries(db_path, []) == []
