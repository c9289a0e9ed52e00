# ABOUTME: Shared pytest fixtures for BookLore tests.
# ABOUTME: Provides sample EPUB files, a temporary catalog and a library rooted in a temp folder.

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from ebooklib import epub

from booklore.core.scanner import LibraryScanner
from booklore.db.catalog import LibraryCatalog
from booklore.db.connection import open_library
from booklore.models import Library


def write_epub(
    path: Path,
    title: str = "The Name of the Rose",
    authors: tuple[str, ...] = ("Umberto Eco",),
    series: str | None = None,
    series_index: str | None = None,
    identifier: str = "test-isbn-978-0-123456-47-2",
    extra_text: str = "",
    cover: bytes | None = None,
) -> Path:
    """Write a small but structurally valid EPUB.

    extra_text changes the content bytes without touching metadata, which
    gives two books with the same title different fingerprints.
    """
    book = epub.EpubBook()
    book.set_identifier(identifier)
    book.set_title(title)
    book.set_language("en")
    for author in authors:
        book.add_author(author)
    if cover is not None:
        book.set_cover("cover.png", cover)
    if series:
        book.add_metadata(None, "meta", "", {"name": "calibre:series", "content": series})
    if series_index:
        book.add_metadata(
            None, "meta", "", {"name": "calibre:series_index", "content": series_index}
        )

    chapter = epub.EpubHtml(title="Chapter 1", file_name="chap01.xhtml", lang="en")
    chapter.content = (
        f"<html><body><h1>{title}</h1><p>Content.{extra_text}</p></body></html>"
    ).encode()
    book.add_item(chapter)

    book.toc = [epub.Link("chap01.xhtml", "Chapter 1", "chap01")]
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())
    book.spine = ["nav", chapter]

    path.parent.mkdir(parents=True, exist_ok=True)
    epub.write_epub(str(path), book)
    return path


@pytest.fixture
def sample_epub(tmp_path: Path) -> Path:
    """Create a minimal valid EPUB file with known metadata."""
    book = epub.EpubBook()

    book.set_identifier("urn:isbn:9780151446476")
    book.set_title("The Name of the Rose")
    book.set_language("en")
    book.add_author("Umberto Eco")

    book.add_metadata("DC", "publisher", "Harcourt")
    book.add_metadata("DC", "description", "A mystery set in a medieval monastery.")
    book.add_metadata("DC", "subject", "Mystery")
    book.add_metadata("DC", "date", "1983-06-01")

    # Add a minimal chapter so the EPUB is structurally valid
    chapter = epub.EpubHtml(title="Chapter 1", file_name="chap01.xhtml", lang="en")
    chapter.content = b"<html><body><h1>Chapter 1</h1><p>Content.</p></body></html>"
    book.add_item(chapter)

    # Add navigation
    book.toc = [epub.Link("chap01.xhtml", "Chapter 1", "chap01")]
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())
    book.spine = ["nav", chapter]

    filepath = tmp_path / "name_of_the_rose.epub"
    epub.write_epub(str(filepath), book)
    return filepath


@pytest.fixture
def corrupt_epub(tmp_path: Path) -> Path:
    """Create a corrupt file that is not a valid EPUB."""
    filepath = tmp_path / "corrupt.epub"
    filepath.write_text("this is not a valid epub file")
    return filepath


@pytest.fixture
def minimal_epub(tmp_path: Path) -> Path:
    """Create an EPUB with minimal metadata (only title)."""
    book = epub.EpubBook()
    book.set_identifier("minimal-id")
    book.set_title("Untitled Book")
    book.set_language("en")

    chapter = epub.EpubHtml(title="Content", file_name="content.xhtml", lang="en")
    chapter.content = b"<html><body><p>Minimal content.</p></body></html>"
    book.add_item(chapter)

    book.toc = [epub.Link("content.xhtml", "Content", "content")]
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())
    book.spine = ["nav", chapter]

    filepath = tmp_path / "minimal.epub"
    epub.write_epub(str(filepath), book)
    return filepath


@pytest.fixture
def make_epub() -> Callable[..., Path]:
    """Factory for EPUBs with chosen metadata at a chosen path."""
    return write_epub


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Provide a temporary database path."""
    return tmp_path / "test_library.db"


@pytest.fixture
def catalog(db_path: Path) -> Iterator[LibraryCatalog]:
    """A LibraryCatalog over a fresh temporary database."""
    conn = open_library(db_path)
    yield LibraryCatalog(conn)
    conn.close()


@pytest.fixture
def library_root(tmp_path: Path) -> Path:
    """An empty folder that serves as a library root."""
    root = tmp_path / "Books"
    root.mkdir()
    return root


@pytest.fixture
def library(catalog: LibraryCatalog, library_root: Path) -> Library:
    """A library named 'Books' with one root folder and no naming pattern."""
    return catalog.create_library("Books", [library_root])


@pytest.fixture
def scanned_db(db_path: Path, library_root: Path, tmp_path: Path) -> Path:
    """A database whose 'Books' library holds two scanned EPUBs.

    Book 1 is Dune (Frank Herbert), book 2 is The Name of the Rose.
    """
    write_epub(library_root / "Dune.epub", title="Dune", authors=("Frank Herbert",))
    write_epub(library_root / "Rose.epub")
    conn = open_library(db_path)
    try:
        catalog = LibraryCatalog(conn)
        library = catalog.create_library("Books", [library_root])
        LibraryScanner.create(catalog, tmp_path / "data").scan_library(library.id)
    finally:
        conn.close()
    return db_path
