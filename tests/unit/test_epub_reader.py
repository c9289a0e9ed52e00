# ABOUTME: Unit tests for EPUB metadata and cover extraction.
# ABOUTME: Validates that metadata is correctly read from valid, minimal, and corrupt EPUB files.

from collections.abc import Callable
from datetime import date
from pathlib import Path

import pytest

from booklore.formats.epub import (
    EpubReadError,
    _detect_isbns,
    _parse_date,
    read_epub_cover,
    read_epub_metadata,
)

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


class TestReadEpubMetadata:
    """Tests for read_epub_metadata()."""

    def test_extracts_title(self, sample_epub: Path) -> None:
        meta = read_epub_metadata(sample_epub)
        assert meta.title == "The Name of the Rose"

    def test_extracts_author(self, sample_epub: Path) -> None:
        meta = read_epub_metadata(sample_epub)
        assert meta.authors == ["Umberto Eco"]

    def test_extracts_language(self, sample_epub: Path) -> None:
        meta = read_epub_metadata(sample_epub)
        assert meta.language == "en"

    def test_extracts_publisher(self, sample_epub: Path) -> None:
        meta = read_epub_metadata(sample_epub)
        assert meta.publisher == "Harcourt"

    def test_extracts_description(self, sample_epub: Path) -> None:
        meta = read_epub_metadata(sample_epub)
        assert meta.description == "A mystery set in a medieval monastery."

    def test_extracts_subjects_as_categories(self, sample_epub: Path) -> None:
        meta = read_epub_metadata(sample_epub)
        assert meta.categories == ["Mystery"]

    def test_extracts_published_date(self, sample_epub: Path) -> None:
        meta = read_epub_metadata(sample_epub)
        assert meta.published_date == date(1983, 6, 1)

    def test_extracts_isbn13(self, sample_epub: Path) -> None:
        meta = read_epub_metadata(sample_epub)
        assert meta.isbn13 == "9780151446476"
        assert meta.isbn == "9780151446476"

    def test_sets_source_path(self, sample_epub: Path) -> None:
        meta = read_epub_metadata(sample_epub)
        assert meta.source_path == sample_epub

    def test_minimal_epub(self, minimal_epub: Path) -> None:
        """Optional fields are None or empty when the EPUB omits them."""
        meta = read_epub_metadata(minimal_epub)
        assert meta.title == "Untitled Book"
        assert meta.authors == []
        assert meta.publisher is None
        assert meta.description is None
        assert meta.series_name is None
        assert meta.isbn13 is None

    def test_calibre_series(self, tmp_path: Path, make_epub: Callable[..., Path]) -> None:
        path = make_epub(
            tmp_path / "messiah.epub", title="Dune Messiah", series="Dune", series_index="2"
        )
        meta = read_epub_metadata(path)
        assert meta.series_name == "Dune"
        assert meta.series_number == 2.0

    def test_multiple_authors_keep_order(
        self, tmp_path: Path, make_epub: Callable[..., Path]
    ) -> None:
        path = make_epub(tmp_path / "a.epub", authors=("Terry Pratchett", "Neil Gaiman"))
        assert read_epub_metadata(path).authors == ["Terry Pratchett", "Neil Gaiman"]

    def test_corrupt_file_raises(self, corrupt_epub: Path) -> None:
        with pytest.raises(EpubReadError):
            read_epub_metadata(corrupt_epub)

    def test_nonexistent_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(EpubReadError, match="not found"):
            read_epub_metadata(tmp_path / "nope.epub")


class TestReadEpubCover:
    """Tests for read_epub_cover()."""

    def test_extracts_cover(self, tmp_path: Path, make_epub: Callable[..., Path]) -> None:
        path = make_epub(tmp_path / "covered.epub", cover=PNG_BYTES)
        cover = read_epub_cover(path)
        assert cover is not None
        data, suffix = cover
        assert data == PNG_BYTES
        assert suffix == "png"

    def test_no_cover(self, minimal_epub: Path) -> None:
        assert read_epub_cover(minimal_epub) is None

    def test_corrupt_file_raises(self, corrupt_epub: Path) -> None:
        with pytest.raises(EpubReadError):
            read_epub_cover(corrupt_epub)


class TestHelpers:
    """Tests for identifier and date parsing helpers."""

    def test_detects_isbn13_and_isbn10(self) -> None:
        isbn13, isbn10 = _detect_isbns(
            {"isbn": "978-0-441-01359-3", "asin": "B000", "isbn10": "044101359x"}
        )
        assert isbn13 == "9780441013593"
        assert isbn10 == "044101359X"

    def test_ignores_non_isbn_identifiers(self) -> None:
        assert _detect_isbns({"uuid": "abc-123"}) == (None, None)

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("1965", date(1965, 1, 1)),
            ("1965-08", date(1965, 8, 1)),
            ("1965-08-01T00:00:00Z", date(1965, 8, 1)),
            ("not a date", None),
            ("1965-13-01", None),
            (None, None),
        ],
    )
    def test_parse_date(self, raw: str | None, expected: date | None) -> None:
        assert _parse_date(raw) == expected
