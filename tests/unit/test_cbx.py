# ABOUTME: Unit tests for comic archive metadata and cover extraction.
# ABOUTME: Builds CBZ and CB7 archives on the fly and reads them back.

import zipfile
from datetime import date
from pathlib import Path

import py7zr
import pytest

from booklore.formats.cbx import (
    CbxReadError,
    parse_comic_info,
    read_cbx_cover,
    read_cbx_metadata,
)

COMIC_INFO = b"""<?xml version="1.0"?>
<ComicInfo>
  <Title>The Sandman</Title>
  <Series>Sandman</Series>
  <Number>1.5</Number>
  <Count>75</Count>
  <Writer>Neil Gaiman, Sam Kieth</Writer>
  <Genre>Fantasy, Horror</Genre>
  <Tags>classic</Tags>
  <Publisher>DC Comics</Publisher>
  <Year>1989</Year>
  <Month>1</Month>
  <Summary>Dream is captured.</Summary>
  <LanguageISO>en</LanguageISO>
  <PageCount>24</PageCount>
</ComicInfo>
"""


def _write_cbz(path: Path, entries: dict[str, bytes]) -> Path:
    with zipfile.ZipFile(path, "w") as archive:
        for name, data in entries.items():
            archive.writestr(name, data)
    return path


class TestParseComicInfo:
    """Tests for parse_comic_info()."""

    def test_maps_fields(self) -> None:
        meta = parse_comic_info(COMIC_INFO)
        assert meta.title == "The Sandman"
        assert meta.series_name == "Sandman"
        assert meta.series_number == 1.5
        assert meta.series_total == 75
        assert meta.authors == ["Neil Gaiman", "Sam Kieth"]
        assert meta.categories == ["Fantasy", "Horror"]
        assert meta.tags == ["classic"]
        assert meta.publisher == "DC Comics"
        assert meta.published_date == date(1989, 1, 1)
        assert meta.description == "Dream is captured."
        assert meta.language == "en"
        assert meta.page_count == 24

    def test_missing_elements_are_none(self) -> None:
        meta = parse_comic_info(b"<ComicInfo><Title>Only</Title></ComicInfo>")
        assert meta.title == "Only"
        assert meta.authors == []
        assert meta.published_date is None
        assert meta.series_number is None

    def test_malformed_xml_raises(self) -> None:
        with pytest.raises(CbxReadError):
            parse_comic_info(b"<ComicInfo><Title>")


class TestReadCbz:
    """Tests for reading zip based comic archives."""

    def test_reads_comic_info(self, tmp_path: Path) -> None:
        path = _write_cbz(
            tmp_path / "sandman.cbz",
            {"ComicInfo.xml": COMIC_INFO, "001.jpg": b"page1"},
        )
        meta = read_cbx_metadata(path)
        assert meta.title == "The Sandman"
        assert meta.source_path == path

    def test_without_comic_info_counts_pages(self, tmp_path: Path) -> None:
        path = _write_cbz(
            tmp_path / "plain.cbz",
            {"001.jpg": b"a", "002.jpg": b"b", "notes.txt": b"c"},
        )
        meta = read_cbx_metadata(path)
        assert meta.title is None
        assert meta.page_count == 2

    def test_malformed_comic_info_is_ignored(self, tmp_path: Path) -> None:
        path = _write_cbz(
            tmp_path / "broken.cbz", {"ComicInfo.xml": b"<oops", "001.png": b"a"}
        )
        meta = read_cbx_metadata(path)
        assert meta.title is None
        assert meta.page_count == 1

    def test_cover_is_first_page_in_order(self, tmp_path: Path) -> None:
        path = _write_cbz(
            tmp_path / "pages.cbz",
            {
                "__MACOSX/._000.jpg": b"resource fork",
                "pages/010.png": b"tenth",
                "pages/002.JPG": b"second",
                ".hidden.jpg": b"hidden",
            },
        )
        cover = read_cbx_cover(path)
        assert cover == (b"second", "jpg")

    def test_no_images_means_no_cover(self, tmp_path: Path) -> None:
        path = _write_cbz(tmp_path / "empty.cbz", {"readme.txt": b"x"})
        assert read_cbx_cover(path) is None

    def test_not_an_archive_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.cbz"
        path.write_bytes(b"definitely not a zip")
        with pytest.raises(CbxReadError):
            read_cbx_metadata(path)

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(CbxReadError, match="not found"):
            read_cbx_cover(tmp_path / "missing.cbz")


class TestReadCb7:
    """Tests for reading 7z based comic archives."""

    def test_reads_metadata_and_cover(self, tmp_path: Path) -> None:
        path = tmp_path / "sandman.cb7"
        with py7zr.SevenZipFile(path, "w") as archive:
            archive.writestr(COMIC_INFO, "ComicInfo.xml")
            archive.writestr(b"first", "001.png")
            archive.writestr(b"second", "002.png")

        assert read_cbx_metadata(path).title == "The Sandman"
        assert read_cbx_cover(path) == (b"first", "png")
