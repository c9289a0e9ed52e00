# ABOUTME: Comic archive (CBZ/CBR/CB7) metadata and cover extraction.
# ABOUTME: Reads ComicInfo.xml when present and uses the first image in page order as the cover.

import logging
import tempfile
import zipfile
from datetime import date
from pathlib import Path, PurePosixPath
from xml.etree import ElementTree as ET

import py7zr
import rarfile

from booklore.formats.base import BookReadError, FormatProcessor
from booklore.metadata.types import BookMetadata
from booklore.models import BookFileType

logger = logging.getLogger(__name__)

_IMAGE_SUFFIXES = frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp"})
_COMIC_INFO = "comicinfo.xml"


class CbxReadError(BookReadError):
    """Raised when a comic archive cannot be opened or read."""


class _Archive:
    """Uniform read access to zip, rar and 7z archives."""

    def __init__(self, path: Path) -> None:
        self._path = path
        suffix = path.suffix.lower()
        try:
            if suffix == ".cbr" or rarfile.is_rarfile(path):
                self._kind = "rar"
                with rarfile.RarFile(path) as archive:
                    self._names = [i.filename for i in archive.infolist() if not i.is_dir()]
            elif suffix == ".cb7":
                self._kind = "7z"
                with py7zr.SevenZipFile(path, mode="r") as archive:
                    self._names = [i.filename for i in archive.list() if not i.is_directory]
            else:
                self._kind = "zip"
                with zipfile.ZipFile(path) as archive:
                    self._names = [i.filename for i in archive.infolist() if not i.is_dir()]
        except Exception as exc:
            raise CbxReadError(f"Failed to open comic archive: {path}: {exc}") from exc

    @property
    def names(self) -> list[str]:
        return self._names

    def read(self, name: str) -> bytes:
        try:
            if self._kind == "rar":
                with rarfile.RarFile(self._path) as archive:
                    return archive.read(name)
            if self._kind == "7z":
                with tempfile.TemporaryDirectory() as tmp:
                    with py7zr.SevenZipFile(self._path, mode="r") as archive:
                        archive.extract(path=tmp, targets=[name])
                    return (Path(tmp) / name).read_bytes()
            with zipfile.ZipFile(self._path) as archive:
                return archive.read(name)
        except Exception as exc:
            raise CbxReadError(f"Failed to read {name} from {self._path}: {exc}") from exc


def _text(root: ET.Element, tag: str) -> str | None:
    element = root.find(tag)
    if element is None or element.text is None:
        return None
    return element.text.strip() or None


def _int(value: str | None) -> int | None:
    try:
        return int(value) if value else None
    except ValueError:
        return None


def _float(value: str | None) -> float | None:
    try:
        return float(value) if value else None
    except ValueError:
        return None


def _split_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _comic_date(root: ET.Element) -> date | None:
    year = _int(_text(root, "Year"))
    if year is None:
        return None
    try:
        return date(year, _int(_text(root, "Month")) or 1, _int(_text(root, "Day")) or 1)
    except ValueError:
        return None


def parse_comic_info(xml_bytes: bytes) -> BookMetadata:
    """Map a ComicInfo.xml document onto BookMetadata.

    Raises:
        CbxReadError: If the document is not well-formed XML.
    """
    try:
        root = ET.fromstring(xml_bytes)
    except ET.ParseError as exc:
        raise CbxReadError(f"Malformed ComicInfo.xml: {exc}") from exc

    return BookMetadata(
        title=_text(root, "Title"),
        authors=_split_list(_text(root, "Writer")),
        categories=_split_list(_text(root, "Genre")),
        tags=_split_list(_text(root, "Tags")),
        publisher=_text(root, "Publisher"),
        published_date=_comic_date(root),
        description=_text(root, "Summary"),
        series_name=_text(root, "Series"),
        series_number=_float(_text(root, "Number")),
        series_total=_int(_text(root, "Count")),
        language=_text(root, "LanguageISO"),
        page_count=_int(_text(root, "PageCount")),
    )


def _page_images(names: list[str]) -> list[str]:
    images = [
        name
        for name in names
        if PurePosixPath(name).suffix.lower() in _IMAGE_SUFFIXES
        and not PurePosixPath(name).name.startswith(".")
        and "__MACOSX" not in name
    ]
    return sorted(images, key=str.lower)


def read_cbx_metadata(path: Path) -> BookMetadata:
    """Extract metadata from a comic archive.

    Archives without ComicInfo.xml yield empty metadata with a page count.

    Raises:
        CbxReadError: If the archive cannot be opened.
    """
    if not path.exists():
        raise CbxReadError(f"File not found: {path}")
    archive = _Archive(path)

    metadata = BookMetadata()
    for name in archive.names:
        if PurePosixPath(name).name.lower() == _COMIC_INFO:
            try:
                metadata = parse_comic_info(archive.read(name))
            except CbxReadError as exc:
                logger.warning("Ignoring ComicInfo.xml in %s: %s", path, exc)
            break

    if metadata.page_count is None:
        metadata.page_count = len(_page_images(archive.names)) or None
    metadata.source_path = path
    return metadata


def read_cbx_cover(path: Path) -> tuple[bytes, str] | None:
    """Return the first page image of a comic archive as (bytes, suffix).

    Raises:
        CbxReadError: If the archive cannot be opened or read.
    """
    if not path.exists():
        raise CbxReadError(f"File not found: {path}")
    archive = _Archive(path)
    pages = _page_images(archive.names)
    if not pages:
        return None
    first = pages[0]
    return archive.read(first), PurePosixPath(first).suffix.lstrip(".").lower()


class CbxProcessor(FormatProcessor):
    """Creates books from comic book archives."""

    book_type = BookFileType.CBX

    def read_metadata(self, path: Path) -> BookMetadata:
        return read_cbx_metadata(path)

    def read_cover(self, path: Path) -> tuple[bytes, str] | None:
        return read_cbx_cover(path)
