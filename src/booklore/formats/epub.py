# ABOUTME: EPUB metadata and cover extraction using ebooklib.
# ABOUTME: Defensive wrapper that handles malformed files gracefully.

import logging
import re
from datetime import date
from pathlib import Path

from ebooklib import ITEM_COVER, ITEM_IMAGE, epub

from booklore.formats.base import BookReadError, FormatProcessor
from booklore.metadata.types import BookMetadata
from booklore.models import BookFileType

logger = logging.getLogger(__name__)

_DATE_RE = re.compile(r"^(\d{4})(?:-(\d{2}))?(?:-(\d{2}))?")


class EpubReadError(BookReadError):
    """Raised when an EPUB file cannot be read or parsed."""


def _get_metadata_value(book: epub.EpubBook, namespace: str, name: str) -> str | None:
    """Extract a single metadata value from an EpubBook, or None if missing."""
    values = book.get_metadata(namespace, name)
    if not values:
        return None
    # Metadata entries are tuples of (value, attributes)
    value = values[0][0]
    return str(value).strip() if value else None


def _get_metadata_list(book: epub.EpubBook, name: str) -> list[str]:
    """Extract every non-blank Dublin Core value for a field (creators, subjects)."""
    entries = book.get_metadata("DC", name)
    return [str(entry[0]).strip() for entry in entries if entry[0] and str(entry[0]).strip()]


def _get_named_meta(book: epub.EpubBook, meta_name: str) -> str | None:
    """Find the content of an OPF <meta name="..." content="..."> element.

    ebooklib files these under different namespace keys depending on the
    name prefix, so every bucket is searched by the element's attributes.
    """
    for entries in book.metadata.values():
        for values in entries.values():
            for _, attrs in values:
                if attrs and attrs.get("name") == meta_name and attrs.get("content"):
                    return str(attrs["content"]).strip()
    return None


def _get_identifiers(book: epub.EpubBook) -> dict[str, str]:
    """Extract all identifiers (ISBN, UUID, etc.) from an EpubBook."""
    identifiers = {}
    entries = book.get_metadata("DC", "identifier")
    for value, attrs in entries:
        if not value:
            continue
        scheme = attrs.get("opf:scheme", attrs.get("scheme", "id"))
        identifiers[scheme.lower()] = str(value).strip()
    return identifiers


def _detect_isbns(identifiers: dict[str, str]) -> tuple[str | None, str | None]:
    """Split identifier values into (ISBN-13, ISBN-10) by digit count."""
    isbn13 = None
    isbn10 = None
    for value in identifiers.values():
        cleaned = value.lower().removeprefix("urn:isbn:").replace("-", "").replace(" ", "")
        if len(cleaned) == 13 and cleaned.isdigit():
            isbn13 = isbn13 or cleaned
        elif len(cleaned) == 10 and cleaned[:9].isdigit() and cleaned[9] in "0123456789x":
            isbn10 = isbn10 or cleaned.upper()
    return isbn13, isbn10


def _parse_date(value: str | None) -> date | None:
    """Parse an OPF date (YYYY, YYYY-MM or a full ISO timestamp)."""
    if not value:
        return None
    match = _DATE_RE.match(value.strip())
    if not match:
        return None
    year, month, day = match.groups()
    try:
        return date(int(year), int(month or 1), int(day or 1))
    except ValueError:
        return None


def _parse_float(value: str | None) -> float | None:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _extract_cover(book: epub.EpubBook) -> tuple[bytes, str] | None:
    """Extract cover image data and its file suffix from an EPUB, if present."""
    cover_id = _get_named_meta(book, "cover")
    if cover_id:
        cover_item = book.get_item_with_id(cover_id)
        if cover_item:
            return cover_item.get_content(), _suffix(cover_item.get_name())

    for item in book.get_items_of_type(ITEM_COVER):
        return item.get_content(), _suffix(item.get_name())

    # Fallback: look for images with "cover" in the id or filename
    for item in book.get_items_of_type(ITEM_IMAGE):
        item_id = item.get_id() or ""
        item_name = item.get_name() or ""
        if "cover" in item_id.lower() or "cover" in item_name.lower():
            return item.get_content(), _suffix(item_name)

    return None


def _suffix(name: str | None) -> str:
    suffix = Path(name or "").suffix.lstrip(".").lower()
    return suffix or "jpg"


def _open_epub(path: Path) -> epub.EpubBook:
    if not path.exists():
        raise EpubReadError(f"File not found: {path}")
    try:
        return epub.read_epub(str(path), options={"ignore_ncx": True})
    except Exception as exc:
        raise EpubReadError(f"Failed to read EPUB: {path}: {exc}") from exc


def read_epub_metadata(path: Path) -> BookMetadata:
    """Extract metadata from an EPUB file.

    Args:
        path: Path to the EPUB file.

    Returns:
        BookMetadata populated with extracted fields. The title falls back
        to the file stem.

    Raises:
        EpubReadError: If the file cannot be read or parsed.
    """
    book = _open_epub(path)

    title = _get_metadata_value(book, "DC", "title")
    if not title:
        title = path.stem

    identifiers = _get_identifiers(book)
    isbn13, isbn10 = _detect_isbns(identifiers)
    series_index = _parse_float(_get_named_meta(book, "calibre:series_index"))

    return BookMetadata(
        title=title,
        authors=_get_metadata_list(book, "creator"),
        categories=_get_metadata_list(book, "subject"),
        language=_get_metadata_value(book, "DC", "language"),
        publisher=_get_metadata_value(book, "DC", "publisher"),
        published_date=_parse_date(_get_metadata_value(book, "DC", "date")),
        description=_get_metadata_value(book, "DC", "description"),
        series_name=_get_named_meta(book, "calibre:series"),
        series_number=series_index,
        isbn13=isbn13,
        isbn10=isbn10,
        identifiers=identifiers,
        source_path=path,
    )


def read_epub_cover(path: Path) -> tuple[bytes, str] | None:
    """Extract the cover image of an EPUB file as (bytes, suffix).

    Raises:
        EpubReadError: If the file cannot be read or parsed.
    """
    return _extract_cover(_open_epub(path))


class EpubProcessor(FormatProcessor):
    """Creates books from EPUB files."""

    book_type = BookFileType.EPUB

    def read_metadata(self, path: Path) -> BookMetadata:
        return read_epub_metadata(path)

    def read_cover(self, path: Path) -> tuple[bytes, str] | None:
        return read_epub_cover(path)
