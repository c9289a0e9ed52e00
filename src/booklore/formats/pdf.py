# ABOUTME: PDF metadata and cover extraction using PyMuPDF.
# ABOUTME: Reads the document info dictionary and renders the first page as the cover.

import logging
import re
from datetime import date
from pathlib import Path

import fitz

from booklore.formats.base import BookReadError, FormatProcessor
from booklore.metadata.types import BookMetadata
from booklore.models import BookFileType

logger = logging.getLogger(__name__)

_PDF_DATE_RE = re.compile(r"^(?:D:)?(\d{4})(\d{2})?(\d{2})?")
_AUTHOR_SPLIT_RE = re.compile(r"\s*(?:[,;&]|\band\b)\s*")
_KEYWORD_SPLIT_RE = re.compile(r"\s*[,;]\s*")

# Zoom factor for the first-page render; 1.0 is 72 dpi.
_COVER_ZOOM = 1.5


class PdfReadError(BookReadError):
    """Raised when a PDF file cannot be opened."""


def _open_pdf(path: Path) -> "fitz.Document":
    if not path.exists():
        raise PdfReadError(f"File not found: {path}")
    try:
        return fitz.open(path)
    except Exception as exc:
        raise PdfReadError(f"Failed to read PDF: {path}: {exc}") from exc


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _parse_pdf_date(value: str | None) -> date | None:
    """Parse a PDF date string such as D:20190315120000+01'00'."""
    if not value:
        return None
    match = _PDF_DATE_RE.match(value.strip())
    if not match:
        return None
    year, month, day = match.groups()
    try:
        return date(int(year), int(month or 1), int(day or 1))
    except ValueError:
        return None


def _split(pattern: re.Pattern[str], value: str | None) -> list[str]:
    if not value:
        return []
    return [part for part in pattern.split(value.strip()) if part]


def read_pdf_metadata(path: Path) -> BookMetadata:
    """Extract metadata from a PDF's document information dictionary.

    Raises:
        PdfReadError: If the file cannot be opened.
    """
    doc = _open_pdf(path)
    try:
        info = doc.metadata or {}
        return BookMetadata(
            title=_clean(info.get("title")),
            authors=_split(_AUTHOR_SPLIT_RE, info.get("author")),
            description=_clean(info.get("subject")),
            categories=_split(_KEYWORD_SPLIT_RE, info.get("keywords")),
            published_date=_parse_pdf_date(info.get("creationDate")),
            page_count=doc.page_count or None,
            source_path=path,
        )
    finally:
        doc.close()


def render_pdf_cover(path: Path) -> tuple[bytes, str] | None:
    """Render the first page of a PDF as a PNG cover.

    Raises:
        PdfReadError: If the file cannot be opened or rendered.
    """
    doc = _open_pdf(path)
    try:
        if doc.page_count == 0:
            return None
        page = doc.load_page(0)
        pixmap = page.get_pixmap(matrix=fitz.Matrix(_COVER_ZOOM, _COVER_ZOOM))
        return pixmap.tobytes("png"), "png"
    except Exception as exc:
        raise PdfReadError(f"Failed to render PDF cover: {path}: {exc}") from exc
    finally:
        doc.close()


class PdfProcessor(FormatProcessor):
    """Creates books from PDF files."""

    book_type = BookFileType.PDF

    def read_metadata(self, path: Path) -> BookMetadata:
        return read_pdf_metadata(path)

    def read_cover(self, path: Path) -> tuple[bytes, str] | None:
        return render_pdf_cover(path)
