# ABOUTME: Per-format book file readers and processors (EPUB, PDF, comic archives).
# ABOUTME: Each processor builds shell books from a file and extracts its cover.

from booklore.formats.base import BookReadError, FormatProcessor
from booklore.formats.cbx import CbxProcessor, CbxReadError
from booklore.formats.epub import EpubProcessor, EpubReadError
from booklore.formats.pdf import PdfProcessor, PdfReadError

__all__ = [
    "BookReadError",
    "CbxProcessor",
    "CbxReadError",
    "EpubProcessor",
    "EpubReadError",
    "FormatProcessor",
    "PdfProcessor",
    "PdfReadError",
]
