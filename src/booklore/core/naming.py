# ABOUTME: Resolves user file naming patterns ({placeholder} tokens and <optional> blocks) to paths.
# ABOUTME: Pure functions; the pattern syntax is user-facing and must stay byte-compatible.

import re

from booklore.metadata.types import BookMetadata
from booklore.models import BookRecord

_ILLEGAL_CHARS_RE = re.compile(r'[\\/:*?"<>|]')
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f]")
_WHITESPACE_RE = re.compile(r"\s+")
_OPTIONAL_BLOCK_RE = re.compile(r"<([^<>]*)>")
_PLACEHOLDER_RE = re.compile(r"\{(.*?)}")
_HAS_EXTENSION_RE = re.compile(r".*\.[a-zA-Z0-9]+$")

DEFAULT_TITLE = "Untitled"


def sanitize(value: str | None) -> str:
    """Make a metadata value safe for use as a path component."""
    if value is None:
        return ""
    value = _ILLEGAL_CHARS_RE.sub("", value)
    value = _CONTROL_CHARS_RE.sub("", value)
    return _WHITESPACE_RE.sub(" ", value).strip()


def _is_blank(value: str) -> bool:
    return not value.strip()


def format_series_index(number: float | None) -> str:
    """Render a series number: whole numbers without a decimal point."""
    if number is None:
        return ""
    if float(number).is_integer():
        return str(int(number))
    return str(number)


def _extension_of(file_name: str) -> str:
    last_dot = file_name.rfind(".")
    if 0 <= last_dot < len(file_name) - 1:
        return sanitize(file_name[last_dot + 1 :])
    return ""


def _placeholder_values(metadata: BookMetadata | None, current_filename: str) -> dict[str, str]:
    if metadata is None:
        metadata = BookMetadata()
    title = metadata.title if metadata.title is not None else DEFAULT_TITLE
    year = str(metadata.published_date.year) if metadata.published_date else ""
    return {
        "authors": sanitize(", ".join(metadata.authors)),
        "title": sanitize(title),
        "subtitle": sanitize(metadata.subtitle),
        "year": sanitize(year),
        "series": sanitize(metadata.series_name),
        "seriesIndex": sanitize(format_series_index(metadata.series_number)),
        "language": sanitize(metadata.language),
        "publisher": sanitize(metadata.publisher),
        "isbn": sanitize(metadata.isbn13 or metadata.isbn10 or ""),
        "currentFilename": current_filename,
    }


def _resolve_optional_blocks(pattern: str, values: dict[str, str]) -> str:
    def replace_block(match: re.Match[str]) -> str:
        block = match.group(1)
        for key in _PLACEHOLDER_RE.findall(block):
            if _is_blank(values.get(key, "")):
                return ""
        for key, value in values.items():
            block = block.replace("{" + key + "}", value)
        return block

    return _OPTIONAL_BLOCK_RE.sub(replace_block, pattern)


def _resolve_placeholders(text: str, values: dict[str, str]) -> str:
    def replace_placeholder(match: re.Match[str]) -> str:
        key = match.group(1)
        return values.get(key, "{" + key + "}")

    return _PLACEHOLDER_RE.sub(replace_placeholder, text)


def resolve_pattern(
    metadata: BookMetadata | None, pattern: str | None, current_filename: str
) -> str:
    """Resolve a naming pattern against a book's metadata.

    Args:
        metadata: Metadata supplying placeholder values; None behaves as empty.
        pattern: Pattern such as "{authors}/<{series}/>{title}".
        current_filename: The book's current file name, used for
            {currentFilename}, the derived {extension} and as the fallback.

    Returns:
        A relative path string. Blank patterns and blank results fall back to
        current_filename. The current extension is appended unless the
        pattern uses {extension} or the result already ends in one.
    """
    if pattern is None or _is_blank(pattern):
        return current_filename

    values = _placeholder_values(metadata, current_filename)
    extension = _extension_of(current_filename)
    values["extension"] = extension

    result = _resolve_optional_blocks(pattern, values)
    result = _resolve_placeholders(result, values)

    if _is_blank(result):
        result = current_filename

    has_extension = _HAS_EXTENSION_RE.match(result) is not None
    if "{extension}" not in pattern and not has_extension and not _is_blank(extension):
        result += "." + extension
    return result


def resolve_book_pattern(book: BookRecord, pattern: str | None) -> str:
    """Resolve a pattern for a cataloged book using its current file name."""
    current_filename = book.file_name.strip() if book.file_name else ""
    return resolve_pattern(book.metadata, pattern, current_filename)
