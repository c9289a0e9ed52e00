# ABOUTME: Derives best-effort metadata from a book's file name.
# ABOUTME: Used for shell books whose files carry no embedded title (bare PDFs, comic archives).

import re
from dataclasses import dataclass

import wordninja

from booklore.metadata.types import BookMetadata

# Spaceless runs shorter than this are left alone ("Dune", "1984").
_MIN_CONCAT_LENGTH = 8

_DOWNLOAD_SITE_TAGS = ("(Z-Library)", "(z-lib.org)")
_PARENTHESES_RE = re.compile(r"\s?\(.*?\)")
_CAMEL_CASE_RE = re.compile(r"[a-z][A-Z]")
_CAMEL_BOUNDARY_RE = re.compile(r"([a-z\d])([A-Z])")
_UPPER_RUN_RE = re.compile(r"([A-Z]+)([A-Z][a-z])")
_UNDERSCORE_RUN_RE = re.compile(r"_+")
_WHITESPACE_RE = re.compile(r"\s+")

# "Author - Title" or "Author - [Series NN] - Title"
_AUTHOR_DASH_TITLE_RE = re.compile(
    r"^(?P<author>.+?)\s+-\s+(?:\[(?P<series>[^\]]+)\]\s+-\s+)?(?P<title>.+)$"
)
_SERIES_INDEX_RE = re.compile(r"^(?P<name>.+?)\s+(?P<index>\d+(?:\.\d+)?)$")

_STOP_WORDS = frozenset(
    {"the", "a", "an", "of", "and", "in", "on", "at", "to", "for", "by", "with", "from"}
)


@dataclass
class FilenameMetadata:
    """What could be recovered from a file name."""

    title: str
    author: str | None = None
    series_name: str | None = None
    series_number: float | None = None


def clean_file_name(file_name: str) -> str:
    """Strip download-site tags, parenthesised asides and the extension."""
    name = file_name
    for tag in _DOWNLOAD_SITE_TAGS:
        name = name.replace(tag, "")
    name = _PARENTHESES_RE.sub("", name.strip()).strip()
    dot = name.rfind(".")
    if dot > 0:
        name = name[:dot].strip()
    return name


def _looks_concatenated(text: str) -> bool:
    if "_" in text or _CAMEL_CASE_RE.search(text):
        return True
    return any(" " not in seg and len(seg) >= _MIN_CONCAT_LENGTH for seg in text.split("-"))


def split_concatenated(text: str) -> str:
    """Turn 'TheTemplar_legacy' style names into space-separated words.

    CamelCase boundaries are split first; whatever is still a long lowercase
    run is handed to wordninja's unigram model.
    """
    if not _looks_concatenated(text):
        return text

    marked = _UNDERSCORE_RUN_RE.sub(" ", text)
    marked = _CAMEL_BOUNDARY_RE.sub(r"\1 \2", marked)
    marked = _UPPER_RUN_RE.sub(r"\1 \2", marked)

    words: list[str] = []
    for part in marked.split():
        if part.islower() and len(part) >= _MIN_CONCAT_LENGTH:
            words.extend(wordninja.split(part) or [part])
        else:
            words.append(part)
    return " ".join(words)


def _is_likely_person_name(text: str) -> bool:
    """Two or three capitalised words, none of them a title stop word."""
    words = text.split()
    if not 2 <= len(words) <= 3:
        return False
    if not all(w[0].isupper() for w in words):
        return False
    return not any(w.lower() in _STOP_WORDS for w in words)


def parse_file_name(file_name: str) -> FilenameMetadata:
    """Recover title, author and series hints from a file name.

    Recognises ``Author - Title`` and ``Author - [Series 3] - Title`` when the
    leading part looks like a person's name; otherwise the whole cleaned name
    becomes the title.
    """
    cleaned = clean_file_name(file_name)
    if not cleaned:
        return FilenameMetadata(title=file_name)

    match = _AUTHOR_DASH_TITLE_RE.match(cleaned)
    if match and _is_likely_person_name(match.group("author").strip()):
        result = FilenameMetadata(
            title=_WHITESPACE_RE.sub(" ", match.group("title")).strip(),
            author=match.group("author").strip(),
        )
        series = match.group("series")
        if series:
            index_match = _SERIES_INDEX_RE.match(series.strip())
            if index_match:
                result.series_name = index_match.group("name")
                result.series_number = float(index_match.group("index"))
            else:
                result.series_name = series.strip()
        return result

    title = _WHITESPACE_RE.sub(" ", split_concatenated(cleaned)).strip()
    return FilenameMetadata(title=title or cleaned)


def fill_from_file_name(metadata: BookMetadata, file_name: str) -> BookMetadata:
    """Fill blank title/author/series fields from the file name, in place."""
    if metadata.title and metadata.title.strip() and metadata.authors:
        return metadata

    parsed = parse_file_name(file_name)
    if not metadata.title or not metadata.title.strip():
        metadata.title = parsed.title
    if not metadata.authors and parsed.author:
        metadata.authors = [parsed.author]
    if metadata.series_name is None and parsed.series_name:
        metadata.series_name = parsed.series_name
        metadata.series_number = parsed.series_number
    return metadata
