# ABOUTME: Domain records shared by the catalog, the ingest pipeline and the move orchestrator.
# ABOUTME: Libraries, library paths, books, additional files and discovered library files.

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePath

from booklore.metadata.types import BookMetadata


class BookFileType(Enum):
    EPUB = "EPUB"
    PDF = "PDF"
    CBX = "CBX"

    @property
    def extensions(self) -> frozenset[str]:
        return _EXTENSIONS[self]

    @classmethod
    def from_file_name(cls, file_name: str) -> "BookFileType | None":
        """Classify a file by its extension; None for unsupported files."""
        suffix = PurePath(file_name).suffix.lower()
        for book_type, extensions in _EXTENSIONS.items():
            if suffix in extensions:
                return book_type
        return None


_EXTENSIONS: dict[BookFileType, frozenset[str]] = {
    BookFileType.EPUB: frozenset({".epub"}),
    BookFileType.PDF: frozenset({".pdf"}),
    BookFileType.CBX: frozenset({".cbz", ".cbr", ".cb7"}),
}

BOOK_EXTENSIONS: frozenset[str] = frozenset().union(*_EXTENSIONS.values())


@dataclass
class LibraryPath:
    """A root folder owned by one library."""

    id: int
    library_id: int
    path: str

    @property
    def root(self) -> Path:
        return Path(self.path).absolute()


@dataclass
class Library:
    id: int
    name: str
    file_naming_pattern: str | None = None
    paths: list[LibraryPath] = field(default_factory=list)

    def find_path(self, library_path_id: int) -> LibraryPath | None:
        for library_path in self.paths:
            if library_path.id == library_path_id:
                return library_path
        return None


@dataclass
class LibraryFile:
    """A file discovered under a library path, not yet classified as a book."""

    library: Library
    library_path: LibraryPath
    file_sub_path: str
    file_name: str
    book_type: BookFileType | None = None

    @property
    def full_path(self) -> Path:
        return _join_location(self.library_path.path, self.file_sub_path, self.file_name)


@dataclass
class BookRecord:
    """A cataloged book: location, fingerprints and embedded metadata."""

    id: int
    library_id: int
    library_path_id: int
    library_path: str
    file_sub_path: str
    file_name: str
    book_type: BookFileType
    metadata: BookMetadata
    file_size_kb: int | None = None
    initial_hash: str | None = None
    current_hash: str | None = None
    deleted: bool = False
    deleted_at: str | None = None
    added_on: str | None = None
    metadata_match_score: float | None = None

    @property
    def full_file_path(self) -> Path:
        return _join_location(self.library_path, self.file_sub_path, self.file_name)


@dataclass
class AdditionalFile:
    """An alternate format registered under a canonical book by its own hash."""

    id: int
    book_id: int
    library_path_id: int
    file_sub_path: str
    file_name: str
    additional_file_type: str
    current_hash: str | None
    initial_hash: str | None


@dataclass
class ShellBook:
    """A new book built by a format processor, before it is persisted."""

    library_file: LibraryFile
    book_type: BookFileType
    metadata: BookMetadata
    file_size_kb: int | None = None


def _join_location(root: str, sub_path: str, file_name: str) -> Path:
    base = Path(root)
    if sub_path:
        base = base / sub_path
    return base / file_name
