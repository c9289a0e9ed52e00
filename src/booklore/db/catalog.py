# ABOUTME: CRUD operations for the BookLore catalog: libraries, books, vocabularies and settings.
# ABOUTME: Groups writes in SQLite savepoints so one failing file rolls back only its own work.

import itertools
import sqlite3
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from booklore.db.mapping import (
    BOOK_SELECT,
    metadata_to_row,
    row_to_additional_file,
    row_to_library,
    row_to_library_path,
    row_to_record,
)
from booklore.metadata.locks import LOCK_COLUMNS, LockableField
from booklore.metadata.types import BookMetadata
from booklore.models import AdditionalFile, BookRecord, Library, LibraryFile, LibraryPath, ShellBook

# Vocabulary names are capped before lookup so find-or-create stays stable.
MAX_NAME_LENGTH = 255

# kind -> (vocabulary table, join table, join column)
_VOCABULARIES: dict[str, tuple[str, str, str]] = {
    "authors": ("authors", "book_authors", "author_id"),
    "categories": ("categories", "book_categories", "category_id"),
    "moods": ("moods", "book_moods", "mood_id"),
    "tags": ("tags", "book_tags", "tag_id"),
}

# books columns that update_book accepts.
_BOOK_COLUMNS = frozenset(
    {
        "library_id",
        "library_path_id",
        "file_sub_path",
        "file_name",
        "file_size_kb",
        "current_hash",
        "metadata_match_score",
    }
)

_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"


class LibraryCatalog:
    """Wraps a sqlite3 connection and provides typed CRUD for the catalog tables.

    The connection is expected to be in autocommit mode (see open_library).
    Single statements commit on their own; multi-statement operations run
    inside transaction(), which nests.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._savepoints = itertools.count(1)

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    @contextmanager
    def transaction(self) -> Iterator["LibraryCatalog"]:
        """Run a block of catalog writes atomically.

        The outermost block opens a BEGIN IMMEDIATE transaction, taking the
        write lock up front so that other connections wait on the busy
        timeout instead of failing a read-to-write upgrade. Nested blocks
        use savepoints: an exception rolls back only the writes made inside
        that block, and the enclosing transaction stays usable.
        """
        if not self._conn.in_transaction:
            self._conn.execute("BEGIN IMMEDIATE")
            try:
                yield self
            except BaseException:
                if self._conn.in_transaction:
                    self._conn.execute("ROLLBACK")
                raise
            self._conn.execute("COMMIT")
            return

        name = f"booklore_sp_{next(self._savepoints)}"
        self._conn.execute(f"SAVEPOINT {name}")
        try:
            yield self
        except BaseException:
            self._conn.execute(f"ROLLBACK TO SAVEPOINT {name}")
            self._conn.execute(f"RELEASE SAVEPOINT {name}")
            raise
        self._conn.execute(f"RELEASE SAVEPOINT {name}")

    # --- Libraries ---

    def create_library(
        self,
        name: str,
        paths: Iterable[Path | str] = (),
        file_naming_pattern: str | None = None,
    ) -> Library:
        """Create a library with its root folders.

        Raises:
            ValueError: If a library with this name already exists.
        """
        with self.transaction():
            try:
                cursor = self._conn.execute(
                    "INSERT INTO libraries (name, file_naming_pattern) VALUES (?, ?)",
                    (name, file_naming_pattern),
                )
            except sqlite3.IntegrityError as exc:
                raise ValueError(f"Library '{name}' already exists") from exc
            library_id = cursor.lastrowid
            for path in paths:
                self.add_library_path(library_id, path)  # type: ignore[arg-type]
        library = self.get_library(library_id)  # type: ignore[arg-type]
        assert library is not None
        return library

    def add_library_path(self, library_id: int, path: Path | str) -> LibraryPath:
        """Add a root folder to a library. Idempotent for an existing path.

        Raises:
            ValueError: If the library does not exist.
        """
        if self.get_library(library_id) is None:
            raise ValueError(f"Library with id {library_id} not found")
        root = str(Path(path).expanduser().absolute())
        self._conn.execute(
            "INSERT OR IGNORE INTO library_paths (library_id, path) VALUES (?, ?)",
            (library_id, root),
        )
        row = self._conn.execute(
            "SELECT * FROM library_paths WHERE library_id = ? AND path = ?",
            (library_id, root),
        ).fetchone()
        return row_to_library_path(row)

    def get_library(self, library_id: int) -> Library | None:
        """Retrieve a library and its paths by ID."""
        row = self._conn.execute("SELECT * FROM libraries WHERE id = ?", (library_id,)).fetchone()
        return row_to_library(row, self._library_paths(row["id"])) if row else None

    def get_library_by_name(self, name: str) -> Library | None:
        row = self._conn.execute("SELECT * FROM libraries WHERE name = ?", (name,)).fetchone()
        return row_to_library(row, self._library_paths(row["id"])) if row else None

    def list_libraries(self) -> list[Library]:
        """Return all libraries ordered by name."""
        rows = self._conn.execute("SELECT * FROM libraries ORDER BY name").fetchall()
        return [row_to_library(row, self._library_paths(row["id"])) for row in rows]

    def set_library_pattern(self, library_id: int, pattern: str | None) -> None:
        """Set (or clear, with None) a library's file naming pattern.

        Raises:
            ValueError: If the library does not exist.
        """
        cursor = self._conn.execute(
            "UPDATE libraries SET file_naming_pattern = ? WHERE id = ?",
            (pattern, library_id),
        )
        if cursor.rowcount == 0:
            raise ValueError(f"Library with id {library_id} not found")

    def _library_paths(self, library_id: int) -> list[LibraryPath]:
        rows = self._conn.execute(
            "SELECT * FROM library_paths WHERE library_id = ? ORDER BY id", (library_id,)
        ).fetchall()
        return [row_to_library_path(row) for row in rows]

    # --- Books ---

    def create_book(self, shell: ShellBook, content_hash: str) -> int:
        """Persist a new book with its metadata and vocabularies.

        Both fingerprints start out equal to content_hash; initial_hash is
        never written again.

        Returns:
            The row ID of the inserted book.
        """
        library_file = shell.library_file
        with self.transaction():
            cursor = self._conn.execute(
                "INSERT INTO books (library_id, library_path_id, file_sub_path, file_name, "
                "book_type, file_size_kb, initial_hash, current_hash) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    library_file.library.id,
                    library_file.library_path.id,
                    library_file.file_sub_path,
                    library_file.file_name,
                    shell.book_type.value,
                    shell.file_size_kb,
                    content_hash,
                    content_hash,
                ),
            )
            book_id: int = cursor.lastrowid  # type: ignore[assignment]
            self.save_metadata(book_id, shell.metadata)
        return book_id

    def get_by_id(self, book_id: int) -> BookRecord | None:
        """Retrieve a book (active or soft-deleted) by its row ID."""
        return self._fetch_one("WHERE b.id = ?", (book_id,))

    def find_by_current_hash(self, content_hash: str) -> BookRecord | None:
        """Find the active book whose current fingerprint is content_hash."""
        return self._fetch_one("WHERE b.current_hash = ? AND b.deleted = 0", (content_hash,))

    def find_deleted_by_current_hash(self, content_hash: str) -> BookRecord | None:
        """Find a soft-deleted book whose current fingerprint is content_hash."""
        return self._fetch_one("WHERE b.current_hash = ? AND b.deleted = 1", (content_hash,))

    def find_by_file_name_and_library(self, file_name: str, library_id: int) -> BookRecord | None:
        """Find an active book with this exact file name anywhere in a library."""
        return self._fetch_one(
            "WHERE b.file_name = ? AND b.library_id = ? AND b.deleted = 0",
            (file_name, library_id),
        )

    def find_by_location(
        self, library_path_id: int, file_sub_path: str, file_name: str
    ) -> BookRecord | None:
        """Find the active book stored at an exact location."""
        return self._fetch_one(
            "WHERE b.library_path_id = ? AND b.file_sub_path = ? AND b.file_name = ? "
            "AND b.deleted = 0",
            (library_path_id, file_sub_path, file_name),
        )

    def list_books(
        self, library_id: int | None = None, include_deleted: bool = False
    ) -> list[BookRecord]:
        """Return books ordered by ID, optionally restricted to one library."""
        clauses: list[str] = []
        params: list[object] = []
        if library_id is not None:
            clauses.append("b.library_id = ?")
            params.append(library_id)
        if not include_deleted:
            clauses.append("b.deleted = 0")
        where = f"WHERE {' AND '.join(clauses)} " if clauses else ""
        rows = self._conn.execute(f"{BOOK_SELECT} {where}ORDER BY b.id", params).fetchall()
        return [self._with_vocabularies(row_to_record(row)) for row in rows]

    def update_book(self, book_id: int, **fields: str | int | float | None) -> None:
        """Update one or more columns of a book row.

        Raises:
            ValueError: If the book_id does not exist or a column is not updatable.
        """
        if not fields:
            return
        unknown = set(fields) - _BOOK_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update book columns: {', '.join(sorted(unknown))}")

        set_clause = ", ".join(f"{k} = ?" for k in fields)
        values = [*list(fields.values()), book_id]
        cursor = self._conn.execute(f"UPDATE books SET {set_clause} WHERE id = ?", values)
        if cursor.rowcount == 0:
            raise ValueError(f"Book with id {book_id} not found")

    def update_file_and_library(
        self,
        book_id: int,
        library_id: int,
        library_path_id: int,
        file_sub_path: str,
        file_name: str,
    ) -> None:
        """Rebind a book to a new library, root folder, sub path and file name at once."""
        self.update_book(
            book_id,
            library_id=library_id,
            library_path_id=library_path_id,
            file_sub_path=file_sub_path,
            file_name=file_name,
        )

    def soft_delete_books(self, book_ids: Iterable[int]) -> int:
        """Mark books deleted, keeping their rows and fingerprints.

        Returns:
            Number of books that were active and are now soft-deleted.
        """
        count = 0
        with self.transaction():
            for book_id in book_ids:
                cursor = self._conn.execute(
                    "UPDATE books SET deleted = 1, "
                    "deleted_at = strftime('%Y-%m-%dT%H:%M:%S', 'now') "
                    "WHERE id = ? AND deleted = 0",
                    (book_id,),
                )
                count += cursor.rowcount
        return count

    def undelete(self, book_id: int) -> None:
        """Clear a book's soft-delete flag.

        Raises:
            ValueError: If the book_id does not exist.
        """
        cursor = self._conn.execute(
            "UPDATE books SET deleted = 0, deleted_at = NULL WHERE id = ?", (book_id,)
        )
        if cursor.rowcount == 0:
            raise ValueError(f"Book with id {book_id} not found")

    def delete_soft_deleted_before(self, cutoff: datetime) -> int:
        """Hard-delete books soft-deleted before cutoff (UTC).

        Books still referenced by an additional file are skipped.

        Returns:
            Number of book rows removed.
        """
        cursor = self._conn.execute(
            "DELETE FROM books WHERE deleted = 1 AND deleted_at < ? "
            "AND id NOT IN (SELECT book_id FROM book_additional_files)",
            (cutoff.strftime(_TIMESTAMP_FORMAT),),
        )
        return cursor.rowcount

    def set_match_score(self, book_id: int, score: float) -> None:
        self.update_book(book_id, metadata_match_score=score)

    # --- Metadata ---

    def save_metadata(self, book_id: int, metadata: BookMetadata) -> None:
        """Write a book's metadata row and replace its vocabulary sets."""
        row = metadata_to_row(metadata)
        columns = ", ".join(["book_id", *row.keys()])
        placeholders = ", ".join("?" for _ in range(len(row) + 1))
        updates = ", ".join(f"{k} = excluded.{k}" for k in row)
        with self.transaction():
            self._conn.execute(
                f"INSERT INTO book_metadata ({columns}) VALUES ({placeholders}) "
                f"ON CONFLICT(book_id) DO UPDATE SET {updates}",
                [book_id, *row.values()],
            )
            self.set_authors(book_id, metadata.authors)
            self.set_categories(book_id, metadata.categories)
            self.set_vocabulary(book_id, "moods", metadata.moods)
            self.set_vocabulary(book_id, "tags", metadata.tags)

    def set_authors(self, book_id: int, names: Iterable[str]) -> None:
        self.set_vocabulary(book_id, "authors", names)

    def set_categories(self, book_id: int, names: Iterable[str]) -> None:
        self.set_vocabulary(book_id, "categories", names)

    def set_vocabulary(self, book_id: int, kind: str, names: Iterable[str]) -> None:
        """Replace the set of vocabulary entries of one kind attached to a book.

        Entries are found or created by exact name; an association exists at
        most once per book.
        """
        _, join_table, join_column = _VOCABULARIES[kind]
        with self.transaction():
            self._conn.execute(f"DELETE FROM {join_table} WHERE book_id = ?", (book_id,))
            for name in names:
                if not name or not name.strip():
                    continue
                entry_id = self.find_or_create(kind, name)
                self._conn.execute(
                    f"INSERT OR IGNORE INTO {join_table} (book_id, {join_column}) VALUES (?, ?)",
                    (book_id, entry_id),
                )

    def find_or_create(self, kind: str, name: str) -> int:
        """Return the ID of the vocabulary entry with this exact name, creating it if needed.

        Names are truncated to MAX_NAME_LENGTH characters.
        """
        table, _, _ = _VOCABULARIES[kind]
        name = name[:MAX_NAME_LENGTH]
        self._conn.execute(f"INSERT OR IGNORE INTO {table} (name) VALUES (?)", (name,))
        row = self._conn.execute(f"SELECT id FROM {table} WHERE name = ?", (name,)).fetchone()
        return row[0]

    def find_or_create_author(self, name: str) -> int:
        return self.find_or_create("authors", name)

    def find_or_create_category(self, name: str) -> int:
        return self.find_or_create("categories", name)

    def count_vocabulary(self, kind: str) -> int:
        table, _, _ = _VOCABULARIES[kind]
        return self._conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]

    def set_locks(self, book_ids: Iterable[int], locks: dict[LockableField, bool]) -> None:
        """Set lock flags on the metadata rows of several books."""
        if not locks:
            return
        set_clause = ", ".join(f"{LOCK_COLUMNS[field]} = ?" for field in locks)
        values = [1 if locked else 0 for locked in locks.values()]
        with self.transaction():
            for book_id in book_ids:
                self._conn.execute(
                    f"UPDATE book_metadata SET {set_clause} WHERE book_id = ?",
                    [*values, book_id],
                )

    def touch_cover(self, book_id: int) -> None:
        """Record that a book's cover was (re)generated just now."""
        self._conn.execute(
            "UPDATE book_metadata SET cover_updated_on = strftime('%Y-%m-%dT%H:%M:%S', 'now') "
            "WHERE book_id = ?",
            (book_id,),
        )

    # --- Additional files ---

    def add_additional_file(
        self, book_id: int, library_file: LibraryFile, content_hash: str
    ) -> AdditionalFile:
        """Register an alternate format file under a canonical book.

        Raises:
            ValueError: If the book_id does not exist.
        """
        if self.get_by_id(book_id) is None:
            raise ValueError(f"Book with id {book_id} not found")
        cursor = self._conn.execute(
            "INSERT INTO book_additional_files (book_id, library_path_id, file_sub_path, "
            "file_name, current_hash, initial_hash) VALUES (?, ?, ?, ?, ?, ?)",
            (
                book_id,
                library_file.library_path.id,
                library_file.file_sub_path,
                library_file.file_name,
                content_hash,
                content_hash,
            ),
        )
        row = self._conn.execute(
            "SELECT * FROM book_additional_files WHERE id = ?", (cursor.lastrowid,)
        ).fetchone()
        return row_to_additional_file(row)

    def find_additional_file_by_hash(self, content_hash: str) -> AdditionalFile | None:
        row = self._conn.execute(
            "SELECT * FROM book_additional_files WHERE current_hash = ? ORDER BY id LIMIT 1",
            (content_hash,),
        ).fetchone()
        return row_to_additional_file(row) if row else None

    def list_additional_files(self, book_id: int) -> list[AdditionalFile]:
        rows = self._conn.execute(
            "SELECT * FROM book_additional_files WHERE book_id = ? ORDER BY id", (book_id,)
        ).fetchall()
        return [row_to_additional_file(row) for row in rows]

    # --- Settings ---

    def get_settings_map(self) -> dict[str, str | None]:
        rows = self._conn.execute("SELECT name, val FROM app_settings").fetchall()
        return {row["name"]: row["val"] for row in rows}

    def put_setting(self, name: str, value: str | None) -> None:
        self._conn.execute(
            "INSERT INTO app_settings (name, val) VALUES (?, ?) "
            "ON CONFLICT(name) DO UPDATE SET val = excluded.val",
            (name, value),
        )

    # --- Internals ---

    def _fetch_one(self, where: str, params: tuple) -> BookRecord | None:
        row = self._conn.execute(f"{BOOK_SELECT} {where} ORDER BY b.id LIMIT 1", params).fetchone()
        return self._with_vocabularies(row_to_record(row)) if row else None

    def _with_vocabularies(self, record: BookRecord) -> BookRecord:
        metadata = record.metadata
        metadata.authors = self._vocabulary_names(record.id, "authors")
        metadata.categories = self._vocabulary_names(record.id, "categories")
        metadata.moods = self._vocabulary_names(record.id, "moods")
        metadata.tags = self._vocabulary_names(record.id, "tags")
        return record

    def _vocabulary_names(self, book_id: int, kind: str) -> list[str]:
        table, join_table, join_column = _VOCABULARIES[kind]
        rows = self._conn.execute(
            f"SELECT v.name FROM {table} v "
            f"JOIN {join_table} j ON v.id = j.{join_column} "
            "WHERE j.book_id = ? ORDER BY j.rowid",
            (book_id,),
        ).fetchall()
        return [row[0] for row in rows]
