# ABOUTME: SQL DDL statements for the BookLore catalog database schema.
# ABOUTME: Defines libraries, books, embedded metadata, vocabularies, additional files and settings.

SCHEMA_V1 = """
CREATE TABLE libraries (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    name                TEXT NOT NULL UNIQUE,
    file_naming_pattern TEXT
);

CREATE TABLE library_paths (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    library_id INTEGER NOT NULL REFERENCES libraries(id) ON DELETE CASCADE,
    path       TEXT NOT NULL,
    UNIQUE (library_id, path)
);

-- A book is one primary file; its location is library path + sub path + file name.
CREATE TABLE books (
    id                   INTEGER PRIMARY KEY AUTOINCREMENT,
    library_id           INTEGER NOT NULL REFERENCES libraries(id),
    library_path_id      INTEGER NOT NULL REFERENCES library_paths(id),
    file_sub_path        TEXT NOT NULL DEFAULT '',
    file_name            TEXT NOT NULL,
    book_type            TEXT NOT NULL CHECK (book_type IN ('EPUB', 'PDF', 'CBX')),
    file_size_kb         INTEGER,
    initial_hash         TEXT,
    current_hash         TEXT,
    deleted              INTEGER NOT NULL DEFAULT 0,
    deleted_at           TEXT,
    added_on             TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now')),
    metadata_match_score REAL
);

CREATE UNIQUE INDEX idx_books_active_location
    ON books(library_path_id, file_sub_path, file_name) WHERE deleted = 0;
CREATE INDEX idx_books_current_hash ON books(current_hash);
CREATE INDEX idx_books_library_file_name ON books(library_id, file_name);

CREATE TABLE book_metadata (
    book_id                INTEGER PRIMARY KEY REFERENCES books(id) ON DELETE CASCADE,
    title                  TEXT,
    subtitle               TEXT,
    publisher              TEXT,
    published_date         TEXT,
    description            TEXT,
    series_name            TEXT,
    series_number          REAL,
    series_total           INTEGER,
    isbn13                 TEXT,
    isbn10                 TEXT,
    language               TEXT,
    page_count             INTEGER,
    identifiers            TEXT,
    amazon_rating          REAL,
    amazon_review_count    INTEGER,
    goodreads_rating       REAL,
    goodreads_review_count INTEGER,
    hardcover_rating       REAL,
    hardcover_review_count INTEGER,
    cover_updated_on       TEXT,
    title_locked           INTEGER NOT NULL DEFAULT 0,
    subtitle_locked        INTEGER NOT NULL DEFAULT 0,
    publisher_locked       INTEGER NOT NULL DEFAULT 0,
    published_date_locked  INTEGER NOT NULL DEFAULT 0,
    description_locked     INTEGER NOT NULL DEFAULT 0,
    series_name_locked     INTEGER NOT NULL DEFAULT 0,
    series_number_locked   INTEGER NOT NULL DEFAULT 0,
    series_total_locked    INTEGER NOT NULL DEFAULT 0,
    isbn13_locked          INTEGER NOT NULL DEFAULT 0,
    isbn10_locked          INTEGER NOT NULL DEFAULT 0,
    language_locked        INTEGER NOT NULL DEFAULT 0,
    page_count_locked      INTEGER NOT NULL DEFAULT 0,
    authors_locked         INTEGER NOT NULL DEFAULT 0,
    categories_locked      INTEGER NOT NULL DEFAULT 0,
    moods_locked           INTEGER NOT NULL DEFAULT 0,
    tags_locked            INTEGER NOT NULL DEFAULT 0,
    cover_locked           INTEGER NOT NULL DEFAULT 0
);

-- Vocabularies: names are exact and case-sensitive (BINARY collation).
CREATE TABLE authors (
    id   INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE
);

CREATE TABLE categories (
    id   INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE
);

CREATE TABLE book_authors (
    book_id   INTEGER NOT NULL REFERENCES books(id) ON DELETE CASCADE,
    author_id INTEGER NOT NULL REFERENCES authors(id) ON DELETE CASCADE,
    PRIMARY KEY (book_id, author_id)
);

CREATE TABLE book_categories (
    book_id     INTEGER NOT NULL REFERENCES books(id) ON DELETE CASCADE,
    category_id INTEGER NOT NULL REFERENCES categories(id) ON DELETE CASCADE,
    PRIMARY KEY (book_id, category_id)
);

-- Alternate formats of a book. RESTRICT keeps the owning book from being purged.
CREATE TABLE book_additional_files (
    id                   INTEGER PRIMARY KEY AUTOINCREMENT,
    book_id              INTEGER NOT NULL REFERENCES books(id) ON DELETE RESTRICT,
    library_path_id      INTEGER NOT NULL REFERENCES library_paths(id),
    file_sub_path        TEXT NOT NULL DEFAULT '',
    file_name            TEXT NOT NULL,
    additional_file_type TEXT NOT NULL DEFAULT 'ALTERNATIVE_FORMAT',
    current_hash         TEXT,
    initial_hash         TEXT,
    added_on             TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

CREATE INDEX idx_additional_files_hash ON book_additional_files(current_hash);

CREATE TABLE app_settings (
    name TEXT PRIMARY KEY,
    val  TEXT
);

-- Schema versioning for future migrations
CREATE TABLE schema_version (
    version    INTEGER NOT NULL,
    applied_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

INSERT INTO schema_version (version) VALUES (1);
"""

SCHEMA_V2 = """
-- Moods and tags vocabularies, same shape as authors/categories.
CREATE TABLE moods (
    id   INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE
);

CREATE TABLE tags (
    id   INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE
);

CREATE TABLE book_moods (
    book_id INTEGER NOT NULL REFERENCES books(id) ON DELETE CASCADE,
    mood_id INTEGER NOT NULL REFERENCES moods(id) ON DELETE CASCADE,
    PRIMARY KEY (book_id, mood_id)
);

CREATE TABLE book_tags (
    book_id INTEGER NOT NULL REFERENCES books(id) ON DELETE CASCADE,
    tag_id  INTEGER NOT NULL REFERENCES tags(id) ON DELETE CASCADE,
    PRIMARY KEY (book_id, tag_id)
);

INSERT INTO schema_version (version) VALUES (2);
"""

# Ordered (version, DDL) pairs applied on top of SCHEMA_V1.
MIGRATIONS: list[tuple[int, str]] = [
    (2, SCHEMA_V2),
]
