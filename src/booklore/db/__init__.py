# ABOUTME: Public API for the BookLore catalog database layer.
# ABOUTME: Exports connection management, catalog operations, and content fingerprinting.

from booklore.db.catalog import LibraryCatalog
from booklore.db.connection import DEFAULT_DB_PATH, open_library
from booklore.db.hashing import compute_file_hash, file_size_kb

__all__ = [
    "DEFAULT_DB_PATH",
    "LibraryCatalog",
    "compute_file_hash",
    "file_size_kb",
    "open_library",
]
