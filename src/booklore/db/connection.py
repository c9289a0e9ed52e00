# ABOUTME: SQLite database connection management for the BookLore catalog.
# ABOUTME: Opens or creates the database, applies migrations and configures the connection.

import logging
import sqlite3
from pathlib import Path

from booklore.db.schema import MIGRATIONS, SCHEMA_V1

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".booklore" / "library.db"

# Seconds a writer waits on a locked database before giving up.
_BUSY_TIMEOUT = 30.0


def _schema_exists(conn: sqlite3.Connection) -> bool:
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'"
    )
    return cursor.fetchone() is not None


def _get_schema_version(conn: sqlite3.Connection) -> int:
    """Read the current schema version, 0 for an empty database."""
    if not _schema_exists(conn):
        return 0
    cursor = conn.execute("SELECT MAX(version) FROM schema_version")
    row = cursor.fetchone()
    return row[0] or 0


def _run_script(conn: sqlite3.Connection, version: int, sql: str) -> None:
    """Apply one DDL script atomically under a write lock.

    Another connection may have applied the same version while this one
    waited for the lock; that is detected afterwards and is not an error.
    """
    try:
        conn.executescript(f"BEGIN IMMEDIATE;\n{sql}\nCOMMIT;")
    except sqlite3.OperationalError:
        if conn.in_transaction:
            conn.execute("ROLLBACK")
        if _get_schema_version(conn) >= version:
            logger.debug("Schema version %d was applied by another connection", version)
            return
        raise


def _apply_migrations(conn: sqlite3.Connection) -> None:
    """Bring the schema up to the latest version, one script per version."""
    if _get_schema_version(conn) == 0:
        logger.info("Creating catalog schema")
        _run_script(conn, 1, SCHEMA_V1)
    for version, sql in MIGRATIONS:
        if version > _get_schema_version(conn):
            logger.info("Applying schema migration %d", version)
            _run_script(conn, version, sql)


def open_library(path: Path | None = None) -> sqlite3.Connection:
    """Open or create the BookLore catalog database.

    Creates the database file and parent directories if they don't exist and
    brings the schema up to date. The connection runs in autocommit mode;
    LibraryCatalog groups statements with explicit transactions. WAL journaling
    and a busy timeout let scans of different libraries write from separate
    threads, each with its own connection.

    Args:
        path: Path to the database file. Defaults to ~/.booklore/library.db.

    Returns:
        A configured sqlite3.Connection.
    """
    db_path = path or DEFAULT_DB_PATH
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path), timeout=_BUSY_TIMEOUT, isolation_level=None)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")

    try:
        _apply_migrations(conn)
    except sqlite3.Error:
        conn.close()
        raise
    return conn
