# ABOUTME: The `booklore attach` command for registering an alternate format of a book.
# ABOUTME: Later scans of the attached file report it as an additional format, not a new book.

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from booklore.cli.options import db_option
from booklore.core.scanner import locate_library_file
from booklore.db.catalog import LibraryCatalog
from booklore.db.connection import DEFAULT_DB_PATH, open_library
from booklore.db.hashing import compute_file_hash

console = Console()


@click.command("attach")
@click.argument("book_id", type=int)
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@db_option
def attach(book_id: int, file: Path, db_path: Path | None) -> None:
    """Register FILE as another format of an existing book.

    FILE must live under one of the library folders.
    """
    conn = open_library(db_path or DEFAULT_DB_PATH)
    try:
        catalog = LibraryCatalog(conn)
        library_file = locate_library_file(catalog.list_libraries(), file)
        if library_file is None:
            console.print(f"[red]{escape(str(file))} is not inside any library folder.[/red]")
            raise SystemExit(1)

        content_hash = compute_file_hash(file)
        existing = catalog.find_by_current_hash(content_hash)
        if existing is not None:
            console.print(f"[red]File is already cataloged as book {existing.id}.[/red]")
            raise SystemExit(1)
        if catalog.find_additional_file_by_hash(content_hash) is not None:
            console.print("[yellow]File is already attached.[/yellow]")
            return

        try:
            extra = catalog.add_additional_file(book_id, library_file, content_hash)
        except ValueError as exc:
            console.print(f"[red]{escape(str(exc))}[/red]")
            raise SystemExit(1) from exc
    finally:
        conn.close()

    console.print(f"Attached {escape(extra.file_name)} to book {book_id}.")
