# ABOUTME: The `booklore rm` command for soft-deleting books from the catalog.
# ABOUTME: Files stay on disk; a later scan of the same bytes revives the book.

from pathlib import Path

import click
from rich.console import Console

from booklore.cli.options import db_option
from booklore.db.catalog import LibraryCatalog
from booklore.db.connection import DEFAULT_DB_PATH, open_library

console = Console()


@click.command("rm")
@click.argument("book_ids", nargs=-1, required=True, type=int)
@db_option
def rm(book_ids: tuple[int, ...], db_path: Path | None) -> None:
    """Soft-delete books by ID."""
    conn = open_library(db_path or DEFAULT_DB_PATH)
    try:
        catalog = LibraryCatalog(conn)
        removed = catalog.soft_delete_books(book_ids)
    finally:
        conn.close()

    console.print(f"{removed} book(s) deleted.")
    if removed < len(set(book_ids)):
        console.print("[yellow]Some books were not found or already deleted.[/yellow]")
