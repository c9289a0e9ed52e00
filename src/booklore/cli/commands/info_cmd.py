# ABOUTME: The `booklore info` command for displaying detailed book metadata.
# ABOUTME: Shows location, fingerprints, metadata, locks and additional files for one book.

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from booklore.cli.options import db_option
from booklore.core.naming import format_series_index
from booklore.db.catalog import LibraryCatalog
from booklore.db.connection import DEFAULT_DB_PATH, open_library

console = Console()


@click.command("info")
@click.argument("book_id", type=int)
@db_option
def info(book_id: int, db_path: Path | None) -> None:
    """Show detailed metadata for a book by ID."""
    conn = open_library(db_path or DEFAULT_DB_PATH)
    try:
        catalog = LibraryCatalog(conn)
        record = catalog.get_by_id(book_id)

        if record is None:
            console.print(f"[red]Book {book_id} not found.[/red]")
            raise SystemExit(1)

        meta = record.metadata
        table = Table(show_header=False, box=None, pad_edge=False)
        table.add_column("Field", style="bold", width=14)
        table.add_column("Value")

        def row(label: str, value: object) -> None:
            if value is None or value == "" or value == []:
                return
            table.add_row(label, escape(str(value)))

        row("ID", record.id)
        row("Title", meta.title)
        row("Subtitle", meta.subtitle)
        row("Author", meta.author or "unknown")
        row("Publisher", meta.publisher)
        row("Published", meta.published_date)
        row("Language", meta.language)
        row("ISBN", meta.isbn)
        if meta.series_name:
            series = meta.series_name
            if meta.series_number is not None:
                series += f" #{format_series_index(meta.series_number)}"
            row("Series", series)
        row("Categories", ", ".join(meta.categories))
        row("Moods", ", ".join(meta.moods))
        row("Tags", ", ".join(meta.tags))
        row("Pages", meta.page_count)
        row("Description", meta.description)
        row("Type", record.book_type.value)
        row("File", record.full_file_path)
        row("Size (KB)", record.file_size_kb)
        row("Hash", record.current_hash)
        if record.initial_hash != record.current_hash:
            row("Initial hash", record.initial_hash)
        if record.metadata_match_score is not None:
            row("Match score", f"{record.metadata_match_score:.1f}")
        row("Added", record.added_on)
        row("Cover updated", meta.cover_updated_on)
        row("Locked", ", ".join(sorted(lock.value for lock in meta.locked_fields)))
        if record.deleted:
            table.add_row("Deleted", f"[red]{escape(str(record.deleted_at))}[/red]")
        extras = catalog.list_additional_files(book_id)
        row("Other formats", ", ".join(extra.file_name for extra in extras))

        console.print(table)
    finally:
        conn.close()
