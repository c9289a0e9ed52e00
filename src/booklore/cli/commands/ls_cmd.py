# ABOUTME: The `booklore ls` command for listing cataloged books.
# ABOUTME: Displays a Rich table of books, optionally for one library or including deleted ones.

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


@click.command("ls")
@db_option
@click.option("--library", "library_id", type=int, default=None, help="Only list this library.")
@click.option(
    "--deleted",
    "include_deleted",
    is_flag=True,
    default=False,
    help="Include soft-deleted books.",
)
def ls(db_path: Path | None, library_id: int | None, include_deleted: bool) -> None:
    """List books in the library catalog."""
    conn = open_library(db_path or DEFAULT_DB_PATH)
    try:
        catalog = LibraryCatalog(conn)
        records = catalog.list_books(library_id=library_id, include_deleted=include_deleted)

        if not records:
            console.print("[yellow]No books in the library.[/yellow]")
            return

        table = Table()
        table.add_column("ID", style="dim", width=4)
        table.add_column("Title", style="bold")
        table.add_column("Author")
        table.add_column("Series")
        table.add_column("Type", width=4)
        table.add_column("Path")

        for record in records:
            meta = record.metadata
            series_display = ""
            if meta.series_name:
                series_display = meta.series_name
                if meta.series_number is not None:
                    series_display += f" #{format_series_index(meta.series_number)}"

            title = escape(meta.title or record.file_name)
            if record.deleted:
                title = f"[strike]{title}[/strike] [red](deleted)[/red]"
            table.add_row(
                str(record.id),
                title,
                escape(meta.author) or "[dim]unknown[/dim]",
                escape(series_display),
                record.book_type.value,
                escape(str(Path(record.file_sub_path) / record.file_name)),
            )

        console.print(table)
        console.print(f"\n[dim]{len(records)} book(s)[/dim]")
    finally:
        conn.close()
