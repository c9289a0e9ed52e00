# ABOUTME: The `booklore scan` command for ingesting library folders into the catalog.
# ABOUTME: Scans one, several or all libraries (in parallel) and prints a per-library summary.

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from booklore.cli.options import data_dir_option, db_option
from booklore.core.duplicates import FileProcessStatus
from booklore.core.scanner import DEFAULT_MAX_WORKERS, scan_libraries
from booklore.db.catalog import LibraryCatalog
from booklore.db.connection import DEFAULT_DB_PATH, open_library

console = Console()


@click.command("scan")
@click.argument("library_ids", nargs=-1, type=int)
@click.option(
    "--workers",
    "max_workers",
    type=click.IntRange(min=1),
    default=DEFAULT_MAX_WORKERS,
    show_default=True,
    help="Libraries scanned concurrently.",
)
@db_option
@data_dir_option
def scan(
    library_ids: tuple[int, ...],
    max_workers: int,
    db_path: Path | None,
    data_dir: Path | None,
) -> None:
    """Scan libraries for new, moved and removed book files.

    Scans every library when no LIBRARY_IDS are given.
    """
    db_path = db_path or DEFAULT_DB_PATH
    conn = open_library(db_path)
    try:
        catalog = LibraryCatalog(conn)
        known = {lib.id for lib in catalog.list_libraries()}
    finally:
        conn.close()

    if not known:
        console.print("[yellow]No libraries defined. Use `booklore library add` first.[/yellow]")
        return

    targets = list(library_ids) or sorted(known)
    unknown = [library_id for library_id in targets if library_id not in known]
    if unknown:
        console.print(f"[red]Library {unknown[0]} not found.[/red]")
        raise SystemExit(1)

    results = scan_libraries(db_path, targets, data_dir=data_dir, max_workers=max_workers)

    table = Table()
    table.add_column("Library", style="bold")
    table.add_column("New", justify="right")
    table.add_column("Updated", justify="right")
    table.add_column("Revived", justify="right")
    table.add_column("Duplicate", justify="right")
    table.add_column("Alt format", justify="right")
    table.add_column("Removed", justify="right")
    table.add_column("Errors", justify="right", style="red")
    for result in results:
        table.add_row(
            result.library_name,
            str(result.count(FileProcessStatus.NEW)),
            str(result.count(FileProcessStatus.UPDATED)),
            str(result.count(FileProcessStatus.REVIVED)),
            str(result.count(FileProcessStatus.DUPLICATE)),
            str(result.count(FileProcessStatus.DUPLICATE_ADDITIONAL_FORMAT)),
            str(result.removed),
            str(len(result.errors)),
        )
    console.print(table)

    for result in results:
        for path, message in result.errors:
            console.print(f"[red]Error:[/red] {escape(str(path))}: {escape(message)}")

    total_new = sum(r.count(FileProcessStatus.NEW) for r in results)
    console.print(f"\n{total_new} added")
