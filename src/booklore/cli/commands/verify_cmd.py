# ABOUTME: The `booklore verify` command for checking library integrity.
# ABOUTME: Detects missing files and optional hash mismatches across the catalog.

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from booklore.cli.options import db_option
from booklore.core.verifier import verify_library
from booklore.db.catalog import LibraryCatalog
from booklore.db.connection import DEFAULT_DB_PATH, open_library

console = Console()


@click.command("verify")
@db_option
@click.option("--library", "library_id", type=int, default=None, help="Only verify this library.")
@click.option(
    "--check-hash",
    is_flag=True,
    default=False,
    help="Re-hash book files and compare against stored hashes.",
)
def verify(db_path: Path | None, library_id: int | None, check_hash: bool) -> None:
    """Verify library integrity: check for missing or changed files."""
    conn = open_library(db_path or DEFAULT_DB_PATH)
    try:
        catalog = LibraryCatalog(conn)
        result = verify_library(catalog, library_id=library_id, check_hash=check_hash)
    finally:
        conn.close()

    if result.total_issues == 0:
        console.print(f"[green]All {result.ok} book(s) verified.[/green]")
        return

    table = Table()
    table.add_column("ID", style="dim", width=4)
    table.add_column("Title", style="bold")
    table.add_column("Issue", style="red")
    issues = (
        ("Missing file", result.missing_file),
        ("Hash mismatch", result.hash_mismatch),
        ("Unreadable", result.unreadable),
    )
    for label, records in issues:
        for record in records:
            table.add_row(str(record.id), escape(record.metadata.title or record.file_name), label)

    console.print(table)
    console.print(
        f"\n[red]{result.total_issues} issue(s) found, {result.ok} book(s) verified.[/red]"
    )
    raise SystemExit(1)
