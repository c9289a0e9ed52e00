# ABOUTME: The `booklore covers` command for re-extracting book covers.
# ABOUTME: Books with a locked cover are skipped.

from pathlib import Path

import click
from rich.console import Console

from booklore.cli.options import data_dir_option, db_option
from booklore.core.processing import BookFileProcessorRegistry, regenerate_covers
from booklore.covers import CoverStore
from booklore.db.catalog import LibraryCatalog
from booklore.db.connection import DEFAULT_DB_PATH, open_library

console = Console()


@click.command("covers")
@db_option
@data_dir_option
def covers(db_path: Path | None, data_dir: Path | None) -> None:
    """Regenerate cover images for all books."""
    conn = open_library(db_path or DEFAULT_DB_PATH)
    try:
        catalog = LibraryCatalog(conn)
        registry = BookFileProcessorRegistry.default(CoverStore(data_dir))
        result = regenerate_covers(catalog, registry)
    finally:
        conn.close()

    console.print(f"{result.regenerated} regenerated, {result.skipped} skipped")
    if result.failed:
        failed = ", ".join(map(str, result.failed))
        console.print(f"[red]{len(result.failed)} failed: {failed}[/red]")
        raise SystemExit(1)
