# ABOUTME: The `booklore purge` command for permanently removing old soft-deleted books.
# ABOUTME: Defaults to the soft_delete_retention_days setting.

from datetime import datetime, timedelta, timezone
from pathlib import Path

import click
from rich.console import Console

from booklore.cli.options import db_option
from booklore.db.catalog import LibraryCatalog
from booklore.db.connection import DEFAULT_DB_PATH, open_library
from booklore.settings import AppSettingService

console = Console()


@click.command("purge")
@click.option(
    "--days",
    type=click.IntRange(min=0),
    default=None,
    help="Purge books deleted more than this many days ago (default: retention setting).",
)
@db_option
def purge(days: int | None, db_path: Path | None) -> None:
    """Permanently remove soft-deleted books past the retention period."""
    conn = open_library(db_path or DEFAULT_DB_PATH)
    try:
        catalog = LibraryCatalog(conn)
        if days is None:
            days = AppSettingService(catalog).get_app_settings().soft_delete_retention_days
        cutoff = datetime.now(timezone.utc) - timedelta(days=days)
        purged = catalog.delete_soft_deleted_before(cutoff)
    finally:
        conn.close()

    console.print(f"{purged} book(s) purged (deleted more than {days} day(s) ago).")
