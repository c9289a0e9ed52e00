# ABOUTME: The `booklore move` command for moving books into another library.
# ABOUTME: Renames files with the target library's naming pattern and updates the catalog.

from pathlib import Path

import click
from rich.console import Console

from booklore.cli.options import db_option
from booklore.core.mover import FileMoveHelper, FileMoveService, MoveRequest
from booklore.db.catalog import LibraryCatalog
from booklore.db.connection import DEFAULT_DB_PATH, open_library
from booklore.events import NotificationService
from booklore.monitoring import MonitoringRegistry
from booklore.settings import AppSettingService

console = Console()


@click.command("move")
@click.argument("book_ids", nargs=-1, required=True, type=int)
@click.option("--to", "library_id", type=int, required=True, help="Target library ID.")
@click.option(
    "--path",
    "library_path_id",
    type=int,
    default=None,
    help="Target library path ID (default: the library's first path).",
)
@db_option
def move(
    book_ids: tuple[int, ...], library_id: int, library_path_id: int | None, db_path: Path | None
) -> None:
    """Move books into another library."""
    conn = open_library(db_path or DEFAULT_DB_PATH)
    try:
        catalog = LibraryCatalog(conn)
        target = catalog.get_library(library_id)
        if target is None:
            console.print(f"[red]Library {library_id} not found.[/red]")
            raise SystemExit(1)
        if library_path_id is None:
            if not target.paths:
                console.print(f"[red]Library {target.name} has no paths.[/red]")
                raise SystemExit(1)
            library_path_id = target.paths[0].id
        elif target.find_path(library_path_id) is None:
            console.print(f"[red]Path {library_path_id} does not belong to {target.name}.[/red]")
            raise SystemExit(1)

        service = FileMoveService(
            catalog,
            FileMoveHelper(AppSettingService(catalog)),
            MonitoringRegistry(),
            NotificationService(),
        )
        result = service.bulk_move_files(
            [MoveRequest(book_id, library_id, library_path_id) for book_id in book_ids]
        )
    finally:
        conn.close()

    console.print(
        f"{len(result.moved)} moved, {len(result.skipped)} skipped, {len(result.failed)} failed"
    )
    if result.failed:
        console.print(f"[red]Failed: {', '.join(str(i) for i in result.failed)}[/red]")
        raise SystemExit(1)
