# ABOUTME: The `booklore edit` command for changing a book's metadata.
# ABOUTME: Locked fields are left alone; --move renames the file to match the naming pattern.

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from booklore.cli.options import db_option
from booklore.core.editor import MetadataEditor, coerce_value
from booklore.core.mover import FileMoveHelper, FileMoveService
from booklore.db.catalog import LibraryCatalog
from booklore.db.connection import DEFAULT_DB_PATH, open_library
from booklore.events import NotificationService
from booklore.monitoring import MonitoringRegistry
from booklore.settings import AppSettingService

console = Console()


def _parse_assignments(assignments: tuple[str, ...]) -> dict[str, object]:
    changes: dict[str, object] = {}
    for assignment in assignments:
        name, sep, raw = assignment.partition("=")
        if not sep:
            raise click.BadParameter(f"expected FIELD=VALUE, got {assignment!r}")
        try:
            changes[name.strip()] = coerce_value(name.strip(), raw)
        except ValueError as exc:
            raise click.BadParameter(str(exc)) from exc
    return changes


@click.command("edit")
@click.argument("book_id", type=int)
@click.argument("assignments", nargs=-1, required=True)
@click.option(
    "--move/--no-move",
    "move_file",
    default=False,
    help="Move the file to match the library naming pattern afterwards.",
)
@db_option
def edit(book_id: int, assignments: tuple[str, ...], move_file: bool, db_path: Path | None) -> None:
    """Set metadata fields of a book, e.g. `title="Dune" authors="Frank Herbert"`.

    List fields (authors, categories, moods, tags) take comma separated
    values; an empty value clears a field.
    """
    changes = _parse_assignments(assignments)

    conn = open_library(db_path or DEFAULT_DB_PATH)
    try:
        catalog = LibraryCatalog(conn)
        settings = AppSettingService(catalog)
        mover = FileMoveService(
            catalog,
            FileMoveHelper(settings),
            MonitoringRegistry(),
            NotificationService(),
        )
        editor = MetadataEditor(
            catalog,
            mover,
            weights=lambda: settings.get_app_settings().metadata_match_weights,
        )
        try:
            record = editor.update_metadata(book_id, changes, move_file=move_file)
        except ValueError as exc:
            console.print(f"[red]{escape(str(exc))}[/red]")
            raise SystemExit(1) from exc
    finally:
        conn.close()

    console.print(f"Updated [bold]{escape(record.metadata.title or record.file_name)}[/bold].")
    if move_file:
        console.print(f"File: {escape(str(record.full_file_path))}")
