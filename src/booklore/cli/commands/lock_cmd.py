# ABOUTME: The `booklore lock` and `booklore unlock` commands for metadata field locks.
# ABOUTME: Locked fields are left untouched by metadata edits.

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from booklore.cli.options import db_option
from booklore.core.editor import toggle_all_locks, toggle_field_locks
from booklore.db.catalog import LibraryCatalog
from booklore.db.connection import DEFAULT_DB_PATH, open_library
from booklore.metadata.locks import LockAction

console = Console()


def _apply(
    action: LockAction,
    book_ids: tuple[int, ...],
    fields: tuple[str, ...],
    all_fields: bool,
    db_path: Path | None,
) -> None:
    if not fields and not all_fields:
        console.print("[red]Name at least one --field, or pass --all.[/red]")
        raise SystemExit(1)

    conn = open_library(db_path or DEFAULT_DB_PATH)
    try:
        catalog = LibraryCatalog(conn)
        missing = [book_id for book_id in book_ids if catalog.get_by_id(book_id) is None]
        if missing:
            console.print(f"[red]Book {missing[0]} not found.[/red]")
            raise SystemExit(1)
        try:
            if all_fields:
                toggle_all_locks(catalog, book_ids, action.value)
            else:
                toggle_field_locks(catalog, book_ids, {name: action.value for name in fields})
        except ValueError as exc:
            console.print(f"[red]{escape(str(exc))}[/red]")
            raise SystemExit(1) from exc
    finally:
        conn.close()

    verb = "Locked" if action is LockAction.LOCK else "Unlocked"
    what = "all fields" if all_fields else ", ".join(fields)
    console.print(f"{verb} {escape(what)} on {len(book_ids)} book(s).")


_field_option = click.option(
    "--field",
    "fields",
    multiple=True,
    help="Lock name, e.g. titleLocked or coverLocked (repeatable).",
)
_all_option = click.option(
    "--all", "all_fields", is_flag=True, default=False, help="Every lockable field."
)


@click.command("lock")
@click.argument("book_ids", nargs=-1, required=True, type=int)
@_field_option
@_all_option
@db_option
def lock(
    book_ids: tuple[int, ...], fields: tuple[str, ...], all_fields: bool, db_path: Path | None
) -> None:
    """Lock metadata fields of books."""
    _apply(LockAction.LOCK, book_ids, fields, all_fields, db_path)


@click.command("unlock")
@click.argument("book_ids", nargs=-1, required=True, type=int)
@_field_option
@_all_option
@db_option
def unlock(
    book_ids: tuple[int, ...], fields: tuple[str, ...], all_fields: bool, db_path: Path | None
) -> None:
    """Unlock metadata fields of books."""
    _apply(LockAction.UNLOCK, book_ids, fields, all_fields, db_path)
