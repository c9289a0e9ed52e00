# ABOUTME: The `booklore settings` command group for reading and changing application settings.
# ABOUTME: Changing the match weights rescores every book.

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from booklore.cli.options import db_option
from booklore.core.editor import recalculate_all_match_scores
from booklore.db.catalog import LibraryCatalog
from booklore.db.connection import DEFAULT_DB_PATH, open_library
from booklore.settings import METADATA_MATCH_WEIGHTS, SETTING_NAMES, AppSettingService

console = Console()


@click.group("settings")
def settings() -> None:
    """Show or change application settings."""


@settings.command("get")
@click.argument("name", required=False, type=click.Choice(SETTING_NAMES))
@db_option
def get_setting(name: str | None, db_path: Path | None) -> None:
    """Show one setting, or all of them."""
    conn = open_library(db_path or DEFAULT_DB_PATH)
    try:
        values = AppSettingService(LibraryCatalog(conn)).get_app_settings().as_strings()
    finally:
        conn.close()

    if name is not None:
        console.print(values[name], markup=False, highlight=False)
        return

    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("Name", style="bold")
    table.add_column("Value")
    for key, value in values.items():
        table.add_row(key, escape(value))
    console.print(table)


@settings.command("set")
@click.argument("name", type=click.Choice(SETTING_NAMES))
@click.argument("value")
@db_option
def set_setting(name: str, value: str, db_path: Path | None) -> None:
    """Change a setting."""
    conn = open_library(db_path or DEFAULT_DB_PATH)
    try:
        catalog = LibraryCatalog(conn)
        service = AppSettingService(catalog)
        try:
            service.update_setting(name, value)
        except ValueError as exc:
            console.print(f"[red]Invalid value for {name}: {escape(str(exc))}[/red]")
            raise SystemExit(1) from exc

        rescored = None
        if name == METADATA_MATCH_WEIGHTS:
            weights = service.get_app_settings().metadata_match_weights
            rescored = recalculate_all_match_scores(catalog, weights)
    finally:
        conn.close()

    console.print(f"Updated {name}.")
    if rescored is not None:
        console.print(f"Rescored {rescored} book(s).")
