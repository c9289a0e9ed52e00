# ABOUTME: The `booklore library` command group for managing libraries.
# ABOUTME: Provides add, ls, and pattern subcommands.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from booklore.cli.options import db_option
from booklore.db.catalog import LibraryCatalog
from booklore.db.connection import DEFAULT_DB_PATH, open_library

console = Console()


@click.group("library")
def library() -> None:
    """Manage libraries and their root folders."""


@library.command("add")
@click.argument("name")
@click.argument(
    "paths",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option("--pattern", default=None, help="File naming pattern for this library.")
@db_option
def library_add(
    name: str, paths: tuple[Path, ...], pattern: str | None, db_path: Path | None
) -> None:
    """Create library NAME with one or more root folders (or add folders to it)."""
    conn = open_library(db_path or DEFAULT_DB_PATH)
    try:
        catalog = LibraryCatalog(conn)
        existing = catalog.get_library_by_name(name)
        if existing is None:
            created = catalog.create_library(name, paths, file_naming_pattern=pattern)
            console.print(
                f"Created library [bold]{created.name}[/bold] (id {created.id}) "
                f"with {len(created.paths)} path(s)."
            )
            return
        for path in paths:
            catalog.add_library_path(existing.id, path)
        if pattern is not None:
            catalog.set_library_pattern(existing.id, pattern)
        console.print(f"Updated library [bold]{existing.name}[/bold] (id {existing.id}).")
    finally:
        conn.close()


@library.command("ls")
@db_option
def library_ls(db_path: Path | None) -> None:
    """List libraries with their folders and naming patterns."""
    conn = open_library(db_path or DEFAULT_DB_PATH)
    try:
        catalog = LibraryCatalog(conn)
        libraries = catalog.list_libraries()
        if not libraries:
            console.print("[yellow]No libraries defined.[/yellow]")
            return

        table = Table()
        table.add_column("ID", style="dim", width=4)
        table.add_column("Name", style="bold")
        table.add_column("Paths")
        table.add_column("Pattern")
        for lib in libraries:
            table.add_row(
                str(lib.id),
                lib.name,
                "\n".join(f"[{p.id}] {p.path}" for p in lib.paths),
                lib.file_naming_pattern or "[dim]default[/dim]",
            )
        console.print(table)
    finally:
        conn.close()


@library.command("pattern")
@click.argument("library_id", type=int)
@click.argument("pattern", required=False)
@click.option("--clear", is_flag=True, default=False, help="Use the default upload pattern.")
@db_option
def library_pattern(
    library_id: int, pattern: str | None, clear: bool, db_path: Path | None
) -> None:
    """Show or set the file naming pattern of a library."""
    conn = open_library(db_path or DEFAULT_DB_PATH)
    try:
        catalog = LibraryCatalog(conn)
        lib = catalog.get_library(library_id)
        if lib is None:
            console.print(f"[red]Library {library_id} not found.[/red]")
            raise SystemExit(1)

        if pattern is None and not clear:
            if lib.file_naming_pattern:
                console.print(lib.file_naming_pattern, markup=False)
            else:
                console.print("[dim]default[/dim]")
            return

        catalog.set_library_pattern(library_id, None if clear else pattern)
        console.print(f"Pattern for [bold]{lib.name}[/bold] updated.")
    finally:
        conn.close()
