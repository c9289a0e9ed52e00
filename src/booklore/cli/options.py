# ABOUTME: Shared Click options for BookLore CLI commands.
# ABOUTME: Provides reusable decorators for the catalog database and data directory locations.

from pathlib import Path

import click

from booklore.covers import DEFAULT_DATA_DIR
from booklore.db.connection import DEFAULT_DB_PATH

db_option = click.option(
    "--db",
    "db_path",
    type=click.Path(path_type=Path),
    default=None,
    envvar="BOOKLORE_DB",
    help=f"Path to library database (default: {DEFAULT_DB_PATH})",
)

data_dir_option = click.option(
    "--data-dir",
    "data_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    envvar="BOOKLORE_DATA_DIR",
    help=f"Directory for extracted covers (default: {DEFAULT_DATA_DIR})",
)
