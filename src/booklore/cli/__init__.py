# ABOUTME: CLI package for BookLore, built on Click.
# ABOUTME: Defines the root command group, configures logging, and registers subcommands.

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from booklore.cli.commands import (
    attach_cmd,
    covers_cmd,
    edit_cmd,
    info_cmd,
    library_cmd,
    lock_cmd,
    ls_cmd,
    move_cmd,
    purge_cmd,
    rm_cmd,
    scan_cmd,
    settings_cmd,
    verify_cmd,
)


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    root = logging.getLogger("booklore")
    root.setLevel(level)
    if verbosity and not any(isinstance(h, RichHandler) for h in root.handlers):
        handler = RichHandler(console=Console(stderr=True), show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)


@click.group()
@click.version_option(package_name="booklore")
@click.option("-v", "--verbose", count=True, help="Log progress (-v) or debug detail (-vv).")
def cli(verbose: int) -> None:
    """BookLore - keep a folder-based book library cataloged and tidy."""
    _configure_logging(verbose)


cli.add_command(library_cmd.library)
cli.add_command(scan_cmd.scan)
cli.add_command(ls_cmd.ls)
cli.add_command(info_cmd.info)
cli.add_command(move_cmd.move)
cli.add_command(edit_cmd.edit)
cli.add_command(lock_cmd.lock)
cli.add_command(lock_cmd.unlock)
cli.add_command(rm_cmd.rm)
cli.add_command(purge_cmd.purge)
cli.add_command(attach_cmd.attach)
cli.add_command(covers_cmd.covers)
cli.add_command(verify_cmd.verify)
cli.add_command(settings_cmd.settings)
