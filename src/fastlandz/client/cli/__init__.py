"""Command-line interface for fastlandz.

This module provides the main CLI entry point and assembles all commands.

Commands:
- configure: Save store connection settings
- migrate: Copy local challenge data to the store
- status: Show pending queued operations
- sync: Replay queued operations once
- watch: Sync on reconnect and periodically
- clear: Discard queued operations
"""

from __future__ import annotations

import click

from fastlandz import __version__
from fastlandz.client.cli.config import (
    get_config_dir,
    get_config_file,
    get_storage_path,
    load_config,
    save_config,
    setup_logging,
)
from fastlandz.client.cli.setup import configure, migrate
from fastlandz.client.cli.sync import clear, status, sync, watch


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """Fastlandz - offline-first sync for the 7-day fasting challenge."""
    setup_logging(verbose)


# Setup commands
cli.add_command(configure)
cli.add_command(migrate)

# Queue commands
cli.add_command(status)
cli.add_command(sync)
cli.add_command(watch)
cli.add_command(clear)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    "cli",
    "main",
    "get_config_dir",
    "get_config_file",
    "get_storage_path",
    "load_config",
    "save_config",
]
