"""Shared setup for CLI commands: storage, store client and queue."""

from __future__ import annotations

import contextlib
import sys
from collections.abc import Iterator
from dataclasses import dataclass

import click

from fastlandz.client.api import RestStoreClient
from fastlandz.client.cli import config as cli_config
from fastlandz.client.storage import SQLiteStorage
from fastlandz.client.sync import OperationQueue, StorageError


@dataclass
class Runtime:
    """Components opened for one CLI command."""

    config: dict[str, str]
    storage: SQLiteStorage
    queue: OperationQueue
    client: RestStoreClient | None = None

    @property
    def user_id(self) -> str | None:
        return self.config.get("user_id") or None


@contextlib.contextmanager
def open_runtime(require_store: bool = True) -> Iterator[Runtime]:
    """Open local storage (and the store client) for a command.

    Exits with status 1 when the CLI is not configured or local storage
    cannot be opened.
    """
    config = cli_config.load_config()
    store_config = cli_config.get_store_config(config)
    if require_store and store_config is None:
        click.echo("Error: Store not configured. Run 'fastlandz configure' first.", err=True)
        sys.exit(1)

    try:
        storage = SQLiteStorage(cli_config.get_storage_path())
    except StorageError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    client = RestStoreClient(store_config) if require_store and store_config else None
    if client is not None and not client.config.is_secure:
        click.echo("Warning: store URL is not HTTPS, the API key is sent in clear text", err=True)
    try:
        yield Runtime(config=config, storage=storage, queue=OperationQueue(storage), client=client)
    finally:
        if client is not None:
            client.close()
        storage.close()
