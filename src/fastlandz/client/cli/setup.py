"""Setup commands for the fastlandz CLI.

Commands:
- configure: Save store URL, API key and user id
- migrate: Copy local challenge data to the store
"""

from __future__ import annotations

import sys

import click

from fastlandz.client.cli import config as cli_config
from fastlandz.client.cli.runtime import open_runtime


@click.command()
@click.option("--store-url", prompt="Store URL", help="Base URL of the remote store.")
@click.option("--api-key", prompt="API key", hide_input=True, help="Store API key.")
@click.option("--user-id", prompt="User id", help="Id of the signed-in user.")
@click.option("--access-token", default="", help="Optional user access token.")
def configure(store_url: str, api_key: str, user_id: str, access_token: str) -> None:
    """Save connection settings."""
    if not store_url.startswith(("http://", "https://")):
        click.echo("Error: Store URL must start with http:// or https://", err=True)
        sys.exit(1)

    config = cli_config.load_config()
    config.update(
        {
            "store_url": store_url.rstrip("/"),
            "api_key": api_key,
            "user_id": user_id,
        }
    )
    if access_token:
        config["access_token"] = access_token
    cli_config.save_config(config)
    click.echo(f"Configuration saved to {cli_config.get_config_file()}")


@click.command()
@click.option("--force", is_flag=True, help="Migrate even if already migrated.")
def migrate(force: bool) -> None:
    """Copy locally kept progress, journal and fast to the store."""
    from fastlandz.client.migration import LocalDataMigrator

    with open_runtime() as runtime:
        if not runtime.user_id:
            click.echo("Error: No user id configured. Run 'fastlandz configure' first.", err=True)
            sys.exit(1)

        migrator = LocalDataMigrator(runtime.client, runtime.storage)
        if migrator.has_been_migrated() and not force:
            click.echo("Local data already migrated")
            return
        if not migrator.has_local_data():
            click.echo("No local data to migrate")
            return

        result = migrator.migrate(runtime.user_id)

    if result.progress_migrated:
        click.echo("Progress migrated")
    if result.journal_entries_migrated:
        click.echo(f"{result.journal_entries_migrated} journal entry(ies) migrated")
    if result.fast_session_migrated:
        click.echo("Active fast migrated")
    for error in result.errors:
        click.echo(f"Error: {error}", err=True)
    if not result.success:
        sys.exit(1)
