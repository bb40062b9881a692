"""Sync commands for the fastlandz CLI.

Commands:
- status: Show pending queued operations
- sync: Run one drain pass
- watch: Drain on reconnect and periodically until interrupted
- clear: Empty the queue
"""

from __future__ import annotations

import sys
import time

import click

from fastlandz.client.cli.runtime import open_runtime
from fastlandz.client.sync import DrainResult, StorageError
from fastlandz.core.config import HEALTH_CHECK_INTERVAL, MAX_RETRIES, SYNC_INTERVAL, SyncSettings
from fastlandz.core.timer import now_ms, to_iso


def _report(result: DrainResult) -> None:
    if result.processed:
        click.echo(f"Synced {result.processed} operation(s)")
    if result.requeued:
        click.echo(f"{result.requeued} operation(s) will be retried")
    if result.failed:
        click.echo(f"{result.failed} operation(s) failed after max retries", err=True)
        for operation in result.dropped:
            click.echo(f"  dropped {operation.type} ({operation.id})", err=True)


def _settings(**values: float) -> SyncSettings:
    try:
        return SyncSettings(**values)  # type: ignore[arg-type]
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@click.command()
def status() -> None:
    """Show pending operations in the offline queue."""
    with open_runtime(require_store=False) as runtime:
        try:
            queue_status = runtime.queue.status()
        except StorageError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    if queue_status.pending == 0:
        click.echo("Queue is empty")
        return

    click.echo(f"Pending operations: {queue_status.pending}")
    if queue_status.oldest_timestamp is not None:
        age = (now_ms() - queue_status.oldest_timestamp) // 1000
        click.echo(f"Oldest: {to_iso(queue_status.oldest_timestamp)} ({age}s ago)")


@click.command()
@click.option(
    "--max-retries", default=MAX_RETRIES, show_default=True, help="Attempts before dropping."
)
def sync(max_retries: int) -> None:
    """Replay queued operations against the store once."""
    from fastlandz.client.connectivity import HealthCheckConnectivity
    from fastlandz.client.sync import OperationProcessor, SyncEngine

    settings = _settings(max_retries=max_retries)
    with open_runtime() as runtime:
        connectivity = HealthCheckConnectivity(runtime.client)
        if not connectivity.check():
            click.echo("Store unreachable, nothing synced", err=True)
            sys.exit(1)

        engine = SyncEngine(
            runtime.queue,
            OperationProcessor(runtime.client),
            connectivity,
            max_retries=settings.max_retries,
        )
        try:
            result = engine.drain()
        except StorageError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    if result.processed == 0 and result.failed == 0 and result.requeued == 0:
        click.echo("Nothing to sync")
        return
    _report(result)
    if result.failed:
        sys.exit(1)


@click.command()
@click.option(
    "--interval", default=SYNC_INTERVAL, show_default=True, help="Seconds between periodic syncs."
)
@click.option(
    "--check-interval",
    default=HEALTH_CHECK_INTERVAL,
    show_default=True,
    help="Seconds between connectivity checks.",
)
def watch(interval: float, check_interval: float) -> None:
    """Sync on reconnect and periodically until interrupted."""
    from fastlandz.client.connectivity import HealthCheckConnectivity
    from fastlandz.client.sync import ConnectivityWatcher, OperationProcessor, SyncEngine

    settings = _settings(sync_interval=interval, health_check_interval=check_interval)
    with open_runtime() as runtime:
        connectivity = HealthCheckConnectivity(
            runtime.client, check_interval=settings.health_check_interval
        )
        engine = SyncEngine(
            runtime.queue,
            OperationProcessor(runtime.client),
            connectivity,
            max_retries=settings.max_retries,
        )
        with connectivity, ConnectivityWatcher(
            engine, connectivity, interval=settings.sync_interval, on_result=_report
        ) as watcher:
            click.echo("Watching for connectivity changes (Ctrl+C to stop)")
            # Catch up on anything queued before we started
            watcher.tick()
            try:
                while True:
                    time.sleep(0.5)
            except KeyboardInterrupt:
                click.echo("\nStopping")


@click.command()
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
def clear(yes: bool) -> None:
    """Discard every queued operation."""
    if not yes:
        click.confirm("Discard all queued operations? They will not be synced", abort=True)
    with open_runtime(require_store=False) as runtime:
        count = runtime.queue.clear()
    click.echo(f"Cleared {count} operation(s)")
