"""repograph serve command - run the sync scheduler."""

from __future__ import annotations

import asyncio

import click

from repograph.cli.utils import get_config
from repograph.daemon.lifecycle import run_service


@click.command()
@click.pass_context
def serve_command(ctx: click.Context) -> None:
    """Poll sync-enabled repositories until interrupted."""
    config = get_config(ctx)
    if not config.sync.enabled:
        raise click.ClickException("Sync is disabled (sync.enabled: false); nothing to serve.")
    click.echo(f"Polling every {config.sync.interval_sec:g}s. Press Ctrl+C to stop.")
    asyncio.run(run_service(config))
