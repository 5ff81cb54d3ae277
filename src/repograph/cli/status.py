"""repograph status command - show indexing status."""

from __future__ import annotations

import json
from dataclasses import asdict

import click
from rich.console import Console
from rich.table import Table

from repograph.cli.utils import format_timestamp, get_config, run_with_controller
from repograph.daemon.lifecycle import ServiceController
from repograph.daemon.scheduler import SyncStatus
from repograph.pipeline import RepositoryStatus
from repograph.store.models import ScanStatus


def _sync_line(sync: SyncStatus) -> str:
    if not sync.sync_enabled:
        return "Sync: disabled"
    last = (sync.last_synced_sha or "-")[:7]
    return (
        f"Sync: every {sync.interval_minutes} min, last seen {last} "
        f"at {format_timestamp(sync.last_synced_at)}, next due {format_timestamp(sync.next_due_at)}"
    )


@click.command()
@click.argument("repo_id", required=False)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def status_command(ctx: click.Context, repo_id: str | None, as_json: bool) -> None:
    """Show status for REPO_ID, or for every registered repository."""
    config = get_config(ctx)

    async def _status(controller: ServiceController) -> tuple[list[RepositoryStatus], SyncStatus | None]:
        if repo_id is not None:
            status = await controller.pipeline.get_status(repo_id)
            return [status], await controller.scheduler.sync_status(repo_id)
        repos = await controller.store.list_all()
        return [await controller.pipeline.get_status(repo.id) for repo in repos], None

    statuses, sync = run_with_controller(config, _status)

    if as_json:
        if sync is not None:
            click.echo(json.dumps({**statuses[0].to_dict(), "sync": asdict(sync)}))
        else:
            click.echo(json.dumps([s.to_dict() for s in statuses]))
        return

    if not statuses:
        click.echo("No repositories registered. Run 'repograph add URL' first.")
        return

    table = Table(title="Repositories")
    table.add_column("Id", style="cyan")
    table.add_column("Status")
    table.add_column("Progress", justify="right")
    table.add_column("Step")
    table.add_column("Indexed SHA")
    table.add_column("Indexed At")
    for status in statuses:
        style = "red" if status.status is ScanStatus.ERROR else ""
        table.add_row(
            status.repo_id,
            status.status.value,
            f"{status.percent}%",
            status.details or status.step,
            (status.last_indexed_sha or "-")[:7],
            format_timestamp(status.last_indexed_at),
            style=style,
        )
    console = Console()
    console.print(table)
    if sync is not None:
        console.print(_sync_line(sync))
