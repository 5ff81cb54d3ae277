"""repograph sync command - check repositories for upstream drift."""

from __future__ import annotations

import json
from dataclasses import asdict

import click

from repograph.cli.utils import get_config, run_with_controller
from repograph.daemon.lifecycle import ServiceController
from repograph.daemon.scheduler import SyncResult


@click.command()
@click.argument("repo_id", required=False)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def sync_command(ctx: click.Context, repo_id: str | None, as_json: bool) -> None:
    """Check REPO_ID (or every sync-enabled repository) for new commits.

    Changed repositories are marked PENDING; nothing is indexed.
    """
    config = get_config(ctx)

    async def _sync(controller: ServiceController) -> list[SyncResult]:
        if repo_id is not None:
            return [await controller.scheduler.sync_repository(repo_id)]
        return await controller.scheduler.sync_all(force=True)

    results = run_with_controller(config, _sync)

    if as_json:
        click.echo(json.dumps([asdict(r) for r in results]))
        return
    if not results:
        click.echo("No sync-enabled repositories.")
        return
    for result in results:
        if not result.success:
            click.echo(f"{result.repository_id}: failed ({result.error})", err=True)
        elif result.latest_sha is None:
            click.echo(f"{result.repository_id}: up to date")
        else:
            click.echo(
                f"{result.repository_id}: now at {result.latest_sha[:7]} "
                f"({result.new_commits} new commits), marked PENDING"
            )
