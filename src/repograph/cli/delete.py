"""repograph delete command - remove a repository."""

from __future__ import annotations

import click

from repograph.cli.utils import get_config, run_with_controller
from repograph.daemon.lifecycle import ServiceController


@click.command()
@click.argument("repo_id")
@click.option("--keep-record", is_flag=True, help="Keep the repository registered")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_command(ctx: click.Context, repo_id: str, keep_record: bool, yes: bool) -> None:
    """Delete REPO_ID's graph, checkout and (unless --keep-record) registration."""
    if not yes:
        click.confirm(f"Delete graph and checkout for {repo_id}?", abort=True)
    config = get_config(ctx)

    async def _delete(controller: ServiceController) -> None:
        await controller.pipeline.delete_repository(repo_id, remove_record=not keep_record)

    run_with_controller(config, _delete)
    click.echo(f"Deleted {repo_id}.")
