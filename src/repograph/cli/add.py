"""repograph add command - register a repository."""

from __future__ import annotations

import click

from repograph.checkout import is_safe_repo_id
from repograph.cli.utils import get_config, repo_id_from_url, run_with_controller
from repograph.daemon.lifecycle import ServiceController
from repograph.store.models import Repository


def _check_id(ctx: click.Context, param: click.Parameter, value: str | None) -> str | None:  # noqa: ARG001
    if value is not None and not is_safe_repo_id(value):
        raise click.BadParameter("must be a single directory name without path separators or dot segments")
    return value


@click.command()
@click.argument("url")
@click.option(
    "--id",
    "repo_id",
    default=None,
    callback=_check_id,
    help="Repository id (default: derived from URL)",
)
@click.option("--name", default=None, help="Display name (default: the id)")
@click.option("--branch", default=None, help="Branch to index (default: provider default)")
@click.option("--sync/--no-sync", "sync_enabled", default=False, help="Poll for upstream changes")
@click.option(
    "--interval",
    "interval_minutes",
    type=click.IntRange(min=1),
    default=5,
    show_default=True,
    help="Minutes between drift checks",
)
@click.pass_context
def add_command(
    ctx: click.Context,
    url: str,
    repo_id: str | None,
    name: str | None,
    branch: str | None,
    sync_enabled: bool,
    interval_minutes: int,
) -> None:
    """Register the repository at URL for indexing.

    URL may be a GitHub, GitLab or Bitbucket remote, or a local path.
    """
    config = get_config(ctx)
    repo_id = repo_id or repo_id_from_url(url)

    async def _add(controller: ServiceController) -> Repository:
        resolved = branch or await controller.providers.for_url(url).get_default_branch(url)
        return await controller.store.add(
            Repository(
                id=repo_id,
                name=name or repo_id,
                url=url,
                default_branch=resolved,
                sync_enabled=sync_enabled,
                sync_interval_minutes=interval_minutes,
            )
        )

    repo = run_with_controller(config, _add)
    click.echo(f"Added {repo.id} ({repo.url}, branch {repo.default_branch})")
