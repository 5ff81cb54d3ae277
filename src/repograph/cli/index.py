"""repograph index command - run the index pipeline."""

from __future__ import annotations

import json

import click
from rich.console import Console

from repograph.cli.utils import get_config, run_with_controller
from repograph.daemon.lifecycle import ServiceController
from repograph.pipeline import IndexOptions, IndexResult


@click.command()
@click.argument("repo_id")
@click.option("--force", is_flag=True, help="Re-index even if HEAD is unchanged")
@click.option("--skip-notify", is_flag=True, help="Do not notify the search daemon")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def index_command(
    ctx: click.Context,
    repo_id: str,
    force: bool,
    skip_notify: bool,
    as_json: bool,
) -> None:
    """Index REPO_ID: checkout, detect modules, extract symbols, write the graph."""
    config = get_config(ctx)
    options = IndexOptions(force=force, skip_external_notify=skip_notify)
    console = Console(stderr=True)

    async def _index(controller: ServiceController) -> IndexResult:
        await controller.graph.ensure_constraints()
        with console.status(f"[cyan]Indexing {repo_id}...[/cyan]", spinner="dots"):
            return await controller.pipeline.run_index(repo_id, options)

    result = run_with_controller(config, _index)

    if as_json:
        click.echo(json.dumps(result.to_dict()))
    elif not result.success:
        console.print(f"  [red]✗[/red] {repo_id}: {result.error}")
    elif result.up_to_date:
        console.print(f"  [green]✓[/green] {repo_id} already indexed at {result.sha[:7]}")
    else:
        console.print(
            f"  [green]✓[/green] {repo_id} at {result.sha[:7]}: "
            f"{result.namespaces_count} modules, {result.files_count} files, "
            f"{result.symbols_count} symbols in {result.duration_ms / 1000:.2f}s"
        )

    if not result.success:
        raise SystemExit(1)
