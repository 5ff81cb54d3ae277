"""repograph find command - look up symbols in the knowledge graph."""

from __future__ import annotations

import json
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from repograph.cli.utils import get_config, run_with_controller
from repograph.core.errors import RepositoryNotFoundError
from repograph.daemon.lifecycle import ServiceController


def _row(match: dict[str, Any]) -> dict[str, Any]:
    symbol = match.get("symbol") or {}
    return {
        "name": symbol.get("name"),
        "kind": symbol.get("kind"),
        "path": (match.get("file") or {}).get("path"),
        "start_line": symbol.get("startLine"),
        "end_line": symbol.get("endLine"),
        "namespace": (match.get("namespace") or {}).get("name"),
        "signature": symbol.get("signature"),
    }


@click.command()
@click.argument("repo_id")
@click.argument("name")
@click.option("--limit", type=click.IntRange(min=1), default=25, show_default=True)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def find_command(ctx: click.Context, repo_id: str, name: str, limit: int, as_json: bool) -> None:
    """Find symbols called NAME (case-insensitive) in REPO_ID's latest snapshot."""
    config = get_config(ctx)

    async def _find(controller: ServiceController) -> list[dict[str, Any]]:
        if await controller.store.get(repo_id) is None:
            raise RepositoryNotFoundError.for_id(repo_id)
        matches = await controller.graph.find_symbols_by_name(repo_id, name, limit=limit)
        return [_row(m) for m in matches]

    rows = run_with_controller(config, _find)

    if as_json:
        click.echo(json.dumps(rows))
        return
    if not rows:
        click.echo(f"No symbol named {name!r} in {repo_id}.")
        return

    table = Table(title=f"{name} in {repo_id}")
    table.add_column("Kind", style="magenta")
    table.add_column("Location", style="cyan")
    table.add_column("Module")
    table.add_column("Signature")
    for row in rows:
        table.add_row(
            row["kind"] or "-",
            f"{row['path']}:{row['start_line']}-{row['end_line']}",
            row["namespace"] or "-",
            row["signature"] or "",
        )
    Console().print(table)
