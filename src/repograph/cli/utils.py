"""CLI utilities."""

from __future__ import annotations

import asyncio
import re
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import TypeVar

import click
from neo4j.exceptions import DriverError, Neo4jError

from repograph.checkout import CheckoutError
from repograph.config.models import RepoGraphConfig
from repograph.core.errors import RepoGraphError
from repograph.daemon.lifecycle import ServiceController
from repograph.vcs.errors import GitError

T = TypeVar("T")

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def get_config(ctx: click.Context) -> RepoGraphConfig:
    config: RepoGraphConfig = ctx.obj["config"]
    return config


def run_with_controller(
    config: RepoGraphConfig,
    action: Callable[[ServiceController], Awaitable[T]],
) -> T:
    """Build the services, run ``action`` and always release them.

    Known failures are reported as click errors instead of tracebacks.
    """

    async def _run() -> T:
        controller = ServiceController(config)
        try:
            return await action(controller)
        finally:
            await controller.stop()

    try:
        return asyncio.run(_run())
    except RepoGraphError as e:
        raise click.ClickException(e.message) from e
    except (GitError, CheckoutError) as e:
        raise click.ClickException(str(e)) from e
    except (Neo4jError, DriverError) as e:
        raise click.ClickException(f"Graph database unavailable: {e}") from e


def repo_id_from_url(url: str) -> str:
    """Derive a readable id from a remote URL or path.

    ``https://github.com/acme/Web-App.git`` becomes ``acme-web-app``.
    """
    path = url.rstrip("/")
    if path.endswith(".git"):
        path = path[:-4]
    parts = [p for p in re.split(r"[/:]", path) if p]
    tail = parts[-2:] if len(parts) >= 2 else parts
    slug = _SLUG_RE.sub("-", "-".join(tail).lower()).strip("-")
    if not slug:
        raise click.BadParameter(f"cannot derive an id from {url!r}; pass --id")
    return slug


def format_timestamp(value: float | None) -> str:
    if value is None:
        return "-"
    return datetime.fromtimestamp(value).strftime("%Y-%m-%d %H:%M:%S")
