"""Structured logging with run correlation and multi-output support.

Every pipeline run binds a short run id and the repository id; all events
emitted while the run is in flight carry both, including events from nested
provider, checkout and graph calls.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from repograph.config.models import LoggingConfig, LogOutputConfig

_run_id: ContextVar[str | None] = ContextVar("run_id", default=None)

# Third-party loggers that are chatty at INFO.
_QUIET_LOGGERS = ("httpx", "httpcore", "neo4j", "sqlalchemy.engine")


def get_run_id() -> str | None:
    return _run_id.get()


def set_run_id(run_id: str | None = None) -> str:
    """Set or generate the correlation id for the current run."""
    rid = run_id or uuid4().hex[:12]
    _run_id.set(rid)
    return rid


def clear_run_id() -> None:
    _run_id.set(None)


@contextmanager
def run_context(repo_id: str) -> Iterator[str]:
    """Correlate every event inside the block with one run of ``repo_id``.

    Yields the generated run id.
    """
    rid = set_run_id()
    try:
        with structlog.contextvars.bound_contextvars(repo_id=repo_id):
            yield rid
    finally:
        clear_run_id()


def _add_run_id(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    if rid := get_run_id():
        event_dict.setdefault("run_id", rid)
    return event_dict


def _level(name: str | None, default: int = logging.INFO) -> int:
    if not name:
        return default
    value = logging.getLevelName(name.upper())
    return value if isinstance(value, int) else default


def _renderer(output: LogOutputConfig) -> structlog.types.Processor:
    if output.format == "json":
        return structlog.processors.JSONRenderer()
    colors = output.destination in ("stderr", "stdout") and sys.stderr.isatty()
    return structlog.dev.ConsoleRenderer(colors=colors, pad_event_to=0)


def _stream(destination: str) -> logging.Handler:
    if destination == "stderr":
        return logging.StreamHandler(sys.stderr)
    if destination == "stdout":
        return logging.StreamHandler(sys.stdout)
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a")


def _handler(
    output: LogOutputConfig,
    default_level: int,
    pre_chain: list[structlog.types.Processor],
) -> logging.Handler:
    handler = _stream(output.destination)
    handler.setLevel(_level(output.level, default_level))
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=_renderer(output), foreign_pre_chain=pre_chain)
    )
    return handler


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Route structlog through stdlib handlers, one per configured output.

    Without ``config`` a single stderr output is installed using
    ``json_format`` and ``level``. Calling again replaces every handler.
    """
    from repograph.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level,
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )
    default_level = _level(config.level)

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
        _add_run_id,  # type: ignore[list-item]
    ]
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(default_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(default_level)
    for output in config.outputs:
        root.addHandler(_handler(output, default_level, pre_chain))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger  # type: ignore[no-any-return]
