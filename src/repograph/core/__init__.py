"""Core module exports."""

from repograph.core.errors import (
    ConfigError,
    ErrorCode,
    PipelineStageError,
    RepoGraphError,
    RepositoryExistsError,
    RepositoryNotFoundError,
)
from repograph.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    run_context,
    set_run_id,
)

__all__ = [
    # Errors
    "ConfigError",
    "ErrorCode",
    "PipelineStageError",
    "RepoGraphError",
    "RepositoryExistsError",
    "RepositoryNotFoundError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "run_context",
    "set_run_id",
]
