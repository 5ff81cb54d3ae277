"""repograph error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Repository / store
- 4xxx: Pipeline
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Repository (3xxx)
    REPOSITORY_NOT_FOUND = 3001
    REPOSITORY_EXISTS = 3002

    # Pipeline (4xxx)
    PIPELINE_STAGE_FAILED = 4001


@dataclass(eq=False)
class RepoGraphError(Exception):
    """Base error with structured context for CLI and status responses."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.message)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(RepoGraphError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class RepositoryNotFoundError(RepoGraphError):
    """Repository id unknown to the metadata store. Never retried."""

    @classmethod
    def for_id(cls, repo_id: str) -> "RepositoryNotFoundError":
        return cls(
            code=ErrorCode.REPOSITORY_NOT_FOUND,
            message=f"Repository not found: {repo_id}",
            details={"repo_id": repo_id},
        )


class RepositoryExistsError(RepoGraphError):
    """Repository id already registered."""

    @classmethod
    def for_id(cls, repo_id: str) -> "RepositoryExistsError":
        return cls(
            code=ErrorCode.REPOSITORY_EXISTS,
            message=f"Repository already exists: {repo_id}",
            details={"repo_id": repo_id},
        )


class PipelineStageError(RepoGraphError):
    """A required pipeline stage reported failure.

    Side stages talk to external targets, so a rerun may succeed.
    """

    @classmethod
    def stage_failed(cls, stage: str, detail: str) -> "PipelineStageError":
        return cls(
            code=ErrorCode.PIPELINE_STAGE_FAILED,
            message=f"Stage '{stage}' failed: {detail}",
            retryable=True,
            details={"stage": stage, "detail": detail},
        )

