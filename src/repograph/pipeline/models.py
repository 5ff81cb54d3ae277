"""Pipeline inputs, outputs and stage results."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

from repograph.store.models import ScanStatus


class StageName(str, Enum):
    CHECKOUT = "checkout"
    MIRROR = "mirror"
    NAMESPACES = "namespaces"
    PARSE = "parse"
    GRAPH = "graph"
    NOTIFY = "notify"


@dataclass(frozen=True, slots=True)
class StageResult:
    ok: bool
    detail: str | None = None


@dataclass(frozen=True, slots=True)
class IndexOptions:
    force: bool = False
    skip_external_notify: bool = False


@dataclass(frozen=True, slots=True)
class IndexResult:
    success: bool
    repo_id: str
    sha: str
    files_count: int = 0
    symbols_count: int = 0
    namespaces_count: int = 0
    duration_ms: int = 0
    error: str | None = None
    up_to_date: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class RepositoryStatus:
    """Persisted state plus live (or derived) progress."""

    repo_id: str
    status: ScanStatus
    percent: int
    step: str
    last_indexed_sha: str | None = None
    last_indexed_at: float | None = None
    last_index_error: str | None = None
    details: str | None = None
    live: bool = False

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data
