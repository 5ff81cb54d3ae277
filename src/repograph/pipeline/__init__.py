"""Index pipeline orchestration."""

from repograph.pipeline.locks import RepoLocks
from repograph.pipeline.models import (
    IndexOptions,
    IndexResult,
    RepositoryStatus,
    StageName,
    StageResult,
)
from repograph.pipeline.orchestrator import IndexPipeline
from repograph.pipeline.progress import ProgressRecord, ProgressTracker
from repograph.pipeline.state import status_label, status_percent

__all__ = [
    "IndexOptions",
    "IndexPipeline",
    "IndexResult",
    "ProgressRecord",
    "ProgressTracker",
    "RepoLocks",
    "RepositoryStatus",
    "StageName",
    "StageResult",
    "status_label",
    "status_percent",
]
