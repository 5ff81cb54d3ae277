"""In-memory progress records with delayed eviction."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field

from repograph.store.models import ScanStatus


@dataclass(frozen=True, slots=True)
class ProgressRecord:
    status: ScanStatus
    percent: int
    step: str
    details: str | None = None
    updated_at: float = field(default_factory=time.time)


class ProgressTracker:
    """Live progress per repository id.

    A finished run's record stays visible until its eviction fires. A newer
    update cancels any pending eviction so a queued run never loses its
    record to the previous run's timer.
    """

    def __init__(self) -> None:
        self._records: dict[str, ProgressRecord] = {}
        self._evictions: dict[str, asyncio.TimerHandle] = {}

    def update(
        self,
        repo_id: str,
        status: ScanStatus,
        percent: int,
        step: str,
        details: str | None = None,
    ) -> ProgressRecord:
        self._cancel_eviction(repo_id)
        record = ProgressRecord(status=status, percent=percent, step=step, details=details)
        self._records[repo_id] = record
        return record

    def get(self, repo_id: str) -> ProgressRecord | None:
        return self._records.get(repo_id)

    def active_ids(self) -> list[str]:
        return sorted(self._records)

    def schedule_eviction(self, repo_id: str, delay: float) -> None:
        self._cancel_eviction(repo_id)
        loop = asyncio.get_running_loop()
        self._evictions[repo_id] = loop.call_later(delay, self._evict, repo_id)

    def _evict(self, repo_id: str) -> None:
        self._evictions.pop(repo_id, None)
        self._records.pop(repo_id, None)

    def _cancel_eviction(self, repo_id: str) -> None:
        handle = self._evictions.pop(repo_id, None)
        if handle is not None:
            handle.cancel()

    def clear_repo(self, repo_id: str) -> None:
        self._cancel_eviction(repo_id)
        self._records.pop(repo_id, None)

    def clear(self) -> None:
        for handle in self._evictions.values():
            handle.cancel()
        self._evictions.clear()
        self._records.clear()
