"""Periodic upstream drift detection.

The scheduler never indexes. It records the newest upstream commit and flips
the repository back to PENDING; the index pipeline picks it up from there.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from collections.abc import Callable
from dataclasses import dataclass, field

import structlog

from repograph.config.models import SyncConfig
from repograph.core.errors import RepositoryNotFoundError
from repograph.store.database import RepositoryStore
from repograph.store.models import Repository, ScanStatus
from repograph.vcs.factory import ProviderFactory

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class SyncResult:
    repository_id: str
    success: bool
    new_commits: int = 0
    latest_sha: str | None = None
    error: str | None = None

    @property
    def changed(self) -> bool:
        return self.success and (self.new_commits > 0 or self.latest_sha is not None)


@dataclass(frozen=True, slots=True)
class SyncStatus:
    repository_id: str
    sync_enabled: bool
    interval_minutes: int
    last_synced_sha: str | None
    last_synced_at: float | None
    next_due_at: float | None
    cycle_running: bool


def _next_due(repo: Repository, last_checked: float | None = None) -> float | None:
    seen = [t for t in (repo.last_synced_at, last_checked) if t is not None]
    if not seen:
        return None
    return max(seen) + repo.sync_interval_minutes * 60


def is_due(repo: Repository, now: float, last_checked: float | None = None) -> bool:
    """Due once the interval has passed since the last poll or recorded drift.

    Never-polled repositories are always due.
    """
    due_at = _next_due(repo, last_checked)
    return due_at is None or now >= due_at


@dataclass
class SyncScheduler:
    """
    Polls sync-enabled repositories for new upstream commits.

    Cycles never overlap: a cycle requested while another is running is
    skipped without touching any repository.
    """

    store: RepositoryStore
    providers: ProviderFactory
    config: SyncConfig = field(default_factory=SyncConfig)
    clock: Callable[[], float] = time.time

    _task: asyncio.Task[None] | None = field(default=None, init=False)
    _syncing: bool = field(default=False, init=False)
    _cycles: int = field(default=0, init=False)
    _last_checked: dict[str, float] = field(default_factory=dict, init=False)

    @property
    def is_syncing(self) -> bool:
        return self._syncing

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the polling loop."""
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._loop())
        logger.info(
            "sync_scheduler_started",
            interval_sec=self.config.interval_sec,
            run_on_startup=self.config.run_on_startup,
        )

    async def stop(self) -> None:
        """Stop the polling loop. An in-flight cycle is cancelled."""
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        logger.info("sync_scheduler_stopped", cycles=self._cycles)

    async def _loop(self) -> None:
        if self.config.run_on_startup:
            await asyncio.sleep(self.config.startup_delay_sec)
            await self._cycle()
        while True:
            await asyncio.sleep(self.config.interval_sec)
            await self._cycle()

    async def _cycle(self) -> None:
        try:
            await self.sync_all()
        except Exception as e:
            logger.error("sync_cycle_failed", error=str(e))

    async def sync_all(self, *, force: bool = False) -> list[SyncResult]:
        """Sync every due repository. Returns ``[]`` if a cycle is already running."""
        if self._syncing:
            logger.info("sync_cycle_skipped", reason="previous cycle still running")
            return []
        self._syncing = True
        try:
            repos = await self.store.list_sync_enabled()
            now = self.clock()
            enabled = {repo.id for repo in repos}
            self._last_checked = {k: v for k, v in self._last_checked.items() if k in enabled}
            due = [
                repo
                for repo in repos
                if force or is_due(repo, now, self._last_checked.get(repo.id))
            ]
            logger.info("sync_cycle_started", enabled=len(repos), due=len(due))

            results: list[SyncResult] = []
            for repo in due:
                try:
                    results.append(await self._sync(repo))
                except Exception as e:
                    logger.error("repository_sync_failed", repo_id=repo.id, error=str(e))
                    results.append(SyncResult(repository_id=repo.id, success=False, error=str(e)))

            self._cycles += 1
            logger.info(
                "sync_cycle_complete",
                synced=len(results),
                changed=sum(1 for r in results if r.changed),
                failed=sum(1 for r in results if not r.success),
            )
            return results
        finally:
            self._syncing = False

    async def sync_repository(self, repo_id: str) -> SyncResult:
        """Check one repository for drift regardless of its interval.

        Raises:
            RepositoryNotFoundError: unknown id.
        """
        repo = await self.store.get(repo_id)
        if repo is None:
            raise RepositoryNotFoundError.for_id(repo_id)
        try:
            return await self._sync(repo)
        except Exception as e:
            logger.error("repository_sync_failed", repo_id=repo_id, error=str(e))
            return SyncResult(repository_id=repo_id, success=False, error=str(e))

    async def _sync(self, repo: Repository) -> SyncResult:
        provider = self.providers.for_url(repo.url)
        latest = await provider.get_latest_commit(repo.url, repo.default_branch)
        self._last_checked[repo.id] = self.clock()

        if latest.sha == repo.last_synced_sha:
            logger.debug("repository_unchanged", repo_id=repo.id, sha=latest.short_sha)
            return SyncResult(repository_id=repo.id, success=True)

        # First observation is the baseline: nothing to count against.
        new_commits = 0
        if repo.last_synced_sha:
            commits = await provider.get_commits_since(
                repo.url, repo.last_synced_sha, repo.default_branch
            )
            new_commits = len(commits)

        await self.store.update(
            repo.id,
            last_synced_sha=latest.sha,
            last_synced_at=self.clock(),
            status=ScanStatus.PENDING,
        )
        logger.info(
            "repository_drift_detected",
            repo_id=repo.id,
            latest_sha=latest.short_sha,
            new_commits=new_commits,
        )
        return SyncResult(
            repository_id=repo.id,
            success=True,
            new_commits=new_commits,
            latest_sha=latest.sha,
        )

    async def sync_status(self, repo_id: str) -> SyncStatus:
        repo = await self.store.get(repo_id)
        if repo is None:
            raise RepositoryNotFoundError.for_id(repo_id)
        return SyncStatus(
            repository_id=repo.id,
            sync_enabled=repo.sync_enabled,
            interval_minutes=repo.sync_interval_minutes,
            last_synced_sha=repo.last_synced_sha,
            last_synced_at=repo.last_synced_at,
            next_due_at=_next_due(repo, self._last_checked.get(repo.id)),
            cycle_running=self._syncing,
        )
