"""Index pipeline: checkout, mirror, namespaces, parse, graph, notify.

One run per repository id at a time. Every fatal error in a run ends up in
``run_index``'s single handler, which persists ``ERROR`` and returns a
failure result instead of raising.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable
from pathlib import Path

import structlog

from repograph.checkout import CheckoutManager, CheckoutResult
from repograph.config.models import PipelineConfig
from repograph.core.errors import PipelineStageError, RepoGraphError, RepositoryNotFoundError
from repograph.core.logging import run_context
from repograph.extract import detect_namespaces, parse_repository
from repograph.graph import GraphSnapshotWriter, RepoMeta
from repograph.integrations.mirror import MirrorStore, NullMirror
from repograph.integrations.search import SearchIndexer
from repograph.pipeline.locks import RepoLocks
from repograph.pipeline.models import (
    IndexOptions,
    IndexResult,
    RepositoryStatus,
    StageName,
    StageResult,
)
from repograph.pipeline.progress import ProgressTracker
from repograph.pipeline.state import status_label, status_percent
from repograph.store.database import RepositoryStore
from repograph.store.models import Repository, ScanStatus, dump_namespaces

logger = structlog.get_logger()


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class IndexPipeline:
    """Runs the indexing state machine for one repository at a time per id."""

    def __init__(
        self,
        store: RepositoryStore,
        checkout: CheckoutManager,
        graph: GraphSnapshotWriter,
        search: SearchIndexer,
        mirror: MirrorStore | None = None,
        config: PipelineConfig | None = None,
        *,
        locks: RepoLocks | None = None,
        progress: ProgressTracker | None = None,
    ) -> None:
        self.store = store
        self.checkout = checkout
        self.graph = graph
        self.search = search
        self.mirror = mirror or NullMirror()
        self.config = config or PipelineConfig()
        self.locks = locks if locks is not None else RepoLocks()
        self.progress = progress or ProgressTracker()

    def is_running(self, repo_id: str) -> bool:
        return self.locks.is_locked(repo_id)

    # =========================================================================
    # Run
    # =========================================================================

    async def run_index(self, repo_id: str, options: IndexOptions | None = None) -> IndexResult:
        """Index ``repo_id``. Queues behind any run already in progress for it.

        Never raises for pipeline failures; the returned result carries the
        error message and the repository is left in ``ERROR``.
        """
        options = options or IndexOptions()
        started = time.monotonic()

        async with self.locks.hold(repo_id):
            with run_context(repo_id):
                logger.info("index_started", force=options.force)
                try:
                    result = await self._run(repo_id, options, started)
                except Exception as e:
                    message = e.message if isinstance(e, RepoGraphError) else str(e)
                    logger.error("index_failed", error=message, exc_info=True)
                    await self._mark_failed(repo_id, message)
                    return IndexResult(
                        success=False,
                        repo_id=repo_id,
                        sha="",
                        duration_ms=_elapsed_ms(started),
                        error=message,
                    )
                finally:
                    self.progress.schedule_eviction(repo_id, self.config.progress_retention_sec)

                logger.info(
                    "index_complete",
                    sha=result.sha,
                    files=result.files_count,
                    symbols=result.symbols_count,
                    duration_ms=result.duration_ms,
                    up_to_date=result.up_to_date,
                )
                return result

    async def _run(self, repo_id: str, options: IndexOptions, started: float) -> IndexResult:
        repo = await self.store.get(repo_id)
        if repo is None:
            raise RepositoryNotFoundError.for_id(repo_id)
        branch = repo.default_branch

        # Checkout
        await self._enter(repo_id, ScanStatus.CLONING, 5, f"Preparing {branch}")
        self.progress.update(
            repo_id, ScanStatus.CLONING, 10, status_label(ScanStatus.CLONING), f"Fetching {branch}"
        )
        checkout = await self.checkout.ensure_checkout(repo_id, repo.url, branch)
        sha = checkout.head_sha
        self.progress.update(
            repo_id,
            ScanStatus.CLONING,
            15,
            status_label(ScanStatus.CLONING),
            f"At {sha[:7]}",
        )

        if not options.force and repo.last_indexed_sha == sha:
            await self.store.update(
                repo_id, status=ScanStatus.COMPLETED, last_index_error=None
            )
            self.progress.update(
                repo_id, ScanStatus.COMPLETED, 100, status_label(ScanStatus.COMPLETED), "Up to date"
            )
            logger.info("index_up_to_date", repo_id=repo_id, sha=sha)
            return IndexResult(
                success=True,
                repo_id=repo_id,
                sha=sha,
                duration_ms=_elapsed_ms(started),
                up_to_date=True,
            )

        # Mirror
        await self._enter(repo_id, ScanStatus.UPLOADING, 20)
        self.progress.update(repo_id, ScanStatus.UPLOADING, 25, status_label(ScanStatus.UPLOADING))
        mirrored = await self._side_stage(StageName.MIRROR, self._mirror(repo, checkout))
        self.progress.update(
            repo_id,
            ScanStatus.UPLOADING,
            30,
            status_label(ScanStatus.UPLOADING),
            mirrored.detail,
        )

        # Namespaces
        await self._enter(repo_id, ScanStatus.SCANNING_NAMESPACES, 35)
        namespaces = await asyncio.to_thread(detect_namespaces, checkout.local_path)
        await self.store.update(repo_id, namespaces_json=dump_namespaces(namespaces))
        self.progress.update(
            repo_id,
            ScanStatus.SCANNING_NAMESPACES,
            45,
            status_label(ScanStatus.SCANNING_NAMESPACES),
            f"{len(namespaces)} modules",
        )

        # Parse
        await self._enter(repo_id, ScanStatus.PARSING_FILES, 50)
        parsed = await asyncio.to_thread(
            parse_repository, repo_id, checkout.local_path, namespaces
        )
        self.progress.update(
            repo_id,
            ScanStatus.PARSING_FILES,
            65,
            status_label(ScanStatus.PARSING_FILES),
            f"{len(parsed.files)} files, {len(parsed.symbols)} symbols",
        )

        # Graph
        await self._enter(repo_id, ScanStatus.GENERATING_GRAPH, 70)
        meta = RepoMeta(name=repo.name, url=repo.url, branch=branch, sha=sha)
        await self.graph.write_snapshot(repo_id, meta, namespaces, parsed.files, parsed.symbols)
        self.progress.update(
            repo_id,
            ScanStatus.GENERATING_GRAPH,
            85,
            status_label(ScanStatus.GENERATING_GRAPH),
            "Snapshot written",
        )

        # Notify
        await self._enter(repo_id, ScanStatus.INDEXING, 90)
        if options.skip_external_notify:
            detail = "Notification skipped"
        else:
            notified = await self._side_stage(
                StageName.NOTIFY, self._notify(repo_id, checkout.local_path)
            )
            detail = notified.detail
        self.progress.update(
            repo_id, ScanStatus.INDEXING, 95, status_label(ScanStatus.INDEXING), detail
        )

        await self.store.update(
            repo_id,
            status=ScanStatus.COMPLETED,
            last_indexed_sha=sha,
            last_indexed_at=time.time(),
            last_index_error=None,
        )
        self.progress.update(
            repo_id, ScanStatus.COMPLETED, 100, status_label(ScanStatus.COMPLETED)
        )
        return IndexResult(
            success=True,
            repo_id=repo_id,
            sha=sha,
            files_count=len(parsed.files),
            symbols_count=len(parsed.symbols),
            namespaces_count=len(namespaces),
            duration_ms=_elapsed_ms(started),
        )

    async def _enter(
        self, repo_id: str, status: ScanStatus, percent: int, details: str | None = None
    ) -> None:
        """Persist ``status`` and publish its first progress step."""
        await self.store.update(repo_id, status=status)
        self.progress.update(repo_id, status, percent, status_label(status), details)
        logger.debug("stage_entered", repo_id=repo_id, status=status.value, percent=percent)

    async def _side_stage(self, name: StageName, action: Awaitable[StageResult]) -> StageResult:
        """Run a side stage. Failures of best-effort stages are logged and tolerated."""
        try:
            result = await action
        except Exception as e:  # noqa: BLE001
            result = StageResult(ok=False, detail=str(e))

        if result.ok:
            return result
        if name.value in self.config.best_effort_stages:
            logger.warning("stage_degraded", stage=name.value, detail=result.detail)
            return result
        raise PipelineStageError.stage_failed(name.value, result.detail or "unknown failure")

    async def _mirror(self, repo: Repository, checkout: CheckoutResult) -> StageResult:
        outcome = await self.mirror.upload(repo.id, repo.name, checkout.local_path)
        if not outcome.success:
            return StageResult(ok=False, detail=outcome.error)
        if not outcome.remote_path:
            return StageResult(ok=True, detail="Mirror not configured")
        return StageResult(ok=True, detail=f"{outcome.files_uploaded} files mirrored")

    async def _notify(self, repo_id: str, local_path: Path) -> StageResult:
        await self.search.notify(repo_id, local_path)
        return StageResult(ok=True, detail="Search index notified")

    async def _mark_failed(self, repo_id: str, message: str) -> None:
        self.progress.update(
            repo_id, ScanStatus.ERROR, 0, status_label(ScanStatus.ERROR), message
        )
        try:
            await self.store.update(
                repo_id, status=ScanStatus.ERROR, last_index_error=message
            )
        except RepositoryNotFoundError:
            pass
        except Exception as e:  # noqa: BLE001
            logger.error("error_status_not_persisted", repo_id=repo_id, error=str(e))

    # =========================================================================
    # Status and removal
    # =========================================================================

    async def get_status(self, repo_id: str) -> RepositoryStatus:
        """Live progress if a run is recent, else progress derived from the persisted status.

        Raises:
            RepositoryNotFoundError: unknown id.
        """
        repo = await self.store.get(repo_id)
        if repo is None:
            raise RepositoryNotFoundError.for_id(repo_id)

        record = self.progress.get(repo_id)
        if record is not None:
            return RepositoryStatus(
                repo_id=repo_id,
                status=record.status,
                percent=record.percent,
                step=record.step,
                details=record.details,
                last_indexed_sha=repo.last_indexed_sha,
                last_indexed_at=repo.last_indexed_at,
                last_index_error=repo.last_index_error,
                live=True,
            )

        status = repo.scan_status
        return RepositoryStatus(
            repo_id=repo_id,
            status=status,
            percent=status_percent(status),
            step=status_label(status),
            details=repo.last_index_error if status is ScanStatus.ERROR else None,
            last_indexed_sha=repo.last_indexed_sha,
            last_indexed_at=repo.last_indexed_at,
            last_index_error=repo.last_index_error,
        )

    async def delete_repository(self, repo_id: str, *, remove_record: bool = True) -> None:
        """Drop the graph subgraph, the checkout and (optionally) the stored record.

        Waits for any in-flight run on the same id.
        """
        async with self.locks.hold(repo_id):
            if await self.store.get(repo_id) is None:
                raise RepositoryNotFoundError.for_id(repo_id)
            await self.graph.delete_repo(repo_id)
            await self.checkout.delete_checkout(repo_id)
            if remove_record:
                await self.store.delete(repo_id)
            self.progress.clear_repo(repo_id)
            logger.info("repository_deleted", repo_id=repo_id, record_removed=remove_record)
