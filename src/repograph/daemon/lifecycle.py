"""Service wiring and lifecycle."""

from __future__ import annotations

import asyncio
import signal
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from repograph.checkout import CheckoutManager
from repograph.config.models import RepoGraphConfig
from repograph.daemon.scheduler import SyncScheduler
from repograph.graph import GraphSnapshotWriter
from repograph.integrations.mirror import DirectoryMirror, MirrorStore, NullMirror
from repograph.integrations.search import ZoektSearchIndexer
from repograph.pipeline import IndexPipeline
from repograph.store.database import SqlRepositoryStore
from repograph.vcs.factory import ProviderFactory

logger = structlog.get_logger()

STOP_TIMEOUT_SEC = 10.0


def build_mirror(config: RepoGraphConfig) -> MirrorStore:
    if config.mirror.target_path:
        return DirectoryMirror(Path(config.mirror.target_path).expanduser())
    return NullMirror()


@dataclass
class ServiceController:
    """
    Owns every long-lived component built from one config.

    Components:
    - SqlRepositoryStore: repository metadata
    - ProviderFactory: VCS providers and their HTTP clients
    - GraphSnapshotWriter: neo4j driver
    - IndexPipeline: per-repository indexing
    - SyncScheduler: upstream drift polling (serve mode only)
    """

    config: RepoGraphConfig

    store: SqlRepositoryStore = field(init=False)
    providers: ProviderFactory = field(init=False)
    graph: GraphSnapshotWriter = field(init=False)
    search: ZoektSearchIndexer = field(init=False)
    pipeline: IndexPipeline = field(init=False)
    scheduler: SyncScheduler = field(init=False)

    def __post_init__(self) -> None:
        self.store = SqlRepositoryStore(self.config.store.database_url)
        self.providers = ProviderFactory(
            self.config.providers,
            git_timeout=self.config.checkout.git_timeout_sec,
        )
        self.graph = GraphSnapshotWriter.from_config(self.config.graph)
        self.search = ZoektSearchIndexer(self.config.search)
        self.pipeline = IndexPipeline(
            store=self.store,
            checkout=CheckoutManager(self.config.checkout, self.providers),
            graph=self.graph,
            search=self.search,
            mirror=build_mirror(self.config),
            config=self.config.pipeline,
        )
        self.scheduler = SyncScheduler(self.store, self.providers, self.config.sync)

    async def start(self, *, with_scheduler: bool = True) -> None:
        """Prepare the graph schema and start polling if enabled."""
        logger.info("service_starting")
        await self.graph.ensure_constraints()
        if with_scheduler and self.config.sync.enabled:
            self.scheduler.start()
        logger.info("service_started", sync_enabled=self.config.sync.enabled)

    async def stop(self) -> None:
        """Stop polling and release drivers and clients."""
        logger.info("service_stopping")
        try:
            async with asyncio.timeout(STOP_TIMEOUT_SEC):
                await self.scheduler.stop()
                await self.providers.aclose()
                await self.search.aclose()
                await self.graph.close()
        except TimeoutError:
            logger.warning("service_stop_timeout", timeout_sec=STOP_TIMEOUT_SEC)
        self.store.close()
        logger.info("service_stopped")


async def run_service(config: RepoGraphConfig) -> None:
    """Run the sync scheduler until SIGINT or SIGTERM."""
    controller = ServiceController(config)
    stop_requested = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_requested.set)

    try:
        await controller.start()
        await stop_requested.wait()
        logger.info("shutdown_signal_received")
    finally:
        await controller.stop()
