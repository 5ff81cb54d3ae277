"""End-to-end: register, index and sync a two-service monorepo.

Runs the real checkout, namespace, parse and graph code against a local
git repository; only the graph driver and search daemon are fakes.
"""

from collections.abc import Callable
from pathlib import Path

import pygit2
import pytest

from repograph.checkout import CheckoutManager
from repograph.config.models import CheckoutConfig
from repograph.daemon import SyncScheduler
from repograph.graph import GraphSnapshotWriter
from repograph.pipeline import IndexPipeline
from repograph.store.models import Repository
from repograph.vcs.factory import ProviderFactory

CommitFn = Callable[[pygit2.Repository, dict[str, str], str], str]


class NoopSearch:
    async def notify(self, repo_id: str, local_path: Path) -> None:
        return None

    async def search(self, query: str, repo_id: str | None = None) -> dict:
        return {}

    async def is_available(self) -> bool:
        return True


@pytest.fixture
def monorepo(tmp_path: Path, commit: CommitFn) -> pygit2.Repository:
    repo = pygit2.init_repository(str(tmp_path / "monorepo"), bare=False, initial_head="main")
    commit(
        repo,
        {
            "services/api/handler.py": "def handle(request):\n    return request\n",
            "services/web/app.ts": "export class WebApp {\n  start() {}\n}\n",
        },
        "Initial services",
    )
    return repo


class TestMonorepoScenario:
    @pytest.mark.asyncio
    async def test_given_two_services_when_indexed_then_graph_has_two_namespaces(
        self, store, fake_driver, monorepo: pygit2.Repository, tmp_path: Path
    ) -> None:
        """Each service becomes a namespace and owns its file and symbol."""
        # Given
        providers = ProviderFactory()
        store.repos["mono"] = Repository(
            id="mono", name="mono", url=str(Path(monorepo.workdir)), sync_enabled=True
        )
        checkout = CheckoutManager(
            CheckoutConfig(base_path=str(tmp_path / "checkouts"), cleanup_retry_delays_sec=[0.0]),
            providers,
        )
        pipeline = IndexPipeline(
            store=store,
            checkout=checkout,
            graph=GraphSnapshotWriter(fake_driver),
            search=NoopSearch(),
        )

        # When
        result = await pipeline.run_index("mono")

        # Then
        assert result.success, result.error
        assert result.namespaces_count == 2
        assert result.files_count == 2

        (ns_params,) = fake_driver.params_for("UNWIND $namespaces")
        assert sorted(row["rootPath"] for row in ns_params["namespaces"]) == [
            "services/api",
            "services/web",
        ]
        (file_params,) = fake_driver.params_for("UNWIND $files")
        assert {row["path"]: row["nsId"] for row in file_params["files"]} == {
            "services/api/handler.py": "mono:services/api",
            "services/web/app.ts": "mono:services/web",
        }
        (symbol_params,) = fake_driver.params_for("UNWIND $symbols")
        by_name = {row["name"]: row for row in symbol_params["symbols"]}
        assert by_name["handle"]["namespace"] == "services/api"
        assert by_name["handle"]["kind"] == "function"
        assert by_name["WebApp"]["namespace"] == "services/web"
        assert by_name["WebApp"]["kind"] == "class"
        assert [n.root_path for n in store.repos["mono"].namespaces] == [
            "services/api",
            "services/web",
        ]

    @pytest.mark.asyncio
    async def test_given_indexed_repo_when_upstream_moves_then_sync_marks_pending_and_reindex_catches_up(
        self, store, fake_driver, monorepo: pygit2.Repository, commit: CommitFn, tmp_path: Path
    ) -> None:
        """Sync detects drift; the next index run writes the new commit."""
        # Given
        providers = ProviderFactory()
        url = str(Path(monorepo.workdir))
        store.repos["mono"] = Repository(id="mono", name="mono", url=url, sync_enabled=True)
        pipeline = IndexPipeline(
            store=store,
            checkout=CheckoutManager(
                CheckoutConfig(base_path=str(tmp_path / "checkouts"), cleanup_retry_delays_sec=[0.0]),
                providers,
            ),
            graph=GraphSnapshotWriter(fake_driver),
            search=NoopSearch(),
        )
        scheduler = SyncScheduler(store, providers)
        await pipeline.run_index("mono")
        await scheduler.sync_all(force=True)

        # When
        new_sha = commit(
            monorepo, {"services/api/extra.py": "def extra():\n    return 2\n"}, "Add extra"
        )
        (drift,) = await scheduler.sync_all(force=True)
        status_after_sync = store.repos["mono"].status
        reindexed = await pipeline.run_index("mono")

        # Then
        assert drift.new_commits == 1
        assert drift.latest_sha == new_sha
        assert status_after_sync == "PENDING"
        assert reindexed.sha == new_sha
        assert reindexed.symbols_count >= 3
        assert store.repos["mono"].status == "COMPLETED"
        assert fake_driver.write_transactions == 2
