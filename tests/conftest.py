"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages and
provides fakes for the collaborators the pipeline talks to.
"""

import sys
from pathlib import Path

# Insert local src directory at the beginning of sys.path
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of repograph modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("repograph"):
        del sys.modules[module_name]

from collections.abc import Callable  # noqa: E402
from enum import Enum  # noqa: E402
from typing import Any  # noqa: E402

import pygit2  # noqa: E402
import pytest  # noqa: E402

from repograph.core.errors import RepositoryExistsError, RepositoryNotFoundError  # noqa: E402
from repograph.store.models import Repository  # noqa: E402


class InMemoryRepositoryStore:
    """RepositoryStore backed by a dict. Records every update for assertions."""

    def __init__(self, *repos: Repository) -> None:
        self.repos: dict[str, Repository] = {r.id: r for r in repos}
        self.updates: list[tuple[str, dict[str, Any]]] = []

    async def get(self, repo_id: str) -> Repository | None:
        repo = self.repos.get(repo_id)
        return repo.model_copy() if repo is not None else None

    async def add(self, repo: Repository) -> Repository:
        if repo.id in self.repos:
            raise RepositoryExistsError.for_id(repo.id)
        self.repos[repo.id] = repo
        return repo.model_copy()

    async def update(self, repo_id: str, **fields: Any) -> Repository:
        repo = self.repos.get(repo_id)
        if repo is None:
            raise RepositoryNotFoundError.for_id(repo_id)
        self.updates.append((repo_id, dict(fields)))
        for key, value in fields.items():
            setattr(repo, key, value.value if isinstance(value, Enum) else value)
        return repo.model_copy()

    async def list_all(self) -> list[Repository]:
        return [r.model_copy() for r in self.repos.values()]

    async def list_sync_enabled(self) -> list[Repository]:
        return [r.model_copy() for r in self.repos.values() if r.sync_enabled]

    async def delete(self, repo_id: str) -> None:
        self.repos.pop(repo_id, None)

    def statuses(self, repo_id: str) -> list[str]:
        """Status values written for ``repo_id``, in order."""
        return [
            f["status"].value if isinstance(f["status"], Enum) else f["status"]
            for rid, f in self.updates
            if rid == repo_id and "status" in f
        ]


class FakeResult:
    def __init__(self, records: list[dict[str, Any]] | None = None) -> None:
        self._records = records or []

    async def consume(self) -> None:
        return None

    async def data(self) -> list[dict[str, Any]]:
        return self._records


class FakeTransaction:
    def __init__(self, session: "FakeSession") -> None:
        self._session = session

    async def run(self, query: str, **params: Any) -> FakeResult:
        self._session.driver.queries.append((query, params))
        return FakeResult(self._session.driver.respond(query, params))


class FakeSession:
    def __init__(self, driver: "FakeDriver", database: str | None) -> None:
        self.driver = driver
        self.database = database

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, *exc: object) -> None:
        return None

    async def run(self, query: str, **params: Any) -> FakeResult:
        self.driver.queries.append((query, params))
        return FakeResult(self.driver.respond(query, params))

    async def execute_write(self, fn: Callable[..., Any], *args: Any) -> Any:
        self.driver.write_transactions += 1
        return await fn(FakeTransaction(self), *args)

    async def execute_read(self, fn: Callable[..., Any], *args: Any) -> Any:
        return await fn(FakeTransaction(self), *args)


class FakeDriver:
    """Records every query.

    ``responses`` maps a query substring to returned rows; ``failures`` maps a
    query substring to an exception to raise.
    """

    def __init__(self) -> None:
        self.queries: list[tuple[str, dict[str, Any]]] = []
        self.responses: dict[str, list[dict[str, Any]]] = {}
        self.failures: dict[str, Exception] = {}
        self.write_transactions = 0
        self.sessions: list[str | None] = []
        self.closed = False

    def session(self, database: str | None = None) -> FakeSession:
        self.sessions.append(database)
        return FakeSession(self, database)

    def respond(self, query: str, params: dict[str, Any]) -> list[dict[str, Any]]:  # noqa: ARG002
        for needle, error in self.failures.items():
            if needle in query:
                raise error
        for needle, rows in self.responses.items():
            if needle in query:
                return rows
        return []

    def params_for(self, needle: str) -> list[dict[str, Any]]:
        return [params for query, params in self.queries if needle in query]

    async def close(self) -> None:
        self.closed = True


def commit_files(repo: pygit2.Repository, files: dict[str, str], message: str) -> str:
    """Write ``files`` into the work tree and commit them on HEAD. Returns the sha."""
    workdir = Path(repo.workdir)
    for rel, content in files.items():
        target = workdir / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
    repo.index.add_all()
    repo.index.write()
    tree = repo.index.write_tree()
    signature = pygit2.Signature("Test Author", "author@example.com")
    parents = [] if repo.head_is_unborn else [repo.head.target]
    oid = repo.create_commit("HEAD", signature, signature, message, tree, parents)
    return str(oid)


@pytest.fixture
def store() -> InMemoryRepositoryStore:
    return InMemoryRepositoryStore()


@pytest.fixture
def fake_driver() -> FakeDriver:
    return FakeDriver()


@pytest.fixture
def source_repo(tmp_path: Path) -> pygit2.Repository:
    """A non-bare repository on branch main with one commit."""
    path = tmp_path / "upstream"
    repo = pygit2.init_repository(str(path), bare=False, initial_head="main")
    commit_files(repo, {"README.md": "# upstream\n"}, "Initial commit")
    return repo


@pytest.fixture
def commit() -> Callable[[pygit2.Repository, dict[str, str], str], str]:
    return commit_files
