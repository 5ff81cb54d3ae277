"""Knowledge-graph snapshot writer.

Each index run replaces a repository's subgraph wholesale inside a single
write transaction: delete symbols, files and namespaces, then re-create
them from the extraction output. The repository node survives and is
updated in place.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

import structlog
from neo4j import AsyncDriver, AsyncGraphDatabase, AsyncManagedTransaction
from neo4j.exceptions import ClientError

from repograph.config.models import GraphConfig
from repograph.extract.models import CodeNamespace, FileIR, SymbolIR
from repograph.graph import queries

logger = structlog.get_logger()

T = TypeVar("T")


def _batches(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


def namespace_id(repo_id: str, name: str) -> str:
    return f"{repo_id}:{name}"


def file_id(repo_id: str, path: str) -> str:
    return f"{repo_id}:{path}"


@dataclass(frozen=True, slots=True)
class RepoMeta:
    """Repository node properties."""

    name: str
    url: str
    branch: str
    sha: str


@dataclass(frozen=True, slots=True)
class SnapshotStats:
    namespaces: int
    files: int
    symbols: int
    batches: int


class GraphSnapshotWriter:
    """Writes and reads repository subgraphs through a neo4j async driver."""

    def __init__(
        self,
        driver: AsyncDriver,
        *,
        database: str | None = None,
        batch_size: int = 500,
    ) -> None:
        self._driver = driver
        self._database = database
        self.batch_size = batch_size

    @classmethod
    def from_config(cls, config: GraphConfig) -> GraphSnapshotWriter:
        driver = AsyncGraphDatabase.driver(config.uri, auth=(config.user, config.password))
        return cls(driver, database=config.database, batch_size=config.batch_size)

    def _session(self) -> Any:
        return self._driver.session(database=self._database)

    async def ensure_constraints(self) -> None:
        """Create uniqueness constraints. Existing ones are left alone."""
        async with self._session() as session:
            for statement in queries.CONSTRAINTS:
                try:
                    result = await session.run(statement)
                    await result.consume()
                except ClientError as e:
                    if "already exists" not in (e.message or ""):
                        logger.warning("graph_constraint_failed", statement=statement, error=str(e))
        logger.info("graph_constraints_ensured")

    @staticmethod
    async def _delete_subgraph(tx: AsyncManagedTransaction, repo_id: str) -> None:
        for statement in (queries.DELETE_SYMBOLS, queries.DELETE_FILES, queries.DELETE_NAMESPACES):
            result = await tx.run(statement, repoId=repo_id)
            await result.consume()

    async def _write_tx(
        self,
        tx: AsyncManagedTransaction,
        repo_id: str,
        meta: RepoMeta,
        namespaces: Sequence[CodeNamespace],
        files: Sequence[FileIR],
        symbols: Sequence[SymbolIR],
    ) -> int:
        await self._delete_subgraph(tx, repo_id)

        result = await tx.run(
            queries.MERGE_REPO,
            repoId=repo_id,
            name=meta.name,
            gitUrl=meta.url,
            branch=meta.branch,
            sha=meta.sha,
        )
        await result.consume()

        batches = 0
        if namespaces:
            rows = [
                {"nsId": namespace_id(repo_id, ns.name), "name": ns.name, "rootPath": ns.root_path}
                for ns in namespaces
            ]
            result = await tx.run(queries.MERGE_NAMESPACES, namespaces=rows, repoId=repo_id)
            await result.consume()
            batches += 1

        for batch in _batches(files, self.batch_size):
            rows = [
                {
                    "fileId": file_id(repo_id, f.path),
                    "path": f.path,
                    "language": f.language,
                    "hash": f.content_hash,
                    "nsId": namespace_id(repo_id, f.namespace),
                }
                for f in batch
            ]
            result = await tx.run(queries.MERGE_FILES, files=rows, repoId=repo_id)
            await result.consume()
            batches += 1

        for batch in _batches(symbols, self.batch_size):
            rows = [
                {
                    "sid": s.stable_id,
                    "name": s.name,
                    "kind": s.kind.value,
                    "signature": s.signature,
                    "startLine": s.start_line,
                    "endLine": s.end_line,
                    "filePath": s.file_path,
                    "namespace": s.namespace,
                    "fileId": file_id(repo_id, s.file_path),
                }
                for s in batch
            ]
            result = await tx.run(queries.MERGE_SYMBOLS, symbols=rows, repoId=repo_id)
            await result.consume()
            batches += 1

        return batches

    async def write_snapshot(
        self,
        repo_id: str,
        meta: RepoMeta,
        namespaces: Sequence[CodeNamespace],
        files: Sequence[FileIR],
        symbols: Sequence[SymbolIR],
    ) -> SnapshotStats:
        """Replace the repository's subgraph with the given extraction output."""
        logger.info(
            "graph_snapshot_started",
            repo_id=repo_id,
            namespaces=len(namespaces),
            files=len(files),
            symbols=len(symbols),
        )
        async with self._session() as session:
            batches = await session.execute_write(
                self._write_tx, repo_id, meta, namespaces, files, symbols
            )
        stats = SnapshotStats(
            namespaces=len(namespaces),
            files=len(files),
            symbols=len(symbols),
            batches=batches,
        )
        logger.info("graph_snapshot_written", repo_id=repo_id, batches=batches)
        return stats

    async def delete_repo(self, repo_id: str) -> None:
        """Remove the subgraph and the repository node."""

        async def _tx(tx: AsyncManagedTransaction) -> None:
            await self._delete_subgraph(tx, repo_id)
            result = await tx.run(queries.DELETE_REPO, repoId=repo_id)
            await result.consume()

        async with self._session() as session:
            await session.execute_write(_tx)
        logger.info("graph_repo_deleted", repo_id=repo_id)

    async def find_symbols_by_name(self, repo_id: str, name: str, limit: int = 25) -> list[dict[str, Any]]:
        """Case-insensitive exact-name lookup with file and namespace context."""

        async def _tx(tx: AsyncManagedTransaction) -> list[dict[str, Any]]:
            result = await tx.run(queries.FIND_SYMBOLS_BY_NAME, repoId=repo_id, name=name, limit=limit)
            return await result.data()

        async with self._session() as session:
            return await session.execute_read(_tx)

    async def get_namespaces(self, repo_id: str) -> list[CodeNamespace]:
        async def _tx(tx: AsyncManagedTransaction) -> list[dict[str, Any]]:
            result = await tx.run(queries.GET_NAMESPACES, repoId=repo_id)
            return await result.data()

        async with self._session() as session:
            rows = await session.execute_read(_tx)
        return [CodeNamespace(name=row["name"], root_path=row["rootPath"]) for row in rows]

    async def close(self) -> None:
        await self._driver.close()
