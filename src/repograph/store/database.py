"""Repository metadata store.

``RepositoryStore`` is the narrow async CRUD surface the pipeline and the
scheduler depend on. ``SqlRepositoryStore`` implements it on SQLModel; its
synchronous sessions run in worker threads.
"""

from __future__ import annotations

import asyncio
from collections.abc import Generator
from contextlib import contextmanager
from enum import Enum
from typing import Any, Protocol

import structlog
from sqlalchemy import Engine
from sqlmodel import Session, SQLModel, create_engine, select

from repograph.core.errors import RepositoryExistsError, RepositoryNotFoundError
from repograph.store.models import Repository

logger = structlog.get_logger()


class RepositoryStore(Protocol):
    async def get(self, repo_id: str) -> Repository | None: ...

    async def add(self, repo: Repository) -> Repository: ...

    async def update(self, repo_id: str, **fields: Any) -> Repository: ...

    async def list_all(self) -> list[Repository]: ...

    async def list_sync_enabled(self) -> list[Repository]: ...

    async def delete(self, repo_id: str) -> None: ...


class SqlRepositoryStore:
    """SQLModel-backed store. Returned rows are detached snapshots."""

    def __init__(self, database_url: str) -> None:
        self.database_url = database_url
        self.engine = self._create_engine()
        SQLModel.metadata.create_all(self.engine)

    def _create_engine(self) -> Engine:
        connect_args: dict[str, Any] = {}
        if self.database_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        return create_engine(self.database_url, connect_args=connect_args, pool_pre_ping=True)

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        with Session(self.engine, expire_on_commit=False) as session:
            yield session

    def _get(self, repo_id: str) -> Repository | None:
        with self.session() as session:
            return session.get(Repository, repo_id)

    def _add(self, repo: Repository) -> Repository:
        with self.session() as session:
            if session.get(Repository, repo.id) is not None:
                raise RepositoryExistsError.for_id(repo.id)
            session.add(repo)
            session.commit()
            session.refresh(repo)
            return repo

    def _update(self, repo_id: str, fields: dict[str, Any]) -> Repository:
        with self.session() as session:
            repo = session.get(Repository, repo_id)
            if repo is None:
                raise RepositoryNotFoundError.for_id(repo_id)
            for key, value in fields.items():
                if not hasattr(repo, key):
                    raise AttributeError(f"Repository has no field {key!r}")
                setattr(repo, key, value.value if isinstance(value, Enum) else value)
            session.add(repo)
            session.commit()
            session.refresh(repo)
            return repo

    def _list(self, sync_only: bool) -> list[Repository]:
        with self.session() as session:
            stmt = select(Repository).order_by(Repository.id)
            if sync_only:
                stmt = stmt.where(Repository.sync_enabled == True)  # noqa: E712
            return list(session.exec(stmt).all())

    def _delete(self, repo_id: str) -> None:
        with self.session() as session:
            repo = session.get(Repository, repo_id)
            if repo is None:
                return
            session.delete(repo)
            session.commit()

    async def get(self, repo_id: str) -> Repository | None:
        return await asyncio.to_thread(self._get, repo_id)

    async def add(self, repo: Repository) -> Repository:
        added = await asyncio.to_thread(self._add, repo)
        logger.info("repository_added", repo_id=added.id)
        return added

    async def update(self, repo_id: str, **fields: Any) -> Repository:
        return await asyncio.to_thread(self._update, repo_id, fields)

    async def list_all(self) -> list[Repository]:
        return await asyncio.to_thread(self._list, False)

    async def list_sync_enabled(self) -> list[Repository]:
        return await asyncio.to_thread(self._list, True)

    async def delete(self, repo_id: str) -> None:
        await asyncio.to_thread(self._delete, repo_id)

    def close(self) -> None:
        self.engine.dispose()
