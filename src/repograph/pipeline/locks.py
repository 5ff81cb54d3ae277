"""Per-repository mutual exclusion.

Process-local only: two processes indexing the same repository are not
coordinated.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class RepoLocks:
    """One ``asyncio.Lock`` per repository id, dropped when nobody holds or awaits it.

    ``asyncio.Lock`` wakes waiters in arrival order, so queued runs for the
    same id execute one after another in the order they were requested.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, repo_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(repo_id, asyncio.Lock())
        self._users[repo_id] = self._users.get(repo_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[repo_id] -= 1
            if self._users[repo_id] == 0:
                del self._users[repo_id]
                del self._locks[repo_id]

    def is_locked(self, repo_id: str) -> bool:
        lock = self._locks.get(repo_id)
        return lock is not None and lock.locked()

    def waiters(self, repo_id: str) -> int:
        """Callers holding or queued for ``repo_id``."""
        return self._users.get(repo_id, 0)

    def __len__(self) -> int:
        return len(self._locks)
