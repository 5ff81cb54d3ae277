"""Full-text search daemon client (zoekt webserver API).

The daemon indexes checkouts from a shared volume on its own schedule, so a
notification is a hint, not a handoff: with no ``notify_url`` configured it
only logs.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol

import httpx
import structlog

from repograph.config.models import SearchConfig

logger = structlog.get_logger()


class SearchError(Exception):
    """Search daemon request failed."""

    def __init__(self, operation: str, message: str, status_code: int | None = None) -> None:
        self.operation = operation
        self.status_code = status_code
        super().__init__(f"Search {operation} failed: {message}")


class SearchIndexer(Protocol):
    async def notify(self, repo_id: str, local_path: Path) -> None: ...

    async def search(self, query: str, repo_id: str | None = None) -> dict[str, Any]: ...

    async def is_available(self) -> bool: ...


class ZoektSearchIndexer:
    def __init__(
        self,
        config: SearchConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or SearchConfig()
        self._client = httpx.AsyncClient(timeout=self.config.timeout_sec, transport=transport)

    async def notify(self, repo_id: str, local_path: Path) -> None:
        """Tell the daemon a checkout changed.

        Raises:
            SearchError: the notify endpoint rejected the request.
        """
        if not self.config.notify_url:
            logger.info("search_auto_index_expected", repo_id=repo_id, path=str(local_path))
            return
        try:
            response = await self._client.post(
                self.config.notify_url,
                json={"repoId": repo_id, "path": str(local_path)},
            )
        except httpx.HTTPError as e:
            raise SearchError("notify", str(e)) from e
        if response.status_code >= 400:
            raise SearchError("notify", response.text[:200], response.status_code)
        logger.info("search_notified", repo_id=repo_id)

    async def search(self, query: str, repo_id: str | None = None) -> dict[str, Any]:
        params = {"q": query}
        if repo_id:
            params["repo"] = repo_id
        try:
            response = await self._client.get(f"{self.config.url.rstrip('/')}/api/search", params=params)
        except httpx.HTTPError as e:
            raise SearchError("search", str(e)) from e
        if response.status_code >= 400:
            raise SearchError("search", response.reason_phrase, response.status_code)
        try:
            return response.json()
        except ValueError as e:
            raise SearchError("search", "invalid JSON response") from e

    async def is_available(self) -> bool:
        try:
            response = await self._client.get(f"{self.config.url.rstrip('/')}/")
        except httpx.HTTPError:
            return False
        return response.is_success

    async def aclose(self) -> None:
        await self._client.aclose()
