"""Provider contract shared by every hosting variant."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, ClassVar

import httpx
import structlog

from repograph.config.constants import DEFAULT_BRANCH_CANDIDATES, FALLBACK_BRANCH
from repograph.config.models import ProviderCredentials
from repograph.vcs.credentials import authenticated_url, redact, strip_credentials
from repograph.vcs.errors import GitError, InvalidRepoUrlError, ProviderApiError
from repograph.vcs.git import run_git
from repograph.vcs.models import Branch, Commit, ProviderKind, RepoInfo

logger = structlog.get_logger()

_SSH_RE = re.compile(r"^(?:ssh://)?[\w.-]+@(?P<host>[\w.-]+)(?::\d+)?[:/](?P<path>.+?)/?$")


def parse_repo_path(url: str) -> tuple[str, str]:
    """Split a remote URL into ``(owner, repo)``.

    Accepts ``https://host/owner/repo(.git)`` and ``git@host:owner/repo(.git)``.
    Nested groups (GitLab subgroups) stay in the owner part.
    """
    url = url.strip()
    if url.startswith(("http://", "https://")):
        path = httpx.URL(url).path
    elif match := _SSH_RE.match(url):
        path = match.group("path")
    else:
        raise InvalidRepoUrlError(url)

    path = path.strip("/")
    if path.endswith(".git"):
        path = path[:-4]
    owner, _, repo = path.rpartition("/")
    if not owner or not repo:
        raise InvalidRepoUrlError(url)
    return owner, repo


class GitProvider(ABC):
    """One hosting service behind a uniform branch/commit/clone interface.

    Subclasses implement the four API reads. Default-branch selection,
    access validation and clone/pull are shared.
    """

    kind: ClassVar[ProviderKind]

    def __init__(
        self,
        credentials: ProviderCredentials | None = None,
        *,
        git_timeout: float = 300.0,
    ) -> None:
        self.credentials = credentials or ProviderCredentials()
        self.git_timeout = git_timeout

    # -- API reads ---------------------------------------------------------

    @abstractmethod
    async def list_branches(self, remote_url: str) -> list[Branch]: ...

    @abstractmethod
    async def get_repo_info(self, remote_url: str) -> RepoInfo: ...

    @abstractmethod
    async def get_latest_commit(self, remote_url: str, branch: str | None = None) -> Commit: ...

    @abstractmethod
    async def get_commits_since(
        self, remote_url: str, since_sha: str, branch: str | None = None
    ) -> list[Commit]:
        """Commits newest first, stopping before ``since_sha``. Single page only."""

    # -- Shared behaviour --------------------------------------------------

    async def get_default_branch(self, remote_url: str) -> str:
        """Resolve the default branch. Never raises.

        Order: a branch the host marks as default, then the first of
        main/master/develop/trunk that exists, then the first branch listed.
        """
        try:
            branches = await self.list_branches(remote_url)
        except (GitError, httpx.HTTPError) as e:
            logger.warning(
                "default_branch_lookup_failed",
                provider=self.kind.value,
                url=redact(remote_url),
                error=str(e),
                fallback=FALLBACK_BRANCH,
            )
            return FALLBACK_BRANCH

        for branch in branches:
            if branch.is_default:
                return branch.name
        names = {b.name for b in branches}
        for candidate in DEFAULT_BRANCH_CANDIDATES:
            if candidate in names:
                return candidate
        if branches:
            return branches[0].name

        logger.warning(
            "default_branch_not_found",
            provider=self.kind.value,
            url=redact(remote_url),
            fallback=FALLBACK_BRANCH,
        )
        return FALLBACK_BRANCH

    async def validate_access(self, remote_url: str) -> bool:
        """True iff repository metadata can be read with current credentials."""
        try:
            await self.get_repo_info(remote_url)
        except (GitError, httpx.HTTPError) as e:
            logger.warning(
                "provider_access_denied",
                provider=self.kind.value,
                url=redact(remote_url),
                error=str(e),
            )
            return False
        return True

    def authenticated_url(self, remote_url: str, token: str | None = None) -> str:
        """Clone URL carrying an explicit token, else the configured credentials."""
        if token:
            return authenticated_url(remote_url, token=token)
        return authenticated_url(
            remote_url,
            token=self.credentials.access_token,
            username=self.credentials.username,
            password=self.credentials.password,
        )

    async def clone_or_pull(
        self,
        remote_url: str,
        local_path: Path,
        branch: str | None = None,
        *,
        auth_token: str | None = None,
        depth: int | None = None,
    ) -> None:
        """Make ``local_path`` an exact mirror of the remote branch tip.

        Without ``.git`` the branch is cloned (single branch, optionally
        shallow). Otherwise it is fetched, checked out, hard reset and
        cleaned of untracked files. The stored ``origin`` never carries
        credentials; fetches pass the authenticated URL explicitly.
        """
        branch = branch or await self.get_default_branch(remote_url)
        auth_url = self.authenticated_url(remote_url, auth_token)
        plain_url = strip_credentials(auth_url)
        depth_args = [f"--depth={depth}"] if depth else []

        if not (local_path / ".git").exists():
            await run_git(
                ["clone", "--branch", branch, "--single-branch", *depth_args, auth_url, str(local_path)],
                timeout=self.git_timeout,
            )
            if auth_url != plain_url:
                await run_git(
                    ["remote", "set-url", "origin", plain_url],
                    cwd=local_path,
                    timeout=self.git_timeout,
                )
            logger.info("repo_cloned", branch=branch, path=str(local_path), depth=depth)
            return

        remote_ref = f"refs/remotes/origin/{branch}"
        await run_git(
            ["fetch", *depth_args, auth_url, f"+refs/heads/{branch}:{remote_ref}"],
            cwd=local_path,
            timeout=self.git_timeout,
        )
        await run_git(["checkout", "-f", "-B", branch, remote_ref], cwd=local_path, timeout=self.git_timeout)
        await run_git(["reset", "--hard", remote_ref], cwd=local_path, timeout=self.git_timeout)
        await run_git(["clean", "-fd"], cwd=local_path, timeout=self.git_timeout)
        logger.info("repo_updated", branch=branch, path=str(local_path))

    async def aclose(self) -> None:
        """Release network resources."""
        return None


class HttpGitProvider(GitProvider):
    """Provider backed by a hosting service REST API over httpx."""

    default_api_url: ClassVar[str]

    def __init__(
        self,
        credentials: ProviderCredentials | None = None,
        *,
        git_timeout: float = 300.0,
        http_timeout: float = 30.0,
        user_agent: str = "repograph",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(credentials, git_timeout=git_timeout)
        self.api_url = (self.credentials.api_url or self.default_api_url).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.api_url,
            headers={"User-Agent": user_agent, **self._auth_headers()},
            auth=self._basic_auth(),
            timeout=http_timeout,
            transport=transport,
        )

    def _auth_headers(self) -> dict[str, str]:
        return {}

    def _basic_auth(self) -> httpx.BasicAuth | None:
        return None

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as e:
            raise ProviderApiError(self.kind.value, f"{self.api_url}{path}", None, str(e)) from e
        if response.status_code >= 400:
            raise ProviderApiError(
                self.kind.value,
                str(response.request.url),
                response.status_code,
                response.text[:200],
            )
        try:
            return response.json()
        except ValueError as e:
            raise ProviderApiError(
                self.kind.value, str(response.request.url), response.status_code, "invalid JSON"
            ) from e

    async def aclose(self) -> None:
        await self._client.aclose()
