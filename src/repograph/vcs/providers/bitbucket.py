"""Bitbucket Cloud 2.0 provider."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, ClassVar

import httpx

from repograph.config.constants import BITBUCKET_COMMITS_PAGE, BRANCHES_PAGE
from repograph.vcs.errors import ProviderApiError
from repograph.vcs.models import Branch, Commit, ProviderKind, RepoInfo
from repograph.vcs.providers.base import HttpGitProvider, parse_repo_path

_RAW_AUTHOR_RE = re.compile(r"^\s*(?P<name>.*?)\s*<(?P<email>[^>]*)>\s*$")


def _parse_author(author: dict[str, Any]) -> tuple[str, str]:
    """Bitbucket reports authors as a raw ``Name <email>`` string."""
    raw = author.get("raw") or ""
    if match := _RAW_AUTHOR_RE.match(raw):
        return match.group("name"), match.group("email")
    user = author.get("user") or {}
    return user.get("display_name") or raw, ""


def _commit_from_api(data: dict[str, Any]) -> Commit:
    name, email = _parse_author(data.get("author") or {})
    parents = data.get("parents") or []
    return Commit(
        sha=data["hash"],
        message=(data.get("message") or "").strip(),
        author=name,
        author_email=email,
        timestamp=datetime.fromisoformat(data["date"].replace("Z", "+00:00")),
        parent_sha=parents[0]["hash"] if parents else None,
    )


class BitbucketProvider(HttpGitProvider):
    """Bearer token, or username plus app password over basic auth."""

    kind: ClassVar[ProviderKind] = ProviderKind.BITBUCKET
    default_api_url: ClassVar[str] = "https://api.bitbucket.org/2.0"

    def _auth_headers(self) -> dict[str, str]:
        if self.credentials.access_token:
            return {"Authorization": f"Bearer {self.credentials.access_token}"}
        return {}

    def _basic_auth(self) -> httpx.BasicAuth | None:
        if self.credentials.access_token:
            return None
        if self.credentials.username and self.credentials.password:
            return httpx.BasicAuth(self.credentials.username, self.credentials.password)
        return None

    async def list_branches(self, remote_url: str) -> list[Branch]:
        owner, repo = parse_repo_path(remote_url)
        data = await self._get_json(
            f"/repositories/{owner}/{repo}/refs/branches", {"pagelen": BRANCHES_PAGE}
        )
        info = await self.get_repo_info(remote_url)
        try:
            return [
                Branch(
                    name=item["name"],
                    sha=item["target"]["hash"],
                    is_default=item["name"] == info.default_branch,
                )
                for item in data.get("values", [])
            ]
        except (KeyError, TypeError, AttributeError) as e:
            raise ProviderApiError(self.kind.value, remote_url, None, f"unexpected branch payload: {e}") from e

    async def get_repo_info(self, remote_url: str) -> RepoInfo:
        owner, repo = parse_repo_path(remote_url)
        data = await self._get_json(f"/repositories/{owner}/{repo}")
        try:
            links = data.get("links") or {}
            clone_url = next(
                (c["href"] for c in links.get("clone", []) if c.get("name") == "https"),
                remote_url,
            )
            return RepoInfo(
                name=data["name"],
                full_name=data["full_name"],
                default_branch=(data.get("mainbranch") or {}).get("name") or "main",
                is_private=bool(data.get("is_private", False)),
                clone_url=clone_url,
                html_url=(links.get("html") or {}).get("href"),
                description=data.get("description") or None,
                language=data.get("language") or None,
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise ProviderApiError(self.kind.value, remote_url, None, f"unexpected repo payload: {e}") from e

    async def _list_commits(self, remote_url: str, branch: str, pagelen: int) -> list[dict[str, Any]]:
        owner, repo = parse_repo_path(remote_url)
        data = await self._get_json(f"/repositories/{owner}/{repo}/commits/{branch}", {"pagelen": pagelen})
        values = data.get("values") if isinstance(data, dict) else None
        if not isinstance(values, list):
            raise ProviderApiError(self.kind.value, remote_url, None, "commit listing has no values")
        return values

    async def get_latest_commit(self, remote_url: str, branch: str | None = None) -> Commit:
        branch = branch or await self.get_default_branch(remote_url)
        values = await self._list_commits(remote_url, branch, 1)
        if not values:
            raise ProviderApiError(self.kind.value, remote_url, None, f"no commits on branch {branch}")
        try:
            return _commit_from_api(values[0])
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderApiError(self.kind.value, remote_url, None, f"unexpected commit payload: {e}") from e

    async def get_commits_since(
        self, remote_url: str, since_sha: str, branch: str | None = None
    ) -> list[Commit]:
        branch = branch or await self.get_default_branch(remote_url)
        values = await self._list_commits(remote_url, branch, BITBUCKET_COMMITS_PAGE)
        commits: list[Commit] = []
        try:
            for item in values:
                # Abbreviated hashes are accepted as the stop marker.
                if since_sha and item["hash"].startswith(since_sha):
                    break
                commits.append(_commit_from_api(item))
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderApiError(self.kind.value, remote_url, None, f"unexpected commit payload: {e}") from e
        return commits
