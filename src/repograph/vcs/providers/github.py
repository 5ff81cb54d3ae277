"""GitHub REST v3 provider."""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar

from repograph.config.constants import BRANCHES_PAGE, GITHUB_COMMITS_PAGE
from repograph.vcs.errors import ProviderApiError
from repograph.vcs.models import Branch, Commit, ProviderKind, RepoInfo
from repograph.vcs.providers.base import HttpGitProvider, parse_repo_path


def _commit_from_api(data: dict[str, Any]) -> Commit:
    commit = data["commit"]
    author = commit.get("author") or {}
    parents = data.get("parents") or []
    return Commit(
        sha=data["sha"],
        message=commit.get("message", ""),
        author=author.get("name", ""),
        author_email=author.get("email", ""),
        timestamp=datetime.fromisoformat(author["date"].replace("Z", "+00:00")),
        parent_sha=parents[0]["sha"] if parents else None,
    )


class GitHubProvider(HttpGitProvider):
    """github.com and GitHub Enterprise (set ``api_url``)."""

    kind: ClassVar[ProviderKind] = ProviderKind.GITHUB
    default_api_url: ClassVar[str] = "https://api.github.com"

    def _auth_headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github.v3+json"}
        if self.credentials.access_token:
            headers["Authorization"] = f"Bearer {self.credentials.access_token}"
        return headers

    async def list_branches(self, remote_url: str) -> list[Branch]:
        owner, repo = parse_repo_path(remote_url)
        data = await self._get_json(f"/repos/{owner}/{repo}/branches", {"per_page": BRANCHES_PAGE})
        info = await self.get_repo_info(remote_url)
        try:
            return [
                Branch(
                    name=item["name"],
                    sha=item["commit"]["sha"],
                    is_default=item["name"] == info.default_branch,
                )
                for item in data
            ]
        except (KeyError, TypeError) as e:
            raise ProviderApiError(self.kind.value, remote_url, None, f"unexpected branch payload: {e}") from e

    async def get_repo_info(self, remote_url: str) -> RepoInfo:
        owner, repo = parse_repo_path(remote_url)
        data = await self._get_json(f"/repos/{owner}/{repo}")
        try:
            return RepoInfo(
                name=data["name"],
                full_name=data["full_name"],
                default_branch=data["default_branch"],
                is_private=bool(data.get("private", False)),
                clone_url=data["clone_url"],
                html_url=data.get("html_url"),
                description=data.get("description"),
                language=data.get("language"),
            )
        except (KeyError, TypeError) as e:
            raise ProviderApiError(self.kind.value, remote_url, None, f"unexpected repo payload: {e}") from e

    async def get_latest_commit(self, remote_url: str, branch: str | None = None) -> Commit:
        owner, repo = parse_repo_path(remote_url)
        branch = branch or await self.get_default_branch(remote_url)
        data = await self._get_json(f"/repos/{owner}/{repo}/commits/{branch}")
        try:
            return _commit_from_api(data)
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderApiError(self.kind.value, remote_url, None, f"unexpected commit payload: {e}") from e

    async def get_commits_since(
        self, remote_url: str, since_sha: str, branch: str | None = None
    ) -> list[Commit]:
        owner, repo = parse_repo_path(remote_url)
        branch = branch or await self.get_default_branch(remote_url)
        data = await self._get_json(
            f"/repos/{owner}/{repo}/commits",
            {"sha": branch, "per_page": GITHUB_COMMITS_PAGE},
        )
        commits: list[Commit] = []
        try:
            for item in data:
                if item["sha"] == since_sha:
                    break
                commits.append(_commit_from_api(item))
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderApiError(self.kind.value, remote_url, None, f"unexpected commit payload: {e}") from e
        return commits
