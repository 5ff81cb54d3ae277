"""GitLab REST v4 provider (gitlab.com or self-hosted)."""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar
from urllib.parse import quote

from repograph.config.constants import BRANCHES_PAGE, GITLAB_COMMITS_PAGE
from repograph.vcs.errors import ProviderApiError
from repograph.vcs.models import Branch, Commit, ProviderKind, RepoInfo
from repograph.vcs.providers.base import HttpGitProvider, parse_repo_path


def _commit_from_api(data: dict[str, Any]) -> Commit:
    parents = data.get("parent_ids") or []
    return Commit(
        sha=data["id"],
        message=data.get("message") or data.get("title", ""),
        author=data.get("author_name", ""),
        author_email=data.get("author_email", ""),
        timestamp=datetime.fromisoformat(data["authored_date"].replace("Z", "+00:00")),
        parent_sha=parents[0] if parents else None,
    )


class GitLabProvider(HttpGitProvider):
    kind: ClassVar[ProviderKind] = ProviderKind.GITLAB
    default_api_url: ClassVar[str] = "https://gitlab.com/api/v4"

    def _auth_headers(self) -> dict[str, str]:
        if self.credentials.access_token:
            return {"PRIVATE-TOKEN": self.credentials.access_token}
        return {}

    @staticmethod
    def _project(remote_url: str) -> str:
        owner, repo = parse_repo_path(remote_url)
        return quote(f"{owner}/{repo}", safe="")

    async def list_branches(self, remote_url: str) -> list[Branch]:
        data = await self._get_json(
            f"/projects/{self._project(remote_url)}/repository/branches",
            {"per_page": BRANCHES_PAGE},
        )
        try:
            return [
                Branch(
                    name=item["name"],
                    sha=item["commit"]["id"],
                    is_default=bool(item.get("default", False)),
                )
                for item in data
            ]
        except (KeyError, TypeError) as e:
            raise ProviderApiError(self.kind.value, remote_url, None, f"unexpected branch payload: {e}") from e

    async def get_repo_info(self, remote_url: str) -> RepoInfo:
        data = await self._get_json(f"/projects/{self._project(remote_url)}")
        try:
            return RepoInfo(
                name=data["name"],
                full_name=data["path_with_namespace"],
                default_branch=data.get("default_branch") or "main",
                is_private=data.get("visibility") != "public",
                clone_url=data["http_url_to_repo"],
                html_url=data.get("web_url"),
                description=data.get("description"),
            )
        except (KeyError, TypeError) as e:
            raise ProviderApiError(self.kind.value, remote_url, None, f"unexpected repo payload: {e}") from e

    async def _list_commits(self, remote_url: str, branch: str, per_page: int) -> list[dict[str, Any]]:
        data = await self._get_json(
            f"/projects/{self._project(remote_url)}/repository/commits",
            {"ref_name": branch, "per_page": per_page},
        )
        if not isinstance(data, list):
            raise ProviderApiError(self.kind.value, remote_url, None, "commit listing is not a list")
        return data

    async def get_latest_commit(self, remote_url: str, branch: str | None = None) -> Commit:
        branch = branch or await self.get_default_branch(remote_url)
        data = await self._list_commits(remote_url, branch, 1)
        if not data:
            raise ProviderApiError(self.kind.value, remote_url, None, f"no commits on branch {branch}")
        try:
            return _commit_from_api(data[0])
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderApiError(self.kind.value, remote_url, None, f"unexpected commit payload: {e}") from e

    async def get_commits_since(
        self, remote_url: str, since_sha: str, branch: str | None = None
    ) -> list[Commit]:
        branch = branch or await self.get_default_branch(remote_url)
        data = await self._list_commits(remote_url, branch, GITLAB_COMMITS_PAGE)
        commits: list[Commit] = []
        try:
            for item in data:
                if item["id"] == since_sha:
                    break
                commits.append(_commit_from_api(item))
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderApiError(self.kind.value, remote_url, None, f"unexpected commit payload: {e}") from e
        return commits
