"""Filesystem-local repositories read through pygit2.

Accepts ``local:///abs/path``, ``/abs/path`` or a Windows drive path. The
clone URL is the path itself, so clone/pull work through the shared git
runner without credentials.
"""

from __future__ import annotations

import asyncio
import contextlib
from pathlib import Path
from typing import ClassVar

import pygit2
import pygit2.enums

from repograph.config.constants import GITHUB_COMMITS_PAGE
from repograph.vcs.errors import ProviderApiError
from repograph.vcs.models import Branch, Commit, ProviderKind, RepoInfo
from repograph.vcs.providers.base import GitProvider

LOCAL_PREFIX = "local://"


def local_repo_path(remote_url: str) -> Path:
    if remote_url.startswith(LOCAL_PREFIX):
        return Path(remote_url[len(LOCAL_PREFIX) :])
    return Path(remote_url)


class LocalProvider(GitProvider):
    kind: ClassVar[ProviderKind] = ProviderKind.LOCAL

    def _open(self, remote_url: str) -> pygit2.Repository:
        path = local_repo_path(remote_url)
        try:
            return pygit2.Repository(str(path))
        except pygit2.GitError as e:
            raise ProviderApiError(self.kind.value, str(path), None, str(e)) from e

    @staticmethod
    def _head_branch(repo: pygit2.Repository) -> str | None:
        if repo.head_is_unborn or repo.head_is_detached:
            return None
        return repo.head.shorthand

    def _branch_tip(self, repo: pygit2.Repository, branch: str | None) -> pygit2.Commit:
        try:
            if branch is None:
                return repo.head.peel(pygit2.Commit)
            ref = repo.branches.local.get(branch)
            if ref is None:
                raise ProviderApiError(self.kind.value, repo.path, None, f"branch not found: {branch}")
            return ref.peel(pygit2.Commit)
        except pygit2.GitError as e:
            raise ProviderApiError(self.kind.value, repo.path, None, str(e)) from e

    async def list_branches(self, remote_url: str) -> list[Branch]:
        def _list() -> list[Branch]:
            repo = self._open(remote_url)
            head = self._head_branch(repo)
            branches = []
            for name in sorted(repo.branches.local):
                tip = repo.branches.local[name].peel(pygit2.Commit)
                branches.append(Branch(name=name, sha=str(tip.id), is_default=name == head))
            return branches

        return await asyncio.to_thread(_list)

    async def get_repo_info(self, remote_url: str) -> RepoInfo:
        def _info() -> RepoInfo:
            repo = self._open(remote_url)
            path = local_repo_path(remote_url)
            return RepoInfo(
                name=path.name,
                full_name=str(path),
                default_branch=self._head_branch(repo) or "main",
                is_private=True,
                clone_url=str(path),
            )

        return await asyncio.to_thread(_info)

    async def get_latest_commit(self, remote_url: str, branch: str | None = None) -> Commit:
        def _latest() -> Commit:
            repo = self._open(remote_url)
            return Commit.from_pygit2(self._branch_tip(repo, branch))

        return await asyncio.to_thread(_latest)

    async def get_commits_since(
        self, remote_url: str, since_sha: str, branch: str | None = None
    ) -> list[Commit]:
        def _since() -> list[Commit]:
            repo = self._open(remote_url)
            tip = self._branch_tip(repo, branch)
            walker = repo.walk(tip.id, pygit2.enums.SortMode.TOPOLOGICAL | pygit2.enums.SortMode.TIME)
            # Unknown sha (history rewritten or shallow): capped at one page.
            with contextlib.suppress(KeyError, ValueError, pygit2.GitError):
                walker.hide(repo.revparse_single(since_sha).id)
            commits: list[Commit] = []
            for commit in walker:
                if len(commits) >= GITHUB_COMMITS_PAGE:
                    break
                commits.append(Commit.from_pygit2(commit))
            return commits

        return await asyncio.to_thread(_since)

    async def validate_access(self, remote_url: str) -> bool:
        path = local_repo_path(remote_url)
        # Working tree (.git) or bare repository (HEAD at the root).
        return path.is_dir() and ((path / ".git").exists() or (path / "HEAD").is_file())

    def authenticated_url(self, remote_url: str, token: str | None = None) -> str:  # noqa: ARG002
        return str(local_repo_path(remote_url))
