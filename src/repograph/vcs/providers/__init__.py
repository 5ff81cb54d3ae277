"""Hosting provider implementations."""

from repograph.vcs.providers.base import GitProvider, HttpGitProvider, parse_repo_path
from repograph.vcs.providers.bitbucket import BitbucketProvider
from repograph.vcs.providers.github import GitHubProvider
from repograph.vcs.providers.gitlab import GitLabProvider
from repograph.vcs.providers.local import LocalProvider

__all__ = [
    "BitbucketProvider",
    "GitHubProvider",
    "GitLabProvider",
    "GitProvider",
    "HttpGitProvider",
    "LocalProvider",
    "parse_repo_path",
]
