"""Version-control abstraction: providers, credentials and the git runner."""

from repograph.vcs.errors import (
    GitCommandError,
    GitError,
    GitTimeoutError,
    InvalidRepoUrlError,
    ProviderApiError,
    UnsupportedProviderError,
)
from repograph.vcs.factory import ProviderFactory, detect_provider_kind
from repograph.vcs.models import Branch, Commit, ProviderKind, RepoInfo
from repograph.vcs.providers import GitProvider

__all__ = [
    "Branch",
    "Commit",
    "GitCommandError",
    "GitError",
    "GitProvider",
    "GitTimeoutError",
    "InvalidRepoUrlError",
    "ProviderApiError",
    "ProviderFactory",
    "ProviderKind",
    "RepoInfo",
    "UnsupportedProviderError",
    "detect_provider_kind",
]
