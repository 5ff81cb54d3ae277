"""Value types returned by VCS providers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

import pygit2


class ProviderKind(Enum):
    """Closed set of supported hosting variants."""

    GITHUB = "github"
    GITLAB = "gitlab"
    BITBUCKET = "bitbucket"
    LOCAL = "local"


@dataclass(frozen=True, slots=True)
class Branch:
    """Branch as reported by a provider."""

    name: str
    sha: str
    is_default: bool = False


@dataclass(frozen=True, slots=True)
class Commit:
    """Commit metadata."""

    sha: str
    message: str
    author: str
    author_email: str
    timestamp: datetime
    parent_sha: str | None = None

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    @classmethod
    def from_pygit2(cls, commit: pygit2.Commit) -> Commit:
        tz = timezone(timedelta(minutes=commit.author.offset))
        return cls(
            sha=str(commit.id),
            message=commit.message.strip().split("\n", 1)[0],
            author=commit.author.name,
            author_email=commit.author.email,
            timestamp=datetime.fromtimestamp(commit.author.time, tz=tz),
            parent_sha=str(commit.parent_ids[0]) if commit.parent_ids else None,
        )


@dataclass(frozen=True, slots=True)
class RepoInfo:
    """Repository metadata."""

    name: str
    full_name: str
    default_branch: str
    is_private: bool
    clone_url: str
    html_url: str | None = None
    description: str | None = None
    language: str | None = None
