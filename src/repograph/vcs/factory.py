"""Provider selection by URL.

``detect_provider_kind`` is a pure function from URL to variant tag;
``ProviderFactory`` owns one provider instance per kind.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from urllib.parse import urlsplit

import httpx
import structlog

from repograph.config.models import ProviderCredentials, ProvidersConfig
from repograph.vcs.credentials import redact
from repograph.vcs.errors import UnsupportedProviderError
from repograph.vcs.models import ProviderKind
from repograph.vcs.providers.base import GitProvider
from repograph.vcs.providers.bitbucket import BitbucketProvider
from repograph.vcs.providers.github import GitHubProvider
from repograph.vcs.providers.gitlab import GitLabProvider
from repograph.vcs.providers.local import LOCAL_PREFIX, LocalProvider

logger = structlog.get_logger()

_WINDOWS_DRIVE_RE = re.compile(r"^[a-zA-Z]:[\\/]")
_SCP_HOST_RE = re.compile(r"^[\w.-]+@(?P<host>[\w.-]+):")


def _host(url: str) -> str:
    if match := _SCP_HOST_RE.match(url):
        return match.group("host").lower()
    return (urlsplit(url).hostname or "").lower()


def detect_provider_kind(
    url: str,
    *,
    self_hosted_gitlab: Iterable[str] = (),
    self_hosted_bitbucket: Iterable[str] = (),
) -> ProviderKind:
    """Map a remote URL to the provider that serves it.

    Rules, first match wins:
    1. ``local://``, absolute POSIX path or Windows drive path: LOCAL
    2. host contains github / gitlab / bitbucket
    3. host equals a configured self-hosted GitLab or Bitbucket hostname
    4. any other https, ssh or ``.git`` URL: GITHUB (logged as a guess)
    5. anything else: LOCAL
    """
    url = url.strip()
    if url.startswith((LOCAL_PREFIX, "/")) or _WINDOWS_DRIVE_RE.match(url):
        return ProviderKind.LOCAL

    host = _host(url)
    if "github." in host:
        return ProviderKind.GITHUB
    if "gitlab." in host:
        return ProviderKind.GITLAB
    if "bitbucket." in host:
        return ProviderKind.BITBUCKET

    if host and host in {h.lower() for h in self_hosted_gitlab}:
        return ProviderKind.GITLAB
    if host and host in {h.lower() for h in self_hosted_bitbucket}:
        return ProviderKind.BITBUCKET

    if url.endswith(".git") or url.startswith(("https://", "http://", "git@", "ssh://")):
        logger.warning("provider_guessed", url=redact(url), provider=ProviderKind.GITHUB.value)
        return ProviderKind.GITHUB

    return ProviderKind.LOCAL


def _api_host(creds: ProviderCredentials) -> list[str]:
    if not creds.api_url:
        return []
    host = urlsplit(creds.api_url).hostname
    return [host] if host else []


class ProviderFactory:
    """Creates and caches one provider per kind."""

    def __init__(
        self,
        config: ProvidersConfig | None = None,
        *,
        git_timeout: float = 300.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or ProvidersConfig()
        self.git_timeout = git_timeout
        self._transport = transport
        self._providers: dict[ProviderKind, GitProvider] = {}

    def detect(self, url: str) -> ProviderKind:
        return detect_provider_kind(
            url,
            self_hosted_gitlab=_api_host(self.config.gitlab),
            self_hosted_bitbucket=_api_host(self.config.bitbucket),
        )

    def for_url(self, url: str) -> GitProvider:
        return self.get(self.detect(url))

    def get(self, kind: ProviderKind) -> GitProvider:
        if kind not in self._providers:
            self._providers[kind] = self._create(kind)
        return self._providers[kind]

    def _create(self, kind: ProviderKind) -> GitProvider:
        http_kwargs = {
            "git_timeout": self.git_timeout,
            "http_timeout": self.config.http_timeout_sec,
            "user_agent": self.config.user_agent,
            "transport": self._transport,
        }
        if kind is ProviderKind.GITHUB:
            return GitHubProvider(self.config.github, **http_kwargs)
        if kind is ProviderKind.GITLAB:
            return GitLabProvider(self.config.gitlab, **http_kwargs)
        if kind is ProviderKind.BITBUCKET:
            return BitbucketProvider(self.config.bitbucket, **http_kwargs)
        if kind is ProviderKind.LOCAL:
            return LocalProvider(git_timeout=self.git_timeout)
        raise UnsupportedProviderError(str(kind))

    def available_kinds(self) -> list[ProviderKind]:
        return list(ProviderKind)

    def has_credentials(self, kind: ProviderKind) -> bool:
        """Whether the configuration carries credentials for ``kind``."""
        if kind is ProviderKind.LOCAL:
            return True
        creds: ProviderCredentials = getattr(self.config, kind.value)
        return creds.has_credentials

    async def aclose(self) -> None:
        for provider in self._providers.values():
            await provider.aclose()
        self._providers.clear()
