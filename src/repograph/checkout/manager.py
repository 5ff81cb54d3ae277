"""Local working copies, one per repository id.

Layout: ``<base_path>/<repo_id>/repo``. A directory holding ``.git`` is a
valid checkout and is updated in place; anything else at that path is
untrusted and is destroyed before a fresh clone.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path

import pygit2
import structlog

from repograph.checkout.cleanup import CleanupOutcome, remove_tree_robust, sweep_quarantine
from repograph.checkout.errors import CheckoutError, CleanupError, TreeRemovalError
from repograph.config.constants import CHECKOUT_DIR_NAME
from repograph.config.models import CheckoutConfig
from repograph.vcs.credentials import redact
from repograph.vcs.errors import GitError
from repograph.vcs.factory import ProviderFactory

logger = structlog.get_logger()

_CLEANUP_REMEDIATION = (
    "Close any process holding files in this directory (editors, shells, "
    "antivirus, file indexers) and delete it manually, then re-run indexing."
)
_GIT_REMEDIATION = (
    "Check the remote URL, branch name and access token. The checkout is left "
    "as-is; retrying is safe."
)
_FS_REMEDIATION = "Check that the checkout base path exists, is writable and has free space."
_ID_REMEDIATION = "Register the repository under an id without path separators or dot segments."


@dataclass(frozen=True, slots=True)
class CheckoutResult:
    local_path: Path
    head_sha: str


def _read_head(path: Path) -> str:
    repo = pygit2.Repository(str(path))
    return str(repo.head.target)


def is_safe_repo_id(repo_id: str) -> bool:
    """Ids name exactly one directory directly under the checkout root."""
    if not repo_id or repo_id in (".", ".."):
        return False
    return "/" not in repo_id and "\\" not in repo_id and not Path(repo_id).is_absolute()


class CheckoutManager:
    """Clones, updates and removes working copies."""

    def __init__(self, config: CheckoutConfig, providers: ProviderFactory) -> None:
        self.config = config
        self.providers = providers
        self.base_path = Path(config.base_path)

    def repo_dir(self, repo_id: str) -> Path:
        """Directory holding everything stored for ``repo_id``.

        Raises:
            CheckoutError: ``repo_id`` would resolve outside the checkout root.
        """
        path = self.base_path / repo_id
        base = self.base_path.resolve()
        if not is_safe_repo_id(repo_id) or path.resolve().parent != base:
            raise CheckoutError(
                repo_id,
                "repository id is not a plain directory name",
                relative_path=repo_id,
                absolute_path=base,
                remediation=_ID_REMEDIATION,
            )
        return path

    def local_path(self, repo_id: str) -> Path:
        return self.repo_dir(repo_id) / CHECKOUT_DIR_NAME

    def has_checkout(self, repo_id: str) -> bool:
        return (self.local_path(repo_id) / ".git").exists()

    def _error(
        self,
        cls: type[CheckoutError],
        repo_id: str,
        path: Path,
        message: str,
        remediation: str,
    ) -> CheckoutError:
        try:
            relative = path.relative_to(self.base_path).as_posix()
        except ValueError:
            relative = path.as_posix()
        return cls(
            repo_id,
            redact(message),
            relative_path=relative,
            absolute_path=path.resolve(),
            remediation=remediation,
        )

    async def _cleanup(self, repo_id: str, path: Path) -> CleanupOutcome:
        try:
            outcome = await remove_tree_robust(
                path,
                max_retries=self.config.cleanup_max_retries,
                delays=self.config.cleanup_retry_delays_sec,
            )
        except TreeRemovalError as e:
            raise self._error(CleanupError, repo_id, path, str(e), _CLEANUP_REMEDIATION) from e
        if path.exists():
            raise self._error(
                CleanupError,
                repo_id,
                path,
                "directory still present after cleanup",
                _CLEANUP_REMEDIATION,
            )
        return outcome

    async def ensure_checkout(
        self,
        repo_id: str,
        remote_url: str,
        branch: str,
        auth_token: str | None = None,
    ) -> CheckoutResult:
        """Bring the working copy for ``repo_id`` to the remote branch tip.

        Raises:
            CleanupError: an untrusted directory could not be removed.
            CheckoutError: clone, fetch, reset or HEAD read failed.
        """
        path = self.local_path(repo_id)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise self._error(CheckoutError, repo_id, path.parent, str(e), _FS_REMEDIATION) from e
        await sweep_quarantine(path)

        valid = (path / ".git").exists()
        if not valid and path.exists():
            outcome = await self._cleanup(repo_id, path)
            logger.info(
                "untrusted_checkout_cleared",
                repo_id=repo_id,
                method=outcome.method.value,
                attempts=outcome.attempts,
            )

        provider = self.providers.for_url(remote_url)
        log = logger.bind(repo_id=repo_id, branch=branch, provider=provider.kind.value)
        log.info("checkout_started", mode="update" if valid else "clone")
        try:
            await provider.clone_or_pull(
                remote_url,
                path,
                branch,
                auth_token=auth_token,
                depth=self.config.clone_depth,
            )
        except GitError as e:
            raise self._error(CheckoutError, repo_id, path, str(e), _GIT_REMEDIATION) from e
        except OSError as e:
            raise self._error(CheckoutError, repo_id, path, str(e), _FS_REMEDIATION) from e

        try:
            head_sha = await asyncio.to_thread(_read_head, path)
        except (pygit2.GitError, KeyError) as e:
            raise self._error(
                CheckoutError, repo_id, path, f"cannot read HEAD: {e}", _GIT_REMEDIATION
            ) from e

        log.info("checkout_complete", head_sha=head_sha)
        return CheckoutResult(local_path=path, head_sha=head_sha)

    async def delete_checkout(self, repo_id: str) -> CleanupOutcome:
        """Remove everything stored for ``repo_id``. No-op when absent."""
        outcome = await self._cleanup(repo_id, self.repo_dir(repo_id))
        logger.info("checkout_deleted", repo_id=repo_id, method=outcome.method.value)
        return outcome
