"""Checkout error types.

Every error carries the repository id, the checkout path relative to the
checkout root and as an absolute path, and a remediation hint. ``retry_safe``
separates "try again later" from "someone must look at the disk".
"""

from __future__ import annotations

from pathlib import Path


class CheckoutError(Exception):
    """Clone, fetch or checkout filesystem failure."""

    retry_safe: bool = True

    def __init__(
        self,
        repo_id: str,
        message: str,
        *,
        relative_path: str,
        absolute_path: Path,
        remediation: str,
    ) -> None:
        self.repo_id = repo_id
        self.relative_path = relative_path
        self.absolute_path = absolute_path
        self.remediation = remediation
        self.reason = message
        super().__init__(
            f"Checkout failed for repository {repo_id} at {relative_path} "
            f"({absolute_path}): {message}. {remediation}"
        )


class CleanupError(CheckoutError):
    """Directory could be neither deleted nor renamed aside."""

    retry_safe = False


class TreeRemovalError(OSError):
    """Both recursive delete and quarantine rename failed for ``path``."""

    def __init__(self, path: Path, attempts: int, delete_error: str, rename_error: str) -> None:
        self.path = path
        self.attempts = attempts
        self.delete_error = delete_error
        self.rename_error = rename_error
        super().__init__(
            f"Could not remove {path} after {attempts} attempts ({delete_error}) "
            f"and could not rename it aside ({rename_error})"
        )
