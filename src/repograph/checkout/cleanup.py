"""Robust directory removal.

A recursive delete can fail transiently (another process holding a file,
antivirus scanners, delayed visibility on network or Windows filesystems).
Deletes are retried with backoff and verified; a directory that survives
every attempt is renamed to a quarantine path so a fresh clone can proceed.
"""

from __future__ import annotations

import asyncio
import os
import secrets
import shutil
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import structlog

from repograph.checkout.errors import TreeRemovalError
from repograph.config.constants import QUARANTINE_MARKER

logger = structlog.get_logger()


class CleanupMethod(Enum):
    ABSENT = "absent"
    REMOVED = "removed"
    RENAMED = "renamed"


@dataclass(frozen=True, slots=True)
class CleanupOutcome:
    method: CleanupMethod
    attempts: int
    quarantine_path: Path | None = None


def quarantine_path_for(path: Path) -> Path:
    stamp = int(time.time() * 1000)
    return path.with_name(f"{path.name}{QUARANTINE_MARKER}{stamp}_{secrets.token_hex(3)}")


def _delete(path: Path) -> None:
    if path.is_symlink() or path.is_file():
        path.unlink()
    else:
        shutil.rmtree(path)


def _backoff(delays: Sequence[float], retry_index: int) -> float:
    if not delays:
        return 0.0
    return delays[min(retry_index, len(delays) - 1)]


async def remove_tree_robust(
    path: Path,
    *,
    max_retries: int = 3,
    delays: Sequence[float] = (0.1, 0.5, 1.0),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> CleanupOutcome:
    """Delete ``path`` or move it out of the way.

    Raises:
        TreeRemovalError: every delete attempt and the rename all failed.
    """
    if not os.path.lexists(path):
        return CleanupOutcome(CleanupMethod.ABSENT, attempts=0)

    last_error = "unknown error"
    for attempt in range(1, max_retries + 1):
        if attempt > 1:
            await sleep(_backoff(delays, attempt - 2))
        try:
            await asyncio.to_thread(_delete, path)
        except FileNotFoundError:
            pass
        except OSError as e:
            last_error = f"{type(e).__name__}: {e}"
            logger.warning(
                "cleanup_attempt_failed",
                path=str(path),
                attempt=attempt,
                max_retries=max_retries,
                error=last_error,
            )
            continue

        if not os.path.lexists(path):
            logger.debug("cleanup_removed", path=str(path), attempts=attempt)
            return CleanupOutcome(CleanupMethod.REMOVED, attempts=attempt)
        last_error = "directory still present after delete"
        logger.warning("cleanup_not_visible", path=str(path), attempt=attempt)

    target = quarantine_path_for(path)
    try:
        os.rename(path, target)
    except OSError as e:
        raise TreeRemovalError(path, max_retries, last_error, f"{type(e).__name__}: {e}") from e

    logger.warning(
        "cleanup_quarantined",
        path=str(path),
        quarantine_path=str(target),
        attempts=max_retries,
        error=last_error,
    )
    return CleanupOutcome(CleanupMethod.RENAMED, attempts=max_retries, quarantine_path=target)


async def sweep_quarantine(path: Path) -> int:
    """Remove quarantine siblings left behind by earlier cleanups of ``path``.

    Best-effort: a leftover that still cannot be deleted is logged and kept
    for the next sweep. Returns the number removed.
    """
    removed = 0
    for leftover in sorted(path.parent.glob(f"{path.name}{QUARANTINE_MARKER}*")):
        try:
            await asyncio.to_thread(_delete, leftover)
        except OSError as e:
            logger.warning("quarantine_sweep_failed", path=str(leftover), error=str(e))
            continue
        removed += 1
    if removed:
        logger.info("quarantine_swept", path=str(path), removed=removed)
    return removed
