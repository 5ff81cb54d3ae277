"""Mirror/backup targets for checked-out trees.

The pipeline hands every fresh checkout to a ``MirrorStore``. Failures are
reported in the result, never raised, so a broken backup target degrades a
run instead of failing it.
"""

from __future__ import annotations

import asyncio
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import structlog

logger = structlog.get_logger()

MIRROR_SKIP_DIRS = frozenset({".git", "node_modules"})


@dataclass(frozen=True, slots=True)
class MirrorResult:
    success: bool
    files_uploaded: int = 0
    bytes_uploaded: int = 0
    remote_path: str = ""
    error: str | None = None


class MirrorStore(Protocol):
    async def upload(self, repo_id: str, repo_name: str, local_path: Path) -> MirrorResult: ...


class NullMirror:
    """No mirror configured."""

    async def upload(self, repo_id: str, repo_name: str, local_path: Path) -> MirrorResult:  # noqa: ARG002
        logger.debug("mirror_not_configured", repo_id=repo_id)
        return MirrorResult(success=True)


class DirectoryMirror:
    """Copies the working tree (minus VCS metadata and dependency caches) under ``target``.

    Individual file failures are logged and skipped; a partial copy still
    counts as success.
    """

    def __init__(self, target: Path) -> None:
        self.target = target

    def _copy_tree(self, source: Path, destination: Path) -> tuple[int, int]:
        files = 0
        size = 0
        for dirpath, dirnames, filenames in os.walk(source):
            dirnames[:] = sorted(d for d in dirnames if d not in MIRROR_SKIP_DIRS)
            rel = Path(dirpath).relative_to(source)
            (destination / rel).mkdir(parents=True, exist_ok=True)
            for filename in sorted(filenames):
                src = Path(dirpath) / filename
                if src.is_symlink() or not src.is_file():
                    continue
                try:
                    shutil.copy2(src, destination / rel / filename)
                except OSError as e:
                    logger.warning("mirror_file_failed", path=str(rel / filename), error=str(e))
                    continue
                files += 1
                size += src.stat().st_size
        return files, size

    async def upload(self, repo_id: str, repo_name: str, local_path: Path) -> MirrorResult:
        if not local_path.is_dir():
            return MirrorResult(success=False, error=f"Local path does not exist: {local_path}")
        destination = self.target / repo_name
        try:
            files, size = await asyncio.to_thread(self._copy_tree, local_path, destination)
        except OSError as e:
            logger.warning("mirror_failed", repo_id=repo_id, error=str(e))
            return MirrorResult(success=False, error=f"Mirror copy failed: {e}")
        logger.info("mirror_complete", repo_id=repo_id, files=files, bytes=size, remote_path=str(destination))
        return MirrorResult(
            success=True,
            files_uploaded=files,
            bytes_uploaded=size,
            remote_path=str(destination),
        )
