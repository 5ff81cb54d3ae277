"""Async git CLI runner.

Network operations (clone, fetch) go through the git binary so that they
run as a killable subprocess with a wall-clock bound. Local reads use pygit2.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

import structlog

from repograph.vcs.credentials import redact
from repograph.vcs.errors import GitCommandError, GitTimeoutError

logger = structlog.get_logger()

# Never block on a credential prompt; a missing token must fail fast.
_GIT_ENV = {
    "GIT_TERMINAL_PROMPT": "0",
    "GIT_ASKPASS": "",
    "SSH_ASKPASS": "",
    "GCM_INTERACTIVE": "never",
}


async def run_git(
    args: list[str],
    *,
    cwd: Path | None = None,
    timeout: float = 300.0,
) -> str:
    """Run ``git <args>`` and return its stdout.

    Raises:
        GitTimeoutError: process did not finish within ``timeout`` (it is killed).
        GitCommandError: non-zero exit; output is redacted.
    """
    logger.debug("git_command", command=redact(" ".join(args)), cwd=str(cwd) if cwd else None)
    proc = await asyncio.create_subprocess_exec(
        "git",
        *args,
        cwd=str(cwd) if cwd else None,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        env={**os.environ, **_GIT_ENV},
    )
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise GitTimeoutError(args, timeout) from None

    out = stdout.decode("utf-8", errors="replace")
    if proc.returncode != 0:
        err = stderr.decode("utf-8", errors="replace")
        raise GitCommandError(args, proc.returncode or 1, err or out)
    return out
