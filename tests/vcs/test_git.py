"""Tests for the async git runner."""

import asyncio
from pathlib import Path
from typing import Any

import pytest

from repograph.vcs.errors import GitCommandError, GitTimeoutError
from repograph.vcs.git import run_git


class TestRunGit:
    """run_git tests against the real git binary."""

    @pytest.mark.asyncio
    async def test_given_valid_command_when_run_then_returns_stdout(self) -> None:
        """Successful commands return their stdout."""
        out = await run_git(["--version"])
        assert out.startswith("git version")

    @pytest.mark.asyncio
    async def test_given_failing_command_when_run_then_command_error(self, tmp_path: Path) -> None:
        """Non-zero exits raise with the exit code and stderr."""
        with pytest.raises(GitCommandError) as exc_info:
            await run_git(["rev-parse", "HEAD"], cwd=tmp_path)
        assert exc_info.value.returncode != 0
        assert exc_info.value.output

    @pytest.mark.asyncio
    async def test_given_hanging_process_when_run_then_killed_with_timeout_error(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A command exceeding its budget is killed and reported."""
        # Given: the subprocess is swapped for one that sleeps
        real_exec = asyncio.create_subprocess_exec
        spawned: list[asyncio.subprocess.Process] = []

        async def slow_exec(*_args: Any, **kwargs: Any) -> asyncio.subprocess.Process:
            proc = await real_exec("sleep", "30", **kwargs)
            spawned.append(proc)
            return proc

        monkeypatch.setattr(asyncio, "create_subprocess_exec", slow_exec)

        # When / Then
        with pytest.raises(GitTimeoutError) as exc_info:
            await run_git(["fetch"], timeout=0.2)
        assert exc_info.value.timeout == 0.2
        assert spawned[0].returncode is not None
