"""Tests for per-repository locks."""

import asyncio

import pytest

from repograph.pipeline import RepoLocks


class TestRepoLocks:
    """RepoLocks tests."""

    @pytest.mark.asyncio
    async def test_given_queued_holders_when_released_then_run_in_arrival_order(self) -> None:
        """Callers for one id run one at a time, first come first served."""
        # Given
        locks = RepoLocks()
        order: list[str] = []
        release = asyncio.Event()

        async def first() -> None:
            async with locks.hold("web"):
                order.append("first")
                await release.wait()

        async def queued(name: str) -> None:
            async with locks.hold("web"):
                order.append(name)

        holder = asyncio.create_task(first())
        await asyncio.sleep(0)
        second = asyncio.create_task(queued("second"))
        await asyncio.sleep(0)
        third = asyncio.create_task(queued("third"))
        await asyncio.sleep(0)

        # When
        assert locks.is_locked("web")
        assert locks.waiters("web") == 3
        release.set()
        await asyncio.gather(holder, second, third)

        # Then
        assert order == ["first", "second", "third"]
        assert not locks.is_locked("web")
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_given_different_ids_when_held_then_independent(self) -> None:
        locks = RepoLocks()

        async with locks.hold("web"):
            async with locks.hold("api"):
                assert locks.is_locked("web")
                assert locks.is_locked("api")
                assert len(locks) == 2

        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_given_error_inside_hold_when_raised_then_lock_released(self) -> None:
        locks = RepoLocks()

        with pytest.raises(RuntimeError):
            async with locks.hold("web"):
                raise RuntimeError("boom")

        assert not locks.is_locked("web")
        assert locks.waiters("web") == 0
