"""Tests for in-memory progress tracking."""

import asyncio

import pytest

from repograph.pipeline import ProgressTracker
from repograph.store.models import ScanStatus


class TestProgressTracker:
    """ProgressTracker tests."""

    def test_given_updates_when_read_then_latest_record_returned(self) -> None:
        tracker = ProgressTracker()

        tracker.update("web", ScanStatus.CLONING, 10, "Cloning Repository...")
        tracker.update("web", ScanStatus.PARSING_FILES, 60, "Parsing Source Code...", "3 files")
        tracker.update("api", ScanStatus.PENDING, 0, "Pending")

        record = tracker.get("web")
        assert record is not None
        assert record.status is ScanStatus.PARSING_FILES
        assert record.percent == 60
        assert record.details == "3 files"
        assert tracker.active_ids() == ["api", "web"]
        assert tracker.get("missing") is None

    @pytest.mark.asyncio
    async def test_given_scheduled_eviction_when_delay_passes_then_record_removed(self) -> None:
        tracker = ProgressTracker()
        tracker.update("web", ScanStatus.COMPLETED, 100, "Completed")

        tracker.schedule_eviction("web", 0.01)
        assert tracker.get("web") is not None
        await asyncio.sleep(0.05)

        assert tracker.get("web") is None

    @pytest.mark.asyncio
    async def test_given_pending_eviction_when_updated_then_eviction_cancelled(self) -> None:
        """A new run's first update keeps its record alive past the old timer."""
        # Given
        tracker = ProgressTracker()
        tracker.update("web", ScanStatus.COMPLETED, 100, "Completed")
        tracker.schedule_eviction("web", 0.01)

        # When
        tracker.update("web", ScanStatus.CLONING, 5, "Cloning Repository...")
        await asyncio.sleep(0.05)

        # Then
        record = tracker.get("web")
        assert record is not None
        assert record.status is ScanStatus.CLONING

    @pytest.mark.asyncio
    async def test_given_repeated_scheduling_when_delay_passes_then_latest_wins(self) -> None:
        tracker = ProgressTracker()
        tracker.update("web", ScanStatus.COMPLETED, 100, "Completed")

        tracker.schedule_eviction("web", 0.01)
        tracker.schedule_eviction("web", 10)
        await asyncio.sleep(0.05)

        assert tracker.get("web") is not None
        tracker.clear()

    @pytest.mark.asyncio
    async def test_given_records_when_cleared_then_timers_cancelled(self) -> None:
        tracker = ProgressTracker()
        tracker.update("web", ScanStatus.COMPLETED, 100, "Completed")
        tracker.update("api", ScanStatus.ERROR, 0, "Failed")
        tracker.schedule_eviction("web", 0.01)

        tracker.clear_repo("web")
        assert tracker.active_ids() == ["api"]
        tracker.clear()
        assert tracker.active_ids() == []
