"""Long-running service components."""

from repograph.daemon.lifecycle import ServiceController, run_service
from repograph.daemon.scheduler import SyncResult, SyncScheduler, SyncStatus

__all__ = ["ServiceController", "SyncResult", "SyncScheduler", "SyncStatus", "run_service"]
