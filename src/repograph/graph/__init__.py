"""Knowledge-graph persistence."""

from repograph.graph.writer import GraphSnapshotWriter, RepoMeta, SnapshotStats

__all__ = ["GraphSnapshotWriter", "RepoMeta", "SnapshotStats"]
