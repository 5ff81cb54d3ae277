"""Repository metadata persistence."""

from repograph.store.database import RepositoryStore, SqlRepositoryStore
from repograph.store.models import Repository, ScanStatus, dump_namespaces

__all__ = [
    "Repository",
    "RepositoryStore",
    "ScanStatus",
    "SqlRepositoryStore",
    "dump_namespaces",
]
