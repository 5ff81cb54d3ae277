"""External collaborators: search daemon and mirror targets."""

from repograph.integrations.mirror import DirectoryMirror, MirrorResult, MirrorStore, NullMirror
from repograph.integrations.search import SearchError, SearchIndexer, ZoektSearchIndexer

__all__ = [
    "DirectoryMirror",
    "MirrorResult",
    "MirrorStore",
    "NullMirror",
    "SearchError",
    "SearchIndexer",
    "ZoektSearchIndexer",
]
