"""Repository metadata table and scan status."""

import json
from enum import Enum

from sqlmodel import Field, SQLModel

from repograph.extract.models import CodeNamespace


class ScanStatus(str, Enum):
    """Pipeline states, in run order. ERROR is reachable from any state."""

    PENDING = "PENDING"
    CLONING = "CLONING"
    UPLOADING = "UPLOADING"
    SCANNING_NAMESPACES = "SCANNING_NAMESPACES"
    PARSING_FILES = "PARSING_FILES"
    GENERATING_GRAPH = "GENERATING_GRAPH"
    INDEXING = "INDEXING"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"


class Repository(SQLModel, table=True):
    """A registered repository. The pipeline writes only status, hash and sync fields."""

    __tablename__ = "repositories"

    id: str = Field(primary_key=True)
    name: str
    url: str
    default_branch: str = "main"
    status: str = Field(default=ScanStatus.PENDING.value, index=True)
    last_indexed_sha: str | None = None
    last_indexed_at: float | None = None
    last_index_error: str | None = None
    last_synced_sha: str | None = None
    last_synced_at: float | None = None
    sync_enabled: bool = Field(default=False, index=True)
    sync_interval_minutes: int = 5
    namespaces_json: str | None = None

    @property
    def scan_status(self) -> ScanStatus:
        return ScanStatus(self.status)

    @property
    def namespaces(self) -> list[CodeNamespace]:
        if not self.namespaces_json:
            return []
        return [
            CodeNamespace(name=item["name"], root_path=item["rootPath"])
            for item in json.loads(self.namespaces_json)
        ]


def dump_namespaces(namespaces: list[CodeNamespace]) -> str:
    return json.dumps([ns.to_dict() for ns in namespaces])
