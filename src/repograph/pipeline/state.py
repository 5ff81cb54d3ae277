"""Status-derived progress, used when no live progress record exists."""

from repograph.store.models import ScanStatus

STATUS_PERCENT: dict[ScanStatus, int] = {
    ScanStatus.PENDING: 0,
    ScanStatus.CLONING: 15,
    ScanStatus.UPLOADING: 30,
    ScanStatus.SCANNING_NAMESPACES: 45,
    ScanStatus.PARSING_FILES: 60,
    ScanStatus.GENERATING_GRAPH: 80,
    ScanStatus.INDEXING: 90,
    ScanStatus.COMPLETED: 100,
    ScanStatus.ERROR: 0,
}

STATUS_LABEL: dict[ScanStatus, str] = {
    ScanStatus.PENDING: "Pending",
    ScanStatus.CLONING: "Cloning Repository...",
    ScanStatus.UPLOADING: "Uploading to Mirror...",
    ScanStatus.SCANNING_NAMESPACES: "Detecting Modules...",
    ScanStatus.PARSING_FILES: "Parsing Source Code...",
    ScanStatus.GENERATING_GRAPH: "Building Knowledge Graph...",
    ScanStatus.INDEXING: "Indexing...",
    ScanStatus.COMPLETED: "Completed",
    ScanStatus.ERROR: "Failed",
}


def status_percent(status: ScanStatus) -> int:
    return STATUS_PERCENT[status]


def status_label(status: ScanStatus) -> str:
    return STATUS_LABEL[status]
