"""Config module exports."""

from repograph.config.loader import load_config
from repograph.config.models import (
    CheckoutConfig,
    GraphConfig,
    LoggingConfig,
    MirrorConfig,
    PipelineConfig,
    ProviderCredentials,
    ProvidersConfig,
    RepoGraphConfig,
    SearchConfig,
    StoreConfig,
    SyncConfig,
)

__all__ = [
    "load_config",
    "CheckoutConfig",
    "GraphConfig",
    "LoggingConfig",
    "MirrorConfig",
    "PipelineConfig",
    "ProviderCredentials",
    "ProvidersConfig",
    "RepoGraphConfig",
    "SearchConfig",
    "StoreConfig",
    "SyncConfig",
]
