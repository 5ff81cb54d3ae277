"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (REPOGRAPH__SECTION__KEY)
3. Repo YAML (./repograph.yaml)
4. Global YAML (~/.config/repograph/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    REPOGRAPH__<SECTION>__<KEY>=<VALUE>

Examples:
    REPOGRAPH__LOGGING__LEVEL=DEBUG
    REPOGRAPH__CHECKOUT__BASE_PATH=/var/lib/repograph/repos
    REPOGRAPH__PROVIDERS__GITHUB__ACCESS_TOKEN=ghp_...
    REPOGRAPH__GRAPH__URI=bolt://neo4j:7687
"""

import tempfile
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
StageName = Literal["mirror", "notify"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        REPOGRAPH__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every git command and graph batch.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class CheckoutConfig(BaseModel):
    """Local checkout configuration.

    Env vars:
        REPOGRAPH__CHECKOUT__BASE_PATH: Root directory for working copies
        REPOGRAPH__CHECKOUT__CLONE_DEPTH: History depth for fresh clones
        REPOGRAPH__CHECKOUT__GIT_TIMEOUT_SEC: Wall-clock bound per git command
    """

    base_path: str = Field(
        default_factory=lambda: str(Path(tempfile.gettempdir()) / "repograph-repos"),
        description="Root directory for working copies (<base>/<repo_id>/repo). "
        "Must live outside the installed package. Default is a disposable cache "
        "under the system temp dir; point it at persistent storage to survive restarts.",
    )
    clone_depth: int = Field(
        default=100,
        description="Shallow clone depth. Bounded history keeps clones fast.",
    )
    git_timeout_sec: float = Field(
        default=300.0,
        description="Wall-clock timeout for any single git subprocess.",
    )
    cleanup_max_retries: int = Field(
        default=3,
        description="Delete attempts before falling back to a quarantine rename.",
    )
    cleanup_retry_delays_sec: list[float] = Field(
        default_factory=lambda: [0.1, 0.5, 1.0],
        description="Backoff before each delete attempt after the first; "
        "the last value repeats when there are more attempts than delays.",
    )

    @field_validator("base_path")
    @classmethod
    def expand_base_path(cls, v: str) -> str:
        return str(Path(v).expanduser())

    @field_validator("clone_depth", "cleanup_max_retries")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Must be >= 1, got {v}")
        return v


class ProviderCredentials(BaseModel):
    """Credentials and endpoint for a single hosting service."""

    access_token: str | None = Field(
        default=None,
        description="Personal access / OAuth token. Sent as an API header and "
        "injected into clone URLs.",
    )
    username: str | None = Field(
        default=None,
        description="Username for basic auth (Bitbucket app passwords).",
    )
    password: str | None = Field(
        default=None,
        description="Password or app password for basic auth.",
    )
    api_url: str | None = Field(
        default=None,
        description="API base URL. Set for self-hosted instances; its hostname "
        "is then recognised by the provider factory.",
    )

    @property
    def has_credentials(self) -> bool:
        return bool(self.access_token or (self.username and self.password))


class ProvidersConfig(BaseModel):
    """VCS hosting provider configuration.

    Env vars:
        REPOGRAPH__PROVIDERS__GITHUB__ACCESS_TOKEN
        REPOGRAPH__PROVIDERS__GITLAB__ACCESS_TOKEN
        REPOGRAPH__PROVIDERS__GITLAB__API_URL
        REPOGRAPH__PROVIDERS__BITBUCKET__USERNAME
        REPOGRAPH__PROVIDERS__BITBUCKET__PASSWORD
    """

    github: ProviderCredentials = Field(default_factory=ProviderCredentials)
    gitlab: ProviderCredentials = Field(default_factory=ProviderCredentials)
    bitbucket: ProviderCredentials = Field(default_factory=ProviderCredentials)
    user_agent: str = Field(
        default="repograph",
        description="User-Agent header for provider API requests.",
    )
    http_timeout_sec: float = Field(
        default=30.0,
        description="Per-request timeout for provider API calls.",
    )


class GraphConfig(BaseModel):
    """Knowledge graph (Neo4j) configuration.

    Env vars:
        REPOGRAPH__GRAPH__URI: Bolt URI
        REPOGRAPH__GRAPH__USER / REPOGRAPH__GRAPH__PASSWORD
        REPOGRAPH__GRAPH__BATCH_SIZE: Nodes per UNWIND batch
    """

    uri: str = Field(default="bolt://localhost:7687")
    user: str = Field(default="neo4j")
    password: str = Field(default="neo4j")
    database: str | None = Field(
        default=None,
        description="Target database name. None uses the server default.",
    )
    batch_size: int = Field(
        default=500,
        description="File and symbol nodes written per UNWIND statement.",
    )

    @field_validator("batch_size")
    @classmethod
    def validate_batch_size(cls, v: int) -> int:
        if not (1 <= v <= 10_000):
            raise ValueError(f"batch_size must be 1-10000, got {v}")
        return v


class SearchConfig(BaseModel):
    """Full-text search daemon configuration.

    Env vars:
        REPOGRAPH__SEARCH__URL: Search daemon base URL
        REPOGRAPH__SEARCH__NOTIFY_URL: Optional endpoint pinged after each index
    """

    url: str = Field(default="http://localhost:6070")
    notify_url: str | None = Field(
        default=None,
        description="POST target for index notifications. When unset the daemon "
        "is expected to pick up checkouts from the shared volume on its own.",
    )
    timeout_sec: float = Field(default=10.0)


class MirrorConfig(BaseModel):
    """Backup copy of each checkout.

    Env vars:
        REPOGRAPH__MIRROR__TARGET_PATH: Directory receiving <repo name>/ copies
    """

    target_path: str | None = Field(
        default=None,
        description="Directory that receives a copy of every fresh checkout. "
        "Unset disables mirroring.",
    )


class PipelineConfig(BaseModel):
    """Index pipeline configuration.

    Env vars:
        REPOGRAPH__PIPELINE__PROGRESS_RETENTION_SEC: Keep finished progress this long
    """

    progress_retention_sec: float = Field(
        default=60.0,
        description="How long a finished run's progress record stays visible.",
    )
    best_effort_stages: list[StageName] = Field(
        default_factory=lambda: ["mirror", "notify"],
        description="Side stages whose failure is logged but does not fail the run.",
    )


class SyncConfig(BaseModel):
    """Upstream drift polling configuration.

    Env vars:
        REPOGRAPH__SYNC__ENABLED: Run the polling scheduler in serve mode
        REPOGRAPH__SYNC__INTERVAL_SEC: Seconds between polling cycles
        REPOGRAPH__SYNC__RUN_ON_STARTUP: Poll once shortly after start
    """

    enabled: bool = Field(default=True)
    interval_sec: float = Field(
        default=300.0,
        description="Seconds between polling cycles.",
    )
    run_on_startup: bool = Field(default=False)
    startup_delay_sec: float = Field(
        default=5.0,
        description="Delay before the startup cycle.",
    )


class StoreConfig(BaseModel):
    """Repository metadata store.

    Env vars:
        REPOGRAPH__STORE__DATABASE_URL: SQLAlchemy URL
    """

    database_url: str = Field(
        default="sqlite:///repograph.db",
        description="SQLAlchemy database URL for repository metadata.",
    )


class RepoGraphConfig(BaseModel):
    """Root configuration for repograph.

    All settings can be configured via:
    1. Environment variables: REPOGRAPH__SECTION__KEY
    2. YAML config files (repo or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    checkout: CheckoutConfig = Field(default_factory=CheckoutConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    graph: GraphConfig = Field(default_factory=GraphConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    mirror: MirrorConfig = Field(default_factory=MirrorConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
