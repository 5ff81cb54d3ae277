"""Configuration loading with pydantic-settings.

Sources, lowest to highest precedence:

1. Built-in defaults
2. Global YAML (``~/.config/repograph/config.yaml``)
3. Repo YAML: the explicit ``--config`` path, else ``$REPOGRAPH_CONFIG``,
   else ``./repograph.yaml`` when present
4. Environment variables (``REPOGRAPH__SECTION__KEY``)
5. Direct kwargs
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from repograph.config.models import (
    CheckoutConfig,
    GraphConfig,
    LoggingConfig,
    MirrorConfig,
    PipelineConfig,
    ProvidersConfig,
    RepoGraphConfig,
    SearchConfig,
    StoreConfig,
    SyncConfig,
)
from repograph.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/repograph/config.yaml").expanduser()
REPO_CONFIG_NAME = "repograph.yaml"
CONFIG_PATH_ENV = "REPOGRAPH_CONFIG"


def resolve_config_path(config_path: Path | None = None) -> tuple[Path, bool]:
    """Repo-level YAML path and whether it must exist.

    Named files (argument or ``$REPOGRAPH_CONFIG``) are required; the
    working-directory default is optional.
    """
    if config_path is not None:
        return config_path.expanduser(), True
    if env_path := os.environ.get(CONFIG_PATH_ENV):
        return Path(env_path).expanduser(), True
    return Path.cwd() / REPO_CONFIG_NAME, False


def _read_yaml(path: Path, *, required: bool = False) -> dict[str, Any]:
    if not path.is_file():
        if required:
            raise ConfigError.parse_error(str(path), "file does not exist")
        return {}
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top-level value must be a mapping")
    return data


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursive dict merge; ``override`` wins on conflicts, lists are replaced."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        merged[key] = _merge(current, value) if isinstance(current, dict) and isinstance(value, dict) else value
    return merged


class _YamlSource(PydanticBaseSettingsSource):
    """Settings source over an already merged YAML mapping."""

    def __init__(self, settings_cls: type[BaseSettings], data: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._data = data

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        value = self._data.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        return self._data


def _settings_class(yaml_data: dict[str, Any]) -> type[BaseSettings]:
    class RepoGraphSettings(BaseSettings):
        model_config = SettingsConfigDict(
            env_prefix="REPOGRAPH__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        checkout: CheckoutConfig = CheckoutConfig()
        providers: ProvidersConfig = ProvidersConfig()
        graph: GraphConfig = GraphConfig()
        search: SearchConfig = SearchConfig()
        mirror: MirrorConfig = MirrorConfig()
        pipeline: PipelineConfig = PipelineConfig()
        sync: SyncConfig = SyncConfig()
        store: StoreConfig = StoreConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            return (init_settings, env_settings, _YamlSource(settings_cls, yaml_data))

    return RepoGraphSettings


def _invalid(e: ValidationError) -> ConfigError:
    errors = e.errors()
    first = errors[0]
    field = ".".join(str(loc) for loc in first["loc"])
    reason = first["msg"]
    if len(errors) > 1:
        reason = f"{reason} (and {len(errors) - 1} more)"
    return ConfigError.invalid_value(field, first.get("input"), reason)


def load_config(config_path: Path | None = None, **kwargs: Any) -> RepoGraphConfig:
    """Resolve the configuration from every source.

    Args:
        config_path: Repo-level YAML file; overrides ``$REPOGRAPH_CONFIG``
            and ``./repograph.yaml``.
        **kwargs: Section overrides (highest precedence).

    Raises:
        ConfigError: missing named file, invalid YAML, or a value that fails
            validation.
    """
    repo_path, required = resolve_config_path(config_path)
    yaml_data = _merge(_read_yaml(GLOBAL_CONFIG_PATH), _read_yaml(repo_path, required=required))

    try:
        settings = _settings_class(yaml_data)(**kwargs)
    except ValidationError as e:
        raise _invalid(e) from e
    return RepoGraphConfig.model_validate(settings.model_dump())
