from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from p4bridge.constants import (
    DEFAULT_MAX_CONCURRENT,
    FSTAT_BATCH_SIZE,
    PROJECT_CONFIG_NAME,
    UNSET_VALUE,
)
from p4bridge.exceptions import ConfigError
from p4bridge.logging import get_logger

__all__ = [
    "P4BridgeConfig",
    "PerforceSettings",
    "QueueConfig",
    "WorkspaceConfig",
    "LayeredYamlSource",
    "load_config",
    "get_user_config_path",
]

logger = get_logger(__name__)


def _unset_to_none(value: Any) -> Any:
    """Treat the editor-style ``"none"`` placeholder as an unset value."""
    if isinstance(value, str) and (value == "" or value == UNSET_VALUE):
        return None
    return value


class PerforceSettings(BaseModel):
    """Global p4 connection settings applied to every workspace.

    Each value may be left unset; workspace settings override them.

    Attributes:
        command: Path to the p4 executable (default: ``p4`` on PATH).
        user: P4USER passed with ``-u``.
        client: P4CLIENT passed with ``-c``.
        port: P4PORT passed with ``-p``.
        password: P4PASSWD passed with ``-P``.
        dir: Directory passed with ``-d``.
    """

    command: str | None = None
    user: str | None = None
    client: str | None = None
    port: str | None = None
    password: str | None = None
    dir: str | None = None

    @field_validator(
        "command", "user", "client", "port", "password", "dir", mode="before"
    )
    @classmethod
    def normalize_unset(cls, v: Any) -> Any:
        return _unset_to_none(v)


class QueueConfig(BaseModel):
    """Settings for the execution queue.

    Attributes:
        max_concurrent: Maximum number of p4 processes running at once.
        debug_mode: Log every queue transition (depth and job label).
    """

    max_concurrent: int = Field(default=DEFAULT_MAX_CONCURRENT, ge=1, le=100)
    debug_mode: bool = False


class WorkspaceConfig(BaseModel):
    """Per-workspace p4 settings, usually read from a ``.p4config`` file.

    Attributes:
        p4_client: P4CLIENT for this workspace.
        p4_host: P4HOST for this workspace.
        p4_pass: P4PASSWD for this workspace.
        p4_port: P4PORT for this workspace.
        p4_tickets: P4TICKETS file for this workspace.
        p4_user: P4USER for this workspace.
        p4_dir: Directory to pass with ``-d`` in place of the working directory.
        local_dir: Root directory of the workspace (with a trailing slash).
        strip_local_dir: Strip ``local_dir`` from arguments before invoking p4.
    """

    p4_client: str | None = None
    p4_host: str | None = None
    p4_pass: str | None = None
    p4_port: str | None = None
    p4_tickets: str | None = None
    p4_user: str | None = None
    p4_dir: str | None = None
    local_dir: str
    strip_local_dir: bool = False

    @field_validator(
        "p4_client",
        "p4_host",
        "p4_pass",
        "p4_port",
        "p4_tickets",
        "p4_user",
        "p4_dir",
        mode="before",
    )
    @classmethod
    def normalize_unset(cls, v: Any) -> Any:
        return _unset_to_none(v)

    @field_validator("local_dir")
    @classmethod
    def ensure_trailing_slash(cls, v: str) -> str:
        normalized = v.replace("\\", "/")
        if not normalized.endswith("/"):
            normalized += "/"
        return normalized

    def matches(self, path: Path | str) -> bool:
        """Return True if *path* is this workspace's root directory."""
        compare = str(path).replace("\\", "/")
        if not compare.endswith("/"):
            compare += "/"
        return compare == self.local_dir


def _read_mapping(path: Path) -> dict[str, Any]:
    """Parse *path* as YAML; a missing or empty file yields ``{}``."""
    if not path.is_file():
        return {}
    try:
        loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if loaded is None:
        logger.warning("config_file_empty", path=str(path))
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(
            f"Config file {path} must contain a mapping",
            value=type(loaded).__name__,
        )
    return loaded


def _merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class LayeredYamlSource(PydanticBaseSettingsSource):
    """Settings read from YAML files, later files overriding earlier ones.

    Nested sections merge key by key, so a project file that sets only
    ``perforce.user`` keeps the ``perforce.port`` from the user file.
    """

    def __init__(self, settings_cls: type[BaseSettings], *paths: Path) -> None:
        super().__init__(settings_cls)
        self.paths = paths
        data: dict[str, Any] = {}
        for path in paths:
            data = _merge(data, _read_mapping(path))
        self._data = data

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return dict(self._data)


class P4BridgeConfig(BaseSettings):
    """Root configuration object containing all p4bridge settings.

    Sources, first match wins: constructor arguments, ``P4BRIDGE_*``
    environment variables (``__`` separates nested keys), ``p4bridge.yaml``
    in the current directory, then the user file from
    :func:`get_user_config_path`.
    """

    model_config = SettingsConfigDict(
        env_prefix="P4BRIDGE_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    perforce: PerforceSettings = Field(default_factory=PerforceSettings)
    queue: QueueConfig = Field(default_factory=QueueConfig)
    fstat_batch_size: int = Field(default=FSTAT_BATCH_SIZE, ge=1, le=FSTAT_BATCH_SIZE)
    network_retries: int = Field(default=0, ge=0, le=5)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        files = LayeredYamlSource(
            settings_cls, get_user_config_path(), project_config_path()
        )
        return (init_settings, env_settings, files)


def project_config_path() -> Path:
    return Path.cwd() / PROJECT_CONFIG_NAME


def get_user_config_path() -> Path:
    """Per-user settings file, ``~/.config/p4bridge/config.yaml``."""
    return Path.home() / ".config" / "p4bridge" / "config.yaml"


def _as_config_error(exc: ValidationError) -> ConfigError:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error["loc"])
    return ConfigError(
        f"{location or 'config'}: {error['msg']}",
        field=location or None,
        value=error.get("input"),
    )


def load_config() -> P4BridgeConfig:
    """Build the merged configuration.

    Raises:
        ConfigError: A file is not valid YAML or a value fails validation.
    """
    logger.debug(
        "config_loading",
        project=str(project_config_path()),
        user=str(get_user_config_path()),
    )
    try:
        return P4BridgeConfig()
    except ValidationError as e:
        raise _as_config_error(e) from e
