# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from layered YAML files and environment
# variables using pydantic-settings.
#
# Usage:
#   from app.config import load_settings
#   settings = load_settings()
#   print(settings.server.port)
#
# Layers, lowest to highest precedence:
# 1. configs/default.yaml (required)
# 2. configs/local.yaml   (optional, developer overrides)
# 3. configs/private.yaml (optional, secrets, never committed)
# 4. APP_* environment variables, e.g. APP_SERVER_PORT -> server.port
#
# The settings object is frozen. It is built once at startup and handed to
# components by section.
# =============================================================================

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    SettingsError,
)

from app.exceptions import ConfigError

ENV_PREFIX = "APP_"
CONFIG_DIR_ENV = "APP_CONFIG_DIR"
DEFAULT_SEARCH_PATHS = (Path("configs"), Path("."))

# Order matters: later layers override earlier ones
CONFIG_LAYERS = ("default", "local", "private")
REQUIRED_LAYER = "default"
YAML_SUFFIXES = (".yaml", ".yml")

# Bind-all addresses mapped to the loopback a local client should dial
WILDCARD_LOOPBACK = {"": "127.0.0.1", "0.0.0.0": "127.0.0.1", "::": "::1"}


def _bracket_ipv6(host: str) -> str:
    if ":" in host and not host.startswith("["):
        return f"[{host}]"
    return host


# =============================================================================
# Settings Sections
# =============================================================================

class ServerSettings(BaseModel):
    """HTTP listener settings. Timeouts are in seconds."""

    model_config = ConfigDict(frozen=True)

    host: str = Field(default="0.0.0.0", description="Host to bind the API server to")
    port: int = Field(default=8080, ge=0, le=65535, description="Port for the API server")
    read_timeout: float = Field(default=15.0, gt=0, description="Time allowed to read a request")
    write_timeout: float = Field(default=15.0, gt=0, description="Time allowed to write a response")
    idle_timeout: float = Field(default=60.0, gt=0, description="Keep-alive timeout for idle connections")

    @property
    def address(self) -> str:
        """host:port pair the listener binds to. IPv6 hosts are bracketed."""
        return f"{_bracket_ipv6(self.host)}:{self.port}"

    @property
    def url(self) -> str:
        """
        Base URL a local client should dial.

        A wildcard bind address is not dialable, so it is replaced by the
        loopback address of the same family.
        """
        host = WILDCARD_LOOPBACK.get(self.host, self.host)
        return f"http://{_bracket_ipv6(host)}:{self.port}"


class LoggingSettings(BaseModel):
    """Logger level and output format (text or json)."""

    model_config = ConfigDict(frozen=True)

    level: str = Field(default="info", description="debug, info, warn, error")
    format: str = Field(default="text", description="text or json")


class TelemetrySettings(BaseModel):
    """Tracing settings."""

    model_config = ConfigDict(frozen=True)

    service_name: str = Field(default="hello-echo")
    service_version: str = Field(default="0.1.0")
    enabled: bool = Field(default=False)


class AppSettings(BaseSettings):
    """
    Application settings merged from YAML layers and environment variables.

    Uses pydantic-settings to:
    - Read APP_* environment variables, splitting the section name off at
      the first underscore (APP_SERVER_READ_TIMEOUT -> server.read_timeout)
    - Validate types and constraints
    - Freeze the result so nothing mutates it after startup

    Values from YAML files arrive as init kwargs; the source order below makes
    the environment win over them.
    """

    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="_",
        env_nested_max_split=1,
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # First source wins
        return (env_settings, init_settings)


# =============================================================================
# YAML Layers
# =============================================================================

def resolve_config_dir(config_dir: str | Path | None = None) -> Path:
    """
    Pick the directory holding the YAML layers.

    Explicit argument first, then APP_CONFIG_DIR, then the first of
    ./configs and . that contains a default file.
    """
    if config_dir is not None:
        return Path(config_dir)

    from_env = os.environ.get(CONFIG_DIR_ENV)
    if from_env:
        return Path(from_env)

    for candidate in DEFAULT_SEARCH_PATHS:
        if find_layer_file(candidate, REQUIRED_LAYER) is not None:
            return candidate

    return DEFAULT_SEARCH_PATHS[0]


def find_layer_file(config_dir: Path, name: str) -> Path | None:
    """Return the first existing <name>.yaml / <name>.yml in config_dir."""
    for suffix in YAML_SUFFIXES:
        path = config_dir / f"{name}{suffix}"
        if path.is_file():
            return path
    return None


def read_yaml_layer(path: Path) -> dict[str, Any]:
    """
    Parse one YAML layer.

    An empty file is an empty layer. Anything other than a mapping at the
    top level is malformed.
    """
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Malformed config file {path}: {e}", path=str(path))
    except OSError as e:
        raise ConfigError(f"Failed to read config file {path}: {e}", path=str(path))

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Malformed config file {path}: top level must be a mapping, got {type(data).__name__}",
            path=str(path),
        )
    return data


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge override into a copy of base, recursing into nested mappings."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def read_config_layers(config_dir: Path) -> dict[str, Any]:
    """
    Merge the YAML layers of config_dir, least to most authoritative.

    Raises:
        ConfigError: default layer missing, or any present layer malformed
    """
    merged: dict[str, Any] = {}

    for name in CONFIG_LAYERS:
        path = find_layer_file(config_dir, name)
        if path is None:
            if name == REQUIRED_LAYER:
                raise ConfigError(
                    f"Required config file not found: {config_dir / (name + YAML_SUFFIXES[0])}",
                    path=str(config_dir),
                    suggestion=f"Create {name}.yaml or point {CONFIG_DIR_ENV} at the directory holding it",
                )
            continue
        merged = deep_merge(merged, read_yaml_layer(path))

    return merged


# =============================================================================
# Loading
# =============================================================================

def load_settings(config_dir: str | Path | None = None) -> AppSettings:
    """
    Build the settings object from every layer.

    Args:
        config_dir: Directory with default/local/private YAML files

    Returns:
        AppSettings: Frozen, validated settings

    Raises:
        ConfigError: On a missing default file, a malformed file, or a value
            that does not decode into its field type
    """
    directory = resolve_config_dir(config_dir)
    file_values = read_config_layers(directory)

    try:
        return AppSettings(**file_values)
    except ValidationError as e:
        raise ConfigError(f"Failed to decode config: {e}", path=str(directory))
    except SettingsError as e:
        # Raised by the env source before validation, e.g. APP_SERVER=oops
        raise ConfigError(f"Failed to parse environment config: {e}", path=str(directory))


@lru_cache
def get_settings() -> AppSettings:
    """
    Get cached AppSettings instance.

    Only the first call reads the files; later calls in the same process
    return the same object. Use get_settings.cache_clear() in tests.
    """
    return load_settings()
