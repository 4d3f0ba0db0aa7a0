"""Configuration module: frozen dataclasses loaded from env vars, YAML or dicts."""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

import yaml

from es_log_shipper.errors import ConfigurationError
from es_log_shipper.models import LogLevel


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class ConnectionConfig:
    uri: Optional[str] = None
    protocol: str = "http"
    host: Optional[str] = None
    port: int = 9200
    discovery_key: Optional[str] = None


@dataclass(frozen=True)
class LoggerConfig:
    level: LogLevel = LogLevel.INFO
    source: Optional[str] = None
    index: str = "log"
    daily: bool = False
    date_format: str = "YYYYMMDD"
    include_type_name: bool = False
    connection: ConnectionConfig = field(default_factory=ConnectionConfig)
    # options.* (intervals in milliseconds)
    interval: int = 10000
    max_cache_size: int = 100
    reconnect: int = 60000
    timeout: int = 30000
    max_retries: int = 3
    index_message: bool = False
    retain_on_failure: bool = True

    def __post_init__(self):
        problems = []
        if self.interval <= 0:
            problems.append(f"options.interval must be positive, got {self.interval}")
        if self.max_cache_size <= 0:
            problems.append(
                f"options.max_cache_size must be positive, got {self.max_cache_size}"
            )
        for name in ("reconnect", "timeout", "max_retries"):
            value = getattr(self, name)
            if value < 0:
                problems.append(f"options.{name} must not be negative, got {value}")
        if problems:
            raise ConfigurationError(
                "Invalid logger configuration: " + "; ".join(problems),
                code="BAD_CONFIG",
            )

    @classmethod
    def from_params(
        cls, params: Mapping, base: Optional["LoggerConfig"] = None
    ) -> "LoggerConfig":
        """Build a config from a nested (YAML-shaped) or dotted-key mapping.

        Keys absent from *params* keep their value from *base*, or the
        defaults when no base is given.
        """
        base = base if base is not None else cls()
        flat = _flatten(params or {})

        def get(key, default):
            value = flat.get(key)
            return default if value is None else value

        conn = base.connection
        try:
            connection = ConnectionConfig(
                uri=get("connection.uri", conn.uri),
                protocol=str(get("connection.protocol", conn.protocol)).lower(),
                host=get("connection.host", conn.host),
                port=int(get("connection.port", conn.port)),
                discovery_key=get("connection.discovery_key", conn.discovery_key),
            )
            return cls(
                level=LogLevel.parse(get("level", base.level), base.level),
                source=get("source", base.source),
                index=str(get("index", get("options.index", base.index))),
                daily=_parse_bool(get("daily", get("options.daily", base.daily))),
                date_format=str(get("date_format", base.date_format)),
                include_type_name=_parse_bool(
                    get("include_type_name", base.include_type_name)
                ),
                connection=connection,
                interval=int(get("options.interval", base.interval)),
                max_cache_size=int(get("options.max_cache_size", base.max_cache_size)),
                reconnect=int(get("options.reconnect", base.reconnect)),
                timeout=int(get("options.timeout", base.timeout)),
                max_retries=int(get("options.max_retries", base.max_retries)),
                index_message=_parse_bool(
                    get("options.index_message", base.index_message)
                ),
                retain_on_failure=_parse_bool(
                    get("options.retain_on_failure", base.retain_on_failure)
                ),
            )
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(
                f"Invalid logger configuration: {exc}", code="BAD_CONFIG"
            ) from exc


def _flatten(params: Mapping, prefix: str = "") -> dict:
    """Flatten nested mappings into dotted keys: {"a": {"b": 1}} -> {"a.b": 1}."""
    flat = {}
    for key, value in params.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, Mapping):
            flat.update(_flatten(value, dotted + "."))
        else:
            flat[dotted] = value
    return flat


def load_config() -> LoggerConfig:
    """Build LoggerConfig from environment variables with sensible defaults."""
    env_map = {
        "LOG_LEVEL": "level",
        "LOG_SOURCE": "source",
        "ES_INDEX": "index",
        "ES_DAILY": "daily",
        "ES_DATE_FORMAT": "date_format",
        "ES_INCLUDE_TYPE_NAME": "include_type_name",
        "ES_URI": "connection.uri",
        "ES_PROTOCOL": "connection.protocol",
        "ES_HOST": "connection.host",
        "ES_PORT": "connection.port",
        "FLUSH_INTERVAL_MS": "options.interval",
        "MAX_CACHE_SIZE": "options.max_cache_size",
        "ES_RECONNECT_MS": "options.reconnect",
        "ES_TIMEOUT_MS": "options.timeout",
        "ES_MAX_RETRIES": "options.max_retries",
        "ES_INDEX_MESSAGE": "options.index_message",
    }
    params = {
        key: os.environ[env_name]
        for env_name, key in env_map.items()
        if env_name in os.environ
    }
    return LoggerConfig.from_params(params)


def load_config_file(path: str) -> LoggerConfig:
    """Load a YAML config file and layer it over the defaults.

    The path can be overridden via the ``CONFIG_PATH`` environment variable.
    """
    path = os.environ.get("CONFIG_PATH", path)
    try:
        with open(path, "r") as f:
            params = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigurationError(
            f"Cannot read config file {path}: {exc}", code="BAD_CONFIG"
        ) from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(
            f"Invalid YAML in {path}: {exc}", code="BAD_CONFIG"
        ) from exc

    if params is None:
        params = {}
    if not isinstance(params, Mapping):
        raise ConfigurationError(
            f"Config file {path} must contain a mapping", code="BAD_CONFIG"
        )
    return LoggerConfig.from_params(params)
