"""Tests for the configuration module."""

import pytest

from es_log_shipper.config import (
    ConnectionConfig,
    LoggerConfig,
    _parse_bool,
    load_config,
    load_config_file,
)
from es_log_shipper.errors import ConfigurationError
from es_log_shipper.models import LogLevel

ENV_VARS = [
    "LOG_LEVEL", "LOG_SOURCE", "ES_INDEX", "ES_DAILY", "ES_DATE_FORMAT",
    "ES_INCLUDE_TYPE_NAME", "ES_URI", "ES_PROTOCOL", "ES_HOST", "ES_PORT",
    "FLUSH_INTERVAL_MS", "MAX_CACHE_SIZE", "ES_RECONNECT_MS", "ES_TIMEOUT_MS",
    "ES_MAX_RETRIES", "ES_INDEX_MESSAGE", "CONFIG_PATH",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestParseBool:
    def test_true_values(self):
        for val in ("true", "True", "TRUE", "1", "yes", " true ", True):
            assert _parse_bool(val) is True

    def test_false_values(self):
        for val in ("false", "0", "no", "", "random", False):
            assert _parse_bool(val) is False


class TestDefaults:
    def test_logger_defaults(self):
        cfg = LoggerConfig()
        assert cfg.level == LogLevel.INFO
        assert cfg.index == "log"
        assert cfg.daily is False
        assert cfg.date_format == "YYYYMMDD"
        assert cfg.include_type_name is False
        assert cfg.interval == 10000
        assert cfg.max_cache_size == 100
        assert cfg.reconnect == 60000
        assert cfg.timeout == 30000
        assert cfg.max_retries == 3
        assert cfg.index_message is False
        assert cfg.retain_on_failure is True

    def test_connection_defaults(self):
        conn = ConnectionConfig()
        assert conn.uri is None
        assert conn.protocol == "http"
        assert conn.port == 9200

    def test_frozen(self):
        cfg = LoggerConfig()
        with pytest.raises(AttributeError):
            cfg.index = "other"


class TestFromParams:
    def test_nested(self):
        cfg = LoggerConfig.from_params({
            "level": "debug",
            "index": "app",
            "daily": "true",
            "connection": {"host": "es", "port": "9300"},
            "options": {"interval": "500", "max_cache_size": 20, "index_message": True},
        })
        assert cfg.level == LogLevel.DEBUG
        assert cfg.index == "app"
        assert cfg.daily is True
        assert cfg.connection.host == "es"
        assert cfg.connection.port == 9300
        assert cfg.interval == 500
        assert cfg.max_cache_size == 20
        assert cfg.index_message is True

    def test_dotted_keys(self):
        cfg = LoggerConfig.from_params({
            "connection.uri": "http://es:9200",
            "options.timeout": 1000,
            "options.max_retries": 0,
            "date_format": "YYYY.MM.DD",
        })
        assert cfg.connection.uri == "http://es:9200"
        assert cfg.timeout == 1000
        assert cfg.max_retries == 0
        assert cfg.date_format == "YYYY.MM.DD"

    def test_base_values_are_kept(self):
        base = LoggerConfig(index="events", interval=250)
        cfg = LoggerConfig.from_params({"daily": True}, base=base)
        assert cfg.index == "events"
        assert cfg.interval == 250
        assert cfg.daily is True

    def test_invalid_number(self):
        with pytest.raises(ConfigurationError):
            LoggerConfig.from_params({"options": {"interval": "soon"}})

    @pytest.mark.parametrize("options", [
        {"interval": 0},
        {"interval": -5},
        {"max_cache_size": 0},
        {"reconnect": -1},
        {"timeout": -1},
        {"max_retries": -1},
    ])
    def test_out_of_range_options(self, options):
        with pytest.raises(ConfigurationError) as excinfo:
            LoggerConfig.from_params({"options": options})
        assert excinfo.value.code == "BAD_CONFIG"

    def test_zero_retries_and_timeouts_are_allowed(self):
        cfg = LoggerConfig.from_params(
            {"options": {"max_retries": 0, "reconnect": 0, "timeout": 0}}
        )
        assert cfg.max_retries == 0
        assert cfg.reconnect == 0
        assert cfg.timeout == 0

    def test_direct_construction_is_checked(self):
        with pytest.raises(ConfigurationError) as excinfo:
            LoggerConfig(max_cache_size=0)
        assert excinfo.value.code == "BAD_CONFIG"


class TestLoadConfig:
    def test_defaults(self):
        assert load_config() == LoggerConfig()

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("ES_INDEX", "svc")
        monkeypatch.setenv("ES_DAILY", "yes")
        monkeypatch.setenv("ES_HOST", "search")
        monkeypatch.setenv("ES_PORT", "9201")
        monkeypatch.setenv("FLUSH_INTERVAL_MS", "2000")
        monkeypatch.setenv("MAX_CACHE_SIZE", "50")
        monkeypatch.setenv("LOG_LEVEL", "error")

        cfg = load_config()
        assert cfg.index == "svc"
        assert cfg.daily is True
        assert cfg.connection.host == "search"
        assert cfg.connection.port == 9201
        assert cfg.interval == 2000
        assert cfg.max_cache_size == 50
        assert cfg.level == LogLevel.ERROR


class TestLoadConfigFile:
    def test_yaml_file(self, tmp_path):
        path = tmp_path / "logger.yml"
        path.write_text(
            "index: audit\n"
            "daily: true\n"
            "connection:\n"
            "  uri: http://es:9200\n"
            "options:\n"
            "  interval: 1500\n"
        )
        cfg = load_config_file(str(path))
        assert cfg.index == "audit"
        assert cfg.daily is True
        assert cfg.connection.uri == "http://es:9200"
        assert cfg.interval == 1500
        assert cfg.max_cache_size == 100

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert load_config_file(str(path)) == LoggerConfig()

    def test_config_path_env(self, tmp_path, monkeypatch):
        path = tmp_path / "other.yml"
        path.write_text("index: from-env\n")
        monkeypatch.setenv("CONFIG_PATH", str(path))
        assert load_config_file("/nonexistent.yml").index == "from-env"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config_file(str(tmp_path / "missing.yml"))

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("index: [unclosed\n")
        with pytest.raises(ConfigurationError):
            load_config_file(str(path))

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "list.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError):
            load_config_file(str(path))
