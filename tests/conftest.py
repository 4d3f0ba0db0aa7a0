"""Shared pytest fixtures: an in-memory index client and logger builders."""

import threading
import time

import pytest

from es_log_shipper.logger import ElasticsearchLogger
from es_log_shipper.models import LogLevel, LogMessage

FAKE_URI = "http://es.test:9200"


class FakeIndexClient:
    """In-memory IndexClient that records every call it receives."""

    def __init__(self, existing=(), exists_error=None, create_error=None, bulk_error=None):
        self.indices = set(existing)
        self.exists_error = exists_error
        self.create_error = create_error
        self.bulk_error = bulk_error
        self.bulk_result = {"took": 1, "errors": False, "items": []}
        self.exists_calls: list[str] = []
        self.create_calls: list[tuple] = []
        self.bulk_calls: list[list[dict]] = []
        self.closed = False
        self._lock = threading.Lock()

    def index_exists(self, name):
        with self._lock:
            self.exists_calls.append(name)
        if self.exists_error is not None:
            raise self.exists_error
        return name in self.indices

    def create_index(self, name, shards, mappings):
        with self._lock:
            self.create_calls.append((name, shards, mappings))
        if self.create_error is not None:
            raise self.create_error
        self.indices.add(name)

    def bulk_write(self, operations):
        with self._lock:
            self.bulk_calls.append(list(operations))
        if self.bulk_error is not None:
            raise self.bulk_error
        return self.bulk_result

    def close(self):
        self.closed = True

    def documents(self, call: int = 0) -> list[dict]:
        """Return the document bodies of one recorded bulk call."""
        return self.bulk_calls[call][1::2]


def wait_for(predicate, timeout: float = 2.0, interval: float = 0.01) -> bool:
    """Poll *predicate* until it is true or *timeout* seconds pass."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


def make_message(i: int, level: LogLevel = LogLevel.INFO) -> LogMessage:
    return LogMessage(source="test", level=level, correlation_id=str(i), message=f"log-{i}")


@pytest.fixture
def fake_client():
    return FakeIndexClient()


@pytest.fixture
def make_logger(fake_client):
    """Build loggers wired to the fake client; closes them after the test."""
    created: list[ElasticsearchLogger] = []

    def _make(client=None, **options):
        params = {
            "source": "test",
            "index": "log",
            "connection": {"uri": FAKE_URI},
            "options": {"interval": 60000},
        }
        for key, value in options.items():
            if key in ("interval", "max_cache_size", "reconnect", "timeout",
                       "max_retries", "index_message", "retain_on_failure"):
                params["options"][key] = value
            else:
                params[key] = value
        target = client if client is not None else fake_client
        es_logger = ElasticsearchLogger(params, client_factory=lambda uri, cfg: target)
        created.append(es_logger)
        return es_logger

    yield _make

    for es_logger in created:
        es_logger.close()
