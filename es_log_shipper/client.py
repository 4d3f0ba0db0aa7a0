"""Index service client: a thin adapter over the ``elasticsearch`` library."""

import logging
from typing import Protocol

import elasticsearch

from es_log_shipper.errors import IndexAlreadyExistsError, TransportError
from es_log_shipper.schema import build_settings

logger = logging.getLogger(__name__)

ALREADY_EXISTS = "resource_already_exists_exception"


class IndexClient(Protocol):
    """Operations the shipper needs from the remote index service."""

    def index_exists(self, name: str) -> bool: ...

    def create_index(self, name: str, shards: int, mappings: dict) -> None: ...

    def bulk_write(self, operations: list[dict]) -> dict: ...

    def close(self) -> None: ...


def _is_already_exists(exc: elasticsearch.ApiError) -> bool:
    """True if *exc* reports that the index was created by someone else first."""
    error_type = getattr(exc, "error", None)
    if error_type == ALREADY_EXISTS:
        return True
    body = getattr(exc, "body", None)
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("type") == ALREADY_EXISTS:
            return True
    return "resource_already_exists" in str(exc)


class ElasticsearchIndexClient:
    """IndexClient backed by ``elasticsearch.Elasticsearch``.

    Timeouts are given in milliseconds, matching the logger options, and
    converted to seconds for the library. Retries are left to the library's
    own ``max_retries``.

    With *include_type_name* the index is created with a typed mapping for
    7.x servers. The 8.x library only talks to servers from 7.14 on, and 8.x
    servers reject typed mappings, so legacy mode targets 7.14 to 7.17.
    """

    def __init__(
        self,
        uri: str,
        timeout_ms: int = 30000,
        reconnect_ms: int = 60000,
        max_retries: int = 3,
        include_type_name: bool = False,
        es: elasticsearch.Elasticsearch | None = None,
    ):
        self._uri = uri
        self._include_type_name = include_type_name
        if es is None:
            es = elasticsearch.Elasticsearch(
                uri,
                request_timeout=timeout_ms / 1000,
                max_retries=max_retries,
                retry_on_timeout=True,
                max_dead_node_backoff=reconnect_ms / 1000,
            )
        self._es = es

    @property
    def uri(self) -> str:
        return self._uri

    def index_exists(self, name: str) -> bool:
        try:
            return bool(self._es.indices.exists(index=name))
        except (elasticsearch.ApiError, elasticsearch.TransportError) as exc:
            raise TransportError(
                f"Failed to check index {name} at {self._uri}: {exc}"
            ) from exc

    def create_index(self, name: str, shards: int, mappings: dict) -> None:
        try:
            if self._include_type_name:
                self._create_typed_index(name, shards, mappings)
            else:
                self._es.indices.create(
                    index=name, settings=build_settings(shards), mappings=mappings
                )
        except elasticsearch.ApiError as exc:
            if _is_already_exists(exc):
                raise IndexAlreadyExistsError(
                    f"Index {name} already exists", code=ALREADY_EXISTS
                ) from exc
            raise TransportError(f"Failed to create index {name}: {exc}") from exc
        except elasticsearch.TransportError as exc:
            raise TransportError(f"Failed to create index {name}: {exc}") from exc
        logger.info("Created index %s", name)

    def _create_typed_index(self, name: str, shards: int, mappings: dict) -> None:
        # Typed mappings need include_type_name on 7.x; the 8.x create API
        # has no parameter for it, so the request is sent directly.
        self._es.perform_request(
            "PUT",
            f"/{name}",
            params={"include_type_name": "true"},
            headers={"accept": "application/json", "content-type": "application/json"},
            body={"settings": build_settings(shards), "mappings": mappings},
        )

    def bulk_write(self, operations: list[dict]) -> dict:
        try:
            response = self._es.bulk(operations=operations)
        except (elasticsearch.ApiError, elasticsearch.TransportError) as exc:
            raise TransportError(
                f"Bulk write of {len(operations) // 2} documents failed: {exc}"
            ) from exc
        return getattr(response, "body", response)

    def close(self) -> None:
        self._es.close()


def create_client(uri: str, config) -> ElasticsearchIndexClient:
    """Default client factory: build an ElasticsearchIndexClient from a LoggerConfig."""
    return ElasticsearchIndexClient(
        uri,
        timeout_ms=config.timeout,
        reconnect_ms=config.reconnect,
        max_retries=config.max_retries,
        include_type_name=config.include_type_name,
    )
