"""Elasticsearch logger: caches log messages and ships them in timed bulk writes.

Typical use::

    logger = ElasticsearchLogger({
        "source": "orders",
        "index": "log",
        "daily": True,
        "connection": {"host": "localhost", "port": 9200},
    })
    logger.open()
    logger.info("123", "Order %s accepted", order_id)
    ...
    logger.close()
"""

import datetime
import logging
import threading
import time
from typing import Callable, Mapping, Optional, Union

from es_log_shipper.client import IndexClient, create_client
from es_log_shipper.config import LoggerConfig
from es_log_shipper.connection import ConnectionResolver, Discovery
from es_log_shipper.delivery import BulkDelivery
from es_log_shipper.errors import ConfigurationError
from es_log_shipper.index_namer import IndexNamer
from es_log_shipper.metrics import DeliveryMetrics
from es_log_shipper.models import ErrorDescription, LogLevel, LogMessage
from es_log_shipper.provisioner import IndexProvisioner
from es_log_shipper.record_cache import RecordCache
from es_log_shipper.scheduler import FlushScheduler
from es_log_shipper.schema import DOC_TYPE, build_mappings

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str, LoggerConfig], IndexClient]


class ElasticsearchLogger:
    """Lifecycle owner of one cache, one flush timer and one client.

    Nothing here is shared between instances. Options are frozen while the
    logger is open; reconfiguring requires ``close()`` first.
    """

    def __init__(
        self,
        config: Union[LoggerConfig, Mapping, None] = None,
        client_factory: Optional[ClientFactory] = None,
        discovery: Optional[Discovery] = None,
        clock: Optional[Callable[[], datetime.datetime]] = None,
    ):
        self._config = LoggerConfig()
        self._cache = RecordCache(self._config.max_cache_size)
        self._client_factory = client_factory or create_client
        self._discovery = discovery
        self._clock = clock
        self._metrics = DeliveryMetrics()
        self._state_lock = threading.RLock()

        self._client: Optional[IndexClient] = None
        self._provisioner: Optional[IndexProvisioner] = None
        self._delivery: Optional[BulkDelivery] = None
        self._scheduler: Optional[FlushScheduler] = None

        if config is not None:
            self.configure(config)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def configure(self, config: Union[LoggerConfig, Mapping]):
        """Apply a LoggerConfig or a nested / dotted-key mapping of options."""
        with self._state_lock:
            if self._scheduler is not None:
                raise ConfigurationError(
                    "Cannot reconfigure an open logger, close it first",
                    code="FROZEN_CONFIG",
                )
            if not isinstance(config, LoggerConfig):
                config = LoggerConfig.from_params(config, base=self._config)

            if config.max_cache_size != self._cache.capacity:
                pending = self._cache.drain()
                self._cache = RecordCache(config.max_cache_size)
                self._metrics.record_dropped(self._cache.restore(pending))
            self._config = config

    def set_discovery(self, discovery: Optional[Discovery]):
        with self._state_lock:
            self._discovery = discovery

    @property
    def config(self) -> LoggerConfig:
        return self._config

    @property
    def metrics(self) -> DeliveryMetrics:
        return self._metrics

    @property
    def pending_count(self) -> int:
        return len(self._cache)

    def cached_messages(self) -> list[LogMessage]:
        return self._cache.snapshot()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def is_open(self) -> bool:
        return self._scheduler is not None

    def open(self, correlation_id: Optional[str] = None):
        """Connect, make sure the current index exists and start the flush timer.

        Raises ConfigurationError when no connection can be resolved and
        TransportError when the index service cannot be reached. On failure
        the logger stays closed.
        """
        with self._state_lock:
            if self.is_open():
                return

            config = self._config
            resolver = ConnectionResolver(config.connection, self._discovery)
            uri = resolver.resolve(correlation_id)
            if uri is None:
                raise ConfigurationError(
                    "Connection is not configured",
                    code="NO_CONNECTION",
                    correlation_id=correlation_id,
                )

            client = self._client_factory(uri, config)
            try:
                namer = IndexNamer(config.index, config.daily, config.date_format)
                provisioner = IndexProvisioner(
                    client, build_mappings(config.index_message, config.include_type_name)
                )
                provisioner.ensure_index(namer.current_index_name(self._now()), force=True)
                delivery = BulkDelivery(
                    namer,
                    provisioner,
                    client,
                    doc_type=DOC_TYPE if config.include_type_name else None,
                    clock=self._now,
                )
                scheduler = FlushScheduler(config.interval / 1000, self._flush)
            except Exception:
                self._close_client(client)
                raise

            self._client = client
            self._provisioner = provisioner
            self._delivery = delivery
            try:
                scheduler.start()
            except Exception:
                self._client = None
                self._provisioner = None
                self._delivery = None
                self._close_client(client)
                raise
            self._scheduler = scheduler

            logger.info(
                "Elasticsearch logger opened: uri=%s, index=%s, interval=%dms",
                uri,
                provisioner.last_resolved,
                config.interval,
            )

    def close(self, correlation_id: Optional[str] = None):
        """Stop the timer, flush what is left and release the client.

        Never raises: a failed final flush is logged and its records dropped.
        """
        with self._state_lock:
            scheduler = self._scheduler
            if scheduler is None:
                return

            scheduler.stop()
            try:
                scheduler.flush_now("close")
            except Exception as exc:
                logger.warning("Final flush on close failed: %s", exc)

            leftover = len(self._cache)
            if leftover:
                logger.warning("Dropping %d unsent log messages on close", leftover)
                self._metrics.record_dropped(leftover)
            self._cache.clear()

            self._close_client(self._client)
            self._scheduler = None
            self._delivery = None
            self._provisioner = None
            self._client = None
            logger.info("Elasticsearch logger closed: %s", self._metrics.snapshot())

    def dump(self):
        """Flush cached messages now, on the calling thread.

        Does nothing while closed. Delivery errors propagate.
        """
        scheduler = self._scheduler
        if scheduler is None:
            return
        scheduler.flush_now("manual")

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    # ------------------------------------------------------------------
    # Logging entry points
    # ------------------------------------------------------------------

    def log(
        self,
        level,
        correlation_id: Optional[str],
        error: Union[BaseException, ErrorDescription, None],
        message: str,
        *args,
        source: Optional[str] = None,
    ):
        """Cache one log message if *level* passes the configured threshold."""
        level = LogLevel.parse(level)
        if level == LogLevel.NONE or level > self._config.level:
            return

        if args:
            try:
                message = message % args
            except (TypeError, ValueError):
                message = f"{message} {args!r}"

        if isinstance(error, BaseException):
            error = ErrorDescription.from_exception(error, correlation_id)

        record = LogMessage(
            time=self._now(),
            source=source if source is not None else self._config.source,
            level=level,
            correlation_id=correlation_id,
            error=error,
            message=message or "",
        )
        self._metrics.record_dropped(self._cache.append(record))

    def fatal(self, correlation_id, error, message="", *args):
        self.log(LogLevel.FATAL, correlation_id, error, message, *args)

    def error(self, correlation_id, error, message="", *args):
        self.log(LogLevel.ERROR, correlation_id, error, message, *args)

    def warn(self, correlation_id, message, *args):
        self.log(LogLevel.WARN, correlation_id, None, message, *args)

    def info(self, correlation_id, message, *args):
        self.log(LogLevel.INFO, correlation_id, None, message, *args)

    def debug(self, correlation_id, message, *args):
        self.log(LogLevel.DEBUG, correlation_id, None, message, *args)

    def trace(self, correlation_id, message, *args):
        self.log(LogLevel.TRACE, correlation_id, None, message, *args)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _now(self) -> datetime.datetime:
        if self._clock is not None:
            return self._clock()
        return datetime.datetime.now(datetime.timezone.utc)

    def _flush(self, trigger: str):
        """Drain the cache and deliver it. Runs under the scheduler's flush lock."""
        delivery = self._delivery
        if delivery is None:
            return
        records = self._cache.drain()
        if not records:
            return

        start = time.monotonic()
        try:
            delivery.deliver(records)
        except Exception as exc:
            self._metrics.record_failure(exc)
            if self._config.retain_on_failure:
                self._metrics.record_dropped(self._cache.restore(records))
            else:
                self._metrics.record_dropped(len(records))
            raise
        elapsed_ms = (time.monotonic() - start) * 1000
        self._metrics.record_batch(len(records), elapsed_ms, trigger)
        logger.debug("Flushed %d log messages (%s)", len(records), trigger)

    @staticmethod
    def _close_client(client: Optional[IndexClient]):
        if client is None:
            return
        try:
            client.close()
        except Exception as exc:
            logger.warning("Error closing index client: %s", exc)
