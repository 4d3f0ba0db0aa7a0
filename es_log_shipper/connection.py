"""Connection resolution: turns connection settings into a single service URI."""

import logging
from typing import Callable, Optional

from es_log_shipper.config import ConnectionConfig
from es_log_shipper.errors import ConfigurationError

logger = logging.getLogger(__name__)

SUPPORTED_PROTOCOLS = ("http", "https")

Discovery = Callable[[str], Optional[str]]


class ConnectionResolver:
    """Resolves the index service address from config or a discovery callable.

    A configured ``uri`` wins. Otherwise, when a ``discovery_key`` is set and
    a discovery callable is available, it is asked for the address. Finally
    ``protocol://host:port`` is built from the individual fields. Returns
    None when nothing is configured.
    """

    def __init__(self, connection: ConnectionConfig, discovery: Optional[Discovery] = None):
        self._connection = connection
        self._discovery = discovery

    def resolve(self, correlation_id: Optional[str] = None) -> Optional[str]:
        conn = self._connection

        if conn.uri:
            return conn.uri

        if conn.discovery_key and self._discovery is not None:
            uri = self._discovery(conn.discovery_key)
            if uri:
                logger.debug("Resolved %s via discovery: %s", conn.discovery_key, uri)
                return uri

        if not conn.host:
            return None

        if conn.protocol not in SUPPORTED_PROTOCOLS:
            raise ConfigurationError(
                f"Protocol {conn.protocol} is not supported, use http or https",
                code="BAD_PROTOCOL",
                correlation_id=correlation_id,
            )
        return f"{conn.protocol}://{conn.host}:{conn.port}"
