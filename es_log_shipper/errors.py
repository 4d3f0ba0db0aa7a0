"""Error taxonomy for the Elasticsearch log shipper."""


class ShipperError(Exception):
    """Base class for errors raised by the shipper.

    Carries a short machine-readable ``code`` and the ``correlation_id`` of
    the call that failed, when one was supplied.
    """

    code = "SHIPPER_ERROR"

    def __init__(self, message: str, code: str | None = None, correlation_id: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.correlation_id = correlation_id


class ConfigurationError(ShipperError):
    """Missing or invalid configuration, e.g. no resolvable connection."""

    code = "CONFIGURATION_ERROR"


class TransportError(ShipperError):
    """Network, timeout or API failure while talking to the index service."""

    code = "TRANSPORT_ERROR"


class IndexAlreadyExistsError(TransportError):
    """Index creation lost a race with another writer."""

    code = "INDEX_ALREADY_EXISTS"


class NotOpenError(ShipperError):
    """A non-empty batch was handed to delivery with no open client."""

    code = "NOT_OPEN"
