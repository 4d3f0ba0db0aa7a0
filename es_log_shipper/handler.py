"""Stdlib logging bridge: routes ``logging`` records into an ElasticsearchLogger."""

import logging

from es_log_shipper.logger import ElasticsearchLogger
from es_log_shipper.models import ErrorDescription, LogLevel

# Records from these loggers would be shipped by the shipper's own flushes.
IGNORED_LOGGERS = ("es_log_shipper", "elasticsearch", "elastic_transport", "urllib3")


class ElasticsearchHandler(logging.Handler):
    """logging.Handler that caches records in an ElasticsearchLogger.

    The record's ``correlation_id`` extra becomes the message correlation id;
    ``exc_info`` becomes the error description. When the logger has no
    ``source`` configured, the stdlib logger name is used instead.
    """

    def __init__(self, es_logger: ElasticsearchLogger, level=logging.NOTSET):
        super().__init__(level)
        self.es_logger = es_logger

    def emit(self, record: logging.LogRecord):
        if record.name.split(".", 1)[0] in IGNORED_LOGGERS:
            return
        try:
            correlation_id = getattr(record, "correlation_id", None)
            error = None
            if record.exc_info and record.exc_info[1] is not None:
                error = ErrorDescription.from_exception(record.exc_info[1], correlation_id)

            self.es_logger.log(
                LogLevel.from_stdlib(record.levelno),
                correlation_id,
                error,
                record.getMessage(),
                source=self.es_logger.config.source or record.name,
            )
        except Exception:
            self.handleError(record)

    def close(self):
        try:
            self.es_logger.close()
        finally:
            super().close()
