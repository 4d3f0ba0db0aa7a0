"""Log message model: levels, error descriptions and the indexed document shape."""

import datetime
import logging
import traceback
from dataclasses import dataclass, field, asdict
from enum import IntEnum
from typing import Optional


class LogLevel(IntEnum):
    NONE = 0
    FATAL = 1
    ERROR = 2
    WARN = 3
    INFO = 4
    DEBUG = 5
    TRACE = 6

    @classmethod
    def parse(cls, value, default: "LogLevel" = None) -> "LogLevel":
        """Parse a level from a LogLevel, an int or a case-insensitive name.

        Accepts the stdlib spellings too ("warning", "critical").
        Unknown values fall back to *default* (INFO when not given).
        """
        if default is None:
            default = cls.INFO
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError:
                return default
        if isinstance(value, str):
            name = value.strip().upper()
            if name.isdigit():
                return cls.parse(int(name), default)
            return _LEVEL_ALIASES.get(name, default)
        return default

    @classmethod
    def from_stdlib(cls, levelno: int) -> "LogLevel":
        """Map a stdlib ``logging`` level number onto a LogLevel."""
        if levelno >= logging.CRITICAL:
            return cls.FATAL
        if levelno >= logging.ERROR:
            return cls.ERROR
        if levelno >= logging.WARNING:
            return cls.WARN
        if levelno >= logging.INFO:
            return cls.INFO
        if levelno >= logging.DEBUG:
            return cls.DEBUG
        return cls.TRACE


_LEVEL_ALIASES = {
    "NONE": LogLevel.NONE,
    "NOTHING": LogLevel.NONE,
    "FATAL": LogLevel.FATAL,
    "CRITICAL": LogLevel.FATAL,
    "ERROR": LogLevel.ERROR,
    "WARN": LogLevel.WARN,
    "WARNING": LogLevel.WARN,
    "INFO": LogLevel.INFO,
    "DEBUG": LogLevel.DEBUG,
    "TRACE": LogLevel.TRACE,
}


@dataclass(frozen=True)
class ErrorDescription:
    type: Optional[str] = None
    category: str = "Unknown"
    status: int = 500
    code: str = "UNKNOWN"
    message: str = ""
    details: Optional[dict] = None
    correlation_id: Optional[str] = None
    cause: Optional[str] = None
    stack_trace: Optional[str] = None

    @classmethod
    def from_exception(
        cls, exc: BaseException, correlation_id: Optional[str] = None
    ) -> "ErrorDescription":
        """Describe *exc* for indexing.

        ``category``, ``status``, ``code``, ``details`` and ``correlation_id``
        are taken from attributes of the same name on the exception when it
        carries them.
        """
        cause = exc.__cause__ if exc.__cause__ is not None else exc.__context__
        details = getattr(exc, "details", None)
        return cls(
            type=type(exc).__name__,
            category=str(getattr(exc, "category", cls.category)),
            status=_as_int(getattr(exc, "status", None), cls.status),
            code=str(getattr(exc, "code", None) or cls.code),
            message=str(exc),
            details=dict(details) if isinstance(details, dict) else None,
            correlation_id=getattr(exc, "correlation_id", None) or correlation_id,
            cause=str(cause) if cause is not None else None,
            stack_trace="".join(
                traceback.format_exception(type(exc), exc, exc.__traceback__)
            ),
        )


def _as_int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class LogMessage:
    time: datetime.datetime = field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )
    source: Optional[str] = None
    level: LogLevel = LogLevel.INFO
    correlation_id: Optional[str] = None
    error: Optional[ErrorDescription] = None
    message: str = ""

    def to_document(self) -> dict:
        """Return the JSON body written to the index for this message."""
        return {
            "time": self.time.isoformat(),
            "source": self.source,
            "level": self.level.name,
            "correlation_id": self.correlation_id,
            "error": asdict(self.error) if self.error is not None else None,
            "message": self.message,
        }


def create_log_message(
    level,
    message: str,
    source: Optional[str] = None,
    correlation_id: Optional[str] = None,
    error: Optional[BaseException] = None,
) -> LogMessage:
    """Factory function that creates a LogMessage stamped with the current UTC time."""
    return LogMessage(
        source=source,
        level=LogLevel.parse(level),
        correlation_id=correlation_id,
        error=(
            ErrorDescription.from_exception(error, correlation_id)
            if error is not None
            else None
        ),
        message=message,
    )
