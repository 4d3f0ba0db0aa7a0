"""Index namer: resolves the active index name, optionally with a date suffix."""

import datetime
import re
from typing import Optional

DEFAULT_DATE_FORMAT = "YYYYMMDD"

# Longest tokens first so "YYYY" wins over "YY" and "MM" over "M".
_TOKEN_RE = re.compile(r"\[[^\]]*\]|YYYY|YY|MM|M|DD|D")


def format_date(pattern: str, moment: datetime.date) -> str:
    """Format *moment* with a small date-format mini-language.

    Supported tokens: ``YYYY``, ``YY``, ``MM``, ``M``, ``DD``, ``D``.
    Text inside square brackets is copied verbatim; every other character
    is a literal separator.

        >>> format_date("YYYY.MM.DD", datetime.date(2024, 1, 5))
        '2024.01.05'
    """

    def render(match: re.Match) -> str:
        token = match.group(0)
        if token.startswith("["):
            return token[1:-1]
        if token == "YYYY":
            return f"{moment.year:04d}"
        if token == "YY":
            return f"{moment.year % 100:02d}"
        if token == "MM":
            return f"{moment.month:02d}"
        if token == "M":
            return str(moment.month)
        if token == "DD":
            return f"{moment.day:02d}"
        return str(moment.day)

    return _TOKEN_RE.sub(render, pattern)


def _to_utc(now: Optional[datetime.datetime]) -> datetime.datetime:
    if now is None:
        return datetime.datetime.now(datetime.timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=datetime.timezone.utc)
    return now.astimezone(datetime.timezone.utc)


class IndexNamer:
    def __init__(
        self,
        base_name: str = "log",
        daily: bool = False,
        date_format: str = DEFAULT_DATE_FORMAT,
    ):
        self.base_name = base_name
        self.daily = daily
        self.date_format = date_format or DEFAULT_DATE_FORMAT

    def current_index_name(self, now: Optional[datetime.datetime] = None) -> str:
        """Return the index to write to at *now* (UTC; defaults to the current time)."""
        if not self.daily:
            return self.base_name
        suffix = format_date(self.date_format, _to_utc(now))
        return f"{self.base_name}-{suffix}"
