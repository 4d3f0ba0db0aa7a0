"""Record cache: bounded, thread-safe, insertion-ordered buffer of pending log messages."""

import threading
from collections import deque

from es_log_shipper.models import LogMessage


class RecordCache:
    """Append-only cache that evicts the oldest record when full.

    ``append`` only ever holds the lock for a deque operation, so callers on
    application threads never wait on network I/O.
    """

    def __init__(self, capacity: int = 100):
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._records: deque[LogMessage] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, record: LogMessage) -> int:
        """Add *record* and return how many old records were evicted (0 or 1)."""
        with self._lock:
            evicted = 1 if len(self._records) == self._capacity else 0
            self._records.append(record)
        return evicted

    def drain(self) -> list[LogMessage]:
        """Atomically take every cached record, oldest first, leaving the cache empty."""
        with self._lock:
            records = list(self._records)
            self._records.clear()
        return records

    def restore(self, records: list[LogMessage]) -> int:
        """Put a failed batch back in front of newer records.

        The oldest entries are dropped if the result exceeds capacity.
        Returns the number of records dropped.
        """
        if not records:
            return 0
        with self._lock:
            merged = list(records) + list(self._records)
            dropped = max(0, len(merged) - self._capacity)
            self._records = deque(merged[dropped:], maxlen=self._capacity)
        return dropped

    def snapshot(self) -> list[LogMessage]:
        """Return a copy of the cached records without removing them."""
        with self._lock:
            return list(self._records)

    def clear(self):
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
