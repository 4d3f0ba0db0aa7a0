"""Delivery metrics: thread-safe counters for flushes, drops and send times."""

import threading
import time

class DeliveryMetrics:
    """Collects counters about bulk deliveries.

    Timer-driven flushes have no caller to report failures to, so this is
    where they become observable.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._batches_sent: int = 0
        self._records_sent: int = 0
        self._failed_flushes: int = 0
        self._records_dropped: int = 0
        self._send_times: list[float] = []
        self._flush_triggers: dict = {"timer": 0, "close": 0, "manual": 0}
        self._last_error: str | None = None
        self._start_time = time.monotonic()

    def record_batch(self, batch_size: int, send_time_ms: float, trigger: str = "timer") -> None:
        """Record a successful bulk write.

        Args:
            batch_size: Number of log messages in the batch.
            send_time_ms: Time taken by provisioning and the bulk call, in milliseconds.
            trigger: What caused the flush: "timer", "close" or "manual".
        """
        with self._lock:
            self._batches_sent += 1
            self._records_sent += batch_size
            self._send_times.append(send_time_ms)
            self._flush_triggers[trigger] = self._flush_triggers.get(trigger, 0) + 1

    def record_failure(self, error: BaseException) -> None:
        with self._lock:
            self._failed_flushes += 1
            self._last_error = str(error)

    def record_dropped(self, count: int = 1) -> None:
        if count <= 0:
            return
        with self._lock:
            self._records_dropped += count

    def snapshot(self) -> dict:
        """Return a point-in-time snapshot of all collected metrics."""
        with self._lock:
            send_times = list(self._send_times)
            avg_send = sum(send_times) / len(send_times) if send_times else 0.0

            return {
                "batches_sent": self._batches_sent,
                "records_sent": self._records_sent,
                "failed_flushes": self._failed_flushes,
                "records_dropped": self._records_dropped,
                "last_error": self._last_error,
                "avg_send_time_ms": avg_send,
                "max_send_time_ms": max(send_times, default=0.0),
                "flush_triggers": dict(self._flush_triggers),
                "uptime_seconds": time.monotonic() - self._start_time,
            }
