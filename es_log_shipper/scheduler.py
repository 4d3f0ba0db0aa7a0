"""Flush scheduler: recurring timer thread with a single-flight flush guard."""

import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class FlushScheduler:
    """Calls *on_flush* every *interval* seconds on a background thread.

    Ticks follow a fixed schedule measured from ``start()``; ticks missed
    while a slow flush was running are skipped, not replayed. Timer and
    manual flushes share one lock, so at most one flush runs at a time.
    """

    def __init__(
        self,
        interval: float,
        on_flush: Callable[[str], None],
        name: str = "es-log-flush",
    ):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._interval = interval
        self._on_flush = on_flush
        self._name = name
        self._flush_lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._ticks = 0
        self._skipped = 0
        self._counter_lock = threading.Lock()

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def ticks(self) -> int:
        with self._counter_lock:
            return self._ticks

    @property
    def skipped(self) -> int:
        with self._counter_lock:
            return self._skipped

    def is_running(self) -> bool:
        return self._thread is not None

    def start(self):
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None):
        """Stop ticking. Waits for an in-flight timer flush to finish."""
        thread = self._thread
        if thread is None:
            return
        self._stop.set()
        if thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None

    def flush_now(self, trigger: str = "manual"):
        """Run a flush on the calling thread, waiting for any running one first.

        Exceptions from *on_flush* propagate to the caller.
        """
        with self._flush_lock:
            self._on_flush(trigger)

    def _try_flush(self, trigger: str) -> bool:
        if not self._flush_lock.acquire(blocking=False):
            with self._counter_lock:
                self._skipped += 1
            logger.debug("Flush still in progress, skipping %s tick", trigger)
            return False
        try:
            self._on_flush(trigger)
        finally:
            self._flush_lock.release()
        return True

    def _run(self):
        next_tick = time.monotonic() + self._interval
        while not self._stop.wait(max(0.0, next_tick - time.monotonic())):
            with self._counter_lock:
                self._ticks += 1
            try:
                self._try_flush("timer")
            except Exception as exc:
                logger.warning("Periodic flush failed: %s", exc)

            next_tick += self._interval
            now = time.monotonic()
            if next_tick <= now:
                missed = int((now - next_tick) // self._interval) + 1
                with self._counter_lock:
                    self._skipped += missed
                next_tick += missed * self._interval
