"""Fixed-window, per-client request limiter for the ingestion webhook.

State is in-memory and process-local. Behind several instances each one
counts on its own, so a client can get up to ``instances * max_requests``
requests through per window.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass


@dataclass
class RateLimitRecord:
    """Request count for one client within the current window."""

    count: int
    reset_at: float


class RateLimiter:
    """Admit at most ``max_requests`` per client per ``window_seconds``.

    Usage::

        limiter = RateLimiter(max_requests=10, window_seconds=60)
        if not limiter.allow(client_ip):
            ...  # 429
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_requests = max_requests
        self._window = window_seconds
        self._clock = clock
        self._records: dict[str, RateLimitRecord] = {}
        self._lock = threading.Lock()

    @property
    def max_requests(self) -> int:
        return self._max_requests

    def allow(self, client_id: str) -> bool:
        """Return True if the request is allowed, False if rate limited."""
        with self._lock:
            now = self._clock()
            record = self._records.get(client_id)
            if record is None or now >= record.reset_at:
                self._records[client_id] = RateLimitRecord(
                    count=1, reset_at=now + self._window
                )
                return True
            if record.count >= self._max_requests:
                return False
            record.count += 1
            return True

    def reset(self) -> None:
        """Forget every client's window."""
        with self._lock:
            self._records.clear()
