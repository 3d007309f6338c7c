"""Token-bucket rate limiter for market data API calls."""

from __future__ import annotations

import threading
import time


class RateLimiter:
    """Thread-safe token-bucket rate limiter.

    Enrichment runs blocking HTTP calls on worker threads, so the bucket is
    shared across threads and waiters are served one at a time.

    Args:
        requests_per_minute: Sustained request rate.
        burst: Tokens available up front before calls get spaced out.
    """

    def __init__(self, requests_per_minute: int = 120, burst: int = 1) -> None:
        self._rate = max(requests_per_minute, 1) / 60.0
        self._capacity = float(max(burst, 1))
        self._tokens = self._capacity
        self._updated = time.monotonic()
        self._lock = threading.Lock()

    def wait(self) -> float:
        """Block until a token is available.

        Returns:
            Seconds spent waiting.
        """
        with self._lock:
            now = time.monotonic()
            self._tokens = min(
                self._capacity, self._tokens + (now - self._updated) * self._rate
            )
            self._updated = now

            if self._tokens >= 1:
                self._tokens -= 1
                return 0.0

            delay = (1 - self._tokens) / self._rate
            time.sleep(delay)
            self._tokens = 0.0
            self._updated = time.monotonic()
            return delay
