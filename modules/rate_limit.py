"""
Fixed-window request rate limiting keyed by client address.

Counters live in process memory: they reset on restart and are not shared
between server instances, so this is a best-effort guard only.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict


@dataclass
class _Window:
    count: int
    reset_time: float


class FixedWindowRateLimiter:
    """
    Allow at most `max_requests` per key in each `window_seconds` window.

    The first request after a window expires starts a new window with a
    count of 1.
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, _Window] = {}
        self._lock = threading.Lock()

    def allow(self, key: str) -> bool:
        """Record a request for `key`; return False if the limit is exceeded."""
        now = self._clock()
        with self._lock:
            self._evict_expired(now)
            window = self._windows.get(key)
            if window is None:
                self._windows[key] = _Window(count=1, reset_time=now + self.window_seconds)
                return True
            if window.count >= self.max_requests:
                return False
            window.count += 1
            return True

    def remaining(self, key: str) -> int:
        """Requests left for `key` in the current window."""
        now = self._clock()
        with self._lock:
            window = self._windows.get(key)
            if window is None or now > window.reset_time:
                return self.max_requests
            return max(0, self.max_requests - window.count)

    def tracked_keys(self) -> int:
        """Number of keys holding a window."""
        with self._lock:
            return len(self._windows)

    def _evict_expired(self, now: float) -> None:
        expired = [key for key, window in self._windows.items() if now > window.reset_time]
        for key in expired:
            del self._windows[key]
