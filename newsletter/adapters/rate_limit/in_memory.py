"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: every access to the record map goes through one lock.
- Windows start at a client's first request, not on aligned clock boundaries,
  so a burst straddling a reset can admit up to ``2 * limit`` requests.
"""

from __future__ import annotations

import threading
import time
from dataclasses import replace
from typing import Callable

from newsletter.adapters.rate_limit.base import AbstractRateLimiter, ClientWindow


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using a fixed time window per client.

    Each client gets its own window that opens on its first request and is
    reset by the first request arriving after it has fully elapsed. Denied
    requests are not counted.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of admitted requests per window.
            window_seconds: Size of the fixed window in seconds.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: dict[str, ClientWindow] = {}

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    def allow(self, identifier: str) -> bool:
        """Admit or reject a request for the provided client.

        This method both checks the current window usage and mutates the state
        when the request is admitted.

        Args:
            identifier: Client key. Empty or malformed values are just keys.

        Returns:
            True when admitted, False when the client exhausted its window.
        """
        with self._lock:
            now = self._clock()
            window = self._windows.get(identifier)

            if window is None:
                self._windows[identifier] = ClientWindow(
                    identifier=identifier, count=1, window_start=now
                )
                return True

            if now - window.window_start > self._window_seconds:
                window.count = 1
                window.window_start = now
                return True

            if window.count < self._limit:
                window.count += 1
                return True

            return False

    def get_window(self, identifier: str) -> ClientWindow | None:
        with self._lock:
            window = self._windows.get(identifier)
            return replace(window) if window is not None else None

    def reclaim_stale(self) -> int:
        """Remove clients whose window has been stale for two full windows.

        Returns:
            Number of removed client records.
        """
        with self._lock:
            cutoff = self._clock() - 2 * self._window_seconds
            stale = [
                identifier
                for identifier, window in self._windows.items()
                if window.window_start < cutoff
            ]
            for identifier in stale:
                del self._windows[identifier]
            return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)
