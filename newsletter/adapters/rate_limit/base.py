"""Rate limiter interfaces.

The HTTP layer depends on this abstraction (not the concrete implementation)
so the storage backend can be swapped later with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class ClientWindow:
    """Request counter for a single client within its current window.

    Attributes:
        identifier: Client key (usually an IP address).
        count: Requests admitted in the current window.
        window_start: UNIX epoch seconds when the current window began.
    """

    identifier: str
    count: int
    window_start: float


class AbstractRateLimiter(ABC):
    """Interface for per-client rate limiters."""

    @property
    @abstractmethod
    def limit(self) -> int:
        """Maximum admitted requests per window."""

    @property
    @abstractmethod
    def window_seconds(self) -> float:
        """Window duration in seconds."""

    @abstractmethod
    def allow(self, identifier: str) -> bool:
        """Decide whether a request from ``identifier`` may proceed.

        Args:
            identifier: Client key (e.g., IP address). Any string is accepted.

        Returns:
            True if the request is admitted, False if it must be rejected.
        """
        raise NotImplementedError

    @abstractmethod
    def get_window(self, identifier: str) -> ClientWindow | None:
        """Return a copy of the tracked window for ``identifier``, if any."""
        raise NotImplementedError

    @abstractmethod
    def reclaim_stale(self) -> int:
        """Drop records idle for longer than two windows.

        Returns:
            Number of removed records.
        """
        raise NotImplementedError

    @abstractmethod
    def __len__(self) -> int:
        raise NotImplementedError
