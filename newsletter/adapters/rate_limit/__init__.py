"""Rate limiting adapters.

This package keeps the limiter behind a small interface so the in-memory
implementation can later be replaced by a shared store without touching the
HTTP layer.
"""

from newsletter.adapters.rate_limit.base import AbstractRateLimiter, ClientWindow
from newsletter.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from newsletter.adapters.rate_limit.reclaimer import (
    DEFAULT_SWEEP_INTERVAL_SECONDS,
    WindowReclaimer,
)

__all__ = [
    "AbstractRateLimiter",
    "ClientWindow",
    "DEFAULT_SWEEP_INTERVAL_SECONDS",
    "InMemoryFixedWindowRateLimiter",
    "WindowReclaimer",
]
