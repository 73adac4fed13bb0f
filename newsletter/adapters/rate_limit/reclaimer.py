"""Background reclamation of stale rate limiter records.

A ``WindowReclaimer`` periodically asks one limiter to drop clients that have
been idle for more than two windows, which bounds memory for one-off
visitors. Its asyncio task is started and cancelled by the application
lifespan.
"""

from __future__ import annotations

import asyncio
import logging

from newsletter.adapters.rate_limit.base import AbstractRateLimiter

logger = logging.getLogger(__name__)

# Fixed sweep period, independent of any limiter's window.
DEFAULT_SWEEP_INTERVAL_SECONDS: float = 600.0


class WindowReclaimer:
    """Periodically reclaims stale client windows from a limiter."""

    def __init__(
        self,
        limiter: AbstractRateLimiter,
        *,
        name: str = "rate_limiter",
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")

        self._limiter = limiter
        self._name = name
        self._interval_seconds = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop.

        Calling ``start`` on an already running reclaimer is a no-op.
        """
        if self.running:
            return
        self._task = asyncio.create_task(
            self._run(), name=f"window-reclaimer:{self._name}"
        )
        logger.debug(
            "rate_limit.reclaimer_started",
            extra={"limiter": self._name, "interval_s": self._interval_seconds},
        )

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("rate_limit.reclaimer_stopped", extra={"limiter": self._name})

    def sweep(self) -> int:
        """Run a single reclamation pass.

        Returns:
            Number of removed client records.
        """
        removed = self._limiter.reclaim_stale()
        if removed:
            logger.info(
                "rate_limit.reclaimed",
                extra={
                    "limiter": self._name,
                    "removed": removed,
                    "tracked": len(self._limiter),
                },
            )
        return removed

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval_seconds)
            try:
                self.sweep()
            except Exception:
                logger.exception(
                    "rate_limit.reclaim_failed", extra={"limiter": self._name}
                )
