"""Rate limiting dependencies for FastAPI routes.

This module wires the rate limiting adapters into the HTTP layer.

Strategy:
- Per-IP fixed-window limits, keyed by the client identifier resolved from
  proxy headers or the transport address.
- Three independent policies, one limiter each: subscription endpoints that
  trigger email (``email``), general endpoints (``general``) and the
  broadcast endpoints (``admin``). Policies never share budget.
- Limiters and their settings live on ``app.state``; there is no module-level
  limiter state.
"""

from __future__ import annotations

import enum
import logging
from typing import Awaitable, Callable

from fastapi import Request

from newsletter.adapters.rate_limit.base import AbstractRateLimiter
from newsletter.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from newsletter.core.client_ip import get_client_identifier
from newsletter.core.config import RateLimitSettings, settings
from newsletter.core.errors import RateLimitExceededError
from newsletter.core.logging import hash_client_identifier

logger = logging.getLogger(__name__)


class RateLimitPolicy(str, enum.Enum):
    EMAIL = "email"
    GENERAL = "general"
    ADMIN = "admin"


def policy_limits(cfg: RateLimitSettings) -> dict[RateLimitPolicy, tuple[int, int]]:
    """Map each policy to its configured ``(requests, window_seconds)`` pair."""
    return {
        RateLimitPolicy.EMAIL: (cfg.email_requests, cfg.email_window_seconds),
        RateLimitPolicy.GENERAL: (cfg.general_requests, cfg.general_window_seconds),
        RateLimitPolicy.ADMIN: (cfg.admin_requests, cfg.admin_window_seconds),
    }


def build_rate_limiters(
    cfg: RateLimitSettings | None = None,
) -> dict[RateLimitPolicy, AbstractRateLimiter]:
    """Create one independent limiter per policy.

    Args:
        cfg: Rate limit settings; defaults to the global settings.

    Returns:
        Mapping of policy to its limiter instance.
    """
    cfg = cfg or settings.rate_limit
    return {
        policy: InMemoryFixedWindowRateLimiter(limit=limit, window_seconds=window)
        for policy, (limit, window) in policy_limits(cfg).items()
    }


def enforce_rate_limit(policy: RateLimitPolicy) -> Callable[[Request], Awaitable[None]]:
    """Build a FastAPI dependency enforcing the given policy.

    Usage:
        @router.post("/subscribe", dependencies=[Depends(enforce_rate_limit(RateLimitPolicy.EMAIL))])

    Args:
        policy: Which limiter on ``app.state.rate_limiters`` to consult.

    Returns:
        Dependency that raises ``RateLimitExceededError`` (HTTP 429) when the
        client is over budget and returns silently otherwise.
    """

    async def dependency(request: Request) -> None:
        if not request.app.state.settings.rate_limit.enabled:
            return

        limiter: AbstractRateLimiter = request.app.state.rate_limiters[policy]
        identifier = get_client_identifier(request)

        if limiter.allow(identifier):
            return

        logger.warning(
            "rate_limit.exceeded",
            extra={
                "policy": policy.value,
                "client_hash": hash_client_identifier(identifier),
                "limit": limiter.limit,
                "window_s": limiter.window_seconds,
                "path": request.url.path,
            },
        )
        raise RateLimitExceededError(
            details={
                "policy": policy.value,
                "limit": limiter.limit,
                "window_seconds": limiter.window_seconds,
            }
        )

    dependency.__name__ = f"enforce_{policy.value}_rate_limit"
    return dependency
