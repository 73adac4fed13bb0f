"""Application factory for the FastAPI app.

Centralizes app construction (middleware, handlers, routers, rate limiters)
so tests can build isolated app instances with fresh limiter state.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from newsletter.adapters.rate_limit.reclaimer import WindowReclaimer
from newsletter.api.routes import health_router
from newsletter.core.config import Settings, settings as default_settings
from newsletter.core.exception_handlers import setup_exception_handlers
from newsletter.core.logging import configure_logging
from newsletter.core.middleware import request_id_middleware
from newsletter.core.rate_limit import build_rate_limiters

logger = logging.getLogger(__name__)

CORS_ALLOW_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_ALLOW_HEADERS = ["Content-Type", "Authorization", "X-Secret"]
CORS_MAX_AGE_SECONDS = 86400


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run one stale-window reclaimer per limiter for the app's lifetime."""
    cfg: Settings = app.state.settings
    reclaimers = [
        WindowReclaimer(
            limiter,
            name=policy.value,
            interval_seconds=cfg.rate_limit.sweep_interval_seconds,
        )
        for policy, limiter in app.state.rate_limiters.items()
    ]
    app.state.reclaimers = reclaimers

    for policy, limiter in app.state.rate_limiters.items():
        logger.info(
            "rate_limit.policy_enabled",
            extra={
                "policy": policy.value,
                "limit": limiter.limit,
                "window_s": limiter.window_seconds,
                "enabled": cfg.rate_limit.enabled,
            },
        )
    for reclaimer in reclaimers:
        reclaimer.start()

    try:
        yield
    finally:
        for reclaimer in reclaimers:
            await reclaimer.stop()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        settings: Settings for this app; defaults to the process settings.
            Stored on ``app.state.settings`` and read from there at request
            time, so apps built with different settings stay independent.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and its
        own set of rate limiters.
    """
    settings = settings or default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Newsletter API",
        description=(
            "Newsletter subscription and broadcast service. Public endpoints "
            "are protected by per-IP fixed-window rate limits."
        ),
        version=settings.app.version,
        debug=settings.app.debug,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.rate_limiters = build_rate_limiters(settings.rate_limit)

    # Middleware
    app.middleware("http")(request_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.cors_origins_list,
        allow_methods=CORS_ALLOW_METHODS,
        allow_headers=CORS_ALLOW_HEADERS,
        max_age=CORS_MAX_AGE_SECONDS,
    )

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(health_router)

    return app
