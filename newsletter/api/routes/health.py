from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Request

from newsletter.core.rate_limit import RateLimitPolicy, enforce_rate_limit
from newsletter.schemas.health import HealthResponse

router = APIRouter(tags=["Health"])

_started_at = time.monotonic()


def format_uptime(seconds: float) -> str:
    """Render an uptime in whole seconds, e.g. ``'0:15:07'``."""
    return str(timedelta(seconds=int(seconds)))


@router.get(
    "/health",
    response_model=HealthResponse,
    dependencies=[Depends(enforce_rate_limit(RateLimitPolicy.GENERAL))],
)
def health_check(request: Request) -> HealthResponse:
    """Health check endpoint.

    Returns a status response to verify the API is operational, along with
    the service identity and how long the process has been up.
    """
    app_settings = request.app.state.settings.app
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc),
        service=app_settings.service_name,
        version=app_settings.version,
        uptime=format_uptime(time.monotonic() - _started_at),
    )
