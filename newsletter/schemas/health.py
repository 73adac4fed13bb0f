"""Pydantic schemas for the health endpoint."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Liveness report for load balancers and uptime monitors."""

    status: str = Field("ok", description="Always 'ok' when the API answers.")
    timestamp: datetime = Field(..., description="Server time (UTC) of the check.")
    service: str = Field(..., description="Service name.")
    version: str = Field(..., description="Deployed service version.")
    uptime: str = Field(
        ..., description="Time since process start, e.g. '2:03:04' or '1 day, 0:00:12'."
    )
