from __future__ import annotations

from newsletter.api.routes.health import router as health_router

__all__ = ["health_router"]
