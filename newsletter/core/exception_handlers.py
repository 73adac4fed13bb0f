"""Global exception handlers for consistent error responses.

Every error leaves the API in the same envelope used by successful calls:

    {"success": false, "error": "<human readable>", "message": ""}

Design:
- AppError subclasses → appropriate HTTP status (400, 429)
- Starlette HTTPException (404, 405, ...) → same status, envelope body
- Unexpected Exception → generic 500 (safety net)
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from newsletter.core.errors import AppError, RateLimitExceededError
from newsletter.core.logging import get_request_id

logger = logging.getLogger(__name__)


def error_response(status_code: int, error: str, headers: dict[str, str] | None = None) -> JSONResponse:
    """Build the service's failure envelope."""
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "message": ""},
        headers=headers,
    )


def _status_for(exc: AppError) -> int:
    if isinstance(exc, RateLimitExceededError):
        return 429
    return 400


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors.

    Routes domain errors to HTTP status codes:
    - RateLimitExceededError → 429 Too Many Requests
    - any other AppError → 400 Bad Request

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the failure envelope.
    """
    status_code = _status_for(exc)

    # Rate limit denials are logged by the dependency that raised them.
    if not isinstance(exc, RateLimitExceededError):
        logger.warning(
            "app_error_handled",
            extra={
                "error_code": exc.code,
                "error_message": exc.message,
                "status_code": status_code,
                "has_details": bool(exc.details),
                "request_id": get_request_id(),
            },
        )

    return error_response(status_code, exc.message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework HTTP errors (404, 405, ...) in the failure envelope."""
    return error_response(
        exc.status_code,
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic message,
    so no stack traces reach the client.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    return error_response(500, "An unexpected error occurred. Please try again later.")


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
