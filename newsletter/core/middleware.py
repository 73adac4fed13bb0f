"""Request correlation and access logging middleware.

Every request gets a correlation id, taken from the configured request id
header or freshly generated. The id is kept in a context variable while the
request runs, so the rate limiter's denial logs and any handler logs carry
it. When the request finishes, one ``http.request`` access line is emitted
with the client address hashed. Rate limited requests are logged at warning
level so bursts stand out from normal traffic.

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from newsletter.core.client_ip import get_client_identifier
from newsletter.core.logging import clear_request_id, hash_client_identifier, set_request_id

logger = logging.getLogger(__name__)

RESPONSE_TIME_HEADER = "X-Response-Time-ms"


async def request_id_middleware(request: Request, call_next) -> Response:
    """Correlate a request with its logs and echo the id to the client.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        The downstream response with the request id and response time headers.
    """
    header_name = request.app.state.settings.log.request_id_header
    request_id = request.headers.get(header_name) or uuid.uuid4().hex
    request.state.request_id = request_id
    set_request_id(request_id)

    started = time.perf_counter()
    try:
        response: Response = await call_next(request)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

        rate_limited = response.status_code == 429
        logger.log(
            logging.WARNING if rate_limited else logging.INFO,
            "http.request",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
                "client_hash": hash_client_identifier(get_client_identifier(request)),
                "rate_limited": rate_limited,
            },
        )
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers[RESPONSE_TIME_HEADER] = f"{elapsed_ms:.2f}"
    return response
