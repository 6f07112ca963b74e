"""Request correlation and timing for the report API."""

import time
import uuid
from collections.abc import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from stocklens.core.logging import get_logger, request_id_ctx

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
RESPONSE_TIME_HEADER = "X-Response-Time-Ms"

# Probes hit these every few seconds; keep them out of INFO logs
QUIET_PATHS = frozenset({"/health", "/health/ready"})


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and report how long it took.

    A client-supplied ``X-Request-ID`` is reused so that a report request can
    be traced across services; otherwise a UUID4 is generated. The id is
    echoed back along with the handling time in milliseconds.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = request_id_ctx.set(request_id)
        path = request.url.path
        log = logger.debug if path in QUIET_PATHS else logger.info
        started = time.perf_counter()

        try:
            log(
                "http.request_started",
                method=request.method,
                path=path,
                query=request.url.query or None,
            )
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - started) * 1000, 2)
            log(
                "http.request_completed",
                method=request.method,
                path=path,
                status_code=response.status_code,
                duration_ms=duration_ms,
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            response.headers[RESPONSE_TIME_HEADER] = f"{duration_ms:.2f}"
            return response
        finally:
            request_id_ctx.reset(token)
