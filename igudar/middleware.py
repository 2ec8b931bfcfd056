"""
HTTP middleware for request tracing and timing.

- :class:`RequestIDMiddleware` reuses an incoming ``X-Request-ID`` or mints a
  UUID4, exposes it on ``request.state`` and in the logging context, and
  echoes it on the response.
- :class:`RequestTimingMiddleware` adds ``X-Process-Time`` and logs slow
  requests at WARNING.
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from igudar.core.logging import request_id_ctx

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
SLOW_REQUEST_MS = 500


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Propagates ``X-Request-ID`` through the request, its logs and the response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_ctx.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_ctx.reset(token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Measures wall-clock time per request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers["X-Process-Time"] = f"{elapsed_ms:.2f}ms"

        log = logger.warning if elapsed_ms > SLOW_REQUEST_MS else logger.debug
        log(
            "%s %s → %d in %.2fms",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            extra={
                "method": request.method,
                "path": request.url.path,
                "elapsed_ms": round(elapsed_ms, 2),
            },
        )
        return response
