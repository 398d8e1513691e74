# =============================================================================
# Request Logging Middleware — Request/Response Lifecycle Logging
# =============================================================================
#
# Logs one line per request: method, path, status code and latency, tagged
# with a request id. The id is taken from the incoming X-Request-Id header
# when present (so gateway and service logs can be joined) and generated
# otherwise; it is echoed back on the response.
#
# DESIGN DECISION: Starlette middleware (not a FastAPI dependency) because
# it wraps the entire request lifecycle and sees the final status code,
# including responses produced by exception handlers.
#
# Headers are never logged. In particular the Authorization header carries
# the API key and must not reach the logs.
# =============================================================================

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import (
    BaseHTTPMiddleware,
    RequestResponseEndpoint,
)
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"

# Probes and docs are too frequent/uninteresting to log
_SKIP_PATHS = {"/healthcheck", "/docs", "/redoc", "/openapi.json"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request and propagates an X-Request-Id header."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id

        start_time = time.monotonic()
        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = int((time.monotonic() - start_time) * 1000)
            logger.exception(
                "[%s] %s %s failed after %dms",
                request_id, request.method, request.url.path, elapsed_ms,
            )
            raise
        elapsed_ms = int((time.monotonic() - start_time) * 1000)

        response.headers[REQUEST_ID_HEADER] = request_id
        if request.url.path not in _SKIP_PATHS:
            logger.info(
                "[%s] %s %s -> %d (%dms)",
                request_id, request.method, request.url.path,
                response.status_code, elapsed_ms,
            )
        return response
