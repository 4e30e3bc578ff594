"""Request tracing middleware.

Each request runs under a correlation ID, taken from the ``X-Correlation-ID``
header or generated, so the storage events logged while serving it can be
grouped. The ID is echoed back on the response.
"""

import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from textstore.observability.logging import get_logger, reset_correlation_id, set_correlation_id
from textstore.observability.metrics import get_metrics_collector

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


def route_template(request: Request) -> str:
    """Return the matched route path, e.g. ``/storage/records/{record_id}``.

    Metrics are labelled by template so record ids do not create new series.
    Unmatched requests fall back to the raw path.
    """
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Bind a correlation ID to the request and record its outcome."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex
        token = set_correlation_id(correlation_id)
        started = time.perf_counter()
        try:
            logger.debug("request_started", method=request.method, path=request.url.path)
            try:
                response = await call_next(request)
            except Exception as e:
                logger.error(
                    "request_failed",
                    method=request.method,
                    path=request.url.path,
                    error=str(e),
                    duration_ms=round((time.perf_counter() - started) * 1000),
                )
                raise

            elapsed = time.perf_counter() - started
            get_metrics_collector().record_http_request(
                method=request.method,
                endpoint=route_template(request),
                status_code=response.status_code,
                duration_seconds=elapsed,
            )
            logger.info(
                "request_completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(elapsed * 1000),
            )
            response.headers[CORRELATION_HEADER] = correlation_id
            return response
        finally:
            reset_correlation_id(token)
