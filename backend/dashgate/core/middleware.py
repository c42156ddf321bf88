"""Per-request observability: request id, access log line, HTTP metrics."""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from dashgate.core.config import settings
from dashgate.core.metrics import http_request_duration_seconds, http_requests_total

REQUEST_ID_HEADER = "X-Request-ID"

logger = structlog.stdlib.get_logger("dashgate.http")


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """Binds request_id for the request's log events and records HTTP metrics.

    The dashboard server forwards its own ``X-Request-ID`` so an authorize
    call can be traced back to the websocket subscription that triggered it;
    one is generated when absent. Paths in ``skip_paths`` are still measured
    but produce no ``request_completed`` line.
    """

    def __init__(self, app: ASGIApp, skip_paths: list[str] | None = None):
        super().__init__(app)
        self.skip_paths = frozenset(
            settings.log_skip_paths if skip_paths is None else skip_paths
        )

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start

        # Route pattern, not the resolved path: widget ids stay out of labels
        route = request.scope.get("route")
        path = route.path if route else request.url.path
        method = request.method
        status = response.status_code

        http_requests_total.labels(method=method, path=path, status=status).inc()
        http_request_duration_seconds.labels(method=method, path=path).observe(duration)
        response.headers[REQUEST_ID_HEADER] = request_id

        if request.url.path not in self.skip_paths:
            logger.info(
                "request_completed",
                method=method,
                path=path,
                status=status,
                duration_ms=round(duration * 1000, 2),
            )

        structlog.contextvars.clear_contextvars()
        return response
