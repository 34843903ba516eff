"""Request context, access logging and HTTP metrics"""

import logging
import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from finance_tracker.infrastructure.observability.metrics import request_duration_histogram

UNMATCHED_ROUTE = "unmatched"


def _route_template(request: Request) -> str:
    """Path template of the matched route, so record ids never become label values"""
    route = request.scope.get("route")
    return getattr(route, "path", UNMATCHED_ROUTE)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Attach request id and caller identity to request.state and write one
    access log line per request.

    A caller-supplied X-Request-ID is reused so relay calls can be traced
    across the client and this service.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        request.state.owner_id = request.headers.get("X-User-Id")
        start_time = time.time()

        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        logging.info(
            "Request handled",
            extra={
                "request_id": request_id,
                "owner_id": request.state.owner_id,
                "method": request.method,
                "route": _route_template(request),
                "status_code": response.status_code,
                "duration_ms": round((time.time() - start_time) * 1000, 2),
            },
        )
        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        request_duration_histogram.labels(
            method=request.method,
            endpoint=_route_template(request),
            status=response.status_code,
        ).observe(time.time() - start_time)
        return response
