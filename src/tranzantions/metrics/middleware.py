"""Prometheus HTTP request metrics middleware.

Requests are labelled by route template (``/api/notifications/{wallet_address}``)
rather than raw path, so wallet addresses never become label values.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware

if TYPE_CHECKING:
    from collections.abc import Callable

    from prometheus_client import CollectorRegistry
    from starlette.requests import Request
    from starlette.responses import Response

_UNMATCHED = "__unmatched__"


def _route_template(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", _UNMATCHED)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Records request count and duration per method, route and status."""

    def __init__(self, app: object, *, registry: CollectorRegistry) -> None:
        super().__init__(app)  # type: ignore[arg-type]
        self._requests = Counter(
            "tranz_http_requests_total",
            "Total HTTP requests",
            ("method", "route", "status_code"),
            registry=registry,
        )
        self._duration = Histogram(
            "tranz_http_request_duration_seconds",
            "HTTP request duration in seconds",
            ("method", "route"),
            registry=registry,
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:  # type: ignore[type-arg]
        start = time.monotonic()
        response: Response = await call_next(request)
        elapsed = time.monotonic() - start

        route = _route_template(request)
        self._requests.labels(request.method, route, str(response.status_code)).inc()
        self._duration.labels(request.method, route).observe(elapsed)
        return response
