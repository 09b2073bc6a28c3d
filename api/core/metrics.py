"""
Per-request outcome metrics (Prometheus).

`RequestMetrics` owns an explicit CollectorRegistry; `create_app` builds one
and passes it both to `RequestMetricsMiddleware` and to the `/metrics`
endpoint. Nothing is registered on the prometheus_client global registry.

Recorded per request, keyed by (path, method):
- http_requests_total
- http_requests_duration_seconds
- http_response_status_total (additionally keyed by status_code)
"""

from __future__ import annotations

import logging
import time
from typing import Any, Awaitable, Callable, MutableMapping

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Histogram, generate_latest

logger = logging.getLogger(__name__)

Scope = MutableMapping[str, Any]
Message = MutableMapping[str, Any]
Receive = Callable[[], Awaitable[Message]]
Send = Callable[[Message], Awaitable[None]]
ASGIApp = Callable[[Scope, Receive, Send], Awaitable[None]]


class RequestMetrics:
    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        self.requests = Counter(
            "http_requests_total",
            "Total number of http requests",
            ["path", "method"],
            registry=self.registry,
        )
        self.duration = Histogram(
            "http_requests_duration_seconds",
            "Duration of http requests in seconds",
            ["path", "method"],
            registry=self.registry,
        )
        self.statuses = Counter(
            "http_response_status_total",
            "Total number of http responses by status code",
            ["path", "method", "status_code"],
            registry=self.registry,
        )

    def observe(self, *, path: str, method: str, status_code: int, duration_s: float) -> None:
        """
        Record one finished request. Never raises.
        """
        try:
            self.requests.labels(path=path, method=method).inc()
            self.duration.labels(path=path, method=method).observe(max(duration_s, 0.0))
            self.statuses.labels(path=path, method=method, status_code=str(status_code)).inc()
        except Exception:
            logger.debug("metrics_record_failed path=%s method=%s", path, method, exc_info=True)

    def render(self) -> tuple[bytes, str]:
        """
        Prometheus text exposition of the registry and its content type.
        """
        return generate_latest(self.registry), CONTENT_TYPE_LATEST


def _route_path(scope: Scope) -> str:
    # FastAPI puts the matched route on the scope; fall back to the raw path.
    route = scope.get("route")
    template = getattr(route, "path", None)
    if isinstance(template, str) and template:
        return template
    return str(scope.get("path") or "")


class RequestMetricsMiddleware:
    """
    Pure ASGI middleware so the status code is read from the response start
    message actually sent downstream.
    """

    def __init__(self, app: ASGIApp, *, metrics: RequestMetrics) -> None:
        self.app = app
        self.metrics = metrics

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start = time.perf_counter()
        # Stays 500 when the app raises before a response is started.
        status_code = 500

        async def send_with_status(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = int(message["status"])
            await send(message)

        try:
            await self.app(scope, receive, send_with_status)
        finally:
            self.metrics.observe(
                path=_route_path(scope),
                method=str(scope.get("method") or ""),
                status_code=status_code,
                duration_s=time.perf_counter() - start,
            )
