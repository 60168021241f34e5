"""
Prometheus middleware for HTTP metrics collection.

Records request counts and latency for every API call.
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from labportal.core.logging import get_logger
from labportal.metrics import api_latency_histogram, api_request_counter

logger = get_logger(__name__)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Prometheus metrics middleware for FastAPI.

    Request count is labeled by method, endpoint and status; latency by
    method and endpoint. Endpoints are labeled with the route template so
    label cardinality stays bounded.

    Example:
        ```python
        app = FastAPI()
        app.add_middleware(PrometheusMiddleware, skip_paths=["/api/v1/metrics"])
        ```
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        skip_paths: list[str] | None = None,
        skip_options: bool = True,
    ) -> None:
        """
        Initialize the Prometheus middleware.

        Args:
            app: The ASGI application to wrap
            skip_paths: Paths excluded from metrics (e.g. the scrape endpoint)
            skip_options: Whether to skip CORS preflight requests
        """
        super().__init__(app)
        self.skip_paths = set(skip_paths or [])
        self.skip_options = skip_options

    def _should_skip_request(self, request: Request) -> bool:
        if request.url.path in self.skip_paths:
            return True
        return self.skip_options and request.method == "OPTIONS"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process request and record Prometheus metrics.

        Errors in metrics collection are logged and never fail the request.
        """
        if self._should_skip_request(request):
            return await call_next(request)

        start_time = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration = time.perf_counter() - start_time
            method = request.method
            endpoint = self._get_endpoint_label(request)
            try:
                api_request_counter.labels(
                    method=method,
                    endpoint=endpoint,
                    status=str(status_code),
                ).inc()
                api_latency_histogram.labels(method=method, endpoint=endpoint).observe(duration)
            except Exception as metrics_error:
                logger.error(
                    "Failed to record Prometheus metrics",
                    extra={
                        "error": str(metrics_error),
                        "method": method,
                        "endpoint": endpoint,
                        "status": status_code,
                    },
                    exc_info=True,
                )

    def _get_endpoint_label(self, request: Request) -> str:
        """
        Normalized endpoint label: the matched route template when
        available, else the raw path, without a trailing slash.
        """
        route = request.scope.get("route")
        endpoint = route.path if route is not None and hasattr(route, "path") else request.url.path

        if endpoint.endswith("/") and len(endpoint) > 1:
            endpoint = endpoint[:-1]
        return endpoint or "/"


__all__ = ["PrometheusMiddleware"]
