"""
Metrics endpoints.

Provides endpoints for exposing Prometheus metrics.
"""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from prometheus_client.core import REGISTRY as DEFAULT_REGISTRY

from labportal.core.config import settings

router = APIRouter()


@router.get("/metrics")
async def metrics() -> Response:
    """
    Prometheus metrics endpoint.

    Exposes application metrics in Prometheus text format, including:
    - HTTP request counts and latency (from PrometheusMiddleware)
    - Formula cache hits and misses
    - Formula evaluation outcomes and pass duration

    Example:
        ```bash
        curl http://localhost:8000/api/v1/metrics
        ```
    """
    if not settings.prometheus_enabled:
        return Response(
            content="Metrics are disabled",
            status_code=503,
            media_type="text/plain",
        )

    return Response(
        content=generate_latest(DEFAULT_REGISTRY),
        status_code=200,
        media_type=CONTENT_TYPE_LATEST,
    )
