"""HTTP middleware for the lab portal."""

from labportal.middleware.prometheus_middleware import PrometheusMiddleware

__all__ = ["PrometheusMiddleware"]
