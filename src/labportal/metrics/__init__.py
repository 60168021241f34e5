"""Prometheus metrics for the lab portal."""

from prometheus_client import Counter, Histogram

# API request counter
# Labels: method (HTTP method), endpoint (API path), status (HTTP status code)
api_request_counter = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status"],
)

# API latency histogram
# Labels: method (HTTP method), endpoint (API path)
api_latency_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Parsed formula cache lookups
# Labels: operation (get, clear), status (hit, miss, ok)
formula_cache_counter = Counter(
    "formula_cache_operations_total",
    "Total number of formula cache operations",
    ["operation", "status"],
)

# Formula x value column outcomes
# Labels: outcome (match, no_match, unresolved, non_numeric, malformed)
formula_evaluation_counter = Counter(
    "formula_evaluations_total",
    "Total number of formula evaluations against a value column",
    ["outcome"],
)

# Full evaluation pass duration
formula_evaluation_histogram = Histogram(
    "formula_evaluation_duration_seconds",
    "Duration of one formulas-against-table evaluation pass",
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

__all__ = [
    "api_request_counter",
    "api_latency_histogram",
    "formula_cache_counter",
    "formula_evaluation_counter",
    "formula_evaluation_histogram",
]
