"""Prometheus metrics for API service.

Exposes key metrics for monitoring:
- Request counts by endpoint and status
- Request duration histograms
- Compiled query counts
- Analytics reports and their duration by intent
- Invoice store calls by operation and outcome

Based on Prometheus best practices:
https://prometheus.io/docs/practices/naming/
"""

from prometheus_client import Counter, Histogram, generate_latest
from prometheus_client.openmetrics.exposition import CONTENT_TYPE_LATEST

# Request metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Query compiler metrics
queries_compiled_total = Counter(
    "queries_compiled_total",
    "Total natural-language queries compiled",
    ["outcome"],  # filtered, empty
)

# Analytics metrics
analytics_reports_total = Counter(
    "analytics_reports_total",
    "Total analytics reports produced",
    ["intent"],  # vendor-ranking, ..., none
)

analytics_duration_seconds = Histogram(
    "analytics_duration_seconds",
    "Analytics report computation time in seconds",
    ["intent"],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0),
)

# Invoice store metrics
store_requests_total = Counter(
    "store_requests_total",
    "Total invoice store calls",
    ["operation", "status"],  # status: success, failed
)


def get_metrics() -> tuple[bytes, str]:
    """Generate Prometheus metrics in text format.

    Returns:
        Tuple of (metrics bytes, content type)
    """
    return generate_latest(), CONTENT_TYPE_LATEST
