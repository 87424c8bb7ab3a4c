"""Prometheus metric definitions for the relay."""

from prometheus_client import Counter, Histogram, generate_latest
from starlette.responses import Response


http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "route", "method", "status_code"],
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration seconds",
    ["service", "route", "method"],
)
gateway_requests_total = Counter(
    "gateway_requests_total",
    "Outbound gateway calls by operation and outcome",
    ["service", "operation", "outcome"],
)
gateway_latency_seconds = Histogram(
    "gateway_latency_seconds",
    "Outbound gateway call latency seconds",
    ["service", "operation"],
)
payment_links_created_total = Counter(
    "payment_links_created_total",
    "Payment links handed back to callers",
    ["service", "route"],
)


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
