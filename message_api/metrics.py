"""
Prometheus metrics for the messages API.

This module provides:
- HTTP request counter (method, path, status)
- Message operation outcome counter (operation, outcome)
- Request latency histogram (method, path)

Metrics are stored in-memory using prometheus-client.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST


# =============================================================================
# Metric Definitions
# =============================================================================

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    labelnames=["method", "path", "status"]
)

# outcome: ok, validation, not_found, storage, unhandled
message_operations_total = Counter(
    "message_operations_total",
    "Total message operation outcomes",
    labelnames=["operation", "outcome"]
)

request_latency_seconds = Histogram(
    "request_latency_seconds",
    "Request latency in seconds",
    labelnames=["method", "path"]
)


# =============================================================================
# Helper Functions
# =============================================================================

def record_http_request(method: str, path: str, status: int, latency_seconds: float) -> None:
    """
    Record an HTTP request in metrics.

    Args:
        method: HTTP method (GET, POST, etc.)
        path: Route template (e.g. /api/messages/receiver/{receiverID})
            or raw path when no route matched
        status: HTTP status code
        latency_seconds: Request processing time in seconds
    """
    normalized_path = path.split("?")[0]

    http_requests_total.labels(
        method=method,
        path=normalized_path,
        status=str(status)
    ).inc()

    request_latency_seconds.labels(
        method=method,
        path=normalized_path
    ).observe(latency_seconds)


def record_message_operation(operation: str, outcome: str) -> None:
    """
    Record the outcome of a message operation.

    Args:
        operation: Handler name (list_all, create, get_by_sender_and_id, ...)
        outcome: "ok", "validation", "not_found", "storage" or "unhandled"
    """
    message_operations_total.labels(operation=operation, outcome=outcome).inc()


def get_metrics() -> bytes:
    """Generate Prometheus exposition format metrics."""
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
