"""Prometheus metrics for s3lite client requests.

All metrics use the ``s3lite_`` prefix for namespace isolation. Metrics are
off by default: until :func:`init_metrics` is called the module-level
references stay ``None``, nothing is registered in the global registry, and
the ``record_*`` helpers do nothing.
"""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Histogram

# Flag indicating whether metrics have been initialised via init_metrics().
_initialized: bool = False

# ---------------------------------------------------------------------------
# Request counters  (labels: method, status)
# ---------------------------------------------------------------------------
requests_total: Counter | None = None
connectivity_failures_total: Counter | None = None

# ---------------------------------------------------------------------------
# Latency
# ---------------------------------------------------------------------------
request_duration_seconds: Histogram | None = None

# ---------------------------------------------------------------------------
# Byte counters
# ---------------------------------------------------------------------------
bytes_sent_total: Counter | None = None
bytes_received_total: Counter | None = None


def init_metrics(registry: CollectorRegistry | None = None) -> None:
    """Create and register all client metrics.

    Calling it again is a no-op.

    Args:
        registry: Registry to register with. Defaults to the global
            prometheus_client registry.
    """
    global _initialized
    global requests_total, connectivity_failures_total, request_duration_seconds
    global bytes_sent_total, bytes_received_total

    if _initialized:
        return

    kwargs = {} if registry is None else {"registry": registry}

    requests_total = Counter(
        "s3lite_requests_total",
        "Total S3 requests by method and response status",
        ["method", "status"],
        **kwargs,
    )

    connectivity_failures_total = Counter(
        "s3lite_connectivity_failures_total",
        "Total requests that received no response",
        ["method"],
        **kwargs,
    )

    request_duration_seconds = Histogram(
        "s3lite_request_duration_seconds",
        "Round-trip time of S3 requests",
        ["method"],
        **kwargs,
    )

    bytes_sent_total = Counter(
        "s3lite_bytes_sent_total",
        "Total bytes sent in request bodies",
        **kwargs,
    )

    bytes_received_total = Counter(
        "s3lite_bytes_received_total",
        "Total bytes received in response bodies",
        **kwargs,
    )

    _initialized = True


def is_enabled() -> bool:
    return _initialized


def record_request(
    method: str,
    status: int,
    duration_seconds: float,
    bytes_sent: int = 0,
    bytes_received: int = 0,
) -> None:
    """Record a completed request."""
    if not _initialized:
        return
    method = method.upper()
    requests_total.labels(method=method, status=str(status)).inc()
    request_duration_seconds.labels(method=method).observe(duration_seconds)
    if bytes_sent:
        bytes_sent_total.inc(bytes_sent)
    if bytes_received:
        bytes_received_total.inc(bytes_received)


def record_connectivity_failure(method: str) -> None:
    """Record a request that received no response."""
    if not _initialized:
        return
    connectivity_failures_total.labels(method=method.upper()).inc()
