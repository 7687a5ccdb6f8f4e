"""Prometheus metrics definitions for s3lite.

All metrics use the ``s3lite_`` prefix and are registered in the global
``prometheus_client`` registry, so a process embedding the client can
expose them next to its own.  Nothing is registered until
``init_metrics()`` runs; until then the ``record_*`` helpers do nothing.
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

_initialized: bool = False

# ---------------------------------------------------------------------------
# Request counter and latency  (labels: method, status)
# ---------------------------------------------------------------------------
requests_total: Counter | None = None
request_duration_seconds: Histogram | None = None

# ---------------------------------------------------------------------------
# Byte counters
# ---------------------------------------------------------------------------
bytes_sent_total: Counter | None = None
bytes_received_total: Counter | None = None


def init_metrics() -> None:
    """Create and register all Prometheus metrics.

    Safe to call more than once; collectors are registered only the first
    time.
    """
    global _initialized
    global requests_total, request_duration_seconds
    global bytes_sent_total, bytes_received_total

    if _initialized:
        return

    requests_total = Counter(
        "s3lite_requests_total",
        "Total S3 requests by HTTP method and response status",
        ["method", "status"],
    )

    request_duration_seconds = Histogram(
        "s3lite_request_duration_seconds",
        "S3 request round-trip time in seconds",
        ["method"],
    )

    bytes_sent_total = Counter(
        "s3lite_bytes_sent_total",
        "Total bytes sent in request bodies",
    )

    bytes_received_total = Counter(
        "s3lite_bytes_received_total",
        "Total bytes received in response bodies",
    )

    _initialized = True


def record_request(
    method: str, status: int | str, duration: float, sent: int, received: int
) -> None:
    """Record one completed request. No-op before ``init_metrics()``.

    Args:
        method: HTTP method.
        status: Response status code, or ``"error"`` for transport failures.
        duration: Round-trip time in seconds.
        sent: Request body size in bytes.
        received: Response body size in bytes.
    """
    if not _initialized:
        return
    requests_total.labels(method=method, status=str(status)).inc()
    request_duration_seconds.labels(method=method).observe(duration)
    if sent:
        bytes_sent_total.inc(sent)
    if received:
        bytes_received_total.inc(received)
