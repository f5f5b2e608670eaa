"""Prometheus metrics definitions and helpers."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "voice_capture_http_requests_total",
    "Total HTTP requests processed",
    ("method", "route", "status"),
)

REQUEST_LATENCY = Histogram(
    "voice_capture_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ("method", "route"),
    buckets=(
        0.01,
        0.05,
        0.1,
        0.25,
        0.5,
        1.0,
        2.5,
        5.0,
        10.0,
        30.0,
        60.0,
    ),
)

ERROR_COUNTER = Counter(
    "voice_capture_internal_errors_total",
    "Number of requests ending in internal server error responses",
    ("method", "route"),
)

PIPELINE_EVENT_COUNT = Counter(
    "voice_capture_pipeline_events_total",
    "Voice pipeline step outcomes",
    ("metric", "result", "reason"),
)

PIPELINE_EVENT_LATENCY = Histogram(
    "voice_capture_pipeline_event_duration_seconds",
    "Voice pipeline step duration in seconds",
    ("metric",),
    buckets=(
        0.001,
        0.01,
        0.1,
        0.5,
        1.0,
        2.5,
        5.0,
        10.0,
        20.0,
        30.0,
        60.0,
    ),
)


def observe_request(
    method: str,
    route: str,
    status_code: int,
    duration_seconds: float,
) -> None:
    """Record metrics for a completed HTTP request."""

    safe_route = route or "unknown"
    safe_method = method or "UNKNOWN"
    status_label = str(status_code)
    observed_duration = duration_seconds if duration_seconds >= 0 else 0

    REQUEST_COUNT.labels(
        method=safe_method,
        route=safe_route,
        status=status_label,
    ).inc()
    REQUEST_LATENCY.labels(
        method=safe_method,
        route=safe_route,
    ).observe(observed_duration)

    if status_code >= 500:
        ERROR_COUNTER.labels(
            method=safe_method,
            route=safe_route,
        ).inc()


def observe_pipeline_event(
    metric: str,
    result: str,
    reason: str | None,
    duration_seconds: float,
) -> None:
    """Record one pipeline step outcome."""

    PIPELINE_EVENT_COUNT.labels(
        metric=metric,
        result=result,
        reason=reason or "none",
    ).inc()
    PIPELINE_EVENT_LATENCY.labels(metric=metric).observe(max(duration_seconds, 0))
