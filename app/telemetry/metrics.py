"""Prometheus metrics definitions and helpers."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests processed",
    ("method", "route", "status"),
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ("method", "route"),
    buckets=(
        0.005,
        0.01,
        0.025,
        0.05,
        0.1,
        0.25,
        0.5,
        1.0,
        2.5,
        5.0,
        10.0,
    ),
)

LOGIN_COUNTER = Counter(
    "app_logins_total",
    "Login attempts by outcome",
    ("outcome",),
)

ERROR_COUNTER = Counter(
    "app_internal_errors_total",
    "Number of requests ending in internal server error responses",
    ("method", "route"),
)

CHUNK_COUNTER = Counter(
    "analysis_chunks_total",
    "Audio chunks sent to the AI model, by outcome",
    ("outcome",),
)

TOKEN_COUNTER = Counter(
    "ai_tokens_total",
    "AI tokens consumed by model and direction",
    ("model", "direction"),
)

ANALYSIS_COUNTER = Counter(
    "analyses_finished_total",
    "Analyses that reached a terminal status",
    ("kind", "status"),
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


def increment_login(outcome: str = "success") -> None:
    """Count a login attempt (`success` or `rejected`)."""

    LOGIN_COUNTER.labels(outcome=outcome).inc()


def observe_chunk(outcome: str) -> None:
    """Count one processed chunk (`saved`, `empty`, `failed`, `rate_limited`)."""

    CHUNK_COUNTER.labels(outcome=outcome).inc()


def observe_tokens(model: str | None, input_tokens: int, output_tokens: int) -> None:
    """Accumulate AI token usage."""

    label = model or "unknown"
    if input_tokens > 0:
        TOKEN_COUNTER.labels(model=label, direction="input").inc(input_tokens)
    if output_tokens > 0:
        TOKEN_COUNTER.labels(model=label, direction="output").inc(output_tokens)


def observe_analysis(kind: str, status: str) -> None:
    """Count an analysis reaching `done` or `error`."""

    ANALYSIS_COUNTER.labels(kind=kind, status=status).inc()
