"""Telemetry helpers and metrics."""

from .metrics import (
    ANALYSIS_COUNTER,
    CHUNK_COUNTER,
    ERROR_COUNTER,
    LOGIN_COUNTER,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    TOKEN_COUNTER,
    increment_login,
    observe_analysis,
    observe_chunk,
    observe_request,
    observe_tokens,
)

__all__ = [
    "ANALYSIS_COUNTER",
    "CHUNK_COUNTER",
    "ERROR_COUNTER",
    "LOGIN_COUNTER",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "TOKEN_COUNTER",
    "increment_login",
    "observe_analysis",
    "observe_chunk",
    "observe_request",
    "observe_tokens",
]
