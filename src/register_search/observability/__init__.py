"""Observability module for OpenTelemetry-aligned tracing, metrics, and logging."""

from register_search.observability.logging import JsonFormatter, configure_logging
from register_search.observability.metrics import (
    INDEX_BUILD_LATENCY,
    INDEX_RECORD_COUNT,
    LOAD_FAILURES,
    SEARCH_COUNT,
    SEARCH_LATENCY,
    LatencySample,
    get_metrics,
    track_latency,
)
from register_search.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "INDEX_BUILD_LATENCY",
    "INDEX_RECORD_COUNT",
    "LOAD_FAILURES",
    "SEARCH_COUNT",
    "SEARCH_LATENCY",
    "JsonFormatter",
    "LatencySample",
    "configure_logging",
    "create_span",
    "get_metrics",
    "get_tracer",
    "init_tracing",
    "track_latency",
]
