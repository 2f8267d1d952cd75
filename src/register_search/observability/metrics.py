"""Prometheus metrics for search and load signals, mirrored to OpenTelemetry."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
import time
from typing import TYPE_CHECKING, Any

from opentelemetry import metrics as otel_metrics
from prometheus_client import Counter, Gauge, Histogram, generate_latest


if TYPE_CHECKING:
    from collections.abc import Generator


_meter_holder: dict[str, Any] = {"meter": None}


def _get_meter():
    meter = _meter_holder.get("meter")
    if meter is None:
        meter = otel_metrics.get_meter(__name__)
        _meter_holder["meter"] = meter
    return meter


def _label_key(labels: dict[str, str]) -> tuple[tuple[str, str], ...]:
    return tuple(sorted(labels.items()))


class _BoundMetric:
    def __init__(self, wrapper: MetricBridge, labels: dict[str, str]) -> None:
        self._wrapper = wrapper
        self._labels = labels

    def inc(self, amount: float = 1.0) -> None:
        self._wrapper.inc(self._labels, amount)

    def observe(self, value: float) -> None:
        self._wrapper.observe(self._labels, value)

    def set(self, value: float) -> None:
        self._wrapper.set(self._labels, value)


class MetricBridge:
    """Bridge Prometheus metrics to OTel instruments."""

    def __init__(
        self,
        prom_metric: Counter | Histogram | Gauge,
        *,
        otel_name: str,
        otel_description: str,
        otel_kind: str,
    ) -> None:
        self._prom_metric = prom_metric
        self._otel_name = otel_name
        self._otel_description = otel_description
        self._otel_kind = otel_kind
        self._otel_instrument = None
        self._last_values: dict[tuple[tuple[str, str], ...], float] = {}

    def labels(self, **labels: str) -> _BoundMetric:
        return _BoundMetric(self, labels)

    def _ensure_otel_instrument(self):
        if self._otel_instrument is not None:
            return self._otel_instrument
        meter = _get_meter()
        if self._otel_kind == "counter":
            self._otel_instrument = meter.create_counter(self._otel_name, description=self._otel_description)
        elif self._otel_kind == "histogram":
            self._otel_instrument = meter.create_histogram(self._otel_name, description=self._otel_description)
        elif self._otel_kind == "gauge":
            self._otel_instrument = meter.create_up_down_counter(self._otel_name, description=self._otel_description)
        else:
            raise ValueError(f"Unknown metric kind: {self._otel_kind}")
        return self._otel_instrument

    def inc(self, labels: dict[str, str], amount: float) -> None:
        self._prom_metric.labels(**labels).inc(amount)
        self._ensure_otel_instrument().add(amount, labels)

    def observe(self, labels: dict[str, str], value: float) -> None:
        self._prom_metric.labels(**labels).observe(value)
        self._ensure_otel_instrument().record(value, labels)

    def set(self, labels: dict[str, str], value: float) -> None:
        self._prom_metric.labels(**labels).set(value)
        key = _label_key(labels)
        delta = value - self._last_values.get(key, 0.0)
        if delta:
            self._ensure_otel_instrument().add(delta, labels)
        self._last_values[key] = value


_SEARCH_LATENCY_PROM = Histogram(
    "register_search_latency_seconds",
    "Search query latency",
    ["outcome"],
    buckets=(0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1),
)

_SEARCH_COUNT_PROM = Counter(
    "register_searches_total",
    "Total search queries",
    ["outcome"],
)

_INDEX_BUILD_LATENCY_PROM = Histogram(
    "register_index_build_seconds",
    "Index snapshot build latency",
    ["source"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

_INDEX_RECORD_COUNT_PROM = Gauge(
    "register_index_record_count",
    "Records in the installed index snapshot",
    ["source"],
)

_LOAD_FAILURES_PROM = Counter(
    "register_load_failures_total",
    "Dataset acquisition failures",
    ["source"],
)

SEARCH_LATENCY = MetricBridge(
    _SEARCH_LATENCY_PROM,
    otel_name="register_search_latency_seconds",
    otel_description="Search query latency",
    otel_kind="histogram",
)

SEARCH_COUNT = MetricBridge(
    _SEARCH_COUNT_PROM,
    otel_name="register_searches_total",
    otel_description="Total search queries",
    otel_kind="counter",
)

INDEX_BUILD_LATENCY = MetricBridge(
    _INDEX_BUILD_LATENCY_PROM,
    otel_name="register_index_build_seconds",
    otel_description="Index snapshot build latency",
    otel_kind="histogram",
)

INDEX_RECORD_COUNT = MetricBridge(
    _INDEX_RECORD_COUNT_PROM,
    otel_name="register_index_record_count",
    otel_description="Records in the installed index snapshot",
    otel_kind="gauge",
)

LOAD_FAILURES = MetricBridge(
    _LOAD_FAILURES_PROM,
    otel_name="register_load_failures_total",
    otel_description="Dataset acquisition failures",
    otel_kind="counter",
)


@dataclass
class LatencySample:
    """Labels and elapsed time for one ``track_latency`` block.

    Labels may be updated inside the block when they depend on the outcome.
    """

    labels: dict[str, str]
    elapsed: float = 0.0


@contextmanager
def track_latency(histogram: MetricBridge, **labels: str) -> Generator[LatencySample, None, None]:
    """Context manager to track operation latency."""
    sample = LatencySample(labels=dict(labels))
    start = time.perf_counter()
    try:
        yield sample
    finally:
        sample.elapsed = time.perf_counter() - start
        histogram.labels(**sample.labels).observe(sample.elapsed)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()
