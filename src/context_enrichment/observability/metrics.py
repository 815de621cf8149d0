"""Enrichment golden-signal metrics, exported to Prometheus and mirrored to OpenTelemetry."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
import time
from typing import Any

from opentelemetry import metrics as otel_metrics
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader
from opentelemetry.sdk.resources import Resource
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest


METER_NAME = "context_enrichment"

_otel_state: dict[str, Any] = {"provider": None, "meter": None}


def init_metrics(
    service_name: str = "context-enrichment",
    resource_attributes: dict[str, str] | None = None,
    metric_readers: Sequence[MetricReader] | None = None,
) -> MeterProvider:
    """Install the process MeterProvider on first call; later calls return it unchanged."""
    if _otel_state["provider"] is None:
        resource = Resource.create({"service.name": service_name, **(resource_attributes or {})})
        provider = MeterProvider(resource=resource, metric_readers=list(metric_readers or ()))
        otel_metrics.set_meter_provider(provider)
        _otel_state.update(provider=provider, meter=otel_metrics.get_meter(METER_NAME))
    return _otel_state["provider"]


def get_meter():
    if _otel_state["meter"] is None:
        init_metrics()
    return _otel_state["meter"]


class MetricBridge:
    """One named metric recorded to a Prometheus collector and an OTel instrument.

    The OTel instrument is created on first use so importing this module never
    installs a MeterProvider.
    """

    KINDS = ("counter", "histogram")

    def __init__(
        self,
        name: str,
        description: str,
        labelnames: Sequence[str],
        *,
        kind: str = "counter",
        buckets: Sequence[float] | None = None,
    ) -> None:
        if kind not in self.KINDS:
            raise ValueError(f"Unknown metric kind: {kind}")
        self.name = name
        self.description = description
        self.kind = kind
        if kind == "counter":
            self.prometheus: Counter | Histogram = Counter(name, description, labelnames)
        else:
            self.prometheus = Histogram(name, description, labelnames, buckets=buckets or Histogram.DEFAULT_BUCKETS)
        self._instrument = None

    def labels(self, **labels: str) -> BoundMetric:
        return BoundMetric(self, labels)

    def _otel(self):
        if self._instrument is None:
            meter = get_meter()
            create = meter.create_counter if self.kind == "counter" else meter.create_histogram
            self._instrument = create(self.name, description=self.description)
        return self._instrument

    def record(self, labels: dict[str, str], value: float) -> None:
        child = self.prometheus.labels(**labels)
        if self.kind == "counter":
            child.inc(value)
            self._otel().add(value, labels)
        else:
            child.observe(value)
            self._otel().record(value, labels)


@dataclass(frozen=True)
class BoundMetric:
    metric: MetricBridge
    labels: dict[str, str]

    def inc(self, amount: float = 1.0) -> None:
        self.metric.record(self.labels, amount)

    def observe(self, value: float) -> None:
        self.metric.record(self.labels, value)


ENRICH_REQUESTS = MetricBridge(
    "enrichment_requests_total",
    "Enrichment invocations by terminal outcome",
    ["outcome"],
)

ENRICH_LATENCY = MetricBridge(
    "enrichment_latency_seconds",
    "End-to-end enrichment latency",
    ["outcome"],
    kind="histogram",
    buckets=(0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

CACHE_EVENTS = MetricBridge(
    "enrichment_cache_events_total",
    "Cache lookups and failures",
    ["event"],
)

RETRIEVAL_FAILURES = MetricBridge(
    "enrichment_retrieval_failures_total",
    "Failed discussion search attempts",
    ["reason"],
)

RETRIEVAL_LATENCY = MetricBridge(
    "enrichment_retrieval_latency_seconds",
    "Discussion search latency including retries",
    ["query_shape"],
    kind="histogram",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

RATE_LIMIT_EVENTS = MetricBridge(
    "enrichment_rate_limit_events_total",
    "Rate limit decisions",
    ["result"],
)


@contextmanager
def track_latency(histogram: MetricBridge, **labels: str) -> Iterator[None]:
    """Observe the wall time of the ``with`` body, including when it raises."""
    started = time.perf_counter()
    try:
        yield
    finally:
        histogram.labels(**labels).observe(time.perf_counter() - started)


def get_metrics() -> bytes:
    """Prometheus text exposition of the default registry."""
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
