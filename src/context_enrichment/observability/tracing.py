"""OpenTelemetry spans around enrichment pipeline stages."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
import logging
from typing import Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.trace import Span, SpanKind, Status, StatusCode

from context_enrichment.observability.context import bind_span


TRACER_NAME = "context_enrichment"

logger = logging.getLogger(__name__)

_state: dict[str, Any] = {"tracer": None}


def init_tracing(
    service_name: str = "context-enrichment",
    resource_attributes: dict[str, str] | None = None,
) -> TracerProvider:
    provider = TracerProvider(resource=Resource.create({"service.name": service_name, **(resource_attributes or {})}))
    trace.set_tracer_provider(provider)
    _state["tracer"] = trace.get_tracer(TRACER_NAME)
    logger.info("Tracing initialized for service: %s", service_name)
    return provider


def get_tracer() -> trace.Tracer:
    """Tracer from ``init_tracing`` or, before it runs, from the global provider."""
    if _state["tracer"] is None:
        _state["tracer"] = trace.get_tracer(TRACER_NAME)
    return _state["tracer"]


@contextmanager
def create_span(
    name: str,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: dict[str, Any] | None = None,
) -> Iterator[Span]:
    """Open a span and point log records at it for the duration of the block."""
    with get_tracer().start_as_current_span(
        name,
        kind=kind,
        attributes=attributes,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        span_context = span.get_span_context()
        if span_context.is_valid:
            bind_span(format(span_context.span_id, "016x"), format(span_context.trace_id, "032x"))
        try:
            yield span
        except Exception as exc:
            span.record_exception(exc)
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            raise
