"""Structured logging, Prometheus/OpenTelemetry metrics and tracing."""

from context_enrichment.observability.context import (
    LogContext,
    bind_request,
    bind_span,
    clear_log_context,
    current_log_context,
    reset_log_context,
)
from context_enrichment.observability.logging import StructuredFormatter, configure_logging
from context_enrichment.observability.metrics import (
    CACHE_EVENTS,
    ENRICH_LATENCY,
    ENRICH_REQUESTS,
    RATE_LIMIT_EVENTS,
    RETRIEVAL_FAILURES,
    RETRIEVAL_LATENCY,
    get_metrics,
    get_metrics_content_type,
    init_metrics,
    track_latency,
)
from context_enrichment.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "CACHE_EVENTS",
    "ENRICH_LATENCY",
    "ENRICH_REQUESTS",
    "RATE_LIMIT_EVENTS",
    "RETRIEVAL_FAILURES",
    "RETRIEVAL_LATENCY",
    "LogContext",
    "StructuredFormatter",
    "bind_request",
    "bind_span",
    "clear_log_context",
    "configure_logging",
    "create_span",
    "current_log_context",
    "reset_log_context",
    "get_metrics",
    "get_metrics_content_type",
    "get_tracer",
    "init_metrics",
    "init_tracing",
    "track_latency",
]
