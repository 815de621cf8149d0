"""Contextual enrichment and ranking engine for discussion search results."""

from context_enrichment.domain import Citation, ContextPack, ContextStyle, EnrichmentConfig
from context_enrichment.exceptions import ConfigurationError, EnrichmentError, RateLimitExceededError
from context_enrichment.services import EnrichmentService, build_enrichment_service


__version__ = "0.1.0"

__all__ = [
    "Citation",
    "ConfigurationError",
    "ContextPack",
    "ContextStyle",
    "EnrichmentConfig",
    "EnrichmentError",
    "EnrichmentService",
    "RateLimitExceededError",
    "build_enrichment_service",
]
