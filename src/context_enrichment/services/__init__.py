"""Service layer for dependency injection and better testability."""

from .cache_service import EnrichmentCache
from .context_formatter import ContextFormatter
from .dedup_service import DeduplicationService
from .enrichment_service import EnrichmentService, build_enrichment_service
from .keyword_service import KeywordExtractionService
from .ranking_service import RankingService
from .rate_limiter import RateLimiter


__all__ = [
    "ContextFormatter",
    "DeduplicationService",
    "EnrichmentCache",
    "EnrichmentService",
    "KeywordExtractionService",
    "RankingService",
    "RateLimiter",
    "build_enrichment_service",
]
