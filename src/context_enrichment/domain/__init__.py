"""Domain layer - immutable value objects with no infrastructure dependencies.

This layer contains:
- Retrieval records (SearchItem, RankedItem) and search parameters (SearchRequest)
- Enrichment input (EnrichmentConfig, ContextStyle)
- Enrichment output (ContextPack, Citation) and admin snapshots (CacheStats)
"""

from context_enrichment.domain.enrichment import CacheStats, Citation, ContextPack, ContextStyle, EnrichmentConfig
from context_enrichment.domain.search import RankedItem, SearchItem, SearchRequest


__all__ = [
    "CacheStats",
    "Citation",
    "ContextPack",
    "ContextStyle",
    "EnrichmentConfig",
    "RankedItem",
    "SearchItem",
    "SearchRequest",
]
