"""Pure text algorithms used by deduplication."""

from context_enrichment.search.fuzzy import levenshtein_distance, similarity_ratio


__all__ = ["levenshtein_distance", "similarity_ratio"]
