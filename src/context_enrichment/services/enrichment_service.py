"""Enrichment orchestrator: the single entry point of the engine.

Pipeline (fixed order):
1. Validate config (raises ConfigurationError)
2. Rate-limit check (raises RateLimitExceededError)
3. Keyword extraction (empty -> empty pack)
4. Cache lookup
5. On miss: parallel retrieval -> dedupe -> rank -> format -> cache write
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import datetime, timezone
import logging
import math
import time
from typing import Any

import httpx
from pydantic import ValidationError

from ..adapters.kv_store import KeyValueStore
from ..adapters.redis_store import RedisKeyValueStore
from ..config import Settings
from ..domain.enrichment import CacheStats, ContextPack, EnrichmentConfig
from ..domain.search import SearchRequest
from ..exceptions import ConfigurationError, RateLimitExceededError
from ..observability.context import bind_request, reset_log_context
from ..observability.metrics import ENRICH_LATENCY, ENRICH_REQUESTS
from ..observability.tracing import create_span
from ..utils.search_client import DiscussionSearchClient
from .cache_service import EnrichmentCache
from .context_formatter import ContextFormatter
from .dedup_service import DeduplicationService
from .keyword_service import KeywordExtractionService
from .ranking_service import RankingService
from .rate_limiter import RateLimiter


logger = logging.getLogger(__name__)


class EnrichmentService:
    """Wire extraction, retrieval, dedup, ranking, formatting, caching and rate limiting.

    Explicitly constructed and injected; holds no per-call state, so one
    instance serves concurrent requests with different configs.
    """

    def __init__(
        self,
        settings: Settings,
        search_client: DiscussionSearchClient,
        cache: EnrichmentCache,
        rate_limiter: RateLimiter,
        *,
        keyword_extractor: KeywordExtractionService | None = None,
        deduplicator: DeduplicationService | None = None,
        ranker: RankingService | None = None,
        formatter: ContextFormatter | None = None,
        store: KeyValueStore | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings
        self.search_client = search_client
        self.cache = cache
        self.rate_limiter = rate_limiter
        self.keyword_extractor = keyword_extractor or KeywordExtractionService(max_keywords=settings.max_keywords)
        self.deduplicator = deduplicator or DeduplicationService()
        self.ranker = ranker or RankingService(trusted_domains=settings.get_trusted_domains(), clock=clock)
        self.formatter = formatter or ContextFormatter(
            max_rendered_items=settings.max_rendered_items,
            discussion_url_template=settings.discussion_url_template,
        )
        self._store = store
        self._clock = clock

    @staticmethod
    def validate_config(config: EnrichmentConfig | Mapping[str, Any] | None) -> EnrichmentConfig:
        """Coerce caller input into an EnrichmentConfig before any I/O."""
        if config is None:
            return EnrichmentConfig()
        if isinstance(config, EnrichmentConfig):
            return config
        if not isinstance(config, Mapping):
            raise ConfigurationError(f"config must be a mapping, got {type(config).__name__}")
        try:
            return EnrichmentConfig.model_validate(dict(config))
        except ValidationError as exc:
            errors = exc.errors(include_url=False, include_context=False)
            raise ConfigurationError(f"Invalid enrichment config: {exc.error_count()} errors", errors) from exc

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self._clock(), tz=timezone.utc)

    def _empty_pack(self, query: str) -> ContextPack:
        return ContextPack(query=query, context_text="", citations=[], cache_hit=False, retrieved_at=self._now())

    def build_requests(self, keywords: list[str], config: EnrichmentConfig) -> list[SearchRequest]:
        """Relevance-oriented and recency-oriented query shapes for one request."""
        query = " ".join(keywords)
        relevance_limit = max(1, math.ceil(round(config.limit * self.settings.relevance_share, 6)))
        recency_limit = max(1, config.limit - relevance_limit)
        return [
            SearchRequest(
                query=query,
                min_points=config.min_points,
                max_age_days=config.max_age_days,
                limit=relevance_limit,
                retries=self.settings.search_retries,
                shape="relevance",
            ),
            SearchRequest(
                query=query,
                max_age_days=self.settings.recency_window_days,
                limit=recency_limit,
                retries=self.settings.search_retries,
                shape="recency",
            ),
        ]

    async def enrich(
        self,
        prompt: str,
        config: EnrichmentConfig | Mapping[str, Any] | None = None,
        user_id: str | None = None,
    ) -> ContextPack:
        """Build a ContextPack for ``prompt``.

        Raises:
            ConfigurationError: config failed validation
            RateLimitExceededError: ``user_id`` exhausted its window budget

        Every other failure degrades to an empty but valid pack.
        """
        validated = self.validate_config(config)
        log_token = bind_request(user_id)

        outcome = "error"
        start = time.perf_counter()
        try:
            with create_span("enrichment.enrich", attributes={"enrichment.limit": validated.limit}):
                if not validated.enabled:
                    outcome = "disabled"
                    return self._empty_pack(prompt)

                if user_id and not await self.rate_limiter.check_limit(
                    user_id, self.settings.rate_limit_max_requests
                ):
                    outcome = "rate_limited"
                    logger.warning("Rate limit exceeded for user: %s", user_id)
                    raise RateLimitExceededError(
                        user_id=user_id,
                        limit=self.settings.rate_limit_max_requests,
                        retry_after_seconds=self.settings.rate_limit_window_seconds,
                    )

                keywords = validated.keywords or self.keyword_extractor.extract(prompt, validated.title)
                if not keywords:
                    outcome = "no_keywords"
                    logger.info("No keywords extracted, skipping enrichment")
                    return self._empty_pack(prompt)

                key = self.cache.build_key(
                    keywords,
                    min_points=validated.min_points,
                    max_age_days=validated.max_age_days,
                    limit=validated.limit,
                    context_style=validated.context_style,
                )
                pack = await self.cache.get_or_compute(
                    key,
                    lambda: self._run_pipeline(keywords, validated),
                    cache_if=lambda result: bool(result.citations),
                )
                outcome = "cache_hit" if pack.cache_hit else "computed"
                return pack
        finally:
            ENRICH_REQUESTS.labels(outcome=outcome).inc()
            ENRICH_LATENCY.labels(outcome=outcome).observe(time.perf_counter() - start)
            reset_log_context(log_token)

    async def _run_pipeline(self, keywords: list[str], config: EnrichmentConfig) -> ContextPack:
        requests = self.build_requests(keywords, config)
        logger.info("Fetching discussions for keywords: %s", ", ".join(keywords))

        with create_span("enrichment.retrieve", attributes={"enrichment.queries": len(requests)}):
            items = await self.search_client.search_many(requests)

        unique = self.deduplicator.dedupe(items)
        ranked = self.ranker.rank(unique, keywords)
        context_text, citations = self.formatter.format(ranked, keywords, config.limit, config.context_style)

        logger.info(
            "Enrichment produced %d citations from %d retrieved items (%d unique)",
            len(citations),
            len(items),
            len(unique),
        )
        return ContextPack(
            query=" ".join(keywords),
            context_text=context_text,
            citations=citations,
            cache_hit=False,
            retrieved_at=self._now(),
        )

    async def get_cache_stats(self) -> CacheStats:
        return await self.cache.get_stats()

    async def clear_cache(self) -> int:
        return await self.cache.clear()

    async def aclose(self) -> None:
        """Release the HTTP client and the shared store connection."""
        await self.search_client.aclose()
        if self._store is not None:
            await self._store.close()


def build_enrichment_service(
    settings: Settings | None = None,
    *,
    store: KeyValueStore | None = None,
    http_client: httpx.AsyncClient | None = None,
    clock: Callable[[], float] = time.time,
) -> EnrichmentService:
    """Construct an EnrichmentService with default collaborators.

    A Redis store is created from ``settings.redis_url`` unless a store is
    passed in; without either, caching is process-local and rate limiting
    is disabled (fail-open).
    """
    settings = settings or Settings()
    if store is None and settings.has_shared_store():
        store = RedisKeyValueStore.from_url(settings.redis_url, socket_timeout=settings.store_timeout_seconds)

    return EnrichmentService(
        settings=settings,
        search_client=DiscussionSearchClient(settings, http_client=http_client, clock=clock),
        cache=EnrichmentCache(settings, store=store, clock=clock),
        rate_limiter=RateLimiter(settings, store=store),
        store=store,
        clock=clock,
    )
