"""Enrichment result cache with time-bucketed keys over a key/value store."""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
import hashlib
import logging
import time

from pydantic import ValidationError

from ..adapters.kv_store import KeyValueStore
from ..adapters.memory_store import InMemoryKeyValueStore
from ..config import Settings
from ..domain.enrichment import CacheStats, ContextPack, ContextStyle
from ..exceptions import StoreError
from ..observability.metrics import CACHE_EVENTS


logger = logging.getLogger(__name__)


class EnrichmentCache:
    """Fail-open cache for ``ContextPack`` results.

    Keys combine the sorted keyword list, the result-shaping options and a
    coarse time bucket, so a cached pack is never staler than one bucket
    window. Reads and writes that fail or time out degrade to a miss; they
    never fail the request.

    This class provides a testable, injectable service: pass the shared store
    (or None to fall back to an in-process store) and a clock.
    """

    def __init__(
        self,
        settings: Settings,
        store: KeyValueStore | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize cache.

        Args:
            settings: Settings instance with cache configuration
            store: Shared key/value store; None uses a process-local store
            clock: Wall-clock source in epoch seconds (drives bucketing)
        """
        self.settings = settings
        self.enabled = settings.cache_enabled
        self.ttl_seconds = settings.cache_ttl_seconds
        self.bucket_seconds = settings.cache_bucket_seconds
        self.key_prefix = settings.cache_key_prefix
        self.timeout_seconds = settings.store_timeout_seconds
        self.shared = store is not None
        self.store: KeyValueStore = store if store is not None else InMemoryKeyValueStore()
        self._clock = clock

    def current_bucket(self) -> int:
        return int(self._clock() // self.bucket_seconds)

    def build_key(
        self,
        keywords: Sequence[str],
        *,
        min_points: int | None = None,
        max_age_days: int | None = None,
        limit: int = 10,
        context_style: ContextStyle = ContextStyle.INTEGRATED,
    ) -> str:
        """Derive the deterministic cache key for one enrichment request."""
        keyword_part = ",".join(sorted(keywords))
        options_part = f"{min_points or 0}-{max_age_days or 'unlimited'}-{limit}-{context_style.value}"
        raw = f"{keyword_part}:{options_part}:{self.current_bucket()}"
        return self.key_prefix + hashlib.sha256(raw.encode("utf-8")).hexdigest()

    async def _call(self, operation: Awaitable):
        return await asyncio.wait_for(operation, timeout=self.timeout_seconds)

    async def get(self, key: str) -> ContextPack | None:
        """Return the cached pack marked as a hit, or None on miss or failure."""
        try:
            raw = await self._call(self.store.get(key))
        except (StoreError, TimeoutError) as exc:
            CACHE_EVENTS.labels(event="read_error").inc()
            logger.warning("Cache read failed for %s: %s", key, exc)
            return None

        if raw is None:
            CACHE_EVENTS.labels(event="miss").inc()
            return None

        try:
            pack = ContextPack.from_json(raw)
        except ValidationError as exc:
            CACHE_EVENTS.labels(event="read_error").inc()
            logger.warning("Discarding unreadable cache entry %s: %d errors", key, exc.error_count())
            return None

        CACHE_EVENTS.labels(event="hit").inc()
        logger.debug("Cache hit for %s", key)
        return pack.model_copy(update={"cache_hit": True})

    async def set(self, key: str, pack: ContextPack, ttl_seconds: int | None = None) -> bool:
        """Write a pack; failures are logged and reported as False."""
        ttl = ttl_seconds or self.ttl_seconds
        payload = pack.model_copy(update={"cache_hit": False}).to_json()
        try:
            await self._call(self.store.setex(key, ttl, payload))
        except (StoreError, TimeoutError) as exc:
            CACHE_EVENTS.labels(event="write_error").inc()
            logger.warning("Cache write failed for %s: %s", key, exc)
            return False
        logger.debug("Cached enrichment result %s for %ds", key, ttl)
        return True

    async def get_or_compute(
        self,
        key: str,
        compute: Callable[[], Awaitable[ContextPack]],
        ttl_seconds: int | None = None,
        cache_if: Callable[[ContextPack], bool] | None = None,
    ) -> ContextPack:
        """Serve from cache or run ``compute`` and store its result.

        If ``compute`` raises (including cancellation) nothing is written, and
        results rejected by ``cache_if`` are returned without being stored.
        """
        if not self.enabled:
            return await compute()

        cached = await self.get(key)
        if cached is not None:
            return cached

        pack = await compute()
        if cache_if is None or cache_if(pack):
            await self.set(key, pack, ttl_seconds)
        return pack.model_copy(update={"cache_hit": False})

    async def get_stats(self) -> CacheStats:
        """Count enrichment keys and report store memory usage."""
        try:
            keys = await self._call(self.store.keys(f"{self.key_prefix}*"))
            memory = await self._call(self.store.memory_usage())
        except (StoreError, TimeoutError) as exc:
            logger.warning("Failed to get cache stats: %s", exc)
            return CacheStats(total_keys=0, memory_usage="unavailable")
        return CacheStats(total_keys=len(keys), memory_usage=memory)

    async def clear(self) -> int:
        """Delete every enrichment-namespaced key; returns how many were removed."""
        try:
            keys = await self._call(self.store.keys(f"{self.key_prefix}*"))
            if not keys:
                return 0
            removed = await self._call(self.store.delete(*keys))
        except (StoreError, TimeoutError) as exc:
            logger.warning("Failed to clear cache: %s", exc)
            return 0
        logger.info("Cleared %d cache entries", removed)
        return removed
