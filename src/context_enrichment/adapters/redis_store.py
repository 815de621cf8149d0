"""Redis-backed key/value store (redis.asyncio)."""

from __future__ import annotations

import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from ..exceptions import StoreError


logger = logging.getLogger(__name__)


class RedisKeyValueStore:
    """``KeyValueStore`` over a shared Redis instance.

    Backend and connection errors surface as ``StoreError`` so the cache and
    rate limiter can fail open without knowing about Redis.
    """

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str, *, socket_timeout: float | None = None) -> RedisKeyValueStore:
        client = redis.from_url(
            url,
            encoding="utf-8",
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        logger.info("Redis store configured")
        return cls(client)

    async def get(self, key: str) -> str | None:
        try:
            return await self._client.get(key)
        except (RedisError, OSError) as exc:
            raise StoreError("get", str(exc)) from exc

    async def setex(self, key: str, ttl_seconds: int, value: str) -> None:
        try:
            await self._client.setex(key, ttl_seconds, value)
        except (RedisError, OSError) as exc:
            raise StoreError("setex", str(exc)) from exc

    async def keys(self, pattern: str) -> list[str]:
        try:
            return list(await self._client.keys(pattern))
        except (RedisError, OSError) as exc:
            raise StoreError("keys", str(exc)) from exc

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        try:
            return int(await self._client.delete(*keys))
        except (RedisError, OSError) as exc:
            raise StoreError("delete", str(exc)) from exc

    async def incr_window(self, key: str, ttl_seconds: int) -> int:
        """INCR and TTL in one MULTI; EXPIRE follows whenever the key has no TTL.

        A counter whose EXPIRE was lost to an earlier failure is repaired on
        the next call instead of blocking its user forever.
        """
        try:
            pipe = self._client.pipeline(transaction=True)
            pipe.incr(key)
            pipe.ttl(key)
            current, ttl = await pipe.execute()
            if ttl < 0:
                await self._client.expire(key, ttl_seconds)
        except (RedisError, OSError) as exc:
            raise StoreError("incr", str(exc)) from exc
        return int(current)

    async def memory_usage(self) -> str:
        try:
            info = await self._client.info("memory")
        except (RedisError, OSError) as exc:
            raise StoreError("info", str(exc)) from exc
        return str(info.get("used_memory_human", "unknown"))

    async def close(self) -> None:
        try:
            await self._client.aclose()
        except (RedisError, OSError) as exc:
            logger.warning("Failed to close Redis connection: %s", exc)
