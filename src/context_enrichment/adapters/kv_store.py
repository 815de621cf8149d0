"""Key/value store interface shared by the enrichment cache and the rate limiter."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """Minimal Redis-shaped surface the engine depends on.

    Implementations raise ``StoreError`` for any backend failure; callers
    decide whether to fail open.
    """

    async def get(self, key: str) -> str | None:  # pragma: no cover - Protocol only
        """Return the value stored at key, or None when missing/expired."""

    async def setex(self, key: str, ttl_seconds: int, value: str) -> None:  # pragma: no cover - Protocol only
        """Store value at key with a TTL."""

    async def keys(self, pattern: str) -> list[str]:  # pragma: no cover - Protocol only
        """Return live keys matching a glob-style pattern."""

    async def delete(self, *keys: str) -> int:  # pragma: no cover - Protocol only
        """Delete keys and return how many existed."""

    async def incr_window(self, key: str, ttl_seconds: int) -> int:  # pragma: no cover - Protocol only
        """Atomically increment a counter and return the new value.

        A counter left without a TTL gets ``ttl_seconds``; an existing TTL is kept.
        """

    async def memory_usage(self) -> str:  # pragma: no cover - Protocol only
        """Human-readable memory footprint of the backing store."""

    async def close(self) -> None:  # pragma: no cover - Protocol only
        """Release connections."""
