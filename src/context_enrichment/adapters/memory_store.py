"""In-process TTL store used when no shared store is configured."""

from __future__ import annotations

from collections.abc import Callable
import fnmatch
import time

from ..exceptions import StoreError


class InMemoryKeyValueStore:
    """Process-local implementation of ``KeyValueStore``.

    Every operation completes without awaiting, so each call is atomic with
    respect to other coroutines on the same event loop.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._values: dict[str, str] = {}
        self._expires_at: dict[str, float] = {}

    def _purge(self, key: str) -> None:
        deadline = self._expires_at.get(key)
        if deadline is not None and deadline <= self._clock():
            self._values.pop(key, None)
            self._expires_at.pop(key, None)

    def _live_keys(self) -> list[str]:
        for key in list(self._values):
            self._purge(key)
        return list(self._values)

    async def get(self, key: str) -> str | None:
        self._purge(key)
        return self._values.get(key)

    async def setex(self, key: str, ttl_seconds: int, value: str) -> None:
        if ttl_seconds <= 0:
            raise StoreError("setex", f"invalid ttl {ttl_seconds}")
        self._values[key] = value
        self._expires_at[key] = self._clock() + ttl_seconds

    async def keys(self, pattern: str) -> list[str]:
        return [key for key in self._live_keys() if fnmatch.fnmatchcase(key, pattern)]

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            self._purge(key)
            if self._values.pop(key, None) is not None:
                removed += 1
            self._expires_at.pop(key, None)
        return removed

    async def incr_window(self, key: str, ttl_seconds: int) -> int:
        self._purge(key)
        try:
            value = int(self._values.get(key, "0")) + 1
        except ValueError as exc:
            raise StoreError("incr", f"value at {key} is not an integer") from exc
        self._values[key] = str(value)
        self._expires_at.setdefault(key, self._clock() + ttl_seconds)
        return value

    async def memory_usage(self) -> str:
        total = sum(len(key) + len(value) for key, value in self._values.items())
        return f"{total}B"

    async def close(self) -> None:
        self._values.clear()
        self._expires_at.clear()
