"""Per-user fixed-window rate limiting over a key/value counter store."""

import asyncio
import logging

from ..adapters.kv_store import KeyValueStore
from ..config import Settings
from ..exceptions import StoreError
from ..observability.metrics import RATE_LIMIT_EVENTS


logger = logging.getLogger(__name__)


class RateLimiter:
    """Count invocations per user inside a window that starts at the first call.

    The counter is incremented atomically and the store gives it the window
    TTL whenever it has none, so it resets implicitly when the window expires
    even after a failed write. A missing or failing store allows the request.
    """

    def __init__(self, settings: Settings, store: KeyValueStore | None = None):
        self.store = store
        self.enabled = settings.rate_limit_enabled
        self.window_seconds = settings.rate_limit_window_seconds
        self.key_prefix = settings.rate_limit_key_prefix
        self.timeout_seconds = settings.store_timeout_seconds

    def key_for(self, user_id: str) -> str:
        return f"{self.key_prefix}{user_id}"

    async def check_limit(self, user_id: str, limit: int) -> bool:
        """Record one invocation and return whether it is within ``limit``."""
        if not self.enabled or self.store is None:
            return True

        key = self.key_for(user_id)
        try:
            current = await asyncio.wait_for(
                self.store.incr_window(key, self.window_seconds),
                timeout=self.timeout_seconds,
            )
        except (StoreError, TimeoutError) as exc:
            RATE_LIMIT_EVENTS.labels(result="fail_open").inc()
            logger.warning("Rate limit store unavailable, allowing request for %s: %s", user_id, exc)
            return True

        allowed = current <= limit
        RATE_LIMIT_EVENTS.labels(result="allowed" if allowed else "rejected").inc()
        return allowed
