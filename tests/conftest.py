"""Shared test fixtures and configuration."""

from datetime import datetime, timedelta, timezone
import os
from pathlib import Path
import sys

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT / "src") not in sys.path:
    sys.path.insert(0, str(REPO_ROOT / "src"))


# Complete test environment that overrides ALL possible config values
TEST_ENV = {
    # Discussion search API
    "SEARCH_API_URL": "https://search.test/api/v1/search",
    "SEARCH_DEFAULT_TAGS": "story",
    "SEARCH_TIMEOUT_SECONDS": "5",
    "SEARCH_RETRIES": "2",
    "SEARCH_BACKOFF_BASE_SECONDS": "0",  # No real sleeping in tests
    "RELEVANCE_SHARE": "0.7",
    "RECENCY_WINDOW_DAYS": "7",
    # Shared store - none unless a test injects one
    "REDIS_URL": "",
    "STORE_TIMEOUT_SECONDS": "1",
    # Cache and rate limiting
    "CACHE_ENABLED": "true",
    "CACHE_TTL_SECONDS": "300",
    "CACHE_BUCKET_SECONDS": "300",
    "RATE_LIMIT_ENABLED": "true",
    "RATE_LIMIT_MAX_REQUESTS": "10",
    "RATE_LIMIT_WINDOW_SECONDS": "3600",
    # Ranking and formatting
    "MAX_KEYWORDS": "5",
    "MAX_RENDERED_ITEMS": "5",
    "TRUSTED_DOMAINS": "github.com,stackoverflow.com,medium.com,dev.to,infoq.com",
    # Logging and server
    "LOG_LEVEL": "info",
    "LOG_JSON": "true",
    "HTTP_HOST": "127.0.0.1",
    "HTTP_PORT": "15010",
    "ADMIN_TOKEN": "",
    # Proxy settings - ensure they're cleared for tests
    "http_proxy": "",
    "https_proxy": "",
    "all_proxy": "",
    "no_proxy": "",
}


# Set environment variables immediately when conftest.py is loaded
for key, value in TEST_ENV.items():
    os.environ[key] = value

# Now we can safely import config-dependent modules
from context_enrichment.config import Settings
from context_enrichment.domain.search import SearchItem
from context_enrichment.exceptions import StoreError


FIXED_NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Clean environment variables before each test and set test defaults."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)


@pytest.fixture
def settings() -> Settings:
    """Settings built from the test environment."""
    return Settings()


@pytest.fixture
def fixed_clock():
    """Clock frozen at FIXED_NOW, expressed in epoch seconds."""
    return lambda: FIXED_NOW.timestamp()


@pytest.fixture
def make_item():
    """Factory for SearchItem values aged relative to FIXED_NOW."""

    def _make(
        item_id: str = "1",
        title: str = "Example discussion",
        url: str | None = "https://example.com/post",
        author: str | None = "alice",
        score: int = 10,
        comment_count: int = 5,
        age_days: float = 1.0,
    ) -> SearchItem:
        return SearchItem(
            id=item_id,
            title=title,
            url=url,
            author=author,
            score=score,
            comment_count=comment_count,
            created_at=FIXED_NOW - timedelta(days=age_days),
        )

    return _make


class FailingStore:
    """Key/value store whose every operation raises StoreError."""

    def __init__(self):
        self.calls: list[str] = []

    async def _fail(self, operation: str):
        self.calls.append(operation)
        raise StoreError(operation, "connection refused")

    async def get(self, key):
        return await self._fail("get")

    async def setex(self, key, ttl_seconds, value):
        return await self._fail("setex")

    async def keys(self, pattern):
        return await self._fail("keys")

    async def delete(self, *keys):
        return await self._fail("delete")

    async def incr_window(self, key, ttl_seconds):
        return await self._fail("incr")

    async def memory_usage(self):
        return await self._fail("memory_usage")

    async def close(self):
        self.calls.append("close")


@pytest.fixture
def failing_store() -> FailingStore:
    """Store simulating an unreachable shared backend."""
    return FailingStore()
