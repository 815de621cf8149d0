"""Discussion search client with timeout, retry and exponential backoff.

Encapsulates the third-party search API behind a small interface:
- HTTP client configuration (headers, timeouts)
- Query parameter construction (tags, page size, numeric filters)
- Response shape validation into ``SearchItem`` values
- Sequential retries with cancellable backoff

Simple interface: ``search(request) -> list[SearchItem]``, never raises for
upstream failures.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
import logging
import math
import time

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..config import Settings
from ..domain.search import SearchItem, SearchRequest
from ..exceptions import RetrievalError
from ..observability.metrics import RETRIEVAL_FAILURES, RETRIEVAL_LATENCY, track_latency


logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60
# 9999-12-31T23:59:59Z, the last instant a datetime can hold
MAX_EPOCH_SECONDS = 253402300799


class SearchHit(BaseModel):
    """One hit as returned by the search API."""

    model_config = ConfigDict(extra="ignore")

    object_id: str = Field(alias="objectID", min_length=1)
    title: str
    url: str | None = None
    author: str | None = None
    points: int | None = 0
    num_comments: int | None = 0
    created_at_i: int | None = Field(default=None, ge=0, le=MAX_EPOCH_SECONDS)
    created_at: datetime | None = None

    @field_validator("url", mode="before")
    @classmethod
    def _blank_url_is_missing(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def to_item(self) -> SearchItem:
        if self.created_at_i is not None:
            created = datetime.fromtimestamp(self.created_at_i, tz=timezone.utc)
        elif self.created_at is not None:
            created = self.created_at if self.created_at.tzinfo else self.created_at.replace(tzinfo=timezone.utc)
        else:
            raise ValueError(f"hit {self.object_id} has no creation timestamp")
        return SearchItem(
            id=self.object_id,
            title=self.title,
            url=self.url,
            author=self.author,
            score=self.points or 0,
            comment_count=self.num_comments or 0,
            created_at=created,
        )


class SearchResponse(BaseModel):
    """Top-level search payload; only ``hits`` is required."""

    model_config = ConfigDict(extra="ignore")

    hits: list[SearchHit]


class DiscussionSearchClient:
    """Async client for the discussion search API.

    Owns its ``httpx.AsyncClient`` unless one is injected. Retries are
    sequential per call; ``search_many`` fans independent calls out
    concurrently.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings
        self.api_url = settings.search_api_url
        self.default_tags = settings.search_default_tags
        self.default_retries = settings.search_retries
        self.backoff_base = settings.search_backoff_base_seconds
        self._clock = clock
        self._client = http_client
        self._owns_client = http_client is None

    async def __aenter__(self) -> DiscussionSearchClient:
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.search_timeout_seconds),
                follow_redirects=True,
                headers={
                    "Accept": "application/json",
                    "User-Agent": self.settings.search_user_agent,
                },
            )
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def build_params(self, request: SearchRequest) -> dict[str, str]:
        """Build query parameters, including optional numeric filters."""
        params = {
            "query": request.query,
            "tags": request.tags or self.default_tags,
            "hitsPerPage": str(request.limit),
        }
        filters: list[str] = []
        if request.min_points:
            filters.append(f"points>{request.min_points}")
        if request.max_age_days:
            cutoff = math.floor(self._clock()) - request.max_age_days * SECONDS_PER_DAY
            filters.append(f"created_at_i>{cutoff}")
        if filters:
            params["numericFilters"] = ",".join(filters)
        return params

    async def search(self, request: SearchRequest) -> list[SearchItem]:
        """Search with retries; returns ``[]`` once every attempt failed.

        Attempt ``n`` (0-based) that fails waits ``base * 2**n`` seconds
        before the next one. Cancellation propagates immediately, including
        during backoff.
        """
        retries = self.default_retries if request.retries is None else request.retries
        params = self.build_params(request)

        with track_latency(RETRIEVAL_LATENCY, query_shape=request.shape):
            for attempt in range(retries + 1):
                try:
                    return await self._fetch(params)
                except RetrievalError as exc:
                    RETRIEVAL_FAILURES.labels(reason=exc.reason.split(":", 1)[0]).inc()
                    logger.warning(
                        "Search attempt %d/%d failed (%s query): %s",
                        attempt + 1,
                        retries + 1,
                        request.shape,
                        exc,
                    )
                    if attempt == retries:
                        break
                    await asyncio.sleep(self.backoff_base * (2**attempt))

        logger.error("All %d search attempts failed for %s query %r", retries + 1, request.shape, request.query)
        return []

    async def search_many(self, requests: Sequence[SearchRequest]) -> list[SearchItem]:
        """Run several searches concurrently and concatenate results in request order."""
        results = await asyncio.gather(*(self.search(request) for request in requests))
        merged: list[SearchItem] = []
        for items in results:
            merged.extend(items)
        return merged

    async def _fetch(self, params: dict[str, str]) -> list[SearchItem]:
        client = self._ensure_client()
        try:
            response = await client.get(
                self.api_url,
                params=params,
                timeout=self.settings.search_timeout_seconds,
            )
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise RetrievalError("timeout", str(exc) or exc.__class__.__name__) from exc
        except httpx.HTTPStatusError as exc:
            raise RetrievalError(f"http_status:{exc.response.status_code}", exc.response.reason_phrase) from exc
        except httpx.HTTPError as exc:
            raise RetrievalError(f"network:{exc.__class__.__name__}", str(exc)) from exc

        return self._parse(response)

    def _parse(self, response: httpx.Response) -> list[SearchItem]:
        """Validate the payload shape and convert hits into SearchItems."""
        try:
            payload = SearchResponse.model_validate_json(response.content)
            return [hit.to_item() for hit in payload.hits]
        except ValidationError as exc:
            raise RetrievalError("invalid_payload", f"{exc.error_count()} validation errors") from exc
        except (ValueError, OverflowError, OSError) as exc:
            raise RetrievalError("invalid_payload", str(exc)) from exc
