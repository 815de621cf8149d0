"""Centralized configuration for context-enrichment using Pydantic Settings."""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strictly typed configuration loaded from environment variables.

    All environment variables are validated at startup with proper types.
    Per-call options live on ``EnrichmentConfig``; this model only carries
    process-wide knobs (endpoints, timeouts, cache and rate-limit policy).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",  # Ignore extra env vars not defined in model
    )

    # Discussion search API
    search_api_url: str = Field(
        default="https://hn.algolia.com/api/v1/search",
        description="Discussion search endpoint (Algolia-compatible query API)",
    )
    search_default_tags: str = Field(default="story", description="Default tags filter sent with every search")
    search_timeout_seconds: float = Field(default=10.0, gt=0, description="Timeout for a single search request")
    search_retries: int = Field(default=2, ge=0, le=10, description="Retries after the first failed attempt")
    search_backoff_base_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Backoff unit in seconds; attempt N waits base * 2^N before retrying",
    )
    search_user_agent: str = Field(default="context-enrichment/1.0", description="Outbound User-Agent header")

    # Fan-out shape
    relevance_share: float = Field(
        default=0.7,
        gt=0.0,
        lt=1.0,
        description="Share of the requested limit fetched by the relevance-oriented query",
    )
    recency_window_days: int = Field(default=7, ge=1, description="Age window for the recency-oriented query")

    # Shared store
    redis_url: str = Field(default="", description="Redis URL for the shared cache/counter store (empty = none)")
    store_timeout_seconds: float = Field(default=2.0, gt=0, description="Timeout for every cache or counter call")

    # Cache
    cache_enabled: bool = Field(default=True, description="Enable the enrichment result cache")
    cache_ttl_seconds: int = Field(default=300, ge=1, description="Cache entry TTL in seconds")
    cache_bucket_seconds: int = Field(default=300, ge=1, description="Width of the cache key time bucket")
    cache_key_prefix: str = Field(default="enrich:ctx:", min_length=1, description="Namespace for cache keys")

    # Rate limiting
    rate_limit_enabled: bool = Field(default=True, description="Enable per-user rate limiting")
    rate_limit_max_requests: int = Field(default=10, ge=1, description="Invocations allowed per user and window")
    rate_limit_window_seconds: int = Field(default=3600, ge=1, description="Rate limit window in seconds")
    rate_limit_key_prefix: str = Field(
        default="enrich:ratelimit:", min_length=1, description="Namespace for rate-limit counters"
    )

    # Ranking and formatting
    max_keywords: int = Field(default=5, ge=1, le=20, description="Maximum keywords extracted from a prompt")
    max_rendered_items: int = Field(default=5, ge=1, description="Hard ceiling on items rendered into context text")
    trusted_domains: str = Field(
        default="github.com,stackoverflow.com,medium.com,dev.to,infoq.com",
        description="Comma-separated hosts that receive the domain trust boost",
    )
    discussion_url_template: str = Field(
        default="https://news.ycombinator.com/item?id={object_id}",
        description="Citation URL used when an item has no external link",
    )

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    # Server settings
    http_host: str = Field(default="127.0.0.1", description="HTTP server host")
    http_port: int = Field(default=15010, ge=1, le=65535, description="HTTP server port")
    admin_token: str = Field(default="", description="Token required by admin routes (empty = no check)")

    @model_validator(mode="after")
    def _check_cache_window(self) -> "Settings":
        # A cached pack must never outlive the bucket it was keyed on
        if self.cache_ttl_seconds > self.cache_bucket_seconds:
            raise ValueError(
                "CACHE_TTL_SECONDS must be less than or equal to CACHE_BUCKET_SECONDS so cached "
                "context is never staler than one bucket window."
            )
        return self

    def get_trusted_domains(self) -> list[str]:
        """Get list of trusted hosts (lower-cased, comma-separated)."""
        if not self.trusted_domains:
            return []
        return [domain.strip().lower() for domain in self.trusted_domains.split(",") if domain.strip()]

    def has_shared_store(self) -> bool:
        """Check whether a shared Redis store is configured."""
        return bool(self.redis_url.strip())
