"""Error taxonomy for the enrichment engine.

Only ``ConfigurationError`` and ``RateLimitExceededError`` cross the public
``EnrichmentService.enrich`` boundary. Everything else is absorbed and logged.
"""

from __future__ import annotations

from typing import Any


class EnrichmentError(Exception):
    """Base class for all enrichment errors."""


class ConfigurationError(EnrichmentError):
    """Raised when an EnrichmentConfig payload fails validation."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class RateLimitExceededError(EnrichmentError):
    """Raised when a user exhausted their enrichment budget for the window."""

    def __init__(self, user_id: str, limit: int, retry_after_seconds: int) -> None:
        super().__init__("Rate limit exceeded. Please try again later.")
        self.user_id = user_id
        self.limit = limit
        self.retry_after_seconds = retry_after_seconds


class RetrievalError(EnrichmentError):
    """Raised by a single search attempt; retried and absorbed by the client."""

    def __init__(self, reason: str, detail: str | None = None) -> None:
        message = reason if not detail else f"{reason}: {detail}"
        super().__init__(message)
        self.reason = reason
        self.detail = detail


class StoreError(EnrichmentError):
    """Raised by key/value store adapters when the backend misbehaves."""

    def __init__(self, operation: str, detail: str | None = None) -> None:
        message = f"store {operation} failed" if not detail else f"store {operation} failed: {detail}"
        super().__init__(message)
        self.operation = operation
        self.detail = detail
