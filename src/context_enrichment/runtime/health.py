"""Health endpoint factory."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.responses import JSONResponse


if TYPE_CHECKING:
    from starlette.requests import Request


def build_health_endpoint():
    """Return a coroutine function that reports the enrichment service state."""

    async def health_check(request: Request) -> JSONResponse:
        service = getattr(request.app.state, "enrichment_service", None)
        if service is None:
            return JSONResponse({"status": "starting"}, status_code=503)

        cache = service.cache
        return JSONResponse(
            {
                "status": "healthy",
                "shared_store": cache.shared,
                "cache": {
                    "enabled": cache.enabled,
                    "ttl_seconds": cache.ttl_seconds,
                    "bucket_seconds": cache.bucket_seconds,
                },
                "rate_limit": {
                    "enabled": service.rate_limiter.enabled and service.rate_limiter.store is not None,
                    "max_requests": service.settings.rate_limit_max_requests,
                    "window_seconds": service.rate_limiter.window_seconds,
                },
            }
        )

    return health_check
