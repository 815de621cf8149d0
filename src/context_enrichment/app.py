"""ASGI application exposing the enrichment engine over HTTP.

Routes:
    POST /enrich              -> ContextPack for {prompt, config?, userId?}
    GET  /health              -> service and store status
    GET  /metrics             -> Prometheus metrics
    GET  /admin/cache/stats   -> {totalKeys, memoryUsage}
    POST /admin/cache/clear   -> {removed}

Usage:
    python -m context_enrichment.app
"""

from __future__ import annotations

from contextlib import asynccontextmanager
import hmac
import logging

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from .config import Settings
from .exceptions import ConfigurationError, RateLimitExceededError
from .observability.logging import configure_logging
from .observability.metrics import get_metrics, get_metrics_content_type, init_metrics
from .observability.tracing import init_tracing
from .runtime.health import build_health_endpoint
from .services.enrichment_service import EnrichmentService, build_enrichment_service


logger = logging.getLogger(__name__)


def _error(message: str, status_code: int, **extra) -> JSONResponse:
    return JSONResponse({"success": False, "error": message, **extra}, status_code=status_code)


def _service(request: Request) -> EnrichmentService:
    return request.app.state.enrichment_service


def _admin_denied(request: Request, settings: Settings) -> JSONResponse | None:
    if not settings.admin_token:
        return None
    supplied = request.headers.get("x-admin-token", "")
    if hmac.compare_digest(supplied.encode(), settings.admin_token.encode()):
        return None
    return _error("Forbidden", 403)


async def enrich_endpoint(request: Request) -> JSONResponse:
    try:
        body = await request.json()
    except ValueError:
        return _error("Request body must be valid UTF-8 JSON", 400)

    if not isinstance(body, dict):
        return _error("Request body must be a JSON object", 400)

    prompt = body.get("prompt")
    if not prompt or not isinstance(prompt, str):
        return _error("prompt is required and must be a string", 400)

    user_id = body.get("userId")
    if user_id is not None and not isinstance(user_id, str):
        return _error("userId must be a string", 400)

    try:
        pack = await _service(request).enrich(prompt, body.get("config"), user_id=user_id)
    except ConfigurationError as exc:
        return _error(str(exc), 400, details=exc.errors)
    except RateLimitExceededError as exc:
        return JSONResponse(
            {"success": False, "error": str(exc)},
            status_code=429,
            headers={"Retry-After": str(exc.retry_after_seconds)},
        )

    return JSONResponse({"success": True, "data": pack.model_dump(mode="json", by_alias=True)})


async def metrics_endpoint(_: Request) -> Response:
    return Response(get_metrics(), media_type=get_metrics_content_type())


def create_app(settings: Settings | None = None, service: EnrichmentService | None = None) -> Starlette:
    """Create the Starlette app.

    A service passed in is owned by the caller; otherwise one is built on
    startup and closed on shutdown.
    """
    settings = settings or (service.settings if service is not None else Settings())

    @asynccontextmanager
    async def lifespan(app: Starlette):
        owned = service is None
        app.state.enrichment_service = service or build_enrichment_service(settings)
        logger.info("Enrichment service started (shared store: %s)", settings.has_shared_store())
        try:
            yield
        finally:
            if owned:
                await app.state.enrichment_service.aclose()
            logger.info("Enrichment service stopped")

    async def cache_stats_endpoint(request: Request) -> JSONResponse:
        if denied := _admin_denied(request, settings):
            return denied
        stats = await _service(request).get_cache_stats()
        return JSONResponse({"success": True, "data": stats.model_dump(by_alias=True)})

    async def cache_clear_endpoint(request: Request) -> JSONResponse:
        if denied := _admin_denied(request, settings):
            return denied
        removed = await _service(request).clear_cache()
        return JSONResponse({"success": True, "data": {"removed": removed}})

    routes = [
        Route("/enrich", endpoint=enrich_endpoint, methods=["POST"]),
        Route("/health", endpoint=build_health_endpoint(), methods=["GET"]),
        Route("/metrics", endpoint=metrics_endpoint, methods=["GET"]),
        Route("/admin/cache/stats", endpoint=cache_stats_endpoint, methods=["GET"]),
        Route("/admin/cache/clear", endpoint=cache_clear_endpoint, methods=["POST"]),
    ]

    return Starlette(
        debug=settings.log_level.lower() == "debug",
        routes=routes,
        lifespan=lifespan,
    )


def main() -> None:
    """Main entry point for the enrichment server."""
    import uvicorn

    settings = Settings()
    configure_logging(settings.log_level, settings.log_json)
    init_tracing()
    init_metrics()

    logger.info("Starting enrichment server on %s:%d", settings.http_host, settings.http_port)
    uvicorn.run(
        create_app(settings),
        host=settings.http_host,
        port=settings.http_port,
        log_level=settings.log_level.lower(),
        log_config=None,  # Don't let uvicorn override our logging config
    )


if __name__ == "__main__":
    main()
