"""Tests for runtime health."""

import json
from types import SimpleNamespace

import pytest

from context_enrichment.runtime.health import build_health_endpoint
from context_enrichment.services.enrichment_service import build_enrichment_service


def _request(service):
    return SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace(enrichment_service=service)))


@pytest.mark.unit
def test_build_health_endpoint():
    """Test build_health_endpoint creates endpoint."""
    assert callable(build_health_endpoint())


@pytest.mark.unit
@pytest.mark.asyncio
async def test_health_reports_starting_before_service_exists():
    response = await build_health_endpoint()(_request(None))
    assert response.status_code == 503
    assert json.loads(response.body) == {"status": "starting"}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_health_reports_store_capabilities(settings, failing_store):
    service = build_enrichment_service(settings, store=failing_store)
    response = await build_health_endpoint()(_request(service))

    body = json.loads(response.body)
    assert response.status_code == 200
    assert body["shared_store"] is True
    assert body["rate_limit"] == {"enabled": True, "max_requests": 10, "window_seconds": 3600}
    assert body["cache"]["bucket_seconds"] == 300
