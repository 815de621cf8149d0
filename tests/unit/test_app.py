"""Unit tests for the Starlette HTTP surface."""

from datetime import datetime, timezone

import httpx
import pytest
from starlette.testclient import TestClient

from context_enrichment.adapters.memory_store import InMemoryKeyValueStore
from context_enrichment.app import create_app
from context_enrichment.services.enrichment_service import EnrichmentService, build_enrichment_service


NOW_TS = int(datetime(2024, 6, 1, 12, tzinfo=timezone.utc).timestamp())


def _search_api(request: httpx.Request) -> httpx.Response:
    hits = [
        {
            "objectID": str(i),
            "title": title,
            "url": f"https://example.com/{i}",
            "author": "alice",
            "points": 50 - i,
            "num_comments": 10,
            "created_at_i": NOW_TS - 86400 * (i + 1),
        }
        for i, title in enumerate(["React server components", "React compiler notes", "Hooks pitfalls"])
    ]
    if "numericFilters" in request.url.params:
        hits = []
    return httpx.Response(200, json={"hits": hits})


@pytest.fixture
def make_client(settings, fixed_clock):
    def _make(**overrides) -> TestClient:
        app_settings = settings.model_copy(update=overrides)
        service = build_enrichment_service(
            app_settings,
            store=InMemoryKeyValueStore(),
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(_search_api)),
            clock=fixed_clock,
        )
        return TestClient(create_app(app_settings, service=service))

    return _make


@pytest.mark.unit
class TestEnrichEndpoint:
    """Test POST /enrich."""

    def test_success(self, make_client):
        with make_client() as client:
            response = client.post("/enrich", json={"prompt": "React performance tips", "userId": "u1"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        data = body["data"]
        assert data["cacheHit"] is False
        assert data["contextText"].startswith("Relevant Community Discussions:")
        assert [c["id"] for c in data["citations"]] == ["SRC-1", "SRC-2", "SRC-3"]
        assert data["citations"][0]["sourceObjectId"] == "0"

    def test_second_request_served_from_cache(self, make_client):
        with make_client() as client:
            client.post("/enrich", json={"prompt": "React performance tips"})
            response = client.post("/enrich", json={"prompt": "React performance tips"})

        assert response.json()["data"]["cacheHit"] is True

    def test_disabled_config(self, make_client):
        with make_client() as client:
            response = client.post("/enrich", json={"prompt": "React", "config": {"enabled": False}})

        assert response.status_code == 200
        assert response.json()["data"]["citations"] == []

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"prompt": ""},
            {"prompt": 42},
            {"prompt": "React", "userId": 7},
            ["not", "an", "object"],
        ],
    )
    def test_bad_request_shape(self, make_client, payload):
        with make_client() as client:
            response = client.post("/enrich", json=payload)

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_invalid_json(self, make_client):
        with make_client() as client:
            response = client.post(
                "/enrich", content=b"{not json", headers={"content-type": "application/json"}
            )

        assert response.status_code == 400

    def test_body_not_utf8(self, make_client):
        with make_client() as client:
            response = client.post(
                "/enrich", content=b'{"prompt": "caf\xe9"}', headers={"content-type": "application/json"}
            )

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_invalid_config_reports_details(self, make_client):
        with make_client() as client:
            response = client.post("/enrich", json={"prompt": "React", "config": {"limit": 0}})

        assert response.status_code == 400
        body = response.json()
        assert body["details"][0]["loc"] == ["limit"]

    def test_rate_limited(self, make_client):
        with make_client(rate_limit_max_requests=1) as client:
            assert client.post("/enrich", json={"prompt": "React", "userId": "u1"}).status_code == 200
            response = client.post("/enrich", json={"prompt": "React", "userId": "u1"})

        assert response.status_code == 429
        assert response.headers["retry-after"] == "3600"
        assert response.json()["error"] == "Rate limit exceeded. Please try again later."


@pytest.mark.unit
class TestOperationalEndpoints:
    """Test health, metrics and admin routes."""

    def test_health(self, make_client):
        with make_client() as client:
            response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["shared_store"] is True
        assert body["rate_limit"]["enabled"] is True
        assert body["cache"]["ttl_seconds"] == 300

    def test_metrics(self, make_client):
        with make_client() as client:
            client.post("/enrich", json={"prompt": "React"})
            response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "enrichment_requests_total" in response.text

    def test_cache_stats_and_clear(self, make_client):
        with make_client() as client:
            client.post("/enrich", json={"prompt": "React"})
            stats = client.get("/admin/cache/stats").json()["data"]
            cleared = client.post("/admin/cache/clear").json()["data"]
            after = client.get("/admin/cache/stats").json()["data"]

        assert stats["totalKeys"] == 1
        assert "memoryUsage" in stats
        assert cleared == {"removed": 1}
        assert after["totalKeys"] == 0

    def test_admin_token_required_when_configured(self, make_client):
        with make_client(admin_token="s3cret") as client:
            denied = client.get("/admin/cache/stats")
            wrong = client.post("/admin/cache/clear", headers={"X-Admin-Token": "nope"})
            allowed = client.get("/admin/cache/stats", headers={"X-Admin-Token": "s3cret"})

        assert denied.status_code == 403
        assert wrong.status_code == 403
        assert allowed.status_code == 200


@pytest.mark.unit
class TestLifespan:
    """Test service ownership across startup and shutdown."""

    def test_builds_service_when_not_provided(self, settings):
        app = create_app(settings)
        with TestClient(app) as client:
            assert isinstance(app.state.enrichment_service, EnrichmentService)
            body = client.get("/health").json()

        assert body["shared_store"] is False
        assert body["rate_limit"]["enabled"] is False

    def test_injected_service_is_not_closed(self, settings, failing_store):
        service = build_enrichment_service(settings, store=failing_store)
        with TestClient(create_app(service=service)):
            pass
        assert "close" not in failing_store.calls
