"""
Route tests for the frontend service.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from fips_shared.config import get_config
from fips_shared.test_helpers import FakeCms, TestDataFactory, collection_payload
from service_frontend.app.main import FrontendService


def healthy_cms() -> FakeCms:
    return FakeCms({
        "/api/health": httpx.Response(200),
        "/api/products": httpx.Response(200, json=collection_payload(TestDataFactory.create_products(1), total=25)),
        "/api/category-types": httpx.Response(200, json=collection_payload(TestDataFactory.create_category_types(), total=8)),
    })


def unavailable_cms() -> FakeCms:
    return FakeCms({"/api/health": httpx.ConnectError("Connection refused")}, default_status=503)


def make_service(fake_cms: FakeCms, **overrides) -> FrontendService:
    config = get_config(**{
        "cms_base_url": "http://cms.test/api",
        "cms_read_api_key": "read-key",
        "health_check_ttl_seconds": 0,
        **overrides,
    })
    return FrontendService(config, cms_transport=fake_cms.transport)


class TestPageRoutes:
    """Pages behind the maintenance gate."""

    def test_home_when_cms_healthy(self):
        client = TestClient(make_service(healthy_cms()).app)

        response = client.get("/")

        assert response.status_code == 200
        body = response.json()
        assert body["published_products_count"] == 25
        assert body["category_types_count"] == 8
        assert "x-request-id" in response.headers

    def test_home_redirects_to_maintenance_when_cms_down(self):
        fake_cms = unavailable_cms()
        client = TestClient(make_service(fake_cms).app)

        response = client.get("/", follow_redirects=False)

        assert response.status_code == 503
        assert response.headers["location"] == "/maintenance"
        assert response.headers["cache-control"] == "no-store"
        assert fake_cms.calls_to("/api/category-types") == []

    def test_maintenance_page_served_during_outage(self):
        client = TestClient(make_service(unavailable_cms()).app)

        response = client.get("/maintenance")

        assert response.status_code == 200
        assert "unavailable" in response.text

    def test_categories_listed(self):
        client = TestClient(make_service(healthy_cms()).app)

        response = client.get("/categories")

        assert response.status_code == 200
        body = response.json()
        assert body["available"] is True
        assert [item["name"] for item in body["category_types"]] == ["Phase", "Channel", "User group"]

    def test_forced_maintenance_toggle(self):
        client = TestClient(make_service(healthy_cms()).app)

        assert client.post("/admin/maintenance", params={"enabled": "true"}).json() == {"maintenance_mode": True}
        assert client.get("/", follow_redirects=False).status_code == 503

        client.post("/admin/maintenance", params={"enabled": "false"})
        assert client.get("/").status_code == 200

    def test_misconfigured_read_key_shows_maintenance(self):
        fake_cms = FakeCms({"/api/health": httpx.Response(404)})
        client = TestClient(make_service(fake_cms, cms_read_api_key="clé").app)

        response = client.get("/", follow_redirects=False)

        assert response.status_code == 503
        assert response.headers["location"] == "/maintenance"

    def test_forced_maintenance_from_config(self):
        client = TestClient(make_service(healthy_cms(), maintenance_mode_enabled=True).app)

        response = client.get("/categories", follow_redirects=False)

        assert response.status_code == 503
        assert response.headers["location"] == "/maintenance"


class TestHealthRoutes:
    """Health and diagnostics endpoints."""

    def test_health_when_cms_healthy(self):
        client = TestClient(make_service(healthy_cms()).app)

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "Healthy"
        assert response.json()["cms"] == "Available"

    def test_health_when_cms_down(self):
        client = TestClient(make_service(unavailable_cms()).app)

        response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["cms"] == "Unavailable"

    def test_health_unhealthy_in_maintenance_mode(self):
        client = TestClient(make_service(healthy_cms(), maintenance_mode_enabled=True).app)

        response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["maintenance_mode"] is True

    def test_liveness_ignores_cms(self):
        fake_cms = unavailable_cms()
        client = TestClient(make_service(fake_cms).app)

        response = client.get("/health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "Alive"
        assert fake_cms.requests == []

    @pytest.mark.parametrize("maintenance, reason", [
        (False, "CMS unavailable"),
        (True, "Maintenance mode"),
    ])
    def test_readiness_reason(self, maintenance, reason):
        client = TestClient(make_service(unavailable_cms(), maintenance_mode_enabled=maintenance).app)

        response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["reason"] == reason

    def test_detailed_health(self):
        client = TestClient(make_service(healthy_cms()).app)

        response = client.get("/health/detailed")

        assert response.status_code == 200
        checks = response.json()["checks"]
        assert checks["cms"]["health_check"] is True
        assert checks["cms"]["state"]["consecutive_failures"] == 0
        assert checks["maintenance_mode"] == {"enabled": False}

    def test_detailed_health_probes_once(self):
        fake_cms = healthy_cms()
        client = TestClient(make_service(fake_cms).app)

        response = client.get("/health/detailed")

        cms = response.json()["checks"]["cms"]
        assert cms["available"] == cms["health_check"]
        assert len(fake_cms.calls_to("/api/health")) == 1

    def test_api_health_explains_maintenance(self):
        client = TestClient(make_service(unavailable_cms()).app)

        response = client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "unhealthy"
        assert body["debug"]["why_maintenance_shown"] == "CMS unavailable"


class TestAdminRoutes:
    """Cache administration and metrics."""

    def test_cache_info_and_clear(self):
        client = TestClient(make_service(healthy_cms()).app)
        client.get("/")

        info = client.get("/admin/cache").json()
        assert info["count"] == 2
        assert {entry["endpoint"] for entry in info["entries"]} == {"products", "category-types"}

        assert client.post("/admin/cache/clear", params={"endpoint": "products"}).json()["cleared"] == 1
        assert client.get("/admin/cache").json()["count"] == 1

        assert client.post("/admin/cache/clear").json()["cleared"] == 1
        assert client.get("/admin/cache").json()["count"] == 0

    @pytest.mark.parametrize("endpoint", [" ", "http://elsewhere.test/products"])
    def test_cache_clear_rejects_bad_endpoint(self, endpoint):
        client = TestClient(make_service(healthy_cms()).app)

        response = client.post("/admin/cache/clear", params={"endpoint": endpoint})

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["details"] == {"endpoint": endpoint}

    def test_home_served_from_cache(self):
        fake_cms = healthy_cms()
        client = TestClient(make_service(fake_cms).app)

        client.get("/")
        client.get("/")

        assert len(fake_cms.calls_to("/api/products")) == 1

    def test_admin_reachable_during_outage(self):
        client = TestClient(make_service(unavailable_cms()).app)

        assert client.get("/admin/cache", follow_redirects=False).status_code == 200

    def test_metrics_endpoint(self):
        client = TestClient(make_service(unavailable_cms()).app)
        client.get("/", follow_redirects=False)

        response = client.get("/metrics")

        assert response.status_code == 200
        assert 'maintenance_responses_total{reason="cms_unavailable"} 1.0' in response.text
        assert "cms_health_probes_total" in response.text
