"""
Tests for cache refresh and the cache metrics debug endpoint.
"""

import asyncio

from fakes import FailingBackend

from backend.app.dependencies import get_cache_client
from ubika.cache import CacheClient
from ubika.config import Settings, get_settings

API = "/api/v1"


def seed(cache, *keys):
    for key in keys:
        asyncio.run(cache.set(key, {"stale": True}, 300))


def remaining(cache):
    return sorted(asyncio.run(cache.backend.keys("*")))


class TestCacheRefresh:
    def test_requires_admin_secret(self, client):
        assert client.post(f"{API}/cache/refresh", json={}).status_code == 401

    def test_refresh_all(self, client, api_cache, admin_headers):
        seed(
            api_cache,
            "v1:properties:list",
            "v1:properties:list:zone=lima:aaaaaaaa",
            "v1:seller:s1:list:op=sale:bbbbbbbb",
            "v1:property:p1",
        )

        response = client.post(f"{API}/cache/refresh", json={}, headers=admin_headers)

        assert response.json() == {"success": True, "message": "Cache refreshed"}
        assert remaining(api_cache) == ["v1:property:p1", "v1:seller:s1:list:op=sale:bbbbbbbb"]

    def test_refresh_one_seller(self, client, api_cache, admin_headers):
        seed(
            api_cache,
            "v1:properties:list",
            "v1:seller:s1:list",
            "v1:seller:s1:list:op=sale:bbbbbbbb",
            "v1:seller:s2:list",
            "v1:property:p1",
        )

        response = client.post(
            f"{API}/cache/refresh",
            json={"scope": "user", "sellerId": "s1", "propertyId": "p1"},
            headers=admin_headers,
        )

        assert response.json()["success"] is True
        assert remaining(api_cache) == ["v1:properties:list", "v1:seller:s2:list"]

    def test_backend_outage_reports_partial_refresh(self, app, client, admin_headers):
        failing = CacheClient(FailingBackend("get", "set", "delete", "scan"))
        app.dependency_overrides[get_cache_client] = lambda: failing

        response = client.post(f"{API}/cache/refresh", json={}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {"success": False, "message": "Partial cache refresh"}
        assert failing.metrics.get_snapshot().errors.delete_errors == 1

    def test_scan_failure_reports_partial_refresh(self, app, client, admin_headers):
        failing = CacheClient(FailingBackend("scan"))
        app.dependency_overrides[get_cache_client] = lambda: failing

        response = client.post(
            f"{API}/cache/refresh",
            json={"scope": "user", "sellerId": "s1"},
            headers=admin_headers,
        )

        assert response.json()["success"] is False


class TestCacheMetricsEndpoint:
    def test_snapshot(self, client, make_property):
        property_id = make_property()
        client.get(f"{API}/properties/{property_id}")
        client.get(f"{API}/properties/{property_id}")

        metrics = client.get(f"{API}/debug/cache-metrics").json()

        assert metrics["hits"] == 1
        assert metrics["misses"] == 1
        assert metrics["sets"] == 1
        assert metrics["hit_rate"] == 50.0

    def test_hidden_in_production(self, app, client):
        app.dependency_overrides[get_settings] = lambda: Settings(_env_file=None, ENV="production")

        response = client.get(f"{API}/debug/cache-metrics")
        assert response.status_code == 404
        assert response.json()["detail"] == "Not found"
