"""
Tests for the property endpoints: read-through caching and write invalidation.
"""

import asyncio

API = "/api/v1"


def cache_get(cache, key):
    return asyncio.run(cache.get(key))


def cache_set(cache, key, value):
    asyncio.run(cache.set(key, value, 300))


class TestPropertyDetail:
    def test_detail_is_cached(self, client, api_cache, make_property):
        property_id = make_property()

        response = client.get(f"{API}/properties/{property_id}")

        assert response.status_code == 200
        assert response.headers["Cache-Control"] == "private, max-age=120"
        assert response.json()["title"] == "Sunny apartment"
        assert cache_get(api_cache, f"v1:property:{property_id}")["id"] == property_id

    def test_served_from_cache(self, client, api_cache, make_property):
        property_id = make_property()
        cache_set(api_cache, f"v1:property:{property_id}", {"id": property_id, "title": "Cached"})

        assert client.get(f"{API}/properties/{property_id}").json()["title"] == "Cached"

    def test_missing_property(self, client):
        response = client.get(f"{API}/properties/missing")

        assert response.status_code == 404
        assert response.json() == {"detail": "Property not found", "status_code": 404}


class TestPropertyList:
    def test_list_filters_and_caches(self, client, api_cache, make_property):
        make_property()
        make_property(city="Cusco")

        response = client.get(f"{API}/properties", params={"zone": "Lima"})

        assert response.status_code == 200
        assert [p["city"] for p in response.json()] == ["Lima"]
        keys = asyncio.run(api_cache.backend.keys("v1:properties:list:zone=lima:*"))
        assert len(keys) == 1

    def test_unfiltered_list_uses_base_key(self, client, api_cache, make_property):
        make_property()

        client.get(f"{API}/properties")

        assert len(cache_get(api_cache, "v1:properties:list")) == 1


class TestPropertyWrites:
    def test_update_requires_admin_secret(self, client, make_property):
        property_id = make_property()

        response = client.patch(f"{API}/properties/{property_id}", json={"title": "x"})
        assert response.status_code == 401

    def test_update_invalidates_old_and_new_listings(
        self, client, api_cache, admin_headers, make_property
    ):
        property_id = make_property()
        stale = [
            f"v1:property:{property_id}",
            "v1:properties:list",
            "v1:properties:list:zone=lima:11111111",
            "v1:properties:list:zone=cusco:22222222",
            "v1:seller:seller-1:list",
            "v1:seller:seller-1:list:op=sale:33333333",
        ]
        for key in stale:
            cache_set(api_cache, key, {"stale": True})
        cache_set(api_cache, "v1:reference:property-types:list", ["apartment"])

        response = client.patch(
            f"{API}/properties/{property_id}", json={"city": "Cusco"}, headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["city"] == "Cusco"
        for key in stale:
            assert cache_get(api_cache, key) is None, key
        assert cache_get(api_cache, "v1:reference:property-types:list") == ["apartment"]

    def test_read_after_update_sees_new_value(self, client, admin_headers, make_property):
        property_id = make_property()
        client.get(f"{API}/properties/{property_id}")

        client.patch(f"{API}/properties/{property_id}", json={"price": 99000}, headers=admin_headers)

        assert client.get(f"{API}/properties/{property_id}").json()["price"] == 99000

    def test_update_rejects_unknown_fields(self, client, admin_headers, make_property):
        property_id = make_property()

        response = client.patch(
            f"{API}/properties/{property_id}", json={"colour": "red"}, headers=admin_headers
        )
        assert response.status_code == 422

    def test_delete(self, client, api_cache, admin_headers, make_property):
        property_id = make_property()
        client.get(f"{API}/properties/{property_id}")

        response = client.delete(f"{API}/properties/{property_id}", headers=admin_headers)

        assert response.json() == {"success": True}
        assert cache_get(api_cache, f"v1:property:{property_id}") is None
        assert client.get(f"{API}/properties/{property_id}").status_code == 404
        assert client.delete(f"{API}/properties/{property_id}", headers=admin_headers).status_code == 404

    def test_image_changes_invalidate_detail(self, client, api_cache, admin_headers, make_property):
        property_id = make_property()
        client.get(f"{API}/properties/{property_id}")

        response = client.post(
            f"{API}/properties/{property_id}/images",
            json={"image_url": "a.jpg", "is_cover": True},
            headers=admin_headers,
        )

        assert response.status_code == 201
        image_id = response.json()["id"]
        assert cache_get(api_cache, f"v1:property:{property_id}") is None

        detail = client.get(f"{API}/properties/{property_id}").json()
        assert [i["image_url"] for i in detail["images"]] == ["a.jpg"]

        response = client.delete(f"{API}/properties/images/{image_id}", headers=admin_headers)
        assert response.json() == {"success": True}
        assert client.get(f"{API}/properties/{property_id}").json()["images"] == []

    def test_image_on_missing_property(self, client, admin_headers):
        response = client.post(
            f"{API}/properties/missing/images", json={"image_url": "a.jpg"}, headers=admin_headers
        )
        assert response.status_code == 404
