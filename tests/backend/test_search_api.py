"""
Tests for the read-model search endpoint.
"""

API = "/api/v1"


def sync(client, admin_headers, property_id):
    response = client.post(
        f"{API}/sync-property", json={"propertyId": property_id}, headers=admin_headers
    )
    assert response.status_code == 200


class TestSearch:
    def test_search_synced_documents(self, client, admin_headers, make_property):
        lima = make_property(title="Garden house")
        cusco = make_property(title="Loft", city="Cusco")
        sync(client, admin_headers, lima)
        sync(client, admin_headers, cusco)

        body = client.get(f"{API}/search", params={"city": "Lima"}).json()

        assert body["total"] == 1
        assert body["page"] == 1
        assert body["pageSize"] == 20
        assert body["results"][0]["doc"]["title"] == "Garden house"

        body = client.get(f"{API}/search", params={"q": "loft"}).json()
        assert [r["property_id"] for r in body["results"]] == [cusco]

    def test_price_bounds(self, client, admin_headers, make_property):
        sync(client, admin_headers, make_property(price=50000.0))
        sync(client, admin_headers, make_property(price=500000.0))

        body = client.get(f"{API}/search", params={"priceMin": 100000}).json()
        assert [r["doc"]["price"] for r in body["results"]] == [500000.0]

    def test_paging_is_clamped(self, client):
        body = client.get(f"{API}/search", params={"page": 0, "pageSize": 500}).json()

        assert body == {"results": [], "page": 1, "pageSize": 100, "total": 0}

    def test_sync_drops_cached_search(self, client, admin_headers, make_property):
        assert client.get(f"{API}/search").json()["total"] == 0

        sync(client, admin_headers, make_property())

        assert client.get(f"{API}/search").json()["total"] == 1

    def test_city_casing_returns_the_same_results(self, client, admin_headers, make_property):
        sync(client, admin_headers, make_property())

        lower = client.get(f"{API}/search", params={"city": "lima"}).json()
        upper = client.get(f"{API}/search", params={"city": "Lima"}).json()

        assert lower["total"] == upper["total"] == 1
