"""
Tests for the property repository and the sync service.
"""

from datetime import datetime, timedelta, timezone

import pytest

from ubika.read_model import BaseUrlImageResolver
from ubika.repositories import PropertyRepository
from ubika.services import PropertyNotFoundError, load_sync_inputs, sync_property

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestPropertyRepository:
    def test_count_rejects_unknown_filter(self, test_db, make_property):
        make_property()
        with test_db.session() as session:
            repo = PropertyRepository(session)
            assert repo.count(city="Lima") == 1
            with pytest.raises(ValueError, match="Unknown filter key: colour"):
                repo.count(colour="red")

    def test_list_filters(self, test_db, make_property):
        lima = make_property(created_at=T0)
        make_property(city="Cusco", state="Cusco", price=60000.0, created_at=T0 + timedelta(1))
        rent = make_property(operation_status_id=2, rooms=4, created_at=T0 + timedelta(2))

        with test_db.session() as session:
            repo = PropertyRepository(session)
            ids = lambda rows: [p.id for p in rows]  # noqa: E731

            assert ids(repo.list_properties({"zone": "lim"})) == [rent, lima]
            assert ids(repo.list_properties({"operation": "rent"})) == [rent]
            assert ids(repo.list_properties({"operation": "buy", "zone": "lima"})) == [lima]
            assert repo.list_properties({"operation": "auction"}) == []
            assert ids(repo.list_properties({"bedrooms": "3"})) == [rent]
            assert len(repo.list_properties({"max_price": 100000})) == 1

    def test_list_by_seller_with_paging(self, test_db, make_property):
        first = make_property(seller_id="s2", created_at=T0)
        second = make_property(seller_id="s2", created_at=T0 + timedelta(1))
        make_property(seller_id="s3")

        with test_db.session() as session:
            repo = PropertyRepository(session)
            page = repo.list_properties(seller_id="s2", limit=1, offset=1)
            assert [p.id for p in page] == [first]
            assert [p.id for p in repo.list_properties(seller_id="s2")] == [second, first]

    def test_zone_filter_escapes_wildcards(self, test_db, make_property):
        make_property()
        with test_db.session() as session:
            assert PropertyRepository(session).list_properties({"zone": "%"}) == []

    def test_update_ignores_non_updatable_fields(self, test_db, make_property):
        property_id = make_property()
        with test_db.session() as session:
            prop = PropertyRepository(session).update(property_id, title="Renamed", id="other")
            assert prop.title == "Renamed"
            assert prop.id == property_id

    def test_images_and_features(self, test_db, make_property):
        property_id = make_property()
        with test_db.session() as session:
            repo = PropertyRepository(session)
            repo.add_image(property_id, "b.jpg", display_order=2)
            repo.add_image(property_id, "a.jpg", display_order=1)
            repo.add_image(property_id, "cover.jpg", is_cover=True, display_order=9)
            repo.assign_feature(property_id, "Pool")
            repo.assign_feature(property_id, "Garage")
            repo.assign_feature(property_id, "Pool")
            assert repo.add_image("missing", "x.jpg") is None

        with test_db.session() as session:
            repo = PropertyRepository(session)
            prop = repo.get_with_relations(property_id)
            assert [i.image_url for i in prop.images] == ["cover.jpg", "a.jpg", "b.jpg"]
            assert [f.name for f in repo.features_for(property_id)] == ["Garage", "Pool"]


class TestSyncService:
    def test_load_sync_inputs(self, test_db, make_property):
        property_id = make_property()
        with test_db.session() as session:
            PropertyRepository(session).add_image(property_id, "a.jpg")

        prop, images, features = load_sync_inputs(test_db, property_id)
        assert prop["id"] == property_id
        assert [i["image_url"] for i in images] == ["a.jpg"]
        assert features == []
        assert load_sync_inputs(test_db, "missing") is None

    async def test_sync_property(self, test_db, make_property, document_store, cache):
        property_id = make_property()
        with test_db.session() as session:
            repo = PropertyRepository(session)
            repo.add_image(property_id, "/p/a.jpg")
            repo.assign_feature(property_id, "Pool")
        await cache.set(f"v1:property:{property_id}", {"stale": True}, 60)
        await cache.set("v1:properties:list:zone=lima:abcd1234", [1], 60)

        result = await sync_property(
            property_id,
            database=test_db,
            sink=document_store,
            cache=cache,
            resolver=BaseUrlImageResolver("https://img.example.com"),
            default_currency="PEN",
        )

        assert result.ok
        stored = await document_store.get_property_document(property_id)
        assert stored["doc"]["images"] == ["https://img.example.com/p/a.jpg"]
        assert stored["doc"]["features"] == ["Pool"]
        assert stored["doc"]["currency"] == "PEN"
        assert stored["doc"]["price_per_m2"] == 1500
        assert await cache.get(f"v1:property:{property_id}") is None
        assert await cache.get("v1:properties:list:zone=lima:abcd1234") is None

    async def test_missing_property(self, test_db, document_store, cache):
        with pytest.raises(PropertyNotFoundError) as excinfo:
            await sync_property(
                "missing",
                database=test_db,
                sink=document_store,
                cache=cache,
                resolver=BaseUrlImageResolver(None),
            )
        assert excinfo.value.property_id == "missing"
