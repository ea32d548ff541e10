"""
Tests for the database manager.
"""

import pytest
from sqlalchemy import inspect

import ubika.db
from ubika.db import DatabaseManager
from ubika.models import Property


class TestDatabaseManager:
    """Sessions are the only way in; there is no per-request session dependency."""

    def test_public_surface(self):
        assert ubika.db.__all__ == ["Base", "DatabaseManager", "build_engine", "db"]
        assert not hasattr(ubika.db, "get_db")

    def test_create_all_tables(self, test_db):
        tables = inspect(test_db.engine).get_table_names()
        assert {"properties", "property_images", "property_features"} <= set(tables)

    def test_session_commits_on_success(self, test_db):
        with test_db.session() as session:
            prop = Property(title="Loft")
            session.add(prop)
            session.flush()
            property_id = prop.id

        with test_db.session() as session:
            assert session.get(Property, property_id).title == "Loft"

    def test_session_rolls_back_on_error(self, test_db):
        with pytest.raises(RuntimeError):
            with test_db.session() as session:
                session.add(Property(id="rolled-back", title="Gone"))
                session.flush()
                raise RuntimeError("boom")

        with test_db.session() as session:
            assert session.get(Property, "rolled-back") is None

    def test_uninitialized_manager(self):
        manager = DatabaseManager()

        assert manager.health_check()["healthy"] is False
        with pytest.raises(RuntimeError, match="not initialized"):
            with manager.session():
                pass

    def test_health_and_reset(self, test_db):
        assert test_db.health_check()["healthy"] is True

        test_db.reset()
        assert not test_db.is_initialized
        assert test_db.engine is None
