"""
Fixtures for the HTTP API tests.

Both stores run on in-memory SQLite and are initialized before the app
starts, so startup reuses them. The cache and the limiter are in-memory.
"""

import pytest
from fastapi.testclient import TestClient

from ubika.cache import CacheClient, InMemoryBackend, set_cache
from ubika.config import get_settings
from ubika.db import db
from ubika.read_model import DocumentStore, read_model_db
from ubika.security import FixedWindowRateLimiter, set_rate_limiter

ADMIN_SECRET = "test-admin-secret-123"


@pytest.fixture
def env(monkeypatch):
    monkeypatch.setenv("ENV", "development")
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("ADMIN_SECRET", ADMIN_SECRET)
    monkeypatch.setenv("IMAGE_BASE_URL", "https://img.example.com")
    for name in ("READ_MODEL_DATABASE_URL", "READ_MODEL_DB", "REDIS_URL", "UBIKA_CACHE_REDIS_URL", "VERCEL_REDIS_URL"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    return monkeypatch


@pytest.fixture
def api_cache():
    cache = CacheClient(InMemoryBackend())
    set_cache(cache)
    return cache


@pytest.fixture
def app(env, api_cache):
    from backend.app.main import create_app

    db.initialize("sqlite://")
    read_model_db.initialize("sqlite://")
    set_rate_limiter(FixedWindowRateLimiter())

    application = create_app()
    yield application

    application.dependency_overrides.clear()
    db.reset()
    read_model_db.reset()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers():
    return {"X-Admin-Secret": ADMIN_SECRET}


@pytest.fixture
def document_store():
    return DocumentStore(read_model_db)


@pytest.fixture
def make_property(client):
    """Insert a property through the relational store and return its id."""
    from ubika.models import Property

    def _make(**overrides) -> str:
        fields = {
            "title": "Sunny apartment",
            "description": "Two bedrooms near the park",
            "price": 120000.0,
            "city": "Lima",
            "type": "apartment",
            "rooms": 2,
            "square_meters": 80.0,
            "seller_id": "seller-1",
            "operation_status_id": 1,
        }
        fields.update(overrides)
        with db.session() as session:
            prop = Property(**fields)
            session.add(prop)
            session.flush()
            return prop.id

    return _make
