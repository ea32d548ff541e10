"""
Pytest fixtures for the Ubika listings tests.

Stores run on in-memory SQLite; the cache runs on the in-memory backend
with a controllable clock, or on a scripted fake Redis client.
"""

import pytest

from ubika.cache import CacheClient, CacheMetrics, InMemoryBackend, cache_metrics, set_cache
from ubika.config import get_settings
from ubika.db import DatabaseManager
from ubika.models import Property
from ubika.read_model import DocumentStore, ReadModelBase
from ubika.security import set_rate_limiter

from fakes import FakeClock


@pytest.fixture(autouse=True)
def reset_globals():
    """Process-wide singletons start clean for every test."""
    cache_metrics.reset()
    get_settings.cache_clear()
    set_cache(None)
    set_rate_limiter(None)
    yield
    set_cache(None)
    set_rate_limiter(None)
    get_settings.cache_clear()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def backend(clock):
    return InMemoryBackend(clock=clock)


@pytest.fixture
def metrics():
    return CacheMetrics()


@pytest.fixture
def cache(backend, metrics):
    return CacheClient(backend, metrics)


@pytest.fixture
def test_db():
    """Fresh relational store per test."""
    manager = DatabaseManager()
    manager.initialize("sqlite://")
    manager.create_all_tables()
    yield manager
    manager.reset()


@pytest.fixture
def read_model_manager():
    manager = DatabaseManager(metadata_base=ReadModelBase)
    manager.initialize("sqlite://")
    manager.create_all_tables()
    yield manager
    manager.reset()


@pytest.fixture
def document_store(read_model_manager):
    return DocumentStore(read_model_manager)


@pytest.fixture
def make_property(test_db):
    """Insert a property and return its id."""

    def _make(**overrides) -> str:
        fields = {
            "title": "Sunny apartment",
            "description": "Two bedrooms near the park",
            "price": 120000.0,
            "city": "Lima",
            "state": "Lima",
            "country": "Peru",
            "type": "apartment",
            "rooms": 2,
            "bathrooms": 1,
            "square_meters": 80.0,
            "seller_id": "seller-1",
            "operation_status_id": 1,
        }
        fields.update(overrides)
        with test_db.session() as session:
            prop = Property(**fields)
            session.add(prop)
            session.flush()
            return prop.id

    return _make
