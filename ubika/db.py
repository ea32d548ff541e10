"""
Unified Database Management Layer.

Provides DatabaseManager for:
- Connection pooling (PostgreSQL) / StaticPool (SQLite)
- Session management with context managers
- Auto-commit/rollback behavior

The relational store (DATABASE_URL) and the read-model store
(READ_MODEL_DATABASE_URL) each get their own manager.

Usage:
    from ubika.db import db, Base

    db.initialize()
    with db.session() as session:
        prop = session.get(Property, property_id)
"""

import time
from collections.abc import Generator
from contextlib import contextmanager
from typing import Optional, Union

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from .config import get_settings


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for relational models."""

    pass


def build_engine(url: Union[str, URL], echo: bool = False) -> Engine:
    """Create an engine with pooling suited to the database dialect."""
    settings = get_settings()
    url = make_url(url)
    is_sqlite = url.get_backend_name() == "sqlite"

    if is_sqlite:
        connect_args = {"check_same_thread": False}
        pool_class: type[StaticPool | QueuePool] = StaticPool
        pool_config = {}
    else:
        connect_args = {}
        pool_class = QueuePool
        pool_config = {
            "pool_size": settings.db_pool_size,
            "max_overflow": settings.db_max_overflow,
            "pool_pre_ping": settings.db_pool_pre_ping,
        }

    engine = create_engine(
        url,
        poolclass=pool_class,
        connect_args=connect_args,
        echo=echo,
        future=True,
        **pool_config,
    )

    # Enable foreign keys for SQLite
    if is_sqlite:

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


class DatabaseManager:
    """
    Database manager with connection pooling and health checks.

    Features:
    - Connection pooling (QueuePool for PostgreSQL, StaticPool for SQLite)
    - Context manager for automatic commit/rollback
    - Health check support
    """

    def __init__(self, metadata_base: type[DeclarativeBase] = Base):
        self._base = metadata_base
        self._initialized = False
        self.engine: Optional[Engine] = None

    def initialize(self, database_url: Union[str, URL, None] = None) -> None:
        """
        Initialize database connection. Call once at app startup.

        Args:
            database_url: Optional override. Uses settings.database_url if not provided.
        """
        if self._initialized:
            return

        settings = get_settings()
        self.engine = build_engine(database_url or settings.database_url, echo=settings.debug)
        self.SessionLocal = sessionmaker(
            bind=self.engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
            future=True,
        )

        self._initialized = True

    def create_all_tables(self) -> None:
        """Create all tables defined by models."""
        self._ensure_initialized()
        self._base.metadata.create_all(bind=self.engine)

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Context manager for database sessions with auto-commit/rollback.

        Usage:
            with db.session() as session:
                prop = session.get(Property, property_id)
        """
        self._ensure_initialized()
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @property
    def is_initialized(self) -> bool:
        """Check if database manager is initialized."""
        return self._initialized

    def health_check(self) -> dict:
        """
        Perform database health check.

        Returns:
            dict with 'healthy' (bool), 'latency_ms' (float), and 'error' (str or None)
        """
        if not self._initialized:
            return {"healthy": False, "latency_ms": 0, "error": "Database not initialized"}

        start = time.perf_counter()
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            latency = (time.perf_counter() - start) * 1000
            return {"healthy": True, "latency_ms": round(latency, 2), "error": None}
        except Exception as e:
            latency = (time.perf_counter() - start) * 1000
            return {"healthy": False, "latency_ms": round(latency, 2), "error": str(e)}

    def reset(self) -> None:
        """Dispose the engine and return to the uninitialized state."""
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None
        self._initialized = False

    def _ensure_initialized(self) -> None:
        """Raise error if not initialized."""
        if not self._initialized:
            raise RuntimeError("DatabaseManager not initialized. Call initialize() first.")


# Relational store (source of truth)
db = DatabaseManager()


__all__ = ["Base", "DatabaseManager", "build_engine", "db"]
