"""
FastAPI dependency injection module.

Provides centralized dependencies for:
- Settings
- Database managers and the read-model store
- Cache and rate limiter
- Admin secret checks

Each one returns the process default built at startup, so tests override
them with ``app.dependency_overrides``.
"""

from fastapi import Depends, Header, HTTPException, status

from ubika.cache import CacheClient, get_cache
from ubika.config import Settings, get_settings
from ubika.db import DatabaseManager, db
from ubika.logging import get_logger
from ubika.read_model import BaseUrlImageResolver, DocumentStore, ImageResolver, read_model_db
from ubika.security import FixedWindowRateLimiter, get_rate_limiter, verify_admin_secret

logger = get_logger("api.dependencies")

# =============================================================================
# Store Dependencies
# =============================================================================


def get_database() -> DatabaseManager:
    """Relational store (source of truth)."""
    return db


def get_document_store() -> DocumentStore:
    """Read-model document store."""
    return DocumentStore(read_model_db)


def get_image_resolver(settings: Settings = Depends(get_settings)) -> ImageResolver:
    return BaseUrlImageResolver(settings.image_base_url)


# =============================================================================
# Cache Dependencies
# =============================================================================


def get_cache_client() -> CacheClient:
    """Process-wide cache client."""
    return get_cache()


def get_limiter() -> FixedWindowRateLimiter:
    """Process-wide rate limiter."""
    return get_rate_limiter()


# =============================================================================
# Admin Dependencies
# =============================================================================


def require_admin_secret(
    x_admin_secret: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> None:
    """Reject the request unless X-Admin-Secret matches ADMIN_SECRET."""
    if not verify_admin_secret(x_admin_secret, settings.admin_secret):
        logger.warning("admin_secret_rejected", configured=bool(settings.admin_secret))
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


__all__ = [
    "get_cache_client",
    "get_database",
    "get_document_store",
    "get_image_resolver",
    "get_limiter",
    "require_admin_secret",
]
