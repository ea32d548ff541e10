"""
Application configuration using Pydantic settings.

Usage:
    from ubika.config import get_settings
    settings = get_settings()
"""

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError


class ConfigurationError(RuntimeError):
    """Raised at startup when configuration is unsafe to run with."""


class Settings(BaseSettings):
    """
    Unified application settings loaded from environment variables and .env file.

    Required for production:
        - ADMIN_SECRET (protects the sync and cache refresh endpoints)
        - REDIS_URL (without it every process keeps its own in-memory cache)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App settings
    app_name: str = "Ubika Listings"
    api_prefix: str = "/api"
    debug: bool = Field(default=False)
    env: str = Field(default="development", validation_alias="ENV")

    # Database
    database_url: str = Field(default="sqlite:///ubika.db", validation_alias="DATABASE_URL")
    db_pool_size: int = Field(default=10, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=20, validation_alias="DB_MAX_OVERFLOW")
    db_pool_pre_ping: bool = Field(default=True, validation_alias="DB_POOL_PRE_PING")

    # Read-model (denormalized property documents)
    read_model_database_url: Optional[str] = Field(
        default=None, validation_alias="READ_MODEL_DATABASE_URL"
    )
    read_model_db: Optional[str] = Field(default=None, validation_alias="READ_MODEL_DB")
    default_currency: str = Field(default="USD", validation_alias="DEFAULT_CURRENCY")
    image_base_url: Optional[str] = Field(default=None, validation_alias="IMAGE_BASE_URL")

    # Redis
    redis_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("REDIS_URL", "UBIKA_CACHE_REDIS_URL", "VERCEL_REDIS_URL"),
    )

    # Cache TTLs (seconds)
    property_detail_cache_ttl: int = Field(default=120, validation_alias="PROPERTY_DETAIL_CACHE_TTL")
    session_cache_ttl: int = Field(default=86400, validation_alias="SESSION_CACHE_TTL")

    # Admin / debug
    admin_secret: str = Field(default="", validation_alias="ADMIN_SECRET")
    enable_debug_endpoints: bool = Field(default=False, validation_alias="ENABLE_DEBUG_ENDPOINTS")

    # Rate limiting
    sync_rate_limit: int = Field(default=30, validation_alias="SYNC_RATE_LIMIT")
    sync_rate_window: int = Field(default=60, validation_alias="SYNC_RATE_WINDOW")

    @field_validator("session_cache_ttl", mode="before")
    @classmethod
    def validate_session_ttl(cls, v):
        """Fall back to one day for unparseable or non-positive TTLs."""
        try:
            ttl = int(v)
        except (TypeError, ValueError):
            return 86400
        return ttl if ttl > 0 else 86400

    @property
    def is_production(self) -> bool:
        return self.env.lower() in ("production", "prod")

    @property
    def debug_endpoints_enabled(self) -> bool:
        """Debug endpoints are always on outside production."""
        return not self.is_production or self.enable_debug_endpoints

    def resolve_read_model_url(self) -> URL:
        """
        Resolve the database URL for the read-model store.

        READ_MODEL_DB overrides the database named in READ_MODEL_DATABASE_URL.
        Without READ_MODEL_DATABASE_URL the read-model shares DATABASE_URL.

        Raises:
            ConfigurationError: If a read-model URL is set but no database
                name can be determined from it or from READ_MODEL_DB.
        """
        if not self.read_model_database_url:
            return make_url(self.database_url)

        try:
            url = make_url(self.read_model_database_url)
        except ArgumentError as e:
            raise ConfigurationError(
                f"READ_MODEL_DATABASE_URL is not a valid database URL: {e}"
            ) from e

        if self.read_model_db:
            return url.set(database=self.read_model_db)

        if not url.database:
            raise ConfigurationError(
                "READ_MODEL_DB is required when READ_MODEL_DATABASE_URL does not name a "
                "database. Set READ_MODEL_DB to the target database to avoid writing "
                "documents to the server default."
            )
        return url

    def validate_production_config(self) -> tuple[list[str], list[str]]:
        """
        Validate configuration for production deployment.

        Returns:
            Tuple of (errors, warnings) - errors are fatal, warnings are advisory
        """
        errors = []
        warnings = []

        if not self.admin_secret:
            warnings.append("ADMIN_SECRET not set - sync and cache refresh endpoints reject all calls")
        elif len(self.admin_secret) < 16:
            errors.append("ADMIN_SECRET must be at least 16 characters")

        if not self.redis_url:
            warnings.append(
                "REDIS_URL not set - cache uses the in-memory fallback, which is not "
                "shared between instances"
            )

        if self.enable_debug_endpoints:
            warnings.append("ENABLE_DEBUG_ENDPOINTS is on - cache metrics are publicly readable")

        return errors, warnings


def validate_read_model_config(settings: Settings | None = None) -> URL:
    """Fail fast on a misconfigured read-model store. Call from entrypoints."""
    settings = settings or get_settings()
    return settings.resolve_read_model_url()


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()


__all__ = ["ConfigurationError", "Settings", "get_settings", "validate_read_model_config"]
