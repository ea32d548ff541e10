"""
FastAPI application entry point.

Composition root: builds the database managers, the document store, the
cache client and the rate limiter once at startup and shares them with every
request. Uses structured logging from ubika.logging.
"""

from fastapi import FastAPI, status
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from ubika.cache import get_cache
from ubika.config import get_settings, validate_read_model_config
from ubika.db import db
from ubika.logging import RequestLoggingMiddleware, configure_logging, get_logger
import ubika.models  # noqa: F401 - registers relational tables
from ubika.read_model import create_document_store, read_model_db
from ubika.security import get_rate_limiter

from .error_handlers import register_exception_handlers
from .middleware.request_id import RequestIDMiddleware
from .routers import cache as cache_router
from .routers import properties as properties_router
from .routers import search as search_router
from .routers import sync as sync_router

logger = get_logger("api")


def _log_config_warnings() -> None:
    settings = get_settings()
    errors, warnings = settings.validate_production_config()
    for warning in warnings:
        logger.warning("config_warning", message=warning)
    for error in errors:
        logger.error("config_error", message=error)
    if errors and settings.is_production:
        raise RuntimeError("Invalid production configuration: " + "; ".join(errors))


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(level="DEBUG" if settings.debug else "INFO")

    # API is accessible at /api/v1/*
    api_version = "v1"
    api_prefix = f"{settings.api_prefix}/{api_version}"

    app = FastAPI(title=settings.app_name, debug=settings.debug)

    # GZip compression for responses > 500 bytes
    app.add_middleware(GZipMiddleware, minimum_size=500)

    # Request ID middleware (for tracing)
    app.add_middleware(RequestIDMiddleware)

    # Structured request logging middleware
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)

    @app.on_event("startup")
    async def startup_event():
        """Initialize stores, cache and limiter."""
        logger.info("app_startup", app_name=settings.app_name, env=settings.env)

        _log_config_warnings()

        # Fail fast on a read-model URL without a database name
        validate_read_model_config(settings)

        db.initialize(settings.database_url)
        db.create_all_tables()
        logger.info("database_initialized")

        create_document_store(read_model_db)

        cache = get_cache()
        health = await cache.health_check()
        if health["available"]:
            logger.info("cache_initialized", backend=health["backend"], shared=health["shared"])
        else:
            logger.warning("cache_unavailable", backend=health["backend"])

        limiter = get_rate_limiter()
        logger.info("rate_limiter_initialized", distributed=limiter.is_distributed)

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("app_shutdown")
        await get_cache().close()

    @app.get("/health", tags=["health"])
    def health_check():
        """Liveness probe. No infrastructure details."""
        return {"status": "ok"}

    @app.get("/health/ready", tags=["health"])
    async def readiness_check():
        """
        Readiness check endpoint.

        The relational store and the read-model must answer; the cache is
        optional since every read falls back to the database.

        Returns 200 if ready, 503 if not ready.
        """
        checks = {
            "database": (await run_in_threadpool(db.health_check))["healthy"],
            "read_model": (await run_in_threadpool(read_model_db.health_check))["healthy"],
            "cache": (await get_cache().health_check())["available"],
        }

        if not (checks["database"] and checks["read_model"]):
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "not_ready", "checks": checks},
            )

        return {"status": "ready", "checks": checks}

    app.include_router(properties_router.router, prefix=api_prefix)
    app.include_router(sync_router.router, prefix=api_prefix)
    app.include_router(cache_router.router, prefix=api_prefix)
    app.include_router(search_router.router, prefix=api_prefix)

    return app


app = create_app()
