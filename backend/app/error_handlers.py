"""
Custom exception handlers for FastAPI.

Error bodies are ``{"detail": ..., "status_code": ...}``. Request ids are
logged server-side and returned only in the X-Request-ID header.
"""

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ubika.config import ConfigurationError
from ubika.logging import get_logger

logger = get_logger("api.errors")


def _get_request_id() -> str:
    return structlog.contextvars.get_contextvars().get("request_id", "-")


def _response_payload(detail: str, status_code: int) -> dict:
    return {
        "detail": detail,
        "status_code": status_code,
    }


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        logger.warning(
            "http_exception",
            detail=exc.detail,
            status_code=exc.status_code,
            path=request.url.path,
            request_id=_get_request_id(),
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=_response_payload(str(exc.detail), exc.status_code),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning("validation_error", errors=exc.errors(), request_id=_get_request_id())
        return JSONResponse(
            status_code=422,
            content={
                **_response_payload("Validation error", 422),
                "errors": jsonable_errors(exc),
            },
        )

    @app.exception_handler(ConfigurationError)
    async def configuration_exception_handler(request: Request, exc: ConfigurationError):
        logger.error("configuration_error", error=str(exc), request_id=_get_request_id())
        return JSONResponse(
            status_code=503,
            content=_response_payload("Service misconfigured", 503),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
            request_id=_get_request_id(),
        )
        return JSONResponse(
            status_code=500,
            content=_response_payload("Internal server error", 500),
        )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Validation errors without the raw input or exception objects."""
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]
