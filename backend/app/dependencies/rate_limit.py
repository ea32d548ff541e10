"""
Rate limiting dependencies using the core fixed-window limiter.
"""

from fastapi import Depends, HTTPException, Request, status

from ubika.config import Settings, get_settings
from ubika.logging import get_logger
from ubika.security import FixedWindowRateLimiter

from . import get_limiter

logger = get_logger("api.rate_limit")


def client_ip(request: Request) -> str:
    """Client address, honoring reverse proxy headers if present."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


async def _check_limit(
    limiter: FixedWindowRateLimiter,
    key: str,
    max_requests: int,
    window_seconds: int,
) -> None:
    """Common logic to count a request and reject it over the limit."""
    if not await limiter.hit(key, max_requests, window_seconds):
        logger.warning("rate_limit_exceeded", key=key, limit=max_requests)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded",
            headers={"Retry-After": str(window_seconds)},
        )


async def enforce_sync_rate_limit(
    request: Request,
    limiter: FixedWindowRateLimiter = Depends(get_limiter),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Limit sync calls per client address.

    Key: sync:{ip_address}
    """
    await _check_limit(
        limiter,
        f"sync:{client_ip(request)}",
        settings.sync_rate_limit,
        settings.sync_rate_window,
    )
