"""
Security utilities.

Provides:
- Fixed-window rate limiting backed by Redis with an in-memory fallback
- Shared-secret verification for admin endpoints
"""

from ubika.security.admin import verify_admin_secret
from ubika.security.rate_limiter import (
    FixedWindowRateLimiter,
    InMemoryRateLimiter,
    get_rate_limiter,
    rate_limit,
    set_rate_limiter,
)

__all__ = [
    "FixedWindowRateLimiter",
    "InMemoryRateLimiter",
    "get_rate_limiter",
    "rate_limit",
    "set_rate_limiter",
    "verify_admin_secret",
]
