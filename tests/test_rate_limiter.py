"""
Tests for the fixed-window rate limiter.
"""

from fakes import FailingBackend, FakeClock

from ubika.cache import CacheClient, InMemoryBackend, RedisBackend, set_cache
from ubika.security import (
    FixedWindowRateLimiter,
    InMemoryRateLimiter,
    get_rate_limiter,
    rate_limit,
)


class TestInMemoryRateLimiter:
    def test_window_allows_then_blocks(self):
        limiter = InMemoryRateLimiter(clock=FakeClock())

        assert limiter.hit("k", 2, 60)
        assert limiter.hit("k", 2, 60)
        assert not limiter.hit("k", 2, 60)

    def test_window_resets_after_expiry(self):
        clock = FakeClock()
        limiter = InMemoryRateLimiter(clock=clock)
        limiter.hit("k", 1, 60)
        assert not limiter.hit("k", 1, 60)

        clock.advance(60)
        assert limiter.hit("k", 1, 60)

    def test_keys_are_independent(self):
        limiter = InMemoryRateLimiter(clock=FakeClock())
        assert limiter.hit("a", 1, 60)
        assert limiter.hit("b", 1, 60)


class TestFixedWindowRateLimiter:
    async def test_backend_counter(self, backend):
        limiter = FixedWindowRateLimiter(backend)

        assert await limiter.hit("sync:1.2.3.4", 2, 60)
        assert await limiter.hit("sync:1.2.3.4", 2, 60)
        assert not await limiter.hit("sync:1.2.3.4", 2, 60)

    async def test_first_hit_sets_window_expiry(self, backend, clock):
        limiter = FixedWindowRateLimiter(backend)
        await limiter.hit("k", 1, 60)
        assert not await limiter.hit("k", 1, 60)

        clock.advance(60)
        assert await limiter.hit("k", 1, 60)

    async def test_backend_error_falls_back_to_memory(self):
        limiter = FixedWindowRateLimiter(
            FailingBackend("incr"), fallback=InMemoryRateLimiter(clock=FakeClock())
        )

        assert await limiter.hit("k", 2, 60)
        assert await limiter.hit("k", 2, 60)
        assert not await limiter.hit("k", 2, 60)

    async def test_expire_failure_is_swallowed(self):
        backend = FailingBackend("expire")
        limiter = FixedWindowRateLimiter(backend)

        assert await limiter.hit("k", 5, 60)
        assert await backend.get("k") == "1"

    async def test_no_backend_uses_memory(self):
        limiter = FixedWindowRateLimiter()
        assert not limiter.is_distributed
        assert await limiter.hit("k", 1, 60)
        assert not await limiter.hit("k", 1, 60)

    async def test_reset(self, backend):
        limiter = FixedWindowRateLimiter(backend)
        await limiter.hit("k", 1, 60)
        await limiter.reset("k")
        assert await limiter.hit("k", 1, 60)


class TestDefaultLimiter:
    async def test_rate_limit_uses_process_limiter(self):
        set_cache(CacheClient(InMemoryBackend()))

        assert await rate_limit("k", 1, 60)
        assert not await rate_limit("k", 1, 60)
        assert not get_rate_limiter().is_distributed

    def test_shares_remote_cache_backend(self):
        backend = RedisBackend(url="redis://localhost:6379/0")
        set_cache(CacheClient(backend))

        assert get_rate_limiter().backend is backend
