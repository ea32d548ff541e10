"""
Tests for the cache metrics collector.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from ubika.cache.metrics import AGE_SAMPLE_SIZE, CacheMetrics


class TestCacheMetrics:
    def test_empty_snapshot(self):
        snapshot = CacheMetrics().get_snapshot()
        assert snapshot.hit_rate == 0
        assert snapshot.average_age == 0
        assert snapshot.total_requests == 0

    def test_hit_rate_and_errors(self):
        metrics = CacheMetrics()
        for _ in range(3):
            metrics.record_hit()
        for _ in range(2):
            metrics.record_miss()
        metrics.record_error("get")

        snapshot = metrics.get_snapshot()

        assert snapshot.hits == 3
        assert snapshot.misses == 2
        assert snapshot.hit_rate == 60.0
        assert snapshot.total_requests == 5
        assert snapshot.errors.get_errors == 1

    def test_stale_counts_as_a_request(self):
        metrics = CacheMetrics()
        metrics.record_hit()
        metrics.record_stale(age_seconds=10)
        metrics.record_miss()

        snapshot = metrics.get_snapshot()
        assert snapshot.hit_rate == 33.33
        assert snapshot.average_age == 10

    def test_age_samples_are_bounded(self):
        metrics = CacheMetrics()
        metrics.record_hit(age_seconds=1000)
        for _ in range(AGE_SAMPLE_SIZE):
            metrics.record_hit(age_seconds=2)

        assert metrics.get_snapshot().average_age == 2

    def test_zero_ages_are_not_sampled(self):
        metrics = CacheMetrics()
        metrics.record_hit(age_seconds=0)
        metrics.record_hit(age_seconds=3)
        assert metrics.get_snapshot().average_age == 3

    def test_unknown_error_kind_is_ignored(self):
        metrics = CacheMetrics()
        metrics.record_error("bogus")
        assert metrics.get_snapshot().errors.get_errors == 0

    def test_snapshot_is_read_only(self):
        snapshot = CacheMetrics().get_snapshot()
        with pytest.raises(AttributeError):
            snapshot.hits = 10

    def test_reset(self):
        metrics = CacheMetrics()
        metrics.record_set()
        metrics.record_delete()
        metrics.record_pattern_invalidation()
        metrics.reset()

        snapshot = metrics.get_snapshot()
        assert (snapshot.sets, snapshot.deletes, snapshot.pattern_invalidations) == (0, 0, 0)

    def test_concurrent_increments(self):
        metrics = CacheMetrics()
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda _: metrics.record_hit(), range(1000)))
        assert metrics.get_snapshot().hits == 1000

    def test_to_dict(self):
        data = CacheMetrics().get_snapshot().to_dict()
        assert data["errors"] == {
            "get_errors": 0,
            "set_errors": 0,
            "delete_errors": 0,
            "pattern_errors": 0,
        }
        assert "uptime_seconds" in data
