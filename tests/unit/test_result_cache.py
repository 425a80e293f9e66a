# tests/unit/test_result_cache.py
"""
Unit tests for the TTL result cache.
"""

import pytest

from app.services.result_cache import ResultCache


class FakeTimer:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def timer():
    return FakeTimer()


@pytest.fixture
def cache(timer):
    return ResultCache(default_ttl_seconds=300, maxsize=100, timer=timer)


class TestResultCache:
    def test_miss_returns_none(self, cache):
        assert cache.get("post:abc") is None

    def test_hit_within_ttl(self, cache, timer):
        cache.set("post:abc", {"score": 1})
        timer.now = 299

        assert cache.get("post:abc") == {"score": 1}

    def test_expires_after_ttl(self, cache, timer):
        cache.set("post:abc", {"score": 1})
        timer.now = 301

        assert cache.get("post:abc") is None
        assert len(cache) == 0

    def test_per_entry_ttl(self, cache, timer):
        cache.set("short", "a", ttl_seconds=10)
        cache.set("long", "b", ttl_seconds=1000)
        timer.now = 500

        assert cache.get("short") is None
        assert cache.get("long") == "b"

    def test_last_set_wins(self, cache):
        cache.set("user:spez", "first")
        cache.set("user:spez", "second")

        assert cache.get("user:spez") == "second"
        assert len(cache) == 1

    def test_set_refreshes_expiry(self, cache, timer):
        cache.set("k", "v1")
        timer.now = 200
        cache.set("k", "v2")
        timer.now = 400

        assert cache.get("k") == "v2"

    @pytest.mark.parametrize("ttl", [0, -1])
    def test_rejects_non_positive_ttl(self, cache, ttl):
        with pytest.raises(ValueError):
            cache.set("k", "v", ttl_seconds=ttl)

    def test_clear(self, cache):
        cache.set("a", 1)
        cache.set("b", 2)
        cache.clear()

        assert len(cache) == 0
        assert cache.get("a") is None
