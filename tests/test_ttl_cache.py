"""Unit tests for the bounded TTL cache."""

import pytest

from app.services.ttl_cache import BoundedTTLCache


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class TestBoundedTTLCache:
    """Tests for BoundedTTLCache."""

    def test_get_returns_stored_value(self):
        cache = BoundedTTLCache(maxsize=2, ttl=10, clock=FakeClock())
        cache.set("a", 1)
        assert cache.get("a") == 1
        assert "a" in cache

    def test_missing_key_returns_none(self):
        cache = BoundedTTLCache(maxsize=2, ttl=10)
        assert cache.get("nope") is None

    def test_entries_expire_after_ttl(self):
        clock = FakeClock()
        cache = BoundedTTLCache(maxsize=2, ttl=10, clock=clock)
        cache.set("a", 1)

        clock.now += 9.9
        assert cache.get("a") == 1

        clock.now += 0.1
        assert cache.get("a") is None
        assert len(cache) == 0

    def test_evicts_least_recently_used_when_full(self):
        cache = BoundedTTLCache(maxsize=2, ttl=10, clock=FakeClock())
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")  # a is now most recently used
        cache.set("c", 3)

        assert cache.get("b") is None
        assert cache.get("a") == 1
        assert cache.get("c") == 3
        assert len(cache) == 2

    def test_purge_expired(self):
        clock = FakeClock()
        cache = BoundedTTLCache(maxsize=5, ttl=10, clock=clock)
        cache.set("a", 1)
        clock.now += 5
        cache.set("b", 2)
        clock.now += 6

        assert cache.purge_expired() == 1
        assert cache.get("b") == 2

    def test_instances_are_isolated(self):
        first = BoundedTTLCache(maxsize=2, ttl=10)
        second = BoundedTTLCache(maxsize=2, ttl=10)
        first.set("a", 1)
        assert second.get("a") is None

    def test_invalid_maxsize(self):
        with pytest.raises(ValueError):
            BoundedTTLCache(maxsize=0, ttl=10)
