"""Unit tests for cache configuration."""

from app.services.cache_config import CacheTTL, is_cache_valid, now_ms


class TestCacheTTLValues:
    """Test that TTL values are configured correctly."""

    def test_query_cache_ttl_is_five_minutes(self):
        assert CacheTTL.QUERY_CACHE.value == 5 * 60

    def test_stale_after_is_five_minutes(self):
        assert CacheTTL.STALE_AFTER.value == 5 * 60

    def test_image_url_ttl_is_one_hour(self):
        assert CacheTTL.IMAGE_URL.value == 60 * 60


class TestIsCacheValid:
    """Test the is_cache_valid function."""

    def test_none_cached_at_is_invalid(self):
        assert is_cache_valid(None, 300) is False

    def test_recent_cache_is_valid(self):
        assert is_cache_valid(now_ms() - 60_000, 300) is True

    def test_expires_once_age_exceeds_ttl(self):
        cached_at = 1_000_000
        assert is_cache_valid(cached_at, 300, current_ms=cached_at + 300_000) is True
        assert is_cache_valid(cached_at, 300, current_ms=cached_at + 300_001) is False
