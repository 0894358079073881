"""Cache validity helpers.

``CacheTTL`` lives in ``app.config`` beside the settings that default from it.
TTL values are in seconds for each cached data type:
- Query cache: 5 minutes (persisted fallback snapshots of live queries)
- Stale after: 5 minutes (advisory flag on live query results)
- Image URLs: 1 hour (resolved storage URLs)
"""

import time
from typing import Optional

from app.config import CacheTTL

__all__ = ["CacheTTL", "now_ms", "is_cache_valid"]


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def is_cache_valid(
    cached_at_ms: Optional[int], ttl_seconds: float, current_ms: Optional[int] = None
) -> bool:
    """Check if an entry captured at ``cached_at_ms`` is still valid.

    An entry expires once its age exceeds the TTL; an age exactly equal to
    the TTL is still valid.

    Args:
        cached_at_ms: epoch milliseconds when data was cached
        ttl_seconds: time-to-live for this data type
        current_ms: override for "now" (defaults to the wall clock)

    Returns:
        True if cache is still valid, False if expired
    """
    if cached_at_ms is None:
        return False

    if current_ms is None:
        current_ms = now_ms()

    return current_ms - cached_at_ms <= ttl_seconds * 1000
