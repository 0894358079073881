"""Live query wrapper seeded from a durable key-value cache.

The last good value of each query is written to a ``KeyValueStore`` under a
key derived from the query name and arguments. A new ``CachedQuery`` shows
that snapshot until the live source produces a value. Caching is an
optimization only: every store failure is logged and ignored.
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

from app.live.source import PENDING, LiveQuery
from app.services.cache_config import CacheTTL, is_cache_valid, now_ms

logger = logging.getLogger(__name__)

CACHE_PREFIX = "link_cache_"


class StorageQuotaExceeded(Exception):
    """Raised by a store that has no room left for a write."""


class KeyValueStore(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """In-memory store with an optional quota on total stored characters."""

    def __init__(self, quota: Optional[int] = None):
        self.quota = quota
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.quota is not None:
            used = sum(len(k) + len(v) for k, v in self._items.items() if k != key)
            if used + len(key) + len(value) > self.quota:
                raise StorageQuotaExceeded(f"Quota of {self.quota} exceeded")
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)


class JsonFileKeyValueStore:
    """Store persisted as a single JSON document on disk."""

    def __init__(self, path: os.PathLike | str):
        self.path = Path(path)
        self._items: Optional[dict[str, str]] = None

    def _load(self) -> dict[str, str]:
        if self._items is None:
            try:
                with open(self.path, "r") as f:
                    self._items = json.load(f)
            except FileNotFoundError:
                self._items = {}
            except (OSError, ValueError) as e:
                logger.warning(f"Ignoring unreadable cache file {self.path}: {e}")
                self._items = {}
        return self._items

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(self._items, f)
            os.replace(tmp, self.path)
        except OSError:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        self._load()[key] = value
        self._flush()

    def remove_item(self, key: str) -> None:
        if self._load().pop(key, None) is not None:
            self._flush()


def make_cache_key(query_name: str, args: Any = None) -> str:
    """Build the cache key for a query.

    Arguments are serialized with sorted keys, so dicts that differ only in
    key order share a cache entry.
    """
    serialized = json.dumps(args, sort_keys=True, separators=(",", ":"), default=str)
    return f"{CACHE_PREFIX}{query_name}_{serialized}"


def read_cache_entry(
    store: KeyValueStore,
    key: str,
    ttl_seconds: float = CacheTTL.QUERY_CACHE.value,
    current_ms: Optional[int] = None,
) -> Any:
    """Return the cached data for ``key``, or PENDING if absent or expired.

    Expired entries are removed as they are found.
    """
    try:
        raw = store.get_item(key)
        if raw is None:
            return PENDING

        entry = json.loads(raw)
        if not is_cache_valid(entry.get("timestamp"), ttl_seconds, current_ms):
            store.remove_item(key)
            return PENDING

        data = entry.get("data")
    except Exception as e:
        logger.debug(f"Cache read failed for {key}: {e}")
        return PENDING

    return PENDING if data is None else data


def write_cache_entry(
    store: KeyValueStore, key: str, data: Any, current_ms: Optional[int] = None
) -> bool:
    """Write a snapshot to the store. Returns False if the write failed."""
    entry = {
        "data": data,
        "timestamp": current_ms if current_ms is not None else now_ms(),
        "key": key,
    }
    try:
        store.set_item(key, json.dumps(entry, default=str))
    except Exception as e:
        logger.debug(f"Cache storage failed for {key}: {e}")
        return False
    return True


@dataclass(frozen=True)
class CachedQueryState:
    """What a consumer renders from a ``CachedQuery``."""

    data: Any
    is_loading: bool
    is_cached: bool


class CachedQuery:
    """Shows a persisted snapshot until the live source yields a value."""

    def __init__(
        self,
        source: LiveQuery,
        query_name: str,
        args: Any,
        store: KeyValueStore,
        ttl_seconds: float = CacheTTL.QUERY_CACHE.value,
        clock: Callable[[], int] = now_ms,
    ):
        self.source = source
        self.store = store
        self.cache_key = make_cache_key(query_name, args)
        self._clock = clock
        self._cached: Any = read_cache_entry(store, self.cache_key, ttl_seconds, clock())
        self._result: Any = PENDING
        self._unsubscribe: Optional[Callable[[], None]] = source.subscribe(self._on_result)

    def _on_result(self, value: Any) -> None:
        self._result = value
        if value is not PENDING:
            self._cached = value
            write_cache_entry(self.store, self.cache_key, value, self._clock())

    @property
    def data(self) -> Any:
        if self._result is not PENDING:
            return self._result
        if self._cached is not PENDING:
            return self._cached
        return None

    @property
    def is_loading(self) -> bool:
        return self._result is PENDING and self._cached is PENDING

    @property
    def is_cached(self) -> bool:
        return self._result is PENDING and self._cached is not PENDING

    @property
    def state(self) -> CachedQueryState:
        return CachedQueryState(
            data=self.data, is_loading=self.is_loading, is_cached=self.is_cached
        )

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
