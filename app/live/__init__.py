"""Live query layer: push sources, smoothing wrappers and incremental rendering."""

from app.live.scheduler import AsyncioScheduler, CancellableTimer, Scheduler
from app.live.source import PENDING, LiveQuery
from app.live.optimistic import OptimisticQuery, QueryState
from app.live.cached import (
    CachedQuery,
    CachedQueryState,
    JsonFileKeyValueStore,
    KeyValueStore,
    MemoryKeyValueStore,
    StorageQuotaExceeded,
    make_cache_key,
)
from app.live.debounce import DebouncedQuery, Debouncer
from app.live.loader import IncrementalLoader, LazyGate

__all__ = [
    "AsyncioScheduler",
    "CancellableTimer",
    "Scheduler",
    "PENDING",
    "LiveQuery",
    "OptimisticQuery",
    "QueryState",
    "CachedQuery",
    "CachedQueryState",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "StorageQuotaExceeded",
    "make_cache_key",
    "DebouncedQuery",
    "Debouncer",
    "IncrementalLoader",
    "LazyGate",
]
