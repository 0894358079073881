"""Live query wrapper that keeps the last value across refetches."""

from dataclasses import dataclass
from typing import Any, Callable, Optional

from app.live.scheduler import AsyncioScheduler, CancellableTimer, Scheduler
from app.live.source import PENDING, LiveQuery
from app.services.cache_config import CacheTTL


@dataclass(frozen=True)
class QueryState:
    """What a consumer renders from an ``OptimisticQuery``."""

    data: Any
    is_loading: bool
    is_refetching: bool
    is_stale: bool


class OptimisticQuery:
    """Smooths the pending/defined transitions of a ``LiveQuery``.

    While the source is pending, the last defined value is still exposed
    (``is_refetching``). If no defined value arrives for ``stale_after``
    seconds the result is flagged ``is_stale``; the value itself is kept.
    """

    def __init__(
        self,
        source: LiveQuery,
        scheduler: Optional[Scheduler] = None,
        stale_after: float = CacheTTL.STALE_AFTER.value,
        on_change: Optional[Callable[[QueryState], None]] = None,
    ):
        self.source = source
        self._on_change = on_change
        self._result: Any = PENDING
        self._previous: Any = PENDING
        self._is_stale = False
        self._stale_timer = CancellableTimer(
            scheduler or AsyncioScheduler(), stale_after, self._mark_stale
        )
        self._unsubscribe: Optional[Callable[[], None]] = source.subscribe(self._on_result)

    def _on_result(self, value: Any) -> None:
        self._result = value
        if value is not PENDING:
            self._previous = value
            self._is_stale = False
            self._stale_timer.reset()
        self._emit()

    def _mark_stale(self) -> None:
        if self._previous is not PENDING:
            self._is_stale = True
            self._emit()

    def _emit(self) -> None:
        if self._on_change is not None:
            self._on_change(self.state)

    @property
    def data(self) -> Any:
        if self._result is not PENDING:
            return self._result
        if self._previous is not PENDING:
            return self._previous
        return None

    @property
    def is_loading(self) -> bool:
        return self._result is PENDING and self._previous is PENDING

    @property
    def is_refetching(self) -> bool:
        return self._result is PENDING and self._previous is not PENDING

    @property
    def is_stale(self) -> bool:
        return self._is_stale

    @property
    def state(self) -> QueryState:
        return QueryState(
            data=self.data,
            is_loading=self.is_loading,
            is_refetching=self.is_refetching,
            is_stale=self.is_stale,
        )

    def close(self) -> None:
        """Stop listening and cancel the staleness timer."""
        self._stale_timer.cancel()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
