"""Debounced query arguments.

Rapidly changing arguments (search text, filters) only reach the query
source once they have been stable for ``delay`` seconds.
"""

import logging
from typing import Any, Callable, Generic, Optional, TypeVar

from app.live.scheduler import AsyncioScheduler, CancellableTimer, Scheduler
from app.live.source import PENDING, LiveQuery

logger = logging.getLogger(__name__)

A = TypeVar("A")

DEFAULT_DEBOUNCE_SECONDS = 0.3


class Debouncer(Generic[A]):
    """Delivers the latest pushed value after a quiet period.

    Each ``push`` restarts the delay; only the last value is delivered.
    """

    def __init__(
        self,
        callback: Callable[[A], None],
        delay: float = DEFAULT_DEBOUNCE_SECONDS,
        scheduler: Optional[Scheduler] = None,
    ):
        self._callback = callback
        self._latest: Any = PENDING
        self._timer = CancellableTimer(scheduler or AsyncioScheduler(), delay, self._fire)

    @property
    def pending(self) -> bool:
        return self._timer.pending

    def push(self, value: A) -> None:
        self._latest = value
        self._timer.reset()

    def flush(self) -> None:
        """Deliver the pending value now, if there is one."""
        if self._timer.pending:
            self._timer.cancel()
            self._fire()

    def cancel(self) -> None:
        self._timer.cancel()
        self._latest = PENDING

    def _fire(self) -> None:
        value, self._latest = self._latest, PENDING
        if value is not PENDING:
            self._callback(value)


class DebouncedQuery(Generic[A]):
    """Keeps one live subscription per settled argument value.

    ``source_factory`` issues the downstream query for a set of arguments.
    The initial arguments are issued immediately; later changes go through
    the debouncer, and settling back on the arguments already issued does
    not issue again.
    """

    def __init__(
        self,
        source_factory: Callable[[A], LiveQuery],
        args: A,
        delay: float = DEFAULT_DEBOUNCE_SECONDS,
        scheduler: Optional[Scheduler] = None,
    ):
        self._source_factory = source_factory
        self._debouncer: Debouncer[A] = Debouncer(self._issue, delay, scheduler)
        self.issued_args: Optional[A] = None
        self.source: Optional[LiveQuery] = None
        self._value: Any = PENDING
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._issue(args)

    def update(self, args: A) -> None:
        self._debouncer.push(args)

    def _issue(self, args: A) -> None:
        if self.source is not None and args == self.issued_args:
            return

        if self._unsubscribe is not None:
            self._unsubscribe()

        logger.debug(f"Issuing debounced query with {args!r}")
        self.issued_args = args
        self.source = self._source_factory(args)
        self._unsubscribe = self.source.subscribe(self._on_result)

    def _on_result(self, value: Any) -> None:
        self._value = value

    @property
    def data(self) -> Any:
        return None if self._value is PENDING else self._value

    def close(self) -> None:
        self._debouncer.cancel()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
