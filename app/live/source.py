"""Push-based query source.

A ``LiveQuery`` holds the latest result of an async fetcher and pushes it to
listeners. Between a refresh starting and finishing, listeners see the
``PENDING`` sentinel, which is distinct from a legitimate ``None`` result.
"""

import logging
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _Pending:
    _instance: Optional["_Pending"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "PENDING"


PENDING: Any = _Pending()

Listener = Callable[[Any], None]


class LiveQuery(Generic[T]):
    """In-process subscription source for one query."""

    def __init__(self, fetcher: Optional[Callable[[], Awaitable[T]]] = None, name: str = ""):
        self.fetcher = fetcher
        self.name = name
        self.value: Any = PENDING
        self.error: Optional[BaseException] = None
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener and push the current value to it right away.

        Returns:
            A callable that removes the listener.
        """
        self._listeners.append(listener)
        listener(self.value)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def publish(self, value: T) -> None:
        self.value = value
        self.error = None
        self._notify()

    def mark_pending(self) -> None:
        self.value = PENDING
        self._notify()

    async def refresh(self) -> None:
        """Re-run the fetcher, publishing PENDING while it runs.

        A failing fetcher leaves the source pending and records the failure
        on ``error``; retrying is the caller's decision.
        """
        if self.fetcher is None:
            raise RuntimeError(f"LiveQuery {self.name!r} has no fetcher")

        self.mark_pending()
        try:
            value = await self.fetcher()
        except Exception as e:
            self.error = e
            logger.warning(f"Live query {self.name!r} failed: {e}")
            return
        self.publish(value)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.value)
