"""Viewport-gated incremental rendering over an already-fetched list."""

from typing import Generic, Sequence, TypeVar

T = TypeVar("T")

INITIAL_LOAD_COUNT = 12
LOAD_MORE_COUNT = 8


class IncrementalLoader(Generic[T]):
    """Reveals more of ``items`` each time the end-of-list sentinel shows.

    This is client-side pagination: nothing is fetched, the visible window
    over the materialized list just grows.
    """

    def __init__(
        self,
        items: Sequence[T] = (),
        initial_count: int = INITIAL_LOAD_COUNT,
        increment: int = LOAD_MORE_COUNT,
    ):
        if initial_count <= 0 or increment <= 0:
            raise ValueError("initial_count and increment must be positive")
        self.initial_count = initial_count
        self.increment = increment
        self._items: list[T] = list(items)
        self._loaded = initial_count

    @property
    def items(self) -> list[T]:
        return self._items

    @property
    def visible_count(self) -> int:
        return min(self._loaded, len(self._items))

    @property
    def visible_items(self) -> list[T]:
        return self._items[: self.visible_count]

    @property
    def has_more(self) -> bool:
        return self._loaded < len(self._items)

    def set_items(self, items: Sequence[T]) -> None:
        """Replace the collection, e.g. after a filter change.

        If it shrank below the loaded window, start over from the first page.
        """
        self._items = list(items)
        if len(self._items) < self._loaded:
            self._loaded = min(self.initial_count, len(self._items)) or self.initial_count

    def on_sentinel_visible(self, is_visible: bool = True) -> int:
        """Handle a visibility change of the sentinel.

        Returns:
            The visible count after handling the event.
        """
        if is_visible and self.has_more:
            self._loaded = min(self._loaded + self.increment, len(self._items))
        return self.visible_count


class LazyGate:
    """Decides whether viewport-gated content should render.

    With ``once`` the content stays rendered after first becoming visible.
    """

    def __init__(self, once: bool = True):
        self.once = once
        self._visible = False
        self._has_been_visible = False

    def on_visibility(self, is_visible: bool) -> bool:
        self._visible = is_visible
        if is_visible:
            self._has_been_visible = True
        return self.should_render

    @property
    def should_render(self) -> bool:
        return self._has_been_visible if self.once else self._visible
