"""Unit tests for the incremental loader and the lazy gate."""

import pytest

from app.live import IncrementalLoader, LazyGate
from app.live.loader import INITIAL_LOAD_COUNT, LOAD_MORE_COUNT


class TestIncrementalLoader:
    """Tests for viewport-gated incremental rendering."""

    def test_defaults(self):
        assert INITIAL_LOAD_COUNT == 12
        assert LOAD_MORE_COUNT == 8

    def test_fifty_items_reveal_in_steps(self):
        loader = IncrementalLoader(range(50))
        counts = [loader.visible_count]

        while loader.has_more:
            counts.append(loader.on_sentinel_visible())

        assert counts == [12, 20, 28, 36, 44, 50]
        assert loader.visible_items == list(range(50))

    def test_sentinel_hidden_does_nothing(self):
        loader = IncrementalLoader(range(50))
        assert loader.on_sentinel_visible(False) == 12

    def test_visible_at_end_is_noop(self):
        loader = IncrementalLoader(range(5))

        assert loader.visible_count == 5
        assert loader.has_more is False
        assert loader.on_sentinel_visible() == 5

    def test_growing_list_keeps_window(self):
        loader = IncrementalLoader(range(20))
        loader.on_sentinel_visible()
        assert loader.visible_count == 20

        loader.set_items(range(40))

        assert loader.visible_count == 20
        assert loader.has_more is True

    def test_shrinking_list_resets_window(self):
        loader = IncrementalLoader(range(50))
        loader.on_sentinel_visible()
        loader.on_sentinel_visible()
        assert loader.visible_count == 28

        loader.set_items(range(15))

        assert loader.visible_count == 12
        assert loader.has_more is True

    def test_emptied_list(self):
        loader = IncrementalLoader(range(50))
        loader.on_sentinel_visible()

        loader.set_items([])

        assert loader.visible_items == []
        assert loader.has_more is False

        loader.set_items(range(30))
        assert loader.visible_count == 12

    def test_custom_counts(self):
        loader = IncrementalLoader(range(10), initial_count=4, increment=3)
        assert loader.on_sentinel_visible() == 7
        assert loader.on_sentinel_visible() == 10

    def test_rejects_non_positive_counts(self):
        with pytest.raises(ValueError):
            IncrementalLoader([], initial_count=0)
        with pytest.raises(ValueError):
            IncrementalLoader([], increment=0)


class TestLazyGate:
    """Tests for LazyGate."""

    def test_once_stays_rendered(self):
        gate = LazyGate()
        assert gate.should_render is False
        assert gate.on_visibility(True) is True
        assert gate.on_visibility(False) is True

    def test_follows_visibility_when_not_once(self):
        gate = LazyGate(once=False)
        assert gate.on_visibility(True) is True
        assert gate.on_visibility(False) is False
