"""Unit tests for debounced query arguments."""

from app.live import DebouncedQuery, Debouncer, LiveQuery
from app.live.debounce import DEFAULT_DEBOUNCE_SECONDS


class RecordingFactory:
    """Source factory that remembers every issued argument."""

    def __init__(self):
        self.issued = []
        self.sources = []

    def __call__(self, args):
        self.issued.append(args)
        source = LiveQuery(name=f"search:{args}")
        self.sources.append(source)
        return source


class TestDebouncer:
    """Tests for the generic debouncer."""

    def test_default_delay(self):
        assert DEFAULT_DEBOUNCE_SECONDS == 0.3

    def test_delivers_last_value_after_quiet_period(self, scheduler):
        delivered = []
        debouncer = Debouncer(delivered.append, 0.3, scheduler)

        debouncer.push("w")
        scheduler.advance(0.1)
        debouncer.push("wi")
        scheduler.advance(0.1)
        debouncer.push("win")
        scheduler.advance(0.25)
        assert delivered == []

        scheduler.advance(0.1)
        assert delivered == ["win"]

    def test_flush_delivers_now(self, scheduler):
        delivered = []
        debouncer = Debouncer(delivered.append, 0.3, scheduler)

        debouncer.push("a")
        debouncer.flush()

        assert delivered == ["a"]
        assert debouncer.pending is False

    def test_cancel_drops_pending_value(self, scheduler):
        delivered = []
        debouncer = Debouncer(delivered.append, 0.3, scheduler)

        debouncer.push("a")
        debouncer.cancel()
        scheduler.advance(1)

        assert delivered == []


class TestDebouncedQuery:
    """Tests for DebouncedQuery issuance."""

    def test_initial_args_issue_immediately(self, scheduler):
        factory = RecordingFactory()
        DebouncedQuery(factory, {"q": ""}, scheduler=scheduler)

        assert factory.issued == [{"q": ""}]

    def test_burst_of_updates_issues_once_with_last_args(self, scheduler):
        """Three changes inside the window produce exactly one new query."""
        factory = RecordingFactory()
        query = DebouncedQuery(factory, {"q": ""}, delay=0.3, scheduler=scheduler)

        query.update({"q": "w"})
        scheduler.advance(0.1)
        query.update({"q": "wi"})
        scheduler.advance(0.1)
        query.update({"q": "win"})
        scheduler.advance(0.3)

        assert factory.issued == [{"q": ""}, {"q": "win"}]
        assert query.issued_args == {"q": "win"}

    def test_settling_on_issued_args_does_not_reissue(self, scheduler):
        factory = RecordingFactory()
        query = DebouncedQuery(factory, {"q": "flat"}, scheduler=scheduler)

        query.update({"q": "flats"})
        query.update({"q": "flat"})
        scheduler.advance(1)

        assert factory.issued == [{"q": "flat"}]

    def test_data_follows_current_source(self, scheduler):
        factory = RecordingFactory()
        query = DebouncedQuery(factory, "a", scheduler=scheduler)
        assert query.data is None

        factory.sources[0].publish(["first"])
        assert query.data == ["first"]

        query.update("b")
        scheduler.advance(0.3)
        factory.sources[1].publish(["second"])
        factory.sources[0].publish(["ignored"])

        assert query.data == ["second"]
        assert factory.sources[0].listener_count == 0

    def test_close_cancels_pending_issue(self, scheduler):
        factory = RecordingFactory()
        query = DebouncedQuery(factory, "a", scheduler=scheduler)

        query.update("b")
        query.close()
        scheduler.advance(1)

        assert factory.issued == ["a"]
        assert scheduler.active == 0
        assert factory.sources[0].listener_count == 0
