"""Unit tests for debounce policies and the scheduler-driven debouncer."""

from app.forms.debounce import (
    FORM_CHANGE,
    SEARCH,
    SELECTION_CHANGE,
    STATUS_MESSAGE_TTL,
    UI_RECOMPUTE,
    Debouncer,
)
from tests.utils.scheduler import ManualScheduler


class TestPolicies:
    def test_delays(self) -> None:
        assert UI_RECOMPUTE.delay_ms == 10
        assert SELECTION_CHANGE.delay_ms == 16
        assert FORM_CHANGE.delay_ms == 300
        assert SEARCH.delay_ms == 300
        assert STATUS_MESSAGE_TTL == 3.0

    def test_delay_in_seconds(self) -> None:
        assert FORM_CHANGE.delay == 0.3

    def test_search_and_form_change_stay_distinct(self) -> None:
        assert SEARCH != FORM_CHANGE
        assert SEARCH.name == "search"


class TestDebouncer:
    def test_burst_collapses_to_one_trailing_call(self, scheduler: ManualScheduler) -> None:
        calls: list[str] = []
        debounced = Debouncer(calls.append, SELECTION_CHANGE, scheduler)

        debounced("a")
        debounced("b")
        debounced("c")
        scheduler.advance_ms(15)
        assert calls == []

        scheduler.advance_ms(1)
        assert calls == ["c"]

    def test_each_call_restarts_the_window(self, scheduler: ManualScheduler) -> None:
        calls: list[int] = []
        debounced = Debouncer(calls.append, UI_RECOMPUTE, scheduler)

        debounced(1)
        scheduler.advance_ms(8)
        debounced(2)
        scheduler.advance_ms(8)
        assert calls == []
        scheduler.advance_ms(2)
        assert calls == [2]

    def test_cancel_drops_pending_call(self, scheduler: ManualScheduler) -> None:
        calls: list[int] = []
        debounced = Debouncer(calls.append, FORM_CHANGE, scheduler)

        debounced(1)
        assert debounced.pending()
        debounced.cancel()
        scheduler.run_all()
        assert calls == []
        assert not debounced.pending()

    def test_flush_runs_immediately(self, scheduler: ManualScheduler) -> None:
        calls: list[int] = []
        debounced = Debouncer(calls.append, FORM_CHANGE, scheduler)

        debounced(7)
        debounced.flush()
        assert calls == [7]
        scheduler.run_all()
        assert calls == [7]

    def test_flush_without_pending_call_is_noop(self, scheduler: ManualScheduler) -> None:
        calls: list[int] = []
        debounced = Debouncer(calls.append, FORM_CHANGE, scheduler)
        assert debounced.flush() is None
        assert calls == []

    def test_leading_edge_fires_once_per_window(self, scheduler: ManualScheduler) -> None:
        calls: list[int] = []
        debounced = Debouncer(calls.append, SEARCH, scheduler, leading=True)

        debounced(1)
        debounced(2)
        assert calls == [1]

        scheduler.advance(SEARCH.delay)
        debounced(3)
        assert calls == [1, 3]

    def test_leading_and_trailing(self, scheduler: ManualScheduler) -> None:
        calls: list[int] = []
        debounced = Debouncer(calls.append, SEARCH, scheduler, leading=True, trailing=True)

        debounced(1)
        debounced(2)
        scheduler.advance(SEARCH.delay)
        assert calls == [1, 2]
