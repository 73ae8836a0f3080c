"""
Unit tests for the cache entry state machine.
"""

import pytest

from dashboard_client.app.caching.entry import (
    CacheEntry,
    EntryEvent,
    EntryState,
    QueryStatus,
    next_state,
)
from dashboard_client.app.caching.keys import CacheKey
from shared.errors import ApiError, InvalidTransitionError


@pytest.fixture
def entry():
    return CacheEntry(key=CacheKey.of("revenue", "dashboard"))


class TestTransitions:
    """Test cases for the transition table."""

    @pytest.mark.parametrize("state,event,expected", [
        (EntryState.IDLE, EntryEvent.FETCH, EntryState.LOADING),
        (EntryState.LOADING, EntryEvent.RESOLVE, EntryState.SUCCESS),
        (EntryState.LOADING, EntryEvent.REJECT, EntryState.ERROR),
        (EntryState.SUCCESS, EntryEvent.REVALIDATE, EntryState.REFRESHING),
        (EntryState.REFRESHING, EntryEvent.RESOLVE, EntryState.SUCCESS),
        (EntryState.REFRESHING, EntryEvent.REJECT, EntryState.ERROR),
        (EntryState.ERROR, EntryEvent.FETCH, EntryState.LOADING),
    ])
    def test_allowed_transitions(self, state, event, expected):
        assert next_state(state, event) == expected

    @pytest.mark.parametrize("state,event", [
        (EntryState.IDLE, EntryEvent.RESOLVE),
        (EntryState.IDLE, EntryEvent.REVALIDATE),
        (EntryState.SUCCESS, EntryEvent.RESOLVE),
        (EntryState.SUCCESS, EntryEvent.FETCH),
    ])
    def test_illegal_transitions_raise(self, state, event):
        with pytest.raises(InvalidTransitionError) as exc_info:
            next_state(state, event)

        assert exc_info.value.details == {"state": state.value, "event": event.value}


class TestCacheEntry:
    """Test cases for CacheEntry bookkeeping."""

    def test_first_fetch_reports_loading(self, entry):
        run = entry.begin_fetch("subscribe")

        assert run.generation == 1
        assert entry.state == EntryState.LOADING
        assert entry.status == QueryStatus.LOADING
        assert entry.is_fetching

    def test_refetch_with_data_serves_stale_as_success(self, entry):
        run = entry.begin_fetch("subscribe")
        entry.resolve(run, {"totalRevenue": 16177}, now=10.0, stale_time=0.0)

        entry.begin_fetch("invalidate")
        snapshot = entry.snapshot(now=11.0)

        assert entry.state == EntryState.REFRESHING
        assert snapshot.status == QueryStatus.SUCCESS
        assert snapshot.is_fetching
        assert snapshot.data == {"totalRevenue": 16177}

    def test_staleness_follows_stale_time(self, entry):
        run = entry.begin_fetch("subscribe")
        entry.resolve(run, "data", now=100.0, stale_time=30.0)

        assert not entry.is_stale(129.0)
        assert entry.is_stale(130.0)

    def test_newer_generation_supersedes_older(self, entry):
        first = entry.begin_fetch("subscribe")
        second = entry.begin_fetch("refetch")

        assert not entry.is_current(first)
        assert entry.is_current(second)
        assert second.generation == first.generation + 1

    def test_invalidation_survives_older_run(self, entry):
        """A run started before the invalidation cannot clear it."""
        old_run = entry.begin_fetch("subscribe")
        entry.mark_invalidated()

        entry.resolve(old_run, "old", now=0.0, stale_time=60.0)

        assert entry.invalidated
        assert entry.is_stale(1.0)

    def test_newer_run_clears_invalidation(self, entry):
        entry.mark_invalidated()
        run = entry.begin_fetch("invalidate")
        entry.resolve(run, "fresh", now=0.0, stale_time=60.0)

        assert not entry.invalidated
        assert not entry.is_stale(1.0)

    def test_error_keeps_previous_data(self, entry):
        run = entry.begin_fetch("subscribe")
        entry.resolve(run, "cached", now=0.0, stale_time=0.0)
        run = entry.begin_fetch("refetch")
        entry.reject(run, ApiError("Server error", 500))

        snapshot = entry.snapshot(now=1.0)

        assert snapshot.status == QueryStatus.ERROR
        assert snapshot.data == "cached"
        assert snapshot.error_info.status == 500
        assert snapshot.error_info.code == "API_ERROR"
