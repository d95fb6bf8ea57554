"""Tests for automation_monitor/engine/event_store.py."""

from datetime import timedelta

import pytest

from automation_monitor.engine.event_store import EventStore, PerformanceStore
from automation_monitor.enums import EventKind, EventStatus
from automation_monitor.models.domain import PerformanceDataPoint


class TestEventStore:
    """Tests for the bounded event log."""

    def test_unknown_automation_is_empty(self):
        """Should return empty results for automations never seen."""
        store = EventStore()

        assert store.get_events("missing") == []
        assert store.last("missing", 5) == []
        assert store.count("missing") == 0

    def test_append_keeps_chronological_order(self, make_event, clock):
        """Should return events oldest first."""
        store = EventStore()
        first = make_event(EventKind.STARTED, EventStatus.INFO)
        clock.advance(seconds=1)
        second = make_event(EventKind.COMPLETED, EventStatus.SUCCESS)

        store.append(first)
        store.append(second)

        assert store.get_events("sync-a") == [first, second]

    def test_limit_returns_most_recent(self, make_event):
        """Should return only the newest events when limited."""
        store = EventStore()
        events = [make_event() for _ in range(5)]
        for event in events:
            store.append(event)

        assert store.get_events("sync-a", limit=2) == events[-2:]
        assert store.get_events("sync-a", limit=None) == events

    def test_evicts_oldest_beyond_capacity(self, make_event):
        """Should drop the oldest entry once capacity is exceeded."""
        store = EventStore(max_events=3)
        events = [make_event() for _ in range(4)]
        for event in events:
            store.append(event)

        assert store.count("sync-a") == 3
        assert store.get_events("sync-a") == events[1:]

    def test_logs_are_per_automation(self, make_event):
        """Should keep separate logs for each automation."""
        store = EventStore(max_events=2)
        store.append(make_event(automation_id="a"))
        store.append(make_event(automation_id="a"))
        store.append(make_event(automation_id="b"))

        assert store.count("a") == 2
        assert store.count("b") == 1
        assert sorted(store.automation_ids()) == ["a", "b"]

    def test_recent_events_filters_by_timestamp(self, make_event, clock):
        """Should include events at or after the cutoff only."""
        store = EventStore()
        old = make_event()
        clock.advance(minutes=30)
        recent = make_event()
        store.append(old)
        store.append(recent)

        since = clock() - timedelta(minutes=10)
        assert store.get_recent_events("sync-a", since) == [recent]
        assert store.get_recent_events("sync-a", old.timestamp) == [old, recent]

    def test_rejects_zero_capacity(self):
        """Should refuse a log that cannot hold any entry."""
        with pytest.raises(ValueError):
            EventStore(max_events=0)


class TestPerformanceStore:
    """Tests for the performance sample log."""

    def _point(self, clock, execution_time=100.0):
        return PerformanceDataPoint(automation_id="sync-a", timestamp=clock(), execution_time=execution_time)

    def test_latest(self, clock):
        """Should return the newest sample or None."""
        store = PerformanceStore()
        assert store.latest("sync-a") is None

        store.append(self._point(clock, 100.0))
        store.append(self._point(clock, 200.0))

        assert store.latest("sync-a").execution_time == 200.0

    def test_window(self, clock):
        """Should filter samples by timestamp."""
        store = PerformanceStore()
        store.append(self._point(clock, 1.0))
        clock.advance(hours=3)
        store.append(self._point(clock, 2.0))

        window = store.window("sync-a", clock() - timedelta(hours=1))
        assert [p.execution_time for p in window] == [2.0]

    def test_bounded(self, clock):
        """Should keep at most max_points samples."""
        store = PerformanceStore(max_points=2)
        for value in (1.0, 2.0, 3.0):
            store.append(self._point(clock, value))

        assert [p.execution_time for p in store.window("sync-a", clock() - timedelta(days=1))] == [2.0, 3.0]
