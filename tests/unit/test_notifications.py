"""Tests for automation_monitor/engine/notifications.py."""

import pytest

from automation_monitor.engine.notifications import NotificationBus, QueueSubscriber


class TestNotificationBus:
    """Tests for per-automation fan-out."""

    def test_delivers_in_registration_order(self, make_event):
        bus = NotificationBus()
        received = []
        bus.subscribe("sync-a", lambda e: received.append(("first", e.id)))
        bus.subscribe("sync-a", lambda e: received.append(("second", e.id)))
        event = make_event()

        delivered = bus.publish(event)

        assert delivered == 2
        assert received == [("first", event.id), ("second", event.id)]

    def test_only_matching_automation(self, make_event):
        bus = NotificationBus()
        received = []
        bus.subscribe("sync-a", received.append)

        assert bus.publish(make_event(automation_id="sync-b")) == 0
        assert received == []

    def test_failing_subscriber_is_isolated(self, make_event, captured_logs):
        """Should log a raising callback and keep delivering to the rest."""
        bus = NotificationBus()
        received = []

        def broken(event):
            raise RuntimeError("subscriber bug")

        bus.subscribe("sync-a", broken)
        bus.subscribe("sync-a", received.append)
        event = make_event()

        assert bus.publish(event) == 1
        assert received == [event]
        failures = [entry for entry in captured_logs if entry["event"] == "subscriber_failed"]
        assert failures[0]["error"] == "subscriber bug"
        assert failures[0]["event_id"] == event.id

    def test_unsubscribe_stops_delivery(self, make_event):
        bus = NotificationBus()
        received = []
        unsubscribe = bus.subscribe("sync-a", received.append)

        bus.publish(make_event())
        unsubscribe()
        bus.publish(make_event())

        assert len(received) == 1
        assert bus.subscriber_count("sync-a") == 0

    def test_unsubscribe_is_idempotent(self):
        """Should remove exactly one registration, however often it is called."""
        bus = NotificationBus()
        callback = print
        unsubscribe_first = bus.subscribe("sync-a", callback)
        bus.subscribe("sync-a", callback)

        unsubscribe_first()
        unsubscribe_first()

        assert bus.subscriber_count("sync-a") == 1

    def test_callback_may_unsubscribe_itself(self, make_event):
        bus = NotificationBus()
        received = []
        unsubscribe = None

        def once(event):
            received.append(event)
            unsubscribe()

        unsubscribe = bus.subscribe("sync-a", once)
        bus.publish(make_event())
        bus.publish(make_event())

        assert len(received) == 1

    def test_slow_subscriber_logged(self, make_event, captured_logs, monkeypatch):
        """Should report an error when a callback exceeds the configured time."""
        ticks = [0.0, 0.5]
        monkeypatch.setattr(
            "automation_monitor.engine.notifications.time.monotonic",
            lambda: ticks.pop(0) if ticks else 0.5,
        )
        bus = NotificationBus(slow_subscriber_ms=100)
        bus.subscribe("sync-a", lambda e: None)

        bus.publish(make_event())

        slow = [entry for entry in captured_logs if entry["event"] == "subscriber_slow"]
        assert slow[0]["elapsed_ms"] == 500.0
        assert slow[0]["log_level"] == "error"


class TestQueueSubscriber:
    """Tests for the bounded queue subscriber."""

    @pytest.mark.asyncio
    async def test_buffers_events(self, make_event):
        feed = QueueSubscriber(maxsize=2)
        event = make_event()

        feed(event)

        assert await feed.get() == event

    @pytest.mark.asyncio
    async def test_drops_when_full(self, make_event, captured_logs):
        """Should drop and log instead of blocking the producer."""
        feed = QueueSubscriber(maxsize=1)
        first = make_event()

        feed(first)
        feed(make_event())

        assert feed.dropped == 1
        assert feed.queue.qsize() == 1
        assert await feed.get() == first
        assert any(entry["event"] == "subscriber_starved" for entry in captured_logs)

    def test_rejects_zero_size(self):
        with pytest.raises(ValueError):
            QueueSubscriber(maxsize=0)
