"""Pytest configuration and shared fixtures."""

from datetime import UTC, datetime, timedelta

import pytest
import structlog

from automation_monitor.config.settings import MonitorSettings
from automation_monitor.engine.monitor import AutomationMonitor
from automation_monitor.enums import EventKind, EventStatus
from automation_monitor.models.domain import AutomationEvent, new_id


class FakeClock:
    """Controllable UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 15, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def captured_logs():
    """Capture structlog output instead of printing it."""
    with structlog.testing.capture_logs() as logs:
        yield logs


@pytest.fixture
def clock() -> FakeClock:
    """Clock starting at a fixed instant."""
    return FakeClock()


@pytest.fixture
def settings() -> MonitorSettings:
    """Default monitor settings."""
    return MonitorSettings()


@pytest.fixture
def monitor(settings: MonitorSettings, clock: FakeClock) -> AutomationMonitor:
    """Fresh monitor driven by the fake clock."""
    return AutomationMonitor(settings, clock=clock)


@pytest.fixture
def make_event(clock: FakeClock):
    """Factory for events outside a monitor."""

    def _make(
        kind: EventKind = EventKind.COMPLETED,
        status: EventStatus = EventStatus.SUCCESS,
        automation_id: str = "sync-a",
        duration: float | None = None,
        timestamp: datetime | None = None,
        retry_count: int | None = None,
    ) -> AutomationEvent:
        return AutomationEvent(
            id=new_id(),
            automation_id=automation_id,
            kind=kind,
            timestamp=timestamp or clock(),
            status=status,
            message=f"{kind.value}/{status.value}",
            duration=duration,
            retry_count=retry_count,
        )

    return _make
