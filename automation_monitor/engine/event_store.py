"""
Bounded per-automation logs for lifecycle events and performance samples.

Each automation gets its own append-only log capped at a fixed number of
entries; once full, appending discards the oldest entry. Nothing is
persisted, so history is lost when the process restarts.

Example:
    >>> store = EventStore(max_events=1000)
    >>> store.append(event)
    >>> store.get_events("calendar-sync", limit=20)
"""

from collections import deque
from datetime import datetime
from typing import Generic, Protocol, TypeVar

import structlog

from automation_monitor.models.domain import AutomationEvent, PerformanceDataPoint

log = structlog.get_logger(__name__)


class _Timestamped(Protocol):
    automation_id: str
    timestamp: datetime


T = TypeVar("T", bound=_Timestamped)


class _BoundedLog(Generic[T]):
    """Per-automation ring of records, oldest first."""

    def __init__(self, max_entries: int) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._entries: dict[str, deque[T]] = {}

    def _append(self, record: T) -> None:
        entries = self._entries.get(record.automation_id)
        if entries is None:
            entries = deque(maxlen=self.max_entries)
            self._entries[record.automation_id] = entries
        elif len(entries) == self.max_entries:
            log.debug(
                "log_entry_evicted",
                automation_id=record.automation_id,
                max_entries=self.max_entries,
            )
        entries.append(record)

    def _all(self, automation_id: str) -> list[T]:
        return list(self._entries.get(automation_id, ()))

    def _since(self, automation_id: str, since: datetime) -> list[T]:
        return [r for r in self._entries.get(automation_id, ()) if r.timestamp >= since]

    def count(self, automation_id: str) -> int:
        return len(self._entries.get(automation_id, ()))

    def automation_ids(self) -> list[str]:
        return list(self._entries)


class EventStore(_BoundedLog[AutomationEvent]):
    """Append log of lifecycle events, one bounded log per automation."""

    def __init__(self, max_events: int = 1000) -> None:
        super().__init__(max_events)

    def append(self, event: AutomationEvent) -> None:
        self._append(event)

    def get_events(self, automation_id: str, limit: int | None = None) -> list[AutomationEvent]:
        """Return an automation's events in chronological order.

        Args:
            automation_id: Automation to read
            limit: When set, only the most recent ``limit`` events

        Returns:
            List of events, oldest first; empty for unknown automations
        """
        events = self._all(automation_id)
        if limit:
            return events[-limit:]
        return events

    def get_recent_events(self, automation_id: str, since: datetime) -> list[AutomationEvent]:
        """Return events recorded at or after ``since``, oldest first."""
        return self._since(automation_id, since)

    def last(self, automation_id: str, count: int) -> list[AutomationEvent]:
        """Return the newest ``count`` events, oldest first."""
        return self.get_events(automation_id, limit=count) if count > 0 else []


class PerformanceStore(_BoundedLog[PerformanceDataPoint]):
    """Resource-usage samples, kept independently of the event log."""

    def __init__(self, max_points: int = 1000) -> None:
        super().__init__(max_points)

    def append(self, point: PerformanceDataPoint) -> None:
        self._append(point)

    def window(self, automation_id: str, since: datetime) -> list[PerformanceDataPoint]:
        """Return samples taken at or after ``since``, oldest first."""
        return self._since(automation_id, since)

    def latest(self, automation_id: str) -> PerformanceDataPoint | None:
        entries = self._entries.get(automation_id)
        return entries[-1] if entries else None
