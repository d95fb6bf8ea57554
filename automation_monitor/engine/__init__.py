"""Monitoring and alerting engine.

Key Components:
    - AutomationMonitor: The service automation runners report to
    - EventStore / PerformanceStore: Bounded per-automation logs
    - MetricsAggregator: Rolling per-automation statistics
    - AlertEvaluator / AlertBook: Threshold rules and alert history
    - HealthChecker / HealthCheckScheduler: Periodic health scoring
    - NotificationBus / QueueSubscriber: Live event fan-out

Example:
    >>> from automation_monitor.engine import AutomationMonitor
    >>> monitor = AutomationMonitor()
    >>> monitor.record_event("calendar-sync", "started", "info", "Sync started")
"""

from automation_monitor.engine.alerts import AlertBook, AlertEvaluator
from automation_monitor.engine.event_store import EventStore, PerformanceStore
from automation_monitor.engine.health import (
    HealthChecker,
    HealthCheckScheduler,
    performance_within_limits,
)
from automation_monitor.engine.metrics import MetricsAggregator, derive_health
from automation_monitor.engine.monitor import AutomationMonitor
from automation_monitor.engine.notifications import NotificationBus, QueueSubscriber

__all__ = [
    "AlertBook",
    "AlertEvaluator",
    "AutomationMonitor",
    "EventStore",
    "HealthCheckScheduler",
    "HealthChecker",
    "MetricsAggregator",
    "NotificationBus",
    "PerformanceStore",
    "QueueSubscriber",
    "derive_health",
    "performance_within_limits",
]
