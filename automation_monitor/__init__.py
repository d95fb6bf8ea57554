"""automation-monitor: monitoring and alerting for background automations.

Automation runners (rule executions, syncs, scheduled jobs) report their
lifecycle events to an AutomationMonitor. The monitor keeps bounded event
logs and rolling metrics per automation, raises alerts when thresholds are
crossed, scores health periodically and pushes events to live subscribers.

Example:
    >>> from automation_monitor import AutomationMonitor, MonitorSettings
    >>> monitor = AutomationMonitor(MonitorSettings())
    >>> monitor.record_event("calendar-sync", "completed", "success", "Synced", duration=850)
    >>> monitor.get_metrics("calendar-sync")[0].success_rate
    100.0
"""

from automation_monitor.config.settings import MonitoringThresholds, MonitorSettings, PerformanceThresholds
from automation_monitor.engine.monitor import AutomationMonitor
from automation_monitor.enums import (
    AlertSeverity,
    AlertType,
    AutomationStatus,
    EventKind,
    EventStatus,
    HealthStatus,
    TrendDirection,
)
from automation_monitor.exceptions import MonitorError

__version__ = "0.1.0"

__all__ = [
    "AlertSeverity",
    "AlertType",
    "AutomationMonitor",
    "AutomationStatus",
    "EventKind",
    "EventStatus",
    "HealthStatus",
    "MonitorError",
    "MonitorSettings",
    "MonitoringThresholds",
    "PerformanceThresholds",
    "TrendDirection",
    "__version__",
]
