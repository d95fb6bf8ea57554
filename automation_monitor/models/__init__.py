"""Domain models for the automation monitor.

Key Models:
    - AutomationEvent: Immutable lifecycle event
    - AutomationMetrics: Rolling per-automation aggregate
    - AutomationAlert: Raised, acknowledgeable, resolvable condition
    - PerformanceDataPoint: Resource-usage sample
    - HealthCheckResult: Latest periodic health snapshot
    - DashboardData: Cross-automation read model

Example:
    >>> from automation_monitor.models import AutomationMetrics
    >>> metrics = AutomationMetrics.empty("calendar-sync")
    >>> metrics.automation_name
    'Calendar Sync'
"""

from automation_monitor.models.domain import (
    AlertDraft,
    AutomationAlert,
    AutomationEvent,
    AutomationMetrics,
    DashboardData,
    DashboardOverview,
    HealthCheckResult,
    HealthChecks,
    HealthSummary,
    PerformanceDataPoint,
    PerformanceTrend,
    display_name,
    new_id,
)

__all__ = [
    "AlertDraft",
    "AutomationAlert",
    "AutomationEvent",
    "AutomationMetrics",
    "DashboardData",
    "DashboardOverview",
    "HealthCheckResult",
    "HealthChecks",
    "HealthSummary",
    "PerformanceDataPoint",
    "PerformanceTrend",
    "display_name",
    "new_id",
]
