"""
Domain models for the automation monitor.

This module contains the records the monitor keeps for each automation:
lifecycle events, rolling metrics, alerts, performance samples and health
check snapshots, plus the read model returned to dashboards.

All durations are milliseconds and all timestamps are timezone-aware UTC.

Example:
    Recording an event produces an immutable record::

        event = AutomationEvent(
            id=new_id(),
            automation_id="calendar-sync",
            kind=EventKind.COMPLETED,
            timestamp=datetime.now(UTC),
            status=EventStatus.SUCCESS,
            message="Synced 42 calendar entries",
            duration=1830.0,
        )
"""

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from automation_monitor.enums import (
    AlertSeverity,
    AlertType,
    AutomationStatus,
    EventKind,
    EventStatus,
    HealthStatus,
    TrendDirection,
)


def new_id() -> str:
    """Generate a unique identifier for events and alerts."""
    return uuid.uuid4().hex


def display_name(automation_id: str) -> str:
    """Derive a human-readable name from an automation id.

    Example:
        >>> display_name("email-processing")
        'Email Processing'
    """
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), automation_id.replace("-", " "))


@dataclass(frozen=True)
class AutomationEvent:
    """One observed lifecycle occurrence for one automation.

    Events are immutable once recorded. Within an automation they are kept
    in arrival order, which is also their temporal order.
    """

    id: str
    automation_id: str
    kind: EventKind
    timestamp: datetime
    status: EventStatus
    message: str
    duration: float | None = None
    """Execution duration in milliseconds, when the runner measured one."""

    metadata: dict[str, Any] | None = None
    error: str | None = None
    retry_count: int | None = None

    @property
    def is_failure(self) -> bool:
        """True for a failed event or any event reporting a failure status."""
        return self.kind == EventKind.FAILED or self.status == EventStatus.FAILURE

    @property
    def is_success(self) -> bool:
        """True for a completed event with a success status."""
        return self.kind == EventKind.COMPLETED and self.status == EventStatus.SUCCESS


@dataclass
class AutomationMetrics:
    """Rolling aggregate for one automation.

    Created on the first event for an automation and updated in place by the
    metrics aggregator for every event after that.
    """

    automation_id: str
    automation_name: str
    total_executions: int = 0
    successful_executions: int = 0
    failed_executions: int = 0
    success_rate: float = 0.0
    """Percentage of executions that completed successfully (0-100)."""

    average_execution_time: float = 0.0
    total_execution_time: float = 0.0
    last_executed: datetime | None = None
    last_success: datetime | None = None
    last_failure: datetime | None = None
    current_status: AutomationStatus = AutomationStatus.IDLE
    error_count: int = 0
    warning_count: int = 0
    retry_count: int = 0
    uptime: float = 100.0
    health: HealthStatus = HealthStatus.UNKNOWN

    @classmethod
    def empty(cls, automation_id: str) -> "AutomationMetrics":
        """Create a zeroed record for an automation seen for the first time."""
        return cls(automation_id=automation_id, automation_name=display_name(automation_id))


@dataclass
class AutomationAlert:
    """A raised threshold breach.

    Alerts are never deleted. Operators acknowledge and resolve them, and
    resolved alerts stay in the history.
    """

    id: str
    automation_id: str
    severity: AlertSeverity
    type: AlertType
    title: str
    description: str
    timestamp: datetime
    is_resolved: bool = False
    resolved_at: datetime | None = None
    acknowledged_at: datetime | None = None
    metadata: dict[str, Any] | None = None

    @property
    def is_acknowledged(self) -> bool:
        return self.acknowledged_at is not None


@dataclass(frozen=True)
class AlertDraft:
    """An alert condition found by the evaluator, before it is stored."""

    severity: AlertSeverity
    type: AlertType
    title: str
    description: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PerformanceDataPoint:
    """Resource-usage sample reported by an automation runner."""

    automation_id: str
    timestamp: datetime
    execution_time: float
    memory_usage: float | None = None
    cpu_usage: float | None = None
    network_latency: float | None = None
    queue_size: int | None = None
    throughput: float | None = None


@dataclass
class HealthChecks:
    """The five sub-checks that make up a health score."""

    connectivity: bool = True
    performance: bool = True
    error_rate: bool = True
    dependencies: bool = True
    resources: bool = True

    @property
    def total(self) -> int:
        return 5

    @property
    def passed(self) -> int:
        return sum(
            [
                self.connectivity,
                self.performance,
                self.error_rate,
                self.dependencies,
                self.resources,
            ]
        )


@dataclass
class HealthCheckResult:
    """Latest periodic health snapshot for one automation."""

    automation_id: str
    timestamp: datetime
    overall_health: HealthStatus
    checks: HealthChecks
    score: int
    """Percentage of sub-checks that passed, rounded (0-100)."""

    recommendations: list[str]
    next_check_at: datetime


@dataclass(frozen=True)
class DashboardOverview:
    total_automations: int
    healthy_automations: int
    active_alerts: int
    average_success_rate: float


@dataclass(frozen=True)
class PerformanceTrend:
    automation_id: str
    trend: TrendDirection
    change_percent: float


@dataclass(frozen=True)
class HealthSummary:
    automation_id: str
    health: HealthStatus
    score: int


@dataclass
class DashboardData:
    """Roll-up across all automations, computed on demand."""

    overview: DashboardOverview
    top_issues: list[AutomationAlert]
    performance_trends: list[PerformanceTrend]
    health_status: list[HealthSummary]
    generated_at: datetime
