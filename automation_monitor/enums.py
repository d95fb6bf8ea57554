"""Enumerations shared across the automation monitor."""

from enum import Enum


class EventKind(str, Enum):
    """Lifecycle transition reported by an automation runner."""

    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"
    PAUSED = "paused"
    RESUMED = "resumed"
    TIMEOUT = "timeout"
    RETRY = "retry"

    def __str__(self) -> str:
        return self.value


class EventStatus(str, Enum):
    """Outcome attached to a lifecycle event."""

    SUCCESS = "success"
    FAILURE = "failure"
    WARNING = "warning"
    INFO = "info"

    def __str__(self) -> str:
        return self.value


class AutomationStatus(str, Enum):
    """Current run state of an automation, as last observed."""

    ACTIVE = "active"
    PAUSED = "paused"
    FAILED = "failed"
    IDLE = "idle"

    def __str__(self) -> str:
        return self.value


class HealthStatus(str, Enum):
    """Derived health of an automation.

    UNKNOWN is only reported for automations that have no thresholds to be
    judged against.
    """

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    CRITICAL = "critical"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


class AlertSeverity(str, Enum):
    """How urgently an alert needs operator attention."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    def __str__(self) -> str:
        return self.value


class AlertType(str, Enum):
    """Category of the condition an alert reports."""

    FAILURE = "failure"
    TIMEOUT = "timeout"
    PERFORMANCE = "performance"
    QUOTA = "quota"
    DEPENDENCY = "dependency"
    RESOURCE = "resource"

    def __str__(self) -> str:
        return self.value


class TrendDirection(str, Enum):
    """Direction of an automation's execution time over the trend window."""

    UP = "up"
    DOWN = "down"
    STABLE = "stable"

    def __str__(self) -> str:
        return self.value
