"""
Alert evaluation and alert history.

The AlertEvaluator inspects each newly recorded event together with the
automation's updated metrics and thresholds and returns the alert
conditions it found. It has three independent rules:

    - Consecutive failures: the newest events contain an unbroken run of
      failures at least as long as ``alert_on_consecutive_failures``.
    - Execution time exceeded: the event's duration is above
      ``max_execution_time``.
    - Low success rate: at least ten executions and a success rate below
      ``min_success_rate``.

Raised alerts are appended to the AlertBook. Alerts are never replaced,
deduplicated or deleted; operators acknowledge and resolve them.
"""

from datetime import datetime

import structlog

from automation_monitor.config.settings import MonitoringThresholds
from automation_monitor.enums import AlertSeverity, AlertType
from automation_monitor.models.domain import (
    AlertDraft,
    AutomationAlert,
    AutomationEvent,
    AutomationMetrics,
    new_id,
)

log = structlog.get_logger(__name__)


def count_consecutive_failures(events: list[AutomationEvent]) -> int:
    """Count failures from the newest event backward.

    Counting stops at the first completed+success event. Events that are
    neither failures nor successes (started, paused, ...) do not break the
    run.

    Args:
        events: Events in chronological order

    Returns:
        Number of failures since the last success
    """
    count = 0
    for event in reversed(events):
        if event.is_failure:
            count += 1
        elif event.is_success:
            break
    return count


class AlertEvaluator:
    """Apply the alerting rules to one event.

    Attributes:
        consecutive_window: Number of newest events scanned for failures
        min_executions_for_rate: Executions required before the success
            rate rule can fire
    """

    def __init__(self, consecutive_window: int = 10, min_executions_for_rate: int = 10) -> None:
        self.consecutive_window = consecutive_window
        self.min_executions_for_rate = min_executions_for_rate

    def evaluate(
        self,
        event: AutomationEvent,
        metrics: AutomationMetrics,
        thresholds: MonitoringThresholds | None,
        recent_events: list[AutomationEvent],
    ) -> list[AlertDraft]:
        """Return the alert conditions triggered by ``event``.

        Args:
            event: The event just recorded
            metrics: Metrics after the event was applied
            thresholds: The automation's thresholds; None disables alerting
            recent_events: Newest events for the automation, oldest first,
                including ``event``

        Returns:
            Alert drafts, possibly empty
        """
        if thresholds is None:
            return []

        drafts: list[AlertDraft] = []

        if event.is_failure:
            window = recent_events[-self.consecutive_window :]
            failures = count_consecutive_failures(window)
            if failures >= thresholds.alert_on_consecutive_failures:
                drafts.append(
                    AlertDraft(
                        severity=AlertSeverity.HIGH,
                        type=AlertType.FAILURE,
                        title="Consecutive Failures Detected",
                        description=f"Automation has failed {failures} times in a row",
                        metadata={
                            "consecutive_failures": failures,
                            "threshold": thresholds.alert_on_consecutive_failures,
                        },
                    )
                )

        if event.duration is not None and event.duration > thresholds.max_execution_time:
            drafts.append(
                AlertDraft(
                    severity=AlertSeverity.MEDIUM,
                    type=AlertType.PERFORMANCE,
                    title="Execution Time Exceeded",
                    description=(
                        f"Execution took {round(event.duration / 1000)}s "
                        f"(threshold: {round(thresholds.max_execution_time / 1000)}s)"
                    ),
                    metadata={"duration": event.duration, "threshold": thresholds.max_execution_time},
                )
            )

        if (
            metrics.total_executions >= self.min_executions_for_rate
            and metrics.success_rate < thresholds.min_success_rate
        ):
            drafts.append(
                AlertDraft(
                    severity=AlertSeverity.HIGH,
                    type=AlertType.PERFORMANCE,
                    title="Low Success Rate",
                    description=(
                        f"Success rate ({metrics.success_rate:.1f}%) below threshold "
                        f"({thresholds.min_success_rate:g}%)"
                    ),
                    metadata={"success_rate": metrics.success_rate, "threshold": thresholds.min_success_rate},
                )
            )

        return drafts


class AlertBook:
    """Append-only alert history, grouped by automation."""

    def __init__(self) -> None:
        self._alerts: dict[str, list[AutomationAlert]] = {}
        self._raised: list[AutomationAlert] = []
        self._by_id: dict[str, AutomationAlert] = {}

    def add(self, automation_id: str, draft: AlertDraft, timestamp: datetime) -> AutomationAlert:
        """Store a new unresolved alert built from ``draft``."""
        alert = AutomationAlert(
            id=new_id(),
            automation_id=automation_id,
            severity=draft.severity,
            type=draft.type,
            title=draft.title,
            description=draft.description,
            timestamp=timestamp,
            metadata=dict(draft.metadata),
        )
        self._alerts.setdefault(automation_id, []).append(alert)
        self._raised.append(alert)
        self._by_id[alert.id] = alert

        log.warning(
            "alert_raised",
            automation_id=automation_id,
            alert_id=alert.id,
            severity=alert.severity.value,
            alert_type=alert.type.value,
            title=alert.title,
        )
        return alert

    def get(self, alert_id: str) -> AutomationAlert | None:
        return self._by_id.get(alert_id)

    def in_insertion_order(self, unresolved_only: bool = False) -> list[AutomationAlert]:
        """Return all alerts in the order they were raised, across automations."""
        alerts = list(self._raised)
        if unresolved_only:
            alerts = [alert for alert in alerts if not alert.is_resolved]
        return alerts

    def query(self, automation_id: str | None = None, unresolved_only: bool = False) -> list[AutomationAlert]:
        """Return alerts newest first.

        Args:
            automation_id: Restrict to one automation; None for all
            unresolved_only: Drop resolved alerts

        Returns:
            List of alerts; empty for unknown automations
        """
        if automation_id is not None:
            alerts = list(self._alerts.get(automation_id, ()))
            if unresolved_only:
                alerts = [alert for alert in alerts if not alert.is_resolved]
        else:
            alerts = self.in_insertion_order(unresolved_only)
        return sorted(alerts, key=lambda alert: alert.timestamp, reverse=True)

    def acknowledge(self, alert_id: str, at: datetime) -> AutomationAlert | None:
        """Mark an alert acknowledged. Returns None for unknown ids."""
        alert = self._by_id.get(alert_id)
        if alert is None:
            log.debug("alert_not_found", alert_id=alert_id, action="acknowledge")
            return None

        alert.acknowledged_at = at
        log.info("alert_acknowledged", automation_id=alert.automation_id, alert_id=alert_id)
        return alert

    def resolve(self, alert_id: str, at: datetime) -> AutomationAlert | None:
        """Mark an alert resolved. Returns None for unknown ids.

        Resolving an already resolved alert keeps its original resolution
        time.
        """
        alert = self._by_id.get(alert_id)
        if alert is None:
            log.debug("alert_not_found", alert_id=alert_id, action="resolve")
            return None

        if not alert.is_resolved:
            alert.is_resolved = True
            alert.resolved_at = at
            log.info("alert_resolved", automation_id=alert.automation_id, alert_id=alert_id)
        return alert
