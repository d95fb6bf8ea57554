"""
Incremental per-automation metrics.

Every accepted event is folded into the automation's AutomationMetrics
record. The update rules are applied in a fixed order:

    1. Every event counts as an execution and sets ``last_executed``.
    2. completed + success counts as a success; its duration is added to
       the cumulative execution time.
    3. completed with any other status, or a failed event, counts as a
       failure; failed events also count as errors.
    4. warning status bumps the warning counter.
    5. A non-zero retry count is added to the cumulative retry counter.
    6. Success rate, average execution time and health are recomputed.

Health derivation compares the success rate against the automation's
minimum success rate: more than 20 points below is critical, below it is
degraded, as is an error count above twice the retry budget.
"""

import structlog

from automation_monitor.config.settings import MonitoringThresholds
from automation_monitor.enums import AutomationStatus, EventKind, EventStatus, HealthStatus
from automation_monitor.models.domain import AutomationEvent, AutomationMetrics

log = structlog.get_logger(__name__)

CRITICAL_SUCCESS_RATE_MARGIN = 20.0

_STATUS_BY_KIND = {
    EventKind.STARTED: AutomationStatus.ACTIVE,
    EventKind.RESUMED: AutomationStatus.ACTIVE,
    EventKind.RETRY: AutomationStatus.ACTIVE,
    EventKind.PAUSED: AutomationStatus.PAUSED,
    EventKind.FAILED: AutomationStatus.FAILED,
    EventKind.TIMEOUT: AutomationStatus.FAILED,
}


def derive_health(metrics: AutomationMetrics, thresholds: MonitoringThresholds | None) -> HealthStatus:
    """Classify an automation's health from its metrics.

    Args:
        metrics: Current metrics record
        thresholds: The automation's thresholds, or None if it has none

    Returns:
        HealthStatus; UNKNOWN when there are no thresholds to judge against
    """
    if thresholds is None:
        return HealthStatus.UNKNOWN

    if metrics.success_rate < thresholds.min_success_rate - CRITICAL_SUCCESS_RATE_MARGIN:
        return HealthStatus.CRITICAL
    if metrics.success_rate < thresholds.min_success_rate:
        return HealthStatus.DEGRADED
    if metrics.error_count > thresholds.max_retry_count * 2:
        return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY


def next_status(current: AutomationStatus, event: AutomationEvent) -> AutomationStatus:
    """Run state after observing ``event``."""
    if event.kind == EventKind.COMPLETED:
        return AutomationStatus.FAILED if event.status == EventStatus.FAILURE else AutomationStatus.IDLE
    return _STATUS_BY_KIND.get(event.kind, current)


class MetricsAggregator:
    """Fold events into AutomationMetrics records.

    The aggregator holds no state of its own; the caller owns the records
    and serializes updates per automation.
    """

    def apply(
        self,
        metrics: AutomationMetrics,
        event: AutomationEvent,
        thresholds: MonitoringThresholds | None,
    ) -> AutomationMetrics:
        """Update ``metrics`` in place with ``event``.

        Args:
            metrics: Record to update (must belong to the event's automation)
            event: Newly stored event
            thresholds: Thresholds used for health derivation

        Returns:
            The same metrics record, for chaining
        """
        metrics.total_executions += 1
        metrics.last_executed = event.timestamp

        if event.is_success:
            metrics.successful_executions += 1
            metrics.last_success = event.timestamp
            if event.duration:
                metrics.total_execution_time += event.duration
        elif event.kind in (EventKind.COMPLETED, EventKind.FAILED):
            metrics.failed_executions += 1
            metrics.last_failure = event.timestamp
            if event.kind == EventKind.FAILED:
                metrics.error_count += 1

        if event.status == EventStatus.WARNING:
            metrics.warning_count += 1

        if event.retry_count:
            metrics.retry_count += event.retry_count

        # Both ratios are over all executions, so they move on every event.
        metrics.success_rate = (
            metrics.successful_executions / metrics.total_executions * 100 if metrics.total_executions > 0 else 0.0
        )
        metrics.average_execution_time = (
            metrics.total_execution_time / metrics.total_executions if metrics.total_executions > 0 else 0.0
        )
        metrics.current_status = next_status(metrics.current_status, event)

        previous_health = metrics.health
        metrics.health = derive_health(metrics, thresholds)
        if metrics.health != previous_health:
            log.info(
                "health_changed",
                automation_id=metrics.automation_id,
                previous=previous_health.value,
                current=metrics.health.value,
                success_rate=round(metrics.success_rate, 2),
            )

        return metrics
