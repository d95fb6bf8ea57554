"""
Periodic health checks.

A health check scores an automation on five sub-checks:

    connectivity   always passes; connectivity probing lives outside the engine
    performance    average execution time below ``max_execution_time``
    error_rate     success rate at or above ``min_success_rate``
    dependencies   result of the injected dependency probe
    resources      result of the injected resource probe

The score is the rounded percentage of passed sub-checks. 80 and above is
healthy, 60 and above degraded, anything lower critical.

The HealthCheckScheduler runs the checks for every known automation on a
fixed interval as an asyncio task, independent of event traffic. Only the
latest result per automation is kept.

Example:
    >>> scheduler = HealthCheckScheduler(monitor.run_health_checks, interval_seconds=300)
    >>> scheduler.start()
    >>> ...
    >>> await scheduler.stop()
"""

import asyncio
import contextlib
from collections.abc import Callable
from datetime import datetime, timedelta

import structlog

from automation_monitor.config.settings import MonitoringThresholds
from automation_monitor.enums import HealthStatus
from automation_monitor.exceptions import SchedulerError
from automation_monitor.models.domain import (
    AutomationMetrics,
    HealthCheckResult,
    HealthChecks,
    PerformanceDataPoint,
)

log = structlog.get_logger(__name__)

DependencyProbe = Callable[[str], bool]
ResourceProbe = Callable[[str, list[PerformanceDataPoint], MonitoringThresholds], bool]

RECOMMEND_PERFORMANCE = "Consider optimizing execution performance"
RECOMMEND_ERRORS = "Investigate and fix recurring errors"
RECOMMEND_DEPENDENCIES = "Check external service dependencies"
RECOMMEND_RESOURCES = "Review resource usage against configured limits"

HEALTHY_SCORE = 80
DEGRADED_SCORE = 60


def always_healthy_dependencies(automation_id: str) -> bool:
    """Default dependency probe; deployments wire real probes in here."""
    return True


def always_healthy_resources(
    automation_id: str,
    samples: list[PerformanceDataPoint],
    thresholds: MonitoringThresholds,
) -> bool:
    """Default resource probe; resource sampling is external."""
    return True


def performance_within_limits(
    automation_id: str,
    samples: list[PerformanceDataPoint],
    thresholds: MonitoringThresholds,
) -> bool:
    """Resource probe that checks the latest sample against the limits.

    Passes when there is no sample, or when every reported measurement of
    the newest sample is within its configured limit. Limits left unset
    are ignored.
    """
    if not samples:
        return True

    latest = samples[-1]
    limits = thresholds.performance_thresholds
    pairs = [
        (latest.memory_usage, limits.max_memory_usage),
        (latest.cpu_usage, limits.max_cpu_usage),
        (latest.network_latency, limits.max_network_latency),
    ]
    return all(value <= limit for value, limit in pairs if value is not None and limit is not None)


def health_from_score(score: int) -> HealthStatus:
    if score >= HEALTHY_SCORE:
        return HealthStatus.HEALTHY
    if score >= DEGRADED_SCORE:
        return HealthStatus.DEGRADED
    return HealthStatus.CRITICAL


class HealthChecker:
    """Compute a HealthCheckResult for one automation.

    Attributes:
        interval: Time until the next scheduled check, used for
            ``next_check_at``
    """

    def __init__(
        self,
        dependency_probe: DependencyProbe | None = None,
        resource_probe: ResourceProbe | None = None,
        interval: timedelta = timedelta(minutes=5),
    ) -> None:
        self.dependency_probe = dependency_probe or always_healthy_dependencies
        self.resource_probe = resource_probe or always_healthy_resources
        self.interval = interval

    def check(
        self,
        metrics: AutomationMetrics,
        thresholds: MonitoringThresholds,
        samples: list[PerformanceDataPoint],
        now: datetime,
    ) -> HealthCheckResult:
        """Score one automation.

        Args:
            metrics: Current metrics snapshot
            thresholds: The automation's thresholds
            samples: Recent performance samples, oldest first
            now: Check time

        Returns:
            A fresh HealthCheckResult
        """
        automation_id = metrics.automation_id
        checks = HealthChecks(
            connectivity=True,
            performance=metrics.average_execution_time < thresholds.max_execution_time,
            error_rate=metrics.success_rate >= thresholds.min_success_rate,
            dependencies=self._probe(self.dependency_probe, automation_id),
            resources=self._probe(self.resource_probe, automation_id, samples, thresholds),
        )

        score = round(checks.passed / checks.total * 100)

        recommendations: list[str] = []
        if not checks.performance:
            recommendations.append(RECOMMEND_PERFORMANCE)
        if not checks.error_rate:
            recommendations.append(RECOMMEND_ERRORS)
        if not checks.dependencies:
            recommendations.append(RECOMMEND_DEPENDENCIES)
        if not checks.resources:
            recommendations.append(RECOMMEND_RESOURCES)

        return HealthCheckResult(
            automation_id=automation_id,
            timestamp=now,
            overall_health=health_from_score(score),
            checks=checks,
            score=score,
            recommendations=recommendations,
            next_check_at=now + self.interval,
        )

    @staticmethod
    def _probe(probe: Callable[..., bool], automation_id: str, *args: object) -> bool:
        """Run a probe, treating a probe that raises as a failed check."""
        try:
            return bool(probe(automation_id, *args))
        except Exception as e:
            log.error(
                "health_probe_failed",
                automation_id=automation_id,
                probe=getattr(probe, "__name__", repr(probe)),
                error=str(e),
                exc_info=True,
            )
            return False


class HealthCheckScheduler:
    """Run health checks on a fixed interval as a background asyncio task.

    The scheduler has an explicit lifecycle: nothing runs until ``start()``
    is called from inside a running event loop, and ``stop()`` cancels the
    ticker and waits for it to finish.

    Attributes:
        interval_seconds: Seconds between ticks
    """

    def __init__(self, run_checks: Callable[[], object], interval_seconds: float = 300.0) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.run_checks = run_checks
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task[None] | None = None
        self.ticks = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the ticker. Starting a running scheduler is a no-op.

        Raises:
            SchedulerError: If called outside a running event loop
        """
        if self.is_running:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            raise SchedulerError("Health check scheduler must be started from a running event loop") from e

        self._task = loop.create_task(self._run(), name="health-check-scheduler")
        log.info("health_scheduler_started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        """Cancel the ticker and wait for it to exit."""
        if self._task is None:
            return

        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        log.info("health_scheduler_stopped", ticks=self.ticks)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            self.tick()

    def tick(self) -> None:
        """Run one round of checks. Errors are logged, never raised."""
        self.ticks += 1
        try:
            self.run_checks()
        except Exception as e:
            log.error("health_check_tick_failed", tick=self.ticks, error=str(e), exc_info=True)
