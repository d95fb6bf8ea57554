"""
The automation monitoring and alerting service.

AutomationMonitor is the registry that automation runners report to. It
owns, per automation, the bounded event log, the rolling metrics record,
the alert history, the thresholds, the performance samples and the latest
health-check result, and it fans every accepted event out to subscribers.

Recording an event is one atomic step:

    store append -> metrics update -> alert evaluation -> export -> fan-out

A registry-wide re-entrant lock serializes these steps and every query, so
the service can be shared between the asyncio event loop, the HTTP worker
threads and runner threads. Once an event is stored, nothing in the rest of
the step can raise out of ``record_event``; failures are logged and the
next event is processed normally.

The periodic health check runs as an asyncio task owned by the service and
is started and stopped explicitly.

Example:
    >>> monitor = AutomationMonitor(MonitorSettings())
    >>> async with monitor:
    ...     monitor.record_event("calendar-sync", "completed", "success", "Synced", duration=1200)
    ...     monitor.get_dashboard_data()
"""

import copy
import threading
from collections.abc import Callable, Mapping
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any, TypeVar

import structlog

from automation_monitor.config.settings import MonitoringThresholds, MonitorSettings
from automation_monitor.engine.alerts import AlertBook, AlertEvaluator
from automation_monitor.engine.dashboard import build_dashboard, compute_performance_trends
from automation_monitor.engine.event_store import EventStore, PerformanceStore
from automation_monitor.engine.health import (
    DependencyProbe,
    HealthChecker,
    HealthCheckScheduler,
    ResourceProbe,
)
from automation_monitor.engine.metrics import MetricsAggregator
from automation_monitor.engine.notifications import NotificationBus, Subscriber
from automation_monitor.enums import EventKind, EventStatus
from automation_monitor.exceptions import InvalidEventError
from automation_monitor.models.domain import (
    AutomationAlert,
    AutomationEvent,
    AutomationMetrics,
    DashboardData,
    HealthCheckResult,
    PerformanceDataPoint,
    new_id,
)
from automation_monitor.monitoring.exporter import PrometheusExporter

log = structlog.get_logger(__name__)

E = TypeVar("E", bound=Enum)

TREND_WINDOW = timedelta(hours=24)
RESOURCE_SAMPLE_WINDOW = timedelta(hours=1)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _coerce(enum_cls: type[E], value: Any, field: str) -> E:
    try:
        return enum_cls(value)
    except ValueError as e:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidEventError(f"Invalid {field} {value!r} (expected one of: {allowed})") from e


class AutomationMonitor:
    """Ingest automation lifecycle events and serve metrics, alerts and health.

    Attributes:
        settings: Service settings
        events: Bounded event logs
        performance: Bounded performance sample logs
        alerts: Alert history
        bus: Subscriber fan-out
        scheduler: Periodic health-check ticker
    """

    def __init__(
        self,
        settings: MonitorSettings | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
        dependency_probe: DependencyProbe | None = None,
        resource_probe: ResourceProbe | None = None,
        exporter: PrometheusExporter | None = None,
    ) -> None:
        """Initialize the monitor.

        Args:
            settings: Service settings; defaults are used when omitted
            clock: Source of the current UTC time, injectable for tests
            dependency_probe: Dependency sub-check for health checks
            resource_probe: Resource sub-check for health checks
            exporter: Optional Prometheus exporter fed with every event,
                alert and health check
        """
        self.settings = settings or MonitorSettings()
        self._clock = clock or _utcnow
        self._lock = threading.RLock()

        self.events = EventStore(self.settings.max_events_per_automation)
        self.performance = PerformanceStore(self.settings.max_performance_points)
        self.aggregator = MetricsAggregator()
        self.evaluator = AlertEvaluator(
            consecutive_window=self.settings.consecutive_failure_window,
            min_executions_for_rate=self.settings.min_executions_for_rate_alert,
        )
        self.alerts = AlertBook()
        self.bus = NotificationBus(slow_subscriber_ms=self.settings.slow_subscriber_ms)
        self.health_checker = HealthChecker(
            dependency_probe=dependency_probe,
            resource_probe=resource_probe,
            interval=timedelta(seconds=self.settings.health_check_interval_seconds),
        )
        self.scheduler = HealthCheckScheduler(
            self.run_health_checks,
            interval_seconds=self.settings.health_check_interval_seconds,
        )
        self.exporter = exporter

        self._metrics: dict[str, AutomationMetrics] = {}
        self._thresholds: dict[str, MonitoringThresholds] = {}
        self._health_checks: dict[str, HealthCheckResult] = {}

        for automation_id, overrides in self.settings.automations.items():
            self.set_thresholds(automation_id, overrides)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self.scheduler.is_running

    async def start(self) -> None:
        """Start the periodic health checks."""
        self.scheduler.start()
        log.info(
            "monitor_started",
            health_check_interval_seconds=self.settings.health_check_interval_seconds,
            automations=len(self._metrics),
        )

    async def stop(self) -> None:
        """Stop the periodic health checks. State is kept."""
        await self.scheduler.stop()
        log.info("monitor_stopped")

    async def __aenter__(self) -> "AutomationMonitor":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def record_event(
        self,
        automation_id: str,
        kind: EventKind | str,
        status: EventStatus | str,
        message: str,
        duration: float | None = None,
        metadata: dict[str, Any] | None = None,
        error: str | None = None,
        retry_count: int | None = None,
    ) -> AutomationEvent:
        """Record a lifecycle event for an automation.

        Args:
            automation_id: Reporting automation
            kind: Lifecycle transition (EventKind or its value)
            status: Outcome (EventStatus or its value)
            message: Human-readable description
            duration: Execution duration in milliseconds
            metadata: Arbitrary structured context
            error: Error text for failures
            retry_count: Retries the runner performed

        Returns:
            The stored event, with its assigned id and timestamp

        Raises:
            InvalidEventError: If the event is malformed; nothing is stored
        """
        if not isinstance(automation_id, str) or not automation_id.strip():
            raise InvalidEventError("automation_id must be a non-empty string")
        event_kind = _coerce(EventKind, kind, "event kind")
        event_status = _coerce(EventStatus, status, "event status")
        if duration is not None and duration < 0:
            raise InvalidEventError(f"duration must not be negative, got {duration}")
        if retry_count is not None and retry_count < 0:
            raise InvalidEventError(f"retry_count must not be negative, got {retry_count}")
        try:
            stored_metadata = copy.deepcopy(dict(metadata)) if metadata is not None else None
        except (TypeError, ValueError, copy.Error) as e:
            raise InvalidEventError(f"metadata must be a copyable mapping: {e}") from e

        with self._lock:
            event = AutomationEvent(
                id=new_id(),
                automation_id=automation_id,
                kind=event_kind,
                timestamp=self._clock(),
                status=event_status,
                message=message,
                duration=duration,
                metadata=stored_metadata,
                error=error,
                retry_count=retry_count,
            )
            self.events.append(event)

            try:
                self._process(event)
            except Exception as e:
                log.error(
                    "event_processing_failed",
                    automation_id=automation_id,
                    event_id=event.id,
                    error=str(e),
                    exc_info=True,
                )

            # Callers and subscribers get copies; the stored event is never shared.
            self.bus.publish(copy.deepcopy(event))

        return copy.deepcopy(event)

    def _process(self, event: AutomationEvent) -> None:
        automation_id = event.automation_id
        thresholds = self._resolve_thresholds(automation_id)

        metrics = self._metrics.get(automation_id)
        if metrics is None:
            metrics = AutomationMetrics.empty(automation_id)
            self._metrics[automation_id] = metrics
            log.info("automation_discovered", automation_id=automation_id)

        self.aggregator.apply(metrics, event, thresholds)

        recent = self.events.last(automation_id, self.evaluator.consecutive_window)
        for draft in self.evaluator.evaluate(event, metrics, thresholds, recent):
            alert = self.alerts.add(automation_id, draft, event.timestamp)
            if self.exporter is not None:
                self.exporter.observe_alert(alert)

        if self.exporter is not None:
            self.exporter.observe_event(event, metrics)

        log.debug(
            "event_recorded",
            automation_id=automation_id,
            event_id=event.id,
            kind=event.kind.value,
            status=event.status.value,
            total_executions=metrics.total_executions,
        )

    def record_performance_data(
        self,
        automation_id: str,
        execution_time: float,
        memory_usage: float | None = None,
        cpu_usage: float | None = None,
        network_latency: float | None = None,
        queue_size: int | None = None,
        throughput: float | None = None,
    ) -> PerformanceDataPoint:
        """Record a resource-usage sample for an automation.

        Raises:
            InvalidEventError: If the automation id is empty
        """
        if not isinstance(automation_id, str) or not automation_id.strip():
            raise InvalidEventError("automation_id must be a non-empty string")

        with self._lock:
            point = PerformanceDataPoint(
                automation_id=automation_id,
                timestamp=self._clock(),
                execution_time=execution_time,
                memory_usage=memory_usage,
                cpu_usage=cpu_usage,
                network_latency=network_latency,
                queue_size=queue_size,
                throughput=throughput,
            )
            self.performance.append(point)
        return point

    # ------------------------------------------------------------------
    # Thresholds
    # ------------------------------------------------------------------

    def _resolve_thresholds(self, automation_id: str) -> MonitoringThresholds | None:
        thresholds = self._thresholds.get(automation_id)
        if thresholds is None and self.settings.auto_default_thresholds:
            thresholds = self.settings.default_thresholds.merged(automation_id)
            self._thresholds[automation_id] = thresholds
            log.debug("default_thresholds_applied", automation_id=automation_id)
        return thresholds

    def set_thresholds(
        self,
        automation_id: str,
        partial: Mapping[str, Any] | None = None,
        **fields: Any,
    ) -> MonitoringThresholds:
        """Merge threshold fields into an automation's thresholds.

        Fields not given keep their current value, or the default value if
        the automation had no thresholds yet. An ``automation_id`` key in
        ``partial`` is ignored; thresholds always belong to ``automation_id``.

        Args:
            automation_id: Automation to update
            partial: Threshold fields, e.g. a body previously returned by
                ``get_thresholds().model_dump()``
            **fields: Further threshold fields, applied after ``partial``

        Returns:
            The automation's new thresholds

        Raises:
            ThresholdValidationError: If the merged thresholds are invalid
        """
        updates = {**(partial or {}), **fields}
        updates.pop("automation_id", None)

        with self._lock:
            base = self._thresholds.get(automation_id) or self.settings.default_thresholds
            thresholds = base.merged(automation_id, **updates)
            self._thresholds[automation_id] = thresholds
            log.info("thresholds_updated", automation_id=automation_id, fields=sorted(updates))
            return thresholds.model_copy(deep=True)

    def get_thresholds(self, automation_id: str) -> MonitoringThresholds | None:
        with self._lock:
            thresholds = self._thresholds.get(automation_id)
            return thresholds.model_copy(deep=True) if thresholds is not None else None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_metrics(self, automation_id: str | None = None) -> list[AutomationMetrics]:
        """Return metrics snapshots for one automation or all of them."""
        with self._lock:
            if automation_id is not None:
                metrics = self._metrics.get(automation_id)
                return [copy.copy(metrics)] if metrics is not None else []
            return [copy.copy(m) for m in self._metrics.values()]

    def get_events(self, automation_id: str, limit: int | None = None) -> list[AutomationEvent]:
        with self._lock:
            return copy.deepcopy(self.events.get_events(automation_id, limit))

    def get_recent_events(self, automation_id: str, window_minutes: float = 60) -> list[AutomationEvent]:
        with self._lock:
            since = self._clock() - timedelta(minutes=window_minutes)
            return copy.deepcopy(self.events.get_recent_events(automation_id, since))

    def get_alerts(self, automation_id: str | None = None, unresolved_only: bool = False) -> list[AutomationAlert]:
        """Return alerts newest first, optionally only unresolved ones."""
        with self._lock:
            return copy.deepcopy(self.alerts.query(automation_id, unresolved_only))

    def acknowledge_alert(self, alert_id: str) -> AutomationAlert | None:
        """Acknowledge an alert. Returns None when no such alert exists."""
        with self._lock:
            alert = self.alerts.acknowledge(alert_id, self._clock())
            return copy.deepcopy(alert)

    def resolve_alert(self, alert_id: str) -> AutomationAlert | None:
        """Resolve an alert. Returns None when no such alert exists."""
        with self._lock:
            alert = self.alerts.resolve(alert_id, self._clock())
            return copy.deepcopy(alert)

    def get_health_checks(self) -> list[HealthCheckResult]:
        with self._lock:
            return copy.deepcopy(list(self._health_checks.values()))

    def get_performance_data(self, automation_id: str, hours_window: float = 24) -> list[PerformanceDataPoint]:
        with self._lock:
            since = self._clock() - timedelta(hours=hours_window)
            return self.performance.window(automation_id, since)

    # ------------------------------------------------------------------
    # Health checks
    # ------------------------------------------------------------------

    def run_health_checks(self) -> list[HealthCheckResult]:
        """Run one health-check round over every automation with metrics.

        Automations without thresholds are skipped. Each result replaces the
        automation's previous one.

        Returns:
            The results produced by this round
        """
        results: list[HealthCheckResult] = []
        with self._lock:
            now = self._clock()
            for automation_id, metrics in self._metrics.items():
                thresholds = self._thresholds.get(automation_id)
                if thresholds is None:
                    continue

                samples = self.performance.window(automation_id, now - RESOURCE_SAMPLE_WINDOW)
                try:
                    result = self.health_checker.check(metrics, thresholds, samples, now)
                except Exception as e:
                    log.error("health_check_failed", automation_id=automation_id, error=str(e), exc_info=True)
                    continue

                self._health_checks[automation_id] = result
                if self.exporter is not None:
                    self.exporter.observe_health_check(result)
                results.append(result)

                log.info(
                    "health_check_completed",
                    automation_id=automation_id,
                    score=result.score,
                    overall_health=result.overall_health.value,
                )
            return copy.deepcopy(results)

    # ------------------------------------------------------------------
    # Subscriptions and dashboard
    # ------------------------------------------------------------------

    def subscribe(self, automation_id: str, callback: Subscriber) -> Callable[[], None]:
        """Receive every event recorded for ``automation_id`` from now on.

        Returns:
            An unsubscribe function. Once it returns, the callback receives
            no further events.
        """
        with self._lock:
            remove = self.bus.subscribe(automation_id, callback)

        def unsubscribe() -> None:
            with self._lock:
                remove()

        return unsubscribe

    def get_dashboard_data(self) -> DashboardData:
        """Compute the cross-automation roll-up for dashboards."""
        with self._lock:
            now = self._clock()
            samples = {
                automation_id: self.performance.window(automation_id, now - TREND_WINDOW)
                for automation_id in self.performance.automation_ids()
            }
            dashboard = build_dashboard(
                metrics=self._metrics.values(),
                alerts=self.alerts.in_insertion_order(),
                health_checks=self._health_checks.values(),
                performance_trends=compute_performance_trends(samples),
                now=now,
            )
            return copy.deepcopy(dashboard)
