"""
Prometheus export of the monitor's state.

Each exporter owns its own CollectorRegistry so several monitors (or test
cases) never share counters. The monitor calls the ``observe_*`` methods as
events, alerts and health checks are produced, and the HTTP surface serves
``render()`` on ``/metrics``.
"""

import structlog
from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest

from automation_monitor.models.domain import (
    AutomationAlert,
    AutomationEvent,
    AutomationMetrics,
    HealthCheckResult,
)

log = structlog.get_logger(__name__)

DURATION_BUCKETS_MS = (100, 500, 1_000, 5_000, 10_000, 30_000, 60_000, 120_000, 300_000, 600_000)


class PrometheusExporter:
    """Collect and export monitor metrics in Prometheus format."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()

        self.events = Counter(
            "monitor_events_total",
            "Lifecycle events recorded",
            ["automation_id", "kind", "status"],
            registry=self.registry,
        )
        self.alerts = Counter(
            "monitor_alerts_total",
            "Alerts raised",
            ["automation_id", "severity", "type"],
            registry=self.registry,
        )
        self.execution_duration = Histogram(
            "monitor_execution_duration_ms",
            "Execution duration reported with lifecycle events, in milliseconds",
            ["automation_id"],
            buckets=DURATION_BUCKETS_MS,
            registry=self.registry,
        )
        self.success_rate = Gauge(
            "monitor_success_rate",
            "Success rate in percent",
            ["automation_id"],
            registry=self.registry,
        )
        self.health_score = Gauge(
            "monitor_health_score",
            "Latest health check score (0-100)",
            ["automation_id"],
            registry=self.registry,
        )

    def observe_event(self, event: AutomationEvent, metrics: AutomationMetrics) -> None:
        """Record an event and the metrics it produced."""
        self.events.labels(
            automation_id=event.automation_id,
            kind=event.kind.value,
            status=event.status.value,
        ).inc()
        if event.duration is not None:
            self.execution_duration.labels(automation_id=event.automation_id).observe(event.duration)
        self.success_rate.labels(automation_id=event.automation_id).set(metrics.success_rate)

    def observe_alert(self, alert: AutomationAlert) -> None:
        self.alerts.labels(
            automation_id=alert.automation_id,
            severity=alert.severity.value,
            type=alert.type.value,
        ).inc()

    def observe_health_check(self, result: HealthCheckResult) -> None:
        self.health_score.labels(automation_id=result.automation_id).set(result.score)
        log.debug("metric_recorded", metric="health_score", automation_id=result.automation_id, score=result.score)

    def render(self) -> bytes:
        """Get metrics in Prometheus text format."""
        return generate_latest(self.registry)
