"""Tests for automation_monitor/monitoring/exporter.py."""

from datetime import timedelta

from automation_monitor.enums import AlertSeverity, AlertType, EventKind, EventStatus, HealthStatus
from automation_monitor.models.domain import AutomationAlert, AutomationMetrics, HealthCheckResult, HealthChecks
from automation_monitor.monitoring.exporter import PrometheusExporter


class TestPrometheusExporter:
    """Tests for Prometheus metric export."""

    def test_observe_event(self, make_event):
        exporter = PrometheusExporter()
        metrics = AutomationMetrics.empty("sync-a")
        metrics.success_rate = 75.0

        exporter.observe_event(make_event(duration=2500.0), metrics)
        exporter.observe_event(make_event(EventKind.STARTED, EventStatus.INFO), metrics)

        registry = exporter.registry
        labels = {"automation_id": "sync-a", "kind": "completed", "status": "success"}
        assert registry.get_sample_value("monitor_events_total", labels) == 1.0
        assert registry.get_sample_value("monitor_execution_duration_ms_count", {"automation_id": "sync-a"}) == 1.0
        assert registry.get_sample_value("monitor_execution_duration_ms_sum", {"automation_id": "sync-a"}) == 2500.0
        assert registry.get_sample_value("monitor_success_rate", {"automation_id": "sync-a"}) == 75.0

    def test_observe_alert(self, clock):
        exporter = PrometheusExporter()
        alert = AutomationAlert(
            id="a1",
            automation_id="sync-a",
            severity=AlertSeverity.HIGH,
            type=AlertType.FAILURE,
            title="Consecutive Failures Detected",
            description="",
            timestamp=clock(),
        )

        exporter.observe_alert(alert)
        exporter.observe_alert(alert)

        labels = {"automation_id": "sync-a", "severity": "high", "type": "failure"}
        assert exporter.registry.get_sample_value("monitor_alerts_total", labels) == 2.0

    def test_observe_health_check(self, clock):
        exporter = PrometheusExporter()
        result = HealthCheckResult(
            automation_id="sync-a",
            timestamp=clock(),
            overall_health=HealthStatus.DEGRADED,
            checks=HealthChecks(performance=False, error_rate=False),
            score=60,
            recommendations=[],
            next_check_at=clock() + timedelta(minutes=5),
        )

        exporter.observe_health_check(result)

        assert exporter.registry.get_sample_value("monitor_health_score", {"automation_id": "sync-a"}) == 60.0

    def test_exporters_do_not_share_registries(self, make_event):
        first = PrometheusExporter()
        second = PrometheusExporter()

        first.observe_event(make_event(), AutomationMetrics.empty("sync-a"))

        labels = {"automation_id": "sync-a", "kind": "completed", "status": "success"}
        assert second.registry.get_sample_value("monitor_events_total", labels) is None

    def test_render(self, make_event):
        exporter = PrometheusExporter()
        exporter.observe_event(make_event(), AutomationMetrics.empty("sync-a"))

        output = exporter.render()

        assert isinstance(output, bytes)
        assert b"monitor_events_total" in output
