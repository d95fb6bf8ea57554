"""Tests for automation_monitor/engine/dashboard.py."""

from datetime import timedelta

from automation_monitor.engine.dashboard import build_dashboard, compute_performance_trends
from automation_monitor.enums import AlertSeverity, AlertType, HealthStatus, TrendDirection
from automation_monitor.models.domain import (
    AutomationAlert,
    AutomationMetrics,
    HealthCheckResult,
    HealthChecks,
    PerformanceDataPoint,
    new_id,
)


def _alert(clock, automation_id="sync-a", severity=AlertSeverity.HIGH, resolved=False):
    return AutomationAlert(
        id=new_id(),
        automation_id=automation_id,
        severity=severity,
        type=AlertType.FAILURE,
        title="Consecutive Failures Detected",
        description="",
        timestamp=clock(),
        is_resolved=resolved,
    )


def _metrics(automation_id, success_rate, health):
    metrics = AutomationMetrics.empty(automation_id)
    metrics.success_rate = success_rate
    metrics.health = health
    return metrics


def _points(clock, values, automation_id="sync-a"):
    points = []
    for value in values:
        points.append(PerformanceDataPoint(automation_id=automation_id, timestamp=clock(), execution_time=value))
        clock.advance(minutes=10)
    return points


class TestBuildDashboard:
    """Tests for the dashboard roll-up."""

    def test_empty_state(self, clock):
        dashboard = build_dashboard([], [], [], [], clock())

        assert dashboard.overview.total_automations == 0
        assert dashboard.overview.average_success_rate == 0.0
        assert dashboard.top_issues == []
        assert dashboard.generated_at == clock()

    def test_overview(self, clock):
        metrics = [
            _metrics("a", 100.0, HealthStatus.HEALTHY),
            _metrics("b", 50.0, HealthStatus.CRITICAL),
            _metrics("c", 90.0, HealthStatus.HEALTHY),
        ]
        alerts = [_alert(clock), _alert(clock, resolved=True), _alert(clock, severity=AlertSeverity.LOW)]

        overview = build_dashboard(metrics, alerts, [], [], clock()).overview

        assert overview.total_automations == 3
        assert overview.healthy_automations == 2
        assert overview.active_alerts == 2
        assert overview.average_success_rate == 80.0

    def test_top_issues(self, clock):
        """Should list up to five unresolved high or critical alerts in the order raised."""
        alerts = [_alert(clock, severity=AlertSeverity.MEDIUM)]
        alerts += [_alert(clock, automation_id=f"auto-{i}") for i in range(6)]
        alerts.insert(2, _alert(clock, severity=AlertSeverity.CRITICAL, resolved=True))

        top = build_dashboard([], alerts, [], [], clock()).top_issues

        assert [a.automation_id for a in top] == [f"auto-{i}" for i in range(5)]

    def test_health_status(self, clock):
        check = HealthCheckResult(
            automation_id="sync-a",
            timestamp=clock(),
            overall_health=HealthStatus.DEGRADED,
            checks=HealthChecks(performance=False, error_rate=False),
            score=60,
            recommendations=[],
            next_check_at=clock() + timedelta(minutes=5),
        )

        summary = build_dashboard([], [], [check], [], clock()).health_status

        assert len(summary) == 1
        assert summary[0].health == HealthStatus.DEGRADED
        assert summary[0].score == 60


class TestPerformanceTrends:
    """Tests for execution-time trends."""

    def test_too_few_samples(self, clock):
        assert compute_performance_trends({"sync-a": _points(clock, [1.0, 2.0, 3.0])}) == []

    def test_up(self, clock):
        trends = compute_performance_trends({"sync-a": _points(clock, [100.0, 100.0, 150.0, 150.0])})

        assert trends[0].trend == TrendDirection.UP
        assert trends[0].change_percent == 50.0

    def test_down(self, clock):
        trends = compute_performance_trends({"sync-a": _points(clock, [200.0, 200.0, 100.0, 100.0])})

        assert trends[0].trend == TrendDirection.DOWN
        assert trends[0].change_percent == -50.0

    def test_stable_within_tolerance(self, clock):
        trends = compute_performance_trends({"sync-a": _points(clock, [100.0, 100.0, 105.0, 105.0])})
        assert trends[0].trend == TrendDirection.STABLE

    def test_zero_baseline(self, clock):
        trends = compute_performance_trends(
            {
                "idle": _points(clock, [0.0, 0.0, 0.0, 0.0], "idle"),
                "waking": _points(clock, [0.0, 0.0, 10.0, 10.0], "waking"),
            }
        )

        by_id = {t.automation_id: t for t in trends}
        assert by_id["idle"].trend == TrendDirection.STABLE
        assert by_id["waking"].trend == TrendDirection.UP
