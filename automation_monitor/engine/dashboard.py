"""
Dashboard read model.

Pure functions over the monitor's current state. Nothing here is cached;
dashboards poll ``AutomationMonitor.get_dashboard_data()`` on a fixed
interval and every call recomputes the roll-up.
"""

from collections.abc import Iterable, Mapping
from datetime import datetime
from statistics import fmean

from automation_monitor.enums import AlertSeverity, HealthStatus, TrendDirection
from automation_monitor.models.domain import (
    AutomationAlert,
    AutomationMetrics,
    DashboardData,
    DashboardOverview,
    HealthCheckResult,
    HealthSummary,
    PerformanceDataPoint,
    PerformanceTrend,
)

TOP_ISSUES_LIMIT = 5
TREND_MIN_SAMPLES = 4
TREND_TOLERANCE_PERCENT = 10.0

_TOP_SEVERITIES = (AlertSeverity.HIGH, AlertSeverity.CRITICAL)


def compute_performance_trends(samples: Mapping[str, list[PerformanceDataPoint]]) -> list[PerformanceTrend]:
    """Compare each automation's recent execution time against its earlier samples.

    The samples for each automation are split into an older and a newer half.
    A rise of the mean execution time beyond the tolerance is ``up``, a drop
    beyond it is ``down``, anything in between ``stable``. Automations with
    fewer than four samples are left out.

    Args:
        samples: Performance samples per automation, oldest first

    Returns:
        One trend per automation with enough samples
    """
    trends: list[PerformanceTrend] = []
    for automation_id, points in samples.items():
        if len(points) < TREND_MIN_SAMPLES:
            continue

        middle = len(points) // 2
        before = fmean(p.execution_time for p in points[:middle])
        after = fmean(p.execution_time for p in points[middle:])

        if before == 0:
            change = 0.0 if after == 0 else 100.0
        else:
            change = (after - before) / before * 100

        if change > TREND_TOLERANCE_PERCENT:
            direction = TrendDirection.UP
        elif change < -TREND_TOLERANCE_PERCENT:
            direction = TrendDirection.DOWN
        else:
            direction = TrendDirection.STABLE

        trends.append(PerformanceTrend(automation_id=automation_id, trend=direction, change_percent=round(change, 2)))
    return trends


def build_dashboard(
    metrics: Iterable[AutomationMetrics],
    alerts: Iterable[AutomationAlert],
    health_checks: Iterable[HealthCheckResult],
    performance_trends: list[PerformanceTrend],
    now: datetime,
) -> DashboardData:
    """Roll the monitor's state up into a DashboardData.

    Args:
        metrics: All metrics records
        alerts: All alerts in the order they were raised
        health_checks: Latest health-check result per automation
        performance_trends: Precomputed execution-time trends
        now: Generation time

    Returns:
        DashboardData for the current state
    """
    all_metrics = list(metrics)
    active_alerts = [alert for alert in alerts if not alert.is_resolved]

    overview = DashboardOverview(
        total_automations=len(all_metrics),
        healthy_automations=sum(1 for m in all_metrics if m.health == HealthStatus.HEALTHY),
        active_alerts=len(active_alerts),
        average_success_rate=fmean(m.success_rate for m in all_metrics) if all_metrics else 0.0,
    )

    top_issues = [alert for alert in active_alerts if alert.severity in _TOP_SEVERITIES][:TOP_ISSUES_LIMIT]

    health_status = [
        HealthSummary(automation_id=hc.automation_id, health=hc.overall_health, score=hc.score)
        for hc in health_checks
    ]

    return DashboardData(
        overview=overview,
        top_issues=top_issues,
        performance_trends=performance_trends,
        health_status=health_status,
        generated_at=now,
    )
