"""CLI entry point for the automation monitor."""

import json
import sys
from pathlib import Path

import click
import structlog
from fastapi.encoders import jsonable_encoder

from automation_monitor.config.settings import MonitorSettings
from automation_monitor.engine.monitor import AutomationMonitor
from automation_monitor.enums import EventKind, EventStatus
from automation_monitor.exceptions import ConfigurationError
from automation_monitor.models.domain import DashboardData
from automation_monitor.monitoring.exporter import PrometheusExporter
from automation_monitor.utils.logging_config import configure_logging

log = structlog.get_logger(__name__)

SAMPLE_AUTOMATIONS = [
    "email-processing",
    "calendar-sync",
    "deadline-alerts",
    "task-creation",
    "document-processing",
    "workflow-orchestration",
]


@click.group()
@click.option("--config", default=None, help="Path to YAML configuration file")
@click.option("--log-level", default=None, help="Logging level (overrides configuration)")
@click.pass_context
def cli(ctx: click.Context, config: str | None, log_level: str | None) -> None:
    """automation-monitor: Monitoring and alerting for background automations."""
    try:
        if config is not None:
            if not Path(config).exists():
                click.echo(f"Error: Configuration file not found: {config}", err=True)
                sys.exit(1)
            settings = MonitorSettings.from_yaml(config)
        else:
            settings = MonitorSettings()
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    configure_logging(log_level or settings.log_level)
    ctx.obj = {"settings": settings}


@cli.command()
@click.option("--host", default="127.0.0.1", help="Interface to bind")
@click.option("--port", default=8000, type=int, help="Port to listen on")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int) -> None:
    """Run the monitoring HTTP API."""
    import uvicorn

    from automation_monitor.api.server import create_app

    settings: MonitorSettings = ctx.obj["settings"]
    monitor = AutomationMonitor(settings, exporter=PrometheusExporter())
    app = create_app(monitor)

    log.info("serve_starting", host=host, port=port)
    uvicorn.run(app, host=host, port=port, log_config=None)


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print the dashboard as JSON")
@click.pass_context
def demo(ctx: click.Context, as_json: bool) -> None:
    """Seed sample automations, run one health check and print the dashboard."""
    settings: MonitorSettings = ctx.obj["settings"]
    monitor = AutomationMonitor(settings)

    seed_sample_data(monitor)
    monitor.run_health_checks()
    dashboard = monitor.get_dashboard_data()

    if as_json:
        click.echo(json.dumps(jsonable_encoder(dashboard), indent=2))
    else:
        _print_dashboard(dashboard)


def seed_sample_data(monitor: AutomationMonitor) -> None:
    """Record a small, deterministic set of sample events.

    Every sample automation starts and completes once and reports one
    performance sample; email-processing then fails once.
    """
    for index, automation_id in enumerate(SAMPLE_AUTOMATIONS):
        monitor.record_event(automation_id, EventKind.STARTED, EventStatus.INFO, "Automation started")
        monitor.record_event(
            automation_id,
            EventKind.COMPLETED,
            EventStatus.SUCCESS,
            "Automation completed successfully",
            duration=1000.0 + index * 1500.0,
        )
        monitor.record_performance_data(
            automation_id,
            execution_time=500.0 + index * 750.0,
            memory_usage=50.0 + index * 30.0,
            cpu_usage=10.0 + index * 8.0,
        )

    monitor.record_event(
        "email-processing",
        EventKind.FAILED,
        EventStatus.FAILURE,
        "Failed to connect to email server",
        error="Connection timeout",
    )


def _print_dashboard(dashboard: DashboardData) -> None:
    overview = dashboard.overview
    click.echo("\nAutomation Monitor\n")
    click.echo(f"Automations:       {overview.total_automations}")
    click.echo(f"Healthy:           {overview.healthy_automations}")
    click.echo(f"Active alerts:     {overview.active_alerts}")
    click.echo(f"Avg success rate:  {overview.average_success_rate:.1f}%")

    if dashboard.health_status:
        click.echo("\nHealth:")
        for summary in dashboard.health_status:
            colour = {"healthy": "green", "degraded": "yellow"}.get(summary.health.value, "red")
            badge = click.style(f"[{summary.health.value.upper()}]", fg=colour)
            click.echo(f"  {badge} {summary.automation_id} (score {summary.score})")

    if dashboard.top_issues:
        click.echo("\nTop issues:")
        for alert in dashboard.top_issues:
            click.echo(f"  - [{alert.severity.value}] {alert.automation_id}: {alert.title}")


if __name__ == "__main__":
    cli()
