"""
HTTP surface for the automation monitor.

Exposes the monitor's inbound and outbound interfaces as a JSON API so that
automation runners in other processes can report events and dashboards can
poll the roll-up. The app's lifespan starts and stops the monitor's
health-check scheduler.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import FastAPI, HTTPException, Query, Response
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field

from automation_monitor.engine.monitor import AutomationMonitor
from automation_monitor.enums import EventKind, EventStatus
from automation_monitor.exceptions import AlertNotFoundError, InvalidEventError, ThresholdValidationError

log = structlog.get_logger(__name__)


class EventIn(BaseModel):
    """Lifecycle event reported over HTTP."""

    automation_id: str = Field(..., min_length=1)
    kind: EventKind
    status: EventStatus
    message: str = ""
    duration: float | None = Field(default=None, ge=0, description="Execution duration in ms")
    metadata: dict[str, Any] | None = None
    error: str | None = None
    retry_count: int | None = Field(default=None, ge=0)


class PerformanceIn(BaseModel):
    """Resource-usage sample reported over HTTP."""

    automation_id: str = Field(..., min_length=1)
    execution_time: float = Field(..., ge=0)
    memory_usage: float | None = None
    cpu_usage: float | None = None
    network_latency: float | None = None
    queue_size: int | None = None
    throughput: float | None = None


def create_app(monitor: AutomationMonitor) -> FastAPI:
    """Build the FastAPI app around ``monitor``.

    Args:
        monitor: The monitor instance to serve

    Returns:
        Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await monitor.start()
        log.info("api_started")
        try:
            yield
        finally:
            await monitor.stop()
            log.info("api_stopped")

    app = FastAPI(title="Automation Monitor", version="0.1.0", lifespan=lifespan)
    app.state.monitor = monitor

    @app.get("/api/health")
    async def api_health() -> dict[str, Any]:
        """Liveness of the monitor itself."""
        return {"status": "healthy", "scheduler_running": monitor.is_running}

    @app.get("/api/dashboard")
    def dashboard() -> Any:
        data = monitor.get_dashboard_data()
        payload = jsonable_encoder(data)
        payload["refresh_seconds"] = monitor.settings.dashboard_refresh_seconds
        return payload

    @app.get("/api/metrics")
    def metrics(automation_id: str | None = None) -> Any:
        return jsonable_encoder(monitor.get_metrics(automation_id))

    @app.post("/api/events", status_code=201)
    def record_event(body: EventIn) -> Any:
        try:
            event = monitor.record_event(**body.model_dump())
        except InvalidEventError as e:
            raise HTTPException(status_code=422, detail=e.message) from e
        return jsonable_encoder(event)

    @app.get("/api/events/{automation_id}")
    def events(automation_id: str, limit: int | None = Query(default=None, ge=1)) -> Any:
        return jsonable_encoder(monitor.get_events(automation_id, limit))

    @app.get("/api/events/{automation_id}/recent")
    def recent_events(automation_id: str, minutes: float = Query(default=60, gt=0)) -> Any:
        return jsonable_encoder(monitor.get_recent_events(automation_id, minutes))

    @app.post("/api/performance", status_code=201)
    def record_performance(body: PerformanceIn) -> Any:
        try:
            point = monitor.record_performance_data(**body.model_dump())
        except InvalidEventError as e:
            raise HTTPException(status_code=422, detail=e.message) from e
        return jsonable_encoder(point)

    @app.get("/api/performance/{automation_id}")
    def performance(automation_id: str, hours: float = Query(default=24, gt=0)) -> Any:
        return jsonable_encoder(monitor.get_performance_data(automation_id, hours))

    @app.get("/api/alerts")
    def alerts(automation_id: str | None = None, unresolved_only: bool = False) -> Any:
        return jsonable_encoder(monitor.get_alerts(automation_id, unresolved_only))

    @app.post("/api/alerts/{alert_id}/acknowledge")
    def acknowledge_alert(alert_id: str) -> Any:
        alert = monitor.acknowledge_alert(alert_id)
        if alert is None:
            raise HTTPException(status_code=404, detail=AlertNotFoundError(alert_id).message)
        return jsonable_encoder(alert)

    @app.post("/api/alerts/{alert_id}/resolve")
    def resolve_alert(alert_id: str) -> Any:
        alert = monitor.resolve_alert(alert_id)
        if alert is None:
            raise HTTPException(status_code=404, detail=AlertNotFoundError(alert_id).message)
        return jsonable_encoder(alert)

    @app.get("/api/health-checks")
    def health_checks() -> Any:
        return jsonable_encoder(monitor.get_health_checks())

    @app.get("/api/thresholds/{automation_id}")
    def get_thresholds(automation_id: str) -> Any:
        thresholds = monitor.get_thresholds(automation_id)
        if thresholds is None:
            raise HTTPException(status_code=404, detail=f"No thresholds configured for {automation_id}")
        return thresholds.model_dump()

    @app.put("/api/thresholds/{automation_id}")
    def set_thresholds(automation_id: str, body: dict[str, Any]) -> Any:
        try:
            thresholds = monitor.set_thresholds(automation_id, body)
        except ThresholdValidationError as e:
            raise HTTPException(status_code=422, detail=e.message) from e
        return thresholds.model_dump()

    @app.get("/metrics")
    def prometheus_metrics() -> Response:
        """Prometheus metrics endpoint."""
        if monitor.exporter is None:
            raise HTTPException(status_code=404, detail="Prometheus export is not enabled")
        return Response(content=monitor.exporter.render(), media_type="text/plain; version=0.0.4; charset=utf-8")

    return app
