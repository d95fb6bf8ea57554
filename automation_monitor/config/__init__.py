"""Configuration for the automation monitor."""

from automation_monitor.config.settings import (
    MonitoringThresholds,
    MonitorSettings,
    PerformanceThresholds,
)

__all__ = [
    "MonitorSettings",
    "MonitoringThresholds",
    "PerformanceThresholds",
]
