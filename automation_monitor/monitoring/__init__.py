"""Observability export for the automation monitor.

Key Components:
    - PrometheusExporter: Prometheus counters, gauges and histograms fed
      by the monitor, served on ``/metrics`` by the HTTP surface

Example:
    >>> from automation_monitor.monitoring import PrometheusExporter
    >>> exporter = PrometheusExporter()
    >>> monitor = AutomationMonitor(exporter=exporter)
    >>> exporter.render()
"""

from automation_monitor.monitoring.exporter import PrometheusExporter

__all__ = ["PrometheusExporter"]
