"""HTTP surface for the automation monitor."""

from automation_monitor.api.server import create_app

__all__ = ["create_app"]
