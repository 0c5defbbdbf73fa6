"""API routers module."""

from . import ai, dashboard, exporters, health

__all__ = [
    "ai",
    "dashboard",
    "exporters",
    "health",
]
