"""
API routes package.

Exports all API routers for easy inclusion in the main application.
"""
from pvtest.api import experiments, data, alerts, devices, templates

__all__ = [
    "experiments",
    "data",
    "alerts",
    "devices",
    "templates"
]
