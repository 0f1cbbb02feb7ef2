"""
Onionlink API Endpoints

REST API endpoint modules.
"""

from . import apps, bridges, events, health, server

__all__ = [
    "apps",
    "bridges",
    "events",
    "health",
    "server",
]
