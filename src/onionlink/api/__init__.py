"""
Onionlink REST API

FastAPI-based REST API for the connectivity query surface.
"""

from .app import create_app
from .deps import get_connectivity_service

__all__ = [
    "create_app",
    "get_connectivity_service",
]
