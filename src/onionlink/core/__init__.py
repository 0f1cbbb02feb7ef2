"""
Onionlink Core Module

Core configuration, settings, and utilities.
"""

from .config import (
    Settings,
    BridgeSettings,
    LogSettings,
    DiagnosticsSettings,
    ApiSettings,
    get_settings,
)
from .logging import setup_logging, get_logger

__all__ = [
    # Settings
    "Settings",
    "BridgeSettings",
    "LogSettings",
    "DiagnosticsSettings",
    "ApiSettings",
    "get_settings",
    # Logging
    "setup_logging",
    "get_logger",
]
