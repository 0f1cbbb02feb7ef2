"""
Onionlink Services

Service layer between the API/CLI and the core components.
"""

from .connectivity import ConnectivityService

__all__ = [
    "ConnectivityService",
]
