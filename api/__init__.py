"""API Package.

FastAPI server for the map monitor.
"""

from api.server import create_app, app

__all__ = [
    "create_app",
    "app",
]
