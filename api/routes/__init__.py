"""API Routes Package."""

from api.routes import health, maps

__all__ = [
    "health",
    "maps",
]
