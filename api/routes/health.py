"""Health check endpoints."""

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Response
from pydantic import BaseModel

from core import __version__
from core.config import get_settings
from core.observability import get_metrics


router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: str
    version: str
    services: Dict[str, str]


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    data_dir = get_settings().data_dir
    return HealthResponse(
        status="healthy",
        timestamp=datetime.utcnow().isoformat(),
        version=__version__,
        services={
            "api": "up",
            "data_dir": "up" if data_dir.is_dir() else "missing",
        }
    )


@router.get("/ready")
async def readiness_check(response: Response) -> Dict[str, str]:
    """Readiness probe: ready once the data directory exists."""
    if not get_settings().data_dir.is_dir():
        response.status_code = 503
        return {"status": "not_ready"}
    return {"status": "ready"}


@router.get("/live")
async def liveness_check() -> Dict[str, str]:
    """Liveness probe for Kubernetes."""
    return {"status": "alive"}


@router.get("/metrics")
async def metrics_summary() -> Dict[str, Any]:
    """In-process pass, volume and timing metrics."""
    return get_metrics().get_summary()
