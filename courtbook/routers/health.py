"""
Health check endpoint.
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from courtbook import __version__
from courtbook.models import HealthResponse
from courtbook.services.registry import registry

router = APIRouter(prefix="/api", tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    operation_id="getHealth",
    summary="Health check",
)
async def get_health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        storage=registry.backend,
        timestamp=datetime.now(timezone.utc),
    )
