"""
Health Routes
=============

FastAPI route for the health check endpoint.
"""

from fastapi import APIRouter, Depends

from src.api.dependencies import get_service
from src.core.rendering.service import ComponentRenderService
from src.models.schemas import HealthResponse

router = APIRouter(prefix="/api", tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    service: ComponentRenderService = Depends(get_service),
) -> HealthResponse:
    """Basic health check with the current browser pool size."""
    return HealthResponse(status="ok", pool_size=service.pool_size)
