"""
Template Routes
===============

FastAPI route listing the available component templates.
"""

from fastapi import APIRouter, Depends

from src.api.dependencies import get_service
from src.core.rendering.service import ComponentRenderService
from src.models.schemas import TemplateListResponse

router = APIRouter(prefix="/api", tags=["Templates"])


@router.get("/templates", response_model=TemplateListResponse)
async def list_templates(
    service: ComponentRenderService = Depends(get_service),
) -> TemplateListResponse:
    """List template files in the template directory."""
    return TemplateListResponse(templates=service.list_templates())
