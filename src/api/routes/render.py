"""
Render Routes
=============

FastAPI routes rendering templates to HTML and to screenshots.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, Response

from src.api.dependencies import get_current_settings, get_service, warning_headers
from src.config.logging import get_logger
from src.config.settings import Settings
from src.core.errors import ValidationFailure
from src.core.rendering.service import ComponentRenderService
from src.models.schemas import RenderHTMLRequest, ScreenshotRequest

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["Rendering"])


@router.post("/render-html", response_class=HTMLResponse)
async def render_html(
    request: Optional[RenderHTMLRequest] = None,
    service: ComponentRenderService = Depends(get_service),
) -> HTMLResponse:
    """Render a template file to a complete HTML document."""
    request = request or RenderHTMLRequest()
    if not request.filename:
        raise ValidationFailure("No template filename provided")

    logger.info("HTML render requested", filename=request.filename, props=len(request.props))
    output = await service.render_html(request.filename, request.props)

    return HTMLResponse(content=output.html, headers=warning_headers(output.warnings))


@router.post("/screenshot")
async def screenshot(
    request: Optional[ScreenshotRequest] = None,
    service: ComponentRenderService = Depends(get_service),
    settings: Settings = Depends(get_current_settings),
) -> Response:
    """Render a template file to a PNG or JPEG image."""
    request = request or ScreenshotRequest()
    if not request.filename:
        raise ValidationFailure("No template filename provided")

    capture_request = request.to_capture_request(
        default_width=settings.default_width,
        default_height=settings.default_height,
        default_quality=settings.default_jpeg_quality,
    )
    if (
        capture_request.viewport_width > settings.max_width
        or capture_request.viewport_height > settings.max_height
    ):
        raise ValidationFailure(
            f"Viewport exceeds the maximum of {settings.max_width}x{settings.max_height}"
        )

    logger.info(
        "Screenshot requested",
        filename=request.filename,
        width=capture_request.viewport_width,
        height=capture_request.viewport_height,
        format=capture_request.image_format.value,
    )
    result = await service.capture_screenshot(request.filename, request.props, capture_request)

    return Response(
        content=result.image,
        media_type=result.image_format.content_type,
        headers=warning_headers(result.warnings),
    )
