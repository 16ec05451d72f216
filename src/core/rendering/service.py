"""
Render Service
==============

Facade tying the template store, browser pool and capture pipeline
together for the API layer.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from src.config.logging import get_logger
from src.config.settings import Settings, get_settings
from src.core.component.store import TemplateStore
from src.core.rendering.browser_pool import BrowserPool
from src.core.rendering.capture import CaptureOrchestrator
from src.models.schemas import CaptureRequest, CaptureResult, RenderContext, RenderOutput

logger = get_logger(__name__)


class ComponentRenderService:
    """Render templates by name to HTML or screenshots."""

    def __init__(
        self,
        store: TemplateStore,
        pool: BrowserPool,
        orchestrator: Optional[CaptureOrchestrator] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.store = store
        self.pool = pool
        self.orchestrator = orchestrator or CaptureOrchestrator(pool, settings=self.settings)
        self.logger: Any = logger.bind(component="render_service")

    @property
    def pool_size(self) -> int:
        return self.pool.size

    def list_templates(self) -> List[str]:
        return self.store.list_templates()

    async def render_html(
        self, filename: str, props: Optional[Dict[str, Any]] = None
    ) -> RenderOutput:
        """Render a template to a complete HTML document."""
        definition = await self.store.load(filename)
        return await self.orchestrator.render(definition, RenderContext(properties=props or {}))

    async def capture_screenshot(
        self,
        filename: str,
        props: Optional[Dict[str, Any]] = None,
        request: Optional[CaptureRequest] = None,
    ) -> CaptureResult:
        """Render a template and return the screenshot in memory."""
        definition = await self.store.load(filename)
        return await self.orchestrator.capture(
            definition, RenderContext(properties=props or {}), request
        )

    async def screenshot_to_file(
        self,
        filename: str,
        output_path: Union[str, Path],
        props: Optional[Dict[str, Any]] = None,
        request: Optional[CaptureRequest] = None,
    ) -> CaptureResult:
        """
        Render a template and write the screenshot to a file.

        Relative destinations are placed under the configured output directory.
        """
        destination = Path(output_path)
        if not destination.is_absolute():
            destination = self.settings.output_dir / destination

        definition = await self.store.load(filename)
        result = await self.orchestrator.capture(
            definition, RenderContext(properties=props or {}), request, output_path=destination
        )
        self.logger.info("Screenshot written", filename=filename, path=str(destination))
        return result

    async def close(self) -> None:
        await self.pool.close_all()


# Global service instance
_render_service: Optional[ComponentRenderService] = None


async def initialize_render_service(settings: Optional[Settings] = None) -> ComponentRenderService:
    """Create the global render service. Browsers are launched on first use."""
    global _render_service
    settings = settings or get_settings()

    store = TemplateStore(settings.templates_dir, settings.template_extension)
    store.ensure_directories()
    settings.output_dir.mkdir(parents=True, exist_ok=True)

    _render_service = ComponentRenderService(store, BrowserPool(settings=settings), settings=settings)
    logger.info(
        "Render service initialized",
        templates_dir=str(settings.templates_dir),
        pool_capacity=settings.browser_pool_size,
    )
    return _render_service


async def get_render_service() -> ComponentRenderService:
    """Get the global render service, creating it if needed."""
    if _render_service is None:
        return await initialize_render_service()
    return _render_service


async def close_render_service() -> None:
    """Close the global render service and all of its browsers."""
    global _render_service
    if _render_service is not None:
        await _render_service.close()
        _render_service = None
