"""
Capture Orchestrator
====================

Render a component and screenshot it in a pooled browser.

For every capture a browser instance is checked out, a fresh isolated
context is opened, the composed document is loaded and, once embedded
images have loaded (or the advisory timeout passed), the page is captured.
The context is closed and the instance released on every exit path.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union
import io

from PIL import Image  # type: ignore
from playwright.async_api import Page, TimeoutError as PlaywrightTimeoutError

from src.config.logging import get_logger
from src.config.settings import Settings, get_settings
from src.core.component.resolver import ComponentResolver
from src.core.errors import CaptureFailure, RenderServiceError
from src.core.rendering.browser_pool import BrowserPool
from src.core.rendering.html_generator import HTMLGenerator
from src.models.schemas import (
    CaptureRequest,
    CaptureResult,
    ComponentDefinition,
    ImageFormat,
    RenderContext,
    RenderOutput,
)

logger = get_logger(__name__)

IMAGES_COMPLETE = "() => Array.from(document.images).every(img => img.complete)"


class CaptureOrchestrator:
    """Drive the render-and-capture pipeline for single requests."""

    def __init__(
        self,
        pool: BrowserPool,
        resolver: Optional[ComponentResolver] = None,
        html_generator: Optional[HTMLGenerator] = None,
        settings: Optional[Settings] = None,
    ):
        self.pool = pool
        self.resolver = resolver or ComponentResolver()
        self.html_generator = html_generator or HTMLGenerator()
        self.settings = settings or get_settings()
        self.logger: Any = logger.bind(component="capture")

    async def render(
        self, definition: ComponentDefinition, context: Optional[RenderContext] = None
    ) -> RenderOutput:
        """Resolve and compose a component into an HTML document."""
        target = self.resolver.resolve(definition, context)
        return await self.html_generator.compose(target)

    async def capture(
        self,
        definition: ComponentDefinition,
        context: Optional[RenderContext] = None,
        request: Optional[CaptureRequest] = None,
        output_path: Optional[Union[str, Path]] = None,
    ) -> CaptureResult:
        """
        Render a component and capture it as an image.

        Args:
            definition: Parsed component definition
            context: Caller properties for the component
            request: Viewport, zoom and encoding options
            output_path: Write the image to this file as well as returning it

        Returns:
            CaptureResult with the encoded image and non-fatal diagnostics

        Raises:
            LaunchFailure: If no browser could be started
            ParseFailure, RenderFailure: If the component cannot be rendered
            CaptureFailure: If loading or capturing the page fails
        """
        request = request or CaptureRequest()
        self.logger.info(
            "Capturing component",
            filename=definition.filename,
            width=request.viewport_width,
            height=request.viewport_height,
            zoom=request.zoom_factor,
            format=request.image_format.value,
        )

        instance = await self.pool.acquire()
        try:
            async with instance.isolated_context(
                viewport={"width": request.viewport_width, "height": request.viewport_height}
            ) as browser_context:
                page = await browser_context.new_page()
                page.set_default_timeout(self.settings.playwright_timeout)
                await page.set_viewport_size(
                    {"width": request.viewport_width, "height": request.viewport_height}
                )

                output = await self.render(definition, context)
                await page.set_content(output.html, wait_until="domcontentloaded")

                if request.zoom_factor != 1:
                    await page.add_style_tag(content=f"body {{ zoom: {request.zoom_factor}; }}")

                warnings = list(output.warnings)
                warnings.extend(await self._wait_for_images(page))

                image = await page.screenshot(**self._screenshot_options(request, output_path))
        except RenderServiceError:
            raise
        except Exception as e:
            error_msg = f"Screenshot failed: {e}"
            self.logger.error("Capture failed", filename=definition.filename, error=error_msg)
            raise CaptureFailure(error_msg) from e
        finally:
            self.pool.release(instance)

        width, height = self._image_size(image, request)
        result = CaptureResult(
            image=image,
            image_format=request.image_format,
            width=width,
            height=height,
            file_size=len(image),
            path=str(output_path) if output_path else None,
            warnings=warnings,
        )

        self.logger.info(
            "Capture completed",
            filename=definition.filename,
            file_size=result.file_size,
            width=width,
            height=height,
            path=result.path,
            warnings=len(warnings),
        )
        return result

    def _screenshot_options(
        self, request: CaptureRequest, output_path: Optional[Union[str, Path]]
    ) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "type": request.image_format.value,
            "full_page": request.full_page,
        }
        if request.image_format == ImageFormat.JPEG:
            options["quality"] = request.quality
        else:
            options["omit_background"] = request.transparent_background

        if output_path:
            path = Path(output_path)
            path.parent.mkdir(parents=True, exist_ok=True)
            options["path"] = str(path)
        return options

    async def _wait_for_images(self, page: Page) -> List[str]:
        timeout = self.settings.image_load_timeout
        try:
            await page.wait_for_function(IMAGES_COMPLETE, timeout=timeout)
        except PlaywrightTimeoutError:
            message = f"Images did not finish loading within {timeout} ms"
            self.logger.warning("Proceeding with partially loaded images", timeout_ms=timeout)
            return [message]
        return []

    def _image_size(self, image: bytes, request: CaptureRequest) -> Tuple[int, int]:
        try:
            with Image.open(io.BytesIO(image)) as decoded:  # type: ignore[attr-defined]
                return decoded.size
        except Exception as e:
            self.logger.warning("Could not decode captured image", error=str(e))
            return request.viewport_width, request.viewport_height
