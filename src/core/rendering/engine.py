"""
Render Engine Instance
======================

A long-lived handle on one headless Chromium process. The instance opens
isolated browser contexts for captures and reports whether it is still
usable; the browser pool owns its lifecycle.
"""

from contextlib import asynccontextmanager
from enum import Enum
from typing import Any, AsyncGenerator, Dict, Optional

from playwright.async_api import Browser, BrowserContext, Playwright

from src.config.logging import get_logger
from src.config.settings import Settings, get_settings
from src.core.errors import CaptureFailure, HealthCheckFailure, LaunchFailure

logger = get_logger(__name__)


class EngineState(str, Enum):
    """Lifecycle states of a browser instance."""
    UNINITIALIZED = "uninitialized"
    LAUNCHING = "launching"
    READY = "ready"
    UNHEALTHY = "unhealthy"
    CLOSED = "closed"


class RenderEngineInstance:
    """One browser process and the contexts opened on it."""

    def __init__(self, instance_id: int, settings: Optional[Settings] = None):
        self.instance_id = instance_id
        self.settings = settings or get_settings()
        self.state = EngineState.UNINITIALIZED
        self.browser: Optional[Browser] = None
        self.open_contexts = 0
        self.logger: Any = logger.bind(component="render_engine", instance=instance_id)

    def __repr__(self) -> str:
        return f"<RenderEngineInstance {self.instance_id} {self.state.value}>"

    @property
    def is_ready(self) -> bool:
        return self.state == EngineState.READY and self.browser is not None

    def _launch_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "headless": self.settings.playwright_headless,
            "args": list(self.settings.browser_launch_args),
            "timeout": self.settings.playwright_timeout,
        }
        if self.settings.chrome_path:
            options["executable_path"] = self.settings.chrome_path
        return options

    async def launch(self, playwright: Playwright) -> Browser:
        """
        Start the browser process.

        Args:
            playwright: Running Playwright driver

        Returns:
            The launched browser

        Raises:
            LaunchFailure: If the browser process does not start
        """
        if self.state == EngineState.CLOSED:
            raise LaunchFailure(f"Browser instance {self.instance_id} is closed")

        self.state = EngineState.LAUNCHING
        try:
            browser = await playwright.chromium.launch(**self._launch_options())
        except Exception as e:
            self.state = EngineState.UNINITIALIZED
            self.logger.error("Browser launch failed", error=str(e))
            raise LaunchFailure(f"Browser launch failed: {e}") from e

        browser.on("disconnected", self._on_disconnected)
        self.browser = browser
        self.state = EngineState.READY
        self.logger.info("Browser instance launched")
        return browser

    def _on_disconnected(self, *_: Any) -> None:
        if self.state == EngineState.READY:
            self.state = EngineState.UNHEALTHY
            self.logger.warning("Browser disconnected")

    async def verify(self) -> None:
        """
        Check that the browser can still open a context.

        Raises:
            HealthCheckFailure: If the instance is not launched or the probe fails
        """
        if not self.is_ready:
            raise HealthCheckFailure(f"Browser instance is {self.state.value}")

        try:
            probe = await self.browser.new_context()  # type: ignore[union-attr]
            await probe.close()
        except Exception as e:
            self.state = EngineState.UNHEALTHY
            raise HealthCheckFailure(f"Browser probe failed: {e}") from e

    async def demote(self) -> None:
        """Drop a stale browser handle so the instance can be launched again."""
        browser, self.browser = self.browser, None
        self.state = EngineState.UNINITIALIZED
        if browser is not None:
            try:
                await browser.close()
            except Exception as e:
                self.logger.debug("Closing stale browser failed", error=str(e))

    @asynccontextmanager
    async def isolated_context(self, **options: Any) -> AsyncGenerator[BrowserContext, None]:
        """Open a fresh browser context, closed on every exit path."""
        if not self.is_ready:
            raise CaptureFailure(f"Browser instance {self.instance_id} is {self.state.value}")

        context = await self.browser.new_context(**options)  # type: ignore[union-attr]
        self.open_contexts += 1
        try:
            yield context
        finally:
            self.open_contexts -= 1
            try:
                await context.close()
            except Exception as e:
                self.logger.warning("Failed to close browser context", error=str(e))

    async def close(self) -> None:
        """Terminate the browser process."""
        browser, self.browser = self.browser, None
        self.state = EngineState.CLOSED
        if browser is not None:
            try:
                await browser.close()
                self.logger.info("Browser instance closed")
            except Exception as e:
                self.logger.error("Error closing browser", error=str(e))
