"""
HTML Generator
==============

Render a resolved component to markup and wrap it, together with the
component styles, into a complete self-contained HTML document.
"""

from typing import Any, Optional
from pathlib import Path
import jinja2
from jinja2.sandbox import SandboxedEnvironment

from src.config.logging import get_logger
from src.core.component.resolver import RenderTarget
from src.core.component.sandbox import collect_binding_warnings, create_sandbox
from src.core.errors import RenderFailure
from src.models.schemas import RenderOutput

logger = get_logger(__name__)

DOCUMENT_TEMPLATE = "document.html"


class HTMLGenerator:
    """Jinja2-based HTML compositor."""

    def __init__(self, component_env: Optional[SandboxedEnvironment] = None) -> None:
        self.logger: Any = logger.bind(generator="jinja2")
        self.component_env = component_env or create_sandbox(enable_async=True)
        self._setup_jinja2_environment()

    def _setup_jinja2_environment(self) -> None:
        """Setup the environment holding the document shell."""
        template_dir = Path(__file__).parent / "templates"
        self.env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            autoescape=jinja2.select_autoescape(["html", "xml"]),
            enable_async=True,
            keep_trailing_newline=True,
        )

    async def compose(self, target: RenderTarget) -> RenderOutput:
        """
        Render a target into a complete HTML document.

        Args:
            target: Resolved render target

        Returns:
            RenderOutput with the document and its concatenated styles

        Raises:
            RenderFailure: If the component template fails to compile or render
        """
        try:
            with collect_binding_warnings() as warnings:
                template = self.component_env.from_string(target.template)
                content = await template.render_async(dict(target.scope))
        except jinja2.TemplateError as e:
            error_msg = f"Template rendering failed: {e}"
            self.logger.error("HTML generation failed", template=target.name, error=error_msg)
            raise RenderFailure(error_msg) from e
        except Exception as e:
            error_msg = f"Unexpected HTML generation error: {e}"
            self.logger.error("HTML generation failed", template=target.name, error=error_msg)
            raise RenderFailure(error_msg) from e

        if target.discarded_setup:
            self.logger.info(
                "Setup result replaced by external properties",
                template=target.name,
                discarded=list(target.discarded_setup),
            )

        css = "\n".join(target.styles)
        html = await self.wrap_document(content, css)

        self.logger.info(
            "HTML generation completed",
            template=target.name,
            html_length=len(html),
            style_blocks=len(target.styles),
            binding_warnings=len(warnings),
        )

        return RenderOutput(html=html, css=css, warnings=tuple(warnings))

    async def wrap_document(self, content: str, css: str) -> str:
        """Place a rendered fragment and its styles into the fixed document shell."""
        shell = self.env.get_template(DOCUMENT_TEMPLATE)
        return await shell.render_async(content=content, css=css)


_html_generator: Optional[HTMLGenerator] = None


async def compose_html(target: RenderTarget) -> RenderOutput:
    """
    Compose HTML with the shared generator.

    Args:
        target: Resolved render target

    Returns:
        Render output
    """
    global _html_generator
    if _html_generator is None:
        _html_generator = HTMLGenerator()
    return await _html_generator.compose(target)
