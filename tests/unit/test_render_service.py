"""
Unit Tests for Render Service
=============================

Tests for the facade used by the API layer.
"""

import pytest

from src.core.errors import ParseFailure, TemplateNotFound
from src.core.rendering import service as service_module
from src.core.rendering.service import (
    close_render_service,
    get_render_service,
    initialize_render_service,
)
from src.models.schemas import CaptureRequest, ImageFormat


class TestComponentRenderService:
    """Test rendering templates by file name."""

    def test_list_templates(self, render_service):
        """Test listing through the service."""
        assert render_service.list_templates() == ["broken.tmpl", "card.tmpl", "hello.tmpl"]

    @pytest.mark.asyncio
    async def test_render_html(self, render_service):
        """Test rendering a template file with properties."""
        output = await render_service.render_html("hello.tmpl", {"name": "World"})

        assert "<h1>Hello World</h1>" in output.html
        assert render_service.pool_size == 0

    @pytest.mark.asyncio
    async def test_render_html_without_props(self, render_service):
        """Test that a traditional template renders its declared values."""
        output = await render_service.render_html("card.tmpl")

        assert "<h2>From setup</h2>" in output.html

    @pytest.mark.asyncio
    async def test_render_unknown_template(self, render_service):
        """Test that unknown names raise TemplateNotFound."""
        with pytest.raises(TemplateNotFound):
            await render_service.render_html("unknown.tmpl")

    @pytest.mark.asyncio
    async def test_render_broken_template(self, render_service):
        """Test that a malformed script payload raises ParseFailure."""
        with pytest.raises(ParseFailure):
            await render_service.render_html("broken.tmpl")

    @pytest.mark.asyncio
    async def test_capture_screenshot(self, render_service):
        """Test an in-memory screenshot."""
        request = CaptureRequest(viewport_width=320, viewport_height=200, image_format=ImageFormat.JPEG)

        result = await render_service.capture_screenshot("hello.tmpl", {"name": "World"}, request)

        assert (result.width, result.height) == (320, 200)
        assert result.image_format == ImageFormat.JPEG
        assert result.path is None
        assert render_service.pool_size == 1

    @pytest.mark.asyncio
    async def test_screenshot_to_relative_path(self, render_service, test_settings):
        """Test that relative destinations land in the output directory."""
        result = await render_service.screenshot_to_file(
            "hello.tmpl", "shots/hello.png", {"name": "File"}
        )

        destination = test_settings.output_dir / "shots" / "hello.png"
        assert destination.is_file()
        assert result.path == str(destination)
        assert destination.read_bytes() == result.image

    @pytest.mark.asyncio
    async def test_screenshot_to_absolute_path(self, render_service, tmp_path):
        """Test that absolute destinations are used as given."""
        destination = tmp_path / "elsewhere.png"

        await render_service.screenshot_to_file("hello.tmpl", destination)

        assert destination.is_file()

    @pytest.mark.asyncio
    async def test_close_empties_pool(self, render_service):
        """Test that closing the service terminates its browsers."""
        await render_service.capture_screenshot("hello.tmpl")

        await render_service.close()

        assert render_service.pool_size == 0


class TestGlobalService:
    """Test the process-wide service instance."""

    @pytest.mark.asyncio
    async def test_lifecycle(self, test_settings, mock_playwright):
        """Test initialize, get and close of the global service."""
        created = await initialize_render_service(test_settings)
        try:
            assert await get_render_service() is created
            assert created.list_templates() == ["broken.tmpl", "card.tmpl", "hello.tmpl"]
            assert test_settings.output_dir.is_dir()
        finally:
            await close_render_service()

        assert service_module._render_service is None
