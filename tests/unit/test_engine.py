"""
Unit Tests for Render Engine Instance
=====================================

Tests for launching, probing and closing a single browser instance.
"""

import pytest

from src.core.errors import CaptureFailure, HealthCheckFailure, LaunchFailure
from src.core.rendering.engine import EngineState, RenderEngineInstance

from tests.utils.mocks import MockPlaywright


@pytest.fixture
def driver():
    """Mock Playwright driver."""
    return MockPlaywright()


@pytest.fixture
def instance(test_settings):
    """Unlaunched engine instance."""
    return RenderEngineInstance(1, test_settings)


class TestLaunch:
    """Test browser launch."""

    @pytest.mark.asyncio
    async def test_launch_marks_ready(self, instance, driver):
        """Test a successful launch."""
        browser = await instance.launch(driver)

        assert instance.state == EngineState.READY
        assert instance.is_ready
        assert instance.browser is browser
        assert driver.chromium.launch_calls == 1

    @pytest.mark.asyncio
    async def test_launch_options(self, test_settings, driver):
        """Test that settings are passed to the browser launch."""
        test_settings.chrome_path = "/usr/bin/chromium"
        instance = RenderEngineInstance(1, test_settings)

        await instance.launch(driver)

        options = driver.chromium.launch_options[0]
        assert options["headless"] is True
        assert options["executable_path"] == "/usr/bin/chromium"
        assert "--no-sandbox" in options["args"]
        assert options["timeout"] == test_settings.playwright_timeout

    @pytest.mark.asyncio
    async def test_launch_without_executable_path(self, instance, driver):
        """Test that the bundled browser is used when no path is configured."""
        await instance.launch(driver)

        assert "executable_path" not in driver.chromium.launch_options[0]

    @pytest.mark.asyncio
    async def test_launch_failure(self, instance):
        """Test that a failed launch raises LaunchFailure and stays unlaunched."""
        driver = MockPlaywright(failures=1)

        with pytest.raises(LaunchFailure, match="Browser launch failed"):
            await instance.launch(driver)

        assert instance.state == EngineState.UNINITIALIZED
        assert instance.browser is None

    @pytest.mark.asyncio
    async def test_closed_instance_cannot_launch(self, instance, driver):
        """Test that a closed instance refuses to launch."""
        await instance.close()

        with pytest.raises(LaunchFailure, match="closed"):
            await instance.launch(driver)


class TestHealth:
    """Test health probing."""

    @pytest.mark.asyncio
    async def test_verify_ready_instance(self, instance, driver):
        """Test that a healthy instance passes and leaves no context open."""
        browser = await instance.launch(driver)

        await instance.verify()

        assert browser.open_contexts == 0
        assert len(browser.contexts) == 1

    @pytest.mark.asyncio
    async def test_verify_unlaunched_instance(self, instance):
        """Test that an unlaunched instance fails the probe."""
        with pytest.raises(HealthCheckFailure, match="uninitialized"):
            await instance.verify()

    @pytest.mark.asyncio
    async def test_verify_dead_browser(self, instance, driver):
        """Test that a browser that cannot open contexts is unhealthy."""
        browser = await instance.launch(driver)
        browser.healthy = False

        with pytest.raises(HealthCheckFailure, match="probe failed"):
            await instance.verify()

        assert instance.state == EngineState.UNHEALTHY

    @pytest.mark.asyncio
    async def test_disconnect_marks_unhealthy(self, instance, driver):
        """Test that the disconnected event demotes the instance."""
        browser = await instance.launch(driver)

        browser.crash()

        assert instance.state == EngineState.UNHEALTHY
        assert not instance.is_ready

    @pytest.mark.asyncio
    async def test_demote_allows_relaunch(self, instance, driver):
        """Test that a demoted instance can be launched again."""
        first = await instance.launch(driver)
        first.crash()

        await instance.demote()
        second = await instance.launch(driver)

        assert first.closed
        assert second is not first
        assert instance.is_ready


class TestIsolatedContext:
    """Test per-capture browser contexts."""

    @pytest.mark.asyncio
    async def test_context_closed_after_use(self, instance, driver):
        """Test that the context is closed when the block exits."""
        browser = await instance.launch(driver)

        async with instance.isolated_context(viewport={"width": 10, "height": 10}) as context:
            assert instance.open_contexts == 1
            assert context.options["viewport"] == {"width": 10, "height": 10}

        assert context.closed
        assert instance.open_contexts == 0
        assert browser.open_contexts == 0

    @pytest.mark.asyncio
    async def test_context_closed_on_error(self, instance, driver):
        """Test that the context is closed when the block raises."""
        await instance.launch(driver)

        with pytest.raises(RuntimeError):
            async with instance.isolated_context() as context:
                raise RuntimeError("boom")

        assert context.closed
        assert instance.open_contexts == 0

    @pytest.mark.asyncio
    async def test_context_requires_ready_instance(self, instance):
        """Test that an unlaunched instance cannot open contexts."""
        with pytest.raises(CaptureFailure):
            async with instance.isolated_context():
                pass


@pytest.mark.asyncio
async def test_close(instance, driver):
    """Test that close terminates the browser."""
    browser = await instance.launch(driver)

    await instance.close()

    assert browser.closed
    assert instance.state == EngineState.CLOSED
    assert instance.browser is None
