"""
Test Configuration
==================

Pytest configuration with settings, template directory and browser fixtures.
No real browser is started: Playwright is replaced by the mocks in
``tests.utils.mocks``.
"""

import os
import shutil
import tempfile
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest

# Keep log files and default directories out of the working tree.
_TEST_ROOT = Path(tempfile.mkdtemp(prefix="component_render_test_"))
os.environ.setdefault("COMPONENT_RENDER_ENVIRONMENT", "testing")
os.environ.setdefault("COMPONENT_RENDER_STORAGE_PATH", str(_TEST_ROOT / "storage"))
os.environ.setdefault("COMPONENT_RENDER_TEMPLATES_DIR", str(_TEST_ROOT / "templates"))
os.environ.setdefault("COMPONENT_RENDER_OUTPUT_DIR", str(_TEST_ROOT / "outputs"))

from src.config.settings import Settings  # noqa: E402
from src.core.component.store import TemplateStore  # noqa: E402
from src.core.rendering.browser_pool import BrowserPool  # noqa: E402
from src.core.rendering.capture import CaptureOrchestrator  # noqa: E402
from src.core.rendering.service import ComponentRenderService  # noqa: E402
from tests.utils.mocks import MockPlaywright, mock_async_playwright  # noqa: E402


HELLO_TEMPLATE = """\
<template>
  <h1>Hello {{ name }}</h1>
</template>

<script setup>
name: ignored
</script>

<style>
h1 { color: #333; }
</style>
"""

CARD_TEMPLATE = """\
<template>
  <div class="card">
    <h2>{{ title }}</h2>
    <p>{{ subtitle }}</p>
    <span class="count">{{ count }}</span>
  </div>
</template>

<script>
name: Card
data:
  title: Untitled
  items: [1, 2, 3]
setup:
  title: "'From setup'"
  subtitle: "'Fresh'"
computed:
  count: items | length
</script>

<style>
.card { padding: 16px; }
</style>
<style>
.card h2 { margin: 0; }
</style>
"""

BROKEN_TEMPLATE = """\
<template>
  <p>{{ value }}</p>
</template>

<script>
data: [this is, not, a mapping
</script>
"""


class TestSettings(Settings):
    """Test-specific settings."""

    environment: str = "testing"
    debug: bool = True
    browser_pool_size: int = 2
    playwright_headless: bool = True
    playwright_timeout: int = 5000
    image_load_timeout: int = 200
    pool_poll_interval: float = 0.01
    log_level: str = "DEBUG"


@pytest.fixture(scope="session", autouse=True)
def cleanup_test_root() -> Generator[Path, None, None]:
    """Remove the session scratch directory at the end of the run."""
    yield _TEST_ROOT
    shutil.rmtree(_TEST_ROOT, ignore_errors=True)


@pytest.fixture
def templates_dir(tmp_path: Path) -> Path:
    """Template directory seeded with sample components."""
    directory = tmp_path / "templates"
    directory.mkdir()
    (directory / "hello.tmpl").write_text(HELLO_TEMPLATE, encoding="utf-8")
    (directory / "card.tmpl").write_text(CARD_TEMPLATE, encoding="utf-8")
    (directory / "broken.tmpl").write_text(BROKEN_TEMPLATE, encoding="utf-8")
    (directory / "notes.txt").write_text("not a template", encoding="utf-8")
    return directory


@pytest.fixture
def test_settings(tmp_path: Path, templates_dir: Path) -> TestSettings:
    """Settings pointing at per-test directories."""
    return TestSettings(
        templates_dir=templates_dir,
        output_dir=tmp_path / "outputs",
        storage_path=tmp_path / "storage",
    )


@pytest.fixture
def mock_playwright() -> Generator[MockPlaywright, None, None]:
    """Patch the Playwright driver used by the browser pool."""
    driver = MockPlaywright()
    with patch(
        "src.core.rendering.browser_pool.async_playwright", mock_async_playwright(driver)
    ):
        yield driver


@pytest.fixture
def browser_pool(test_settings: TestSettings, mock_playwright: MockPlaywright) -> BrowserPool:
    """Browser pool backed by mock browsers."""
    return BrowserPool(settings=test_settings)


@pytest.fixture
def template_store(test_settings: TestSettings) -> TemplateStore:
    """Template store over the sample directory."""
    return TemplateStore(test_settings.templates_dir, test_settings.template_extension)


@pytest.fixture
def render_service(
    test_settings: TestSettings, template_store: TemplateStore, browser_pool: BrowserPool
) -> ComponentRenderService:
    """Render service wired to mock browsers."""
    orchestrator = CaptureOrchestrator(browser_pool, settings=test_settings)
    return ComponentRenderService(template_store, browser_pool, orchestrator, settings=test_settings)


# Pytest configuration
def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on file paths."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
