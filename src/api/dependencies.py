"""
API Dependencies
================

FastAPI dependencies shared by the route modules.
"""

from typing import Dict, Iterable

from src.config.settings import Settings, get_settings
from src.core.rendering.service import ComponentRenderService, get_render_service

WARNINGS_HEADER = "X-Render-Warnings"


def get_current_settings() -> Settings:
    """Dependency to get current settings."""
    return get_settings()


async def get_service() -> ComponentRenderService:
    """Dependency to get the render service."""
    return await get_render_service()


def warning_headers(warnings: Iterable[str]) -> Dict[str, str]:
    """Report non-fatal render diagnostics in a response header."""
    joined = "; ".join(w.replace("\n", " ") for w in warnings)
    if not joined:
        return {}
    return {WARNINGS_HEADER: joined.encode("latin-1", "replace").decode("latin-1")}
