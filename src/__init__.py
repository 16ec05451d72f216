"""
Component Render Service
========================

Render component templates into self-contained HTML documents and
pixel-accurate screenshots through a pool of headless browsers.

This package provides:
- Component source parsing and scope resolution
- HTML composition with sandboxed Jinja2 templates
- A bounded, lazily launched Playwright browser pool
- FastAPI REST endpoints for HTTP access
"""

__version__ = "1.0.0"
__author__ = "Component Render Team"
