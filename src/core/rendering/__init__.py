"""
Rendering Module
===============

HTML composition and screenshot capture with browser automation.

Components:
- html_generator: Render targets to complete HTML documents
- engine: Single headless browser instance
- browser_pool: Bounded, lazily launched browser pool
- capture: Render-and-capture pipeline
- service: Facade used by the API layer
- templates: Fixed HTML document shell
"""
