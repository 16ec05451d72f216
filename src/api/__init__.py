"""
FastAPI REST Endpoints
======================

REST API endpoints for HTTP access to component rendering.

Endpoints:
- POST /api/render-html: Render a template to HTML
- POST /api/screenshot: Render a template to a PNG or JPEG image
- GET /api/templates: List available templates
- GET /api/health: Health check with pool size
"""
