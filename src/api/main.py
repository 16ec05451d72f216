"""
FastAPI Application
==================

Main FastAPI application exposing component rendering over HTTP.
"""

from contextlib import asynccontextmanager
import uuid
from typing import AsyncGenerator, Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from src.config.settings import get_settings
from src.config.logging import get_logger
from src.core.errors import (
    CaptureFailure,
    LaunchFailure,
    ParseFailure,
    RenderFailure,
    RenderServiceError,
    TemplateNotFound,
    ValidationFailure,
)
from src.core.rendering.service import close_render_service, initialize_render_service
from src.api.routes.health import router as health_router
from src.api.routes.render import router as render_router
from src.api.routes.templates import router as templates_router
from src.models.schemas import ErrorResponse

logger = get_logger(__name__)

# Most specific first
ERROR_STATUS = [
    (TemplateNotFound, 404),
    (ValidationFailure, 400),
    (LaunchFailure, 503),
    (ParseFailure, 500),
    (RenderFailure, 500),
    (CaptureFailure, 500),
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info("Starting FastAPI application")
    await initialize_render_service()

    try:
        yield
    finally:
        logger.info("Shutting down FastAPI application")
        try:
            await close_render_service()
            logger.info("Browser pool closed")
        except Exception as e:
            logger.error("Error closing browser pool", error=str(e))


# Create FastAPI app
settings = get_settings()
app = FastAPI(
    title=settings.app_name,
    description="Render component templates to HTML and screenshots",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_hosts,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)

app.include_router(render_router)
app.include_router(templates_router)
app.include_router(health_router)


# Request ID middleware
@app.middleware("http")
async def add_request_id(request: Request, call_next) -> JSONResponse:  # type: ignore
    """Add request ID to all requests."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    response = await call_next(request)  # type: ignore
    response.headers["X-Request-ID"] = request_id  # type: ignore

    return response  # type: ignore


def _error_response(
    request: Request, status_code: int, message: str, error_code: str, details: Any = None
) -> JSONResponse:
    error_response = ErrorResponse(
        error=message,
        error_code=error_code,
        details=details if settings.debug else None,
        request_id=getattr(request.state, "request_id", None),
    )
    return JSONResponse(status_code=status_code, content=error_response.model_dump(mode="json"))


def status_for(exc: RenderServiceError) -> int:
    """HTTP status for a service failure."""
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 500


# Exception handlers
@app.exception_handler(RenderServiceError)
async def render_service_exception_handler(
    request: Request, exc: RenderServiceError
) -> JSONResponse:
    """Map service failures to HTTP status codes."""
    status_code = status_for(exc)
    log = logger.warning if status_code < 500 else logger.error
    log(
        "Request failed",
        error_code=exc.error_code,
        error_message=str(exc),
        status_code=status_code,
        request_id=getattr(request.state, "request_id", None),
    )
    cause = {"cause": str(exc.__cause__)} if exc.__cause__ else None
    return _error_response(request, status_code, str(exc), exc.error_code, cause)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request bodies as 400."""
    errors = [
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    ]
    logger.warning("Invalid request body", errors=errors)
    return _error_response(
        request, 400, f"Invalid request: {'; '.join(errors)}", "INVALID_REQUEST", {"errors": errors}
    )


@app.exception_handler(HTTPException)
async def custom_http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom HTTP exception handler with structured error response."""
    logger.error("HTTP exception", status_code=exc.status_code, detail=exc.detail)
    return _error_response(request, exc.status_code, str(exc.detail), str(exc.status_code))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """General exception handler for unexpected errors."""
    logger.error(
        "Unhandled exception",
        exception=str(exc),
        request_id=getattr(request.state, "request_id", None),
        exc_info=True,
    )
    return _error_response(
        request, 500, "Internal server error", "INTERNAL_ERROR", {"exception": str(exc)}
    )


# Root endpoint
@app.get("/", tags=["General"])
async def root() -> dict[str, Any]:
    """
    Root endpoint with basic API information.
    """
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs_url": "/docs" if settings.debug else None,
        "health_check": "/api/health",
        "endpoints": {
            "render_html": "POST /api/render-html",
            "screenshot": "POST /api/screenshot",
            "templates": "GET /api/templates",
            "health": "GET /api/health",
        },
    }


# Development server runner
def run_development_server() -> None:
    """Run the server."""
    uvicorn.run(
        "src.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug and settings.environment == "development",
        log_level=settings.log_level.lower(),
        access_log=True,
    )


def create_app() -> FastAPI:
    """
    Application factory function for creating FastAPI app instance.
    Used by integration tests and external deployment scripts.

    Returns:
        FastAPI application instance
    """
    return app


if __name__ == "__main__":
    run_development_server()
