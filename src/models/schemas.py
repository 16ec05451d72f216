"""
Pydantic Models and Schemas
===========================

Core data models for component definitions, render and capture values,
and API requests/responses.
"""

from typing import Optional, List, Dict, Any, Tuple, Literal
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Enums
class ComponentVariant(str, Enum):
    """How a component's data-binding scope is built."""
    SETUP = "setup"
    TRADITIONAL = "traditional"


class ImageFormat(str, Enum):
    """Screenshot encodings."""
    PNG = "png"
    JPEG = "jpeg"

    @property
    def content_type(self) -> str:
        return f"image/{self.value}"


# Component Models
class ComponentDefinition(BaseModel):
    """Parsed component source. Immutable once created."""
    model_config = ConfigDict(frozen=True)

    template: str = Field(..., description="Template markup")
    styles: Tuple[str, ...] = Field(default=(), description="Style blocks in declaration order")
    variant: ComponentVariant = Field(ComponentVariant.TRADITIONAL, description="Scope variant")
    script_payload: str = Field("", description="Raw script section content")
    filename: Optional[str] = Field(None, description="Source file name")


class RenderContext(BaseModel):
    """Caller supplied properties injected into the component scope."""
    model_config = ConfigDict(frozen=True)

    properties: Dict[str, Any] = Field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.properties)


class RenderOutput(BaseModel):
    """Complete HTML document with its inlined CSS."""
    model_config = ConfigDict(frozen=True)

    html: str = Field(..., description="Complete HTML document")
    css: str = Field("", description="Concatenated component styles")
    warnings: Tuple[str, ...] = Field(default=(), description="Non-fatal binding warnings")


# Capture Models
class CaptureRequest(BaseModel):
    """Viewport, scale and encoding options for a single screenshot."""
    model_config = ConfigDict(frozen=True)

    viewport_width: int = Field(1280, gt=0, description="Viewport width in CSS pixels")
    viewport_height: int = Field(800, gt=0, description="Viewport height in CSS pixels")
    zoom_factor: float = Field(1.0, gt=0, le=10.0, description="Page-wide visual scale")
    image_format: ImageFormat = Field(ImageFormat.PNG, description="Output encoding")
    full_page: bool = Field(False, description="Capture full page instead of viewport")
    transparent_background: bool = Field(False, description="Omit the default white background")
    quality: int = Field(95, ge=0, le=100, description="JPEG quality")


class CaptureResult(BaseModel):
    """Result of a screenshot capture."""
    image: bytes = Field(..., description="Encoded image data", exclude=True)
    image_format: ImageFormat = Field(..., description="Image encoding")
    width: int = Field(..., description="Decoded image width")
    height: int = Field(..., description="Decoded image height")
    file_size: int = Field(..., description="Size in bytes")
    path: Optional[str] = Field(None, description="Destination file when written to disk")
    warnings: List[str] = Field(default_factory=list, description="Non-fatal diagnostics")


# API Request/Response Models
class RenderHTMLRequest(BaseModel):
    """Request body for HTML rendering."""
    filename: Optional[str] = Field(None, description="Template file name")
    props: Dict[str, Any] = Field(default_factory=dict, description="Properties for the component")

    @field_validator("props", mode="before")
    @classmethod
    def default_props(cls, v: Any) -> Any:
        """Treat null props as empty."""
        return {} if v is None else v


class ScreenshotRequest(RenderHTMLRequest):
    """Request body for screenshot rendering."""
    model_config = ConfigDict(populate_by_name=True)

    width: Optional[int] = Field(None, gt=0, description="Viewport width")
    height: Optional[int] = Field(None, gt=0, description="Viewport height")
    scale: Optional[float] = Field(None, gt=0, le=10.0, description="Page zoom factor")
    type: ImageFormat = Field(ImageFormat.PNG, description="png or jpeg")
    full_page: bool = Field(False, alias="fullPage")
    transparent: bool = Field(False, description="Transparent background (png only)")
    quality: Optional[int] = Field(None, ge=0, le=100, description="JPEG quality")

    def to_capture_request(
        self, default_width: int = 1280, default_height: int = 800, default_quality: int = 95
    ) -> CaptureRequest:
        """Apply boundary defaults and build the capture options."""
        return CaptureRequest(
            viewport_width=self.width or default_width,
            viewport_height=self.height or default_height,
            zoom_factor=self.scale or 1.0,
            image_format=self.type,
            full_page=self.full_page,
            transparent_background=self.transparent,
            quality=self.quality if self.quality is not None else default_quality,
        )


class TemplateListResponse(BaseModel):
    """Available template files."""
    templates: List[str] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Service liveness and pool size."""
    model_config = ConfigDict(populate_by_name=True)

    status: Literal["ok"] = "ok"
    pool_size: int = Field(0, ge=0, alias="poolSize")


# Error Models
class ErrorResponse(BaseModel):
    """Standard error response model."""
    error: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(None, description="Error code")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), description="Error timestamp"
    )
    request_id: Optional[str] = Field(None, description="Request identifier for tracking")
