"""
Application Settings
===================

Main application settings and environment configuration using Pydantic Settings.
Supports development, testing, and production environments.
"""

from typing import Annotated, Optional, List, Union
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
import json
from pathlib import Path


DEFAULT_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--disable-gpu",
]


class Settings(BaseSettings):
    """Main application settings with environment variable support."""

    # Application Configuration
    app_name: str = Field(default="Component Render Service", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(
        default="development", description="Environment: development, testing, production"
    )
    debug: bool = Field(default=True, description="Debug mode")

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=3000, description="Server port")

    # Directories
    templates_dir: Path = Field(default=Path("./templates"), description="Component template directory")
    output_dir: Path = Field(default=Path("./outputs"), description="Screenshot output directory")
    storage_path: Path = Field(default=Path("./storage"), description="Storage directory path")
    template_extension: str = Field(default=".tmpl", description="Component template file extension")

    # Capture Configuration
    default_width: int = Field(default=1280, description="Default viewport width")
    default_height: int = Field(default=800, description="Default viewport height")
    max_width: int = Field(default=4000, description="Maximum viewport width")
    max_height: int = Field(default=4000, description="Maximum viewport height")
    default_jpeg_quality: int = Field(default=95, ge=0, le=100, description="Default JPEG quality")
    image_load_timeout: int = Field(
        default=10000, description="Advisory wait for embedded images in milliseconds"
    )

    # Browser Configuration
    chrome_path: Optional[str] = Field(default=None, description="Browser executable path")
    playwright_headless: bool = Field(default=True, description="Run browser in headless mode")
    playwright_timeout: int = Field(default=30000, description="Playwright timeout in milliseconds")
    browser_pool_size: int = Field(default=2, gt=0, description="Browser instance pool size")
    browser_launch_args: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_LAUNCH_ARGS), description="Browser launch flags"
    )
    pool_poll_interval: float = Field(
        default=0.1, gt=0, description="Fallback wake-up interval for pool waiters in seconds"
    )

    # Security Configuration
    allowed_hosts: Annotated[List[str], NoDecode] = Field(default=["*"], description="Allowed hosts for CORS")

    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = {"development", "testing", "production"}
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("template_extension")
    @classmethod
    def validate_template_extension(cls, v: str) -> str:
        """Normalise the extension to a leading dot."""
        v = v.strip()
        if not v:
            raise ValueError("Template extension cannot be empty")
        return v if v.startswith(".") else f".{v}"

    @field_validator("allowed_hosts", "browser_launch_args", mode="before")
    @classmethod
    def parse_string_list(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse list settings from a JSON string, a comma-separated string or a list."""
        if isinstance(v, str):
            # Handle JSON-like string: ["*"] or ["host1", "host2"]
            v = v.strip()
            if v.startswith("[") and v.endswith("]"):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            # Handle comma-separated string: "*" or "host1,host2"
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("templates_dir", "output_dir", "storage_path")
    @classmethod
    def create_directories(cls, v: Path) -> Path:
        """Ensure directories exist."""
        v.mkdir(parents=True, exist_ok=True)
        return v

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, env_prefix="COMPONENT_RENDER_"
    )


# Global settings instance - will be initialized when needed
settings = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global settings
    settings = Settings()
    return settings
