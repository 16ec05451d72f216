"""
Service Errors
==============

Failure taxonomy shared by the parser, resolver, compositor, browser pool
and capture pipeline. The API layer maps each kind to an HTTP status.
"""


class RenderServiceError(Exception):
    """Base class for all service failures."""

    error_code = "RENDER_SERVICE_ERROR"


class ValidationFailure(RenderServiceError):
    """Missing or unusable input (e.g. no filename, path outside the template directory)."""

    error_code = "VALIDATION_FAILED"


class TemplateNotFound(ValidationFailure):
    """Requested template file does not exist."""

    error_code = "TEMPLATE_NOT_FOUND"


class ParseFailure(RenderServiceError):
    """Component source or script payload is malformed."""

    error_code = "PARSE_FAILED"


class RenderFailure(RenderServiceError):
    """Server-side template rendering raised."""

    error_code = "RENDER_FAILED"


class LaunchFailure(RenderServiceError):
    """Browser process failed to start."""

    error_code = "BROWSER_LAUNCH_FAILED"


class CaptureFailure(RenderServiceError):
    """Navigation or screenshot step failed."""

    error_code = "CAPTURE_FAILED"


class HealthCheckFailure(RenderServiceError):
    """Cached browser instance is no longer usable."""

    error_code = "HEALTH_CHECK_FAILED"
