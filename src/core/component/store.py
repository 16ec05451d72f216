"""
Template Store
==============

Read-only access to component templates kept in a directory.
"""

import asyncio
from pathlib import Path
from typing import Any, List, Union

from src.config.logging import get_logger
from src.core.component.parser import parse_component
from src.core.errors import TemplateNotFound, ValidationFailure
from src.models.schemas import ComponentDefinition

logger = get_logger(__name__)


class TemplateStore:
    """Template directory lookup, listing and loading."""

    def __init__(self, directory: Union[str, Path], extension: str = ".tmpl"):
        self.directory = Path(directory)
        self.extension = extension
        self.logger: Any = logger.bind(component="template_store", directory=str(self.directory))

    def ensure_directories(self) -> None:
        """Create the template directory if it is missing."""
        self.directory.mkdir(parents=True, exist_ok=True)

    def list_templates(self) -> List[str]:
        """Names of template files, sorted."""
        if not self.directory.is_dir():
            return []
        return sorted(
            entry.name
            for entry in self.directory.iterdir()
            if entry.is_file() and entry.name.endswith(self.extension)
        )

    def resolve(self, filename: str) -> Path:
        """
        Resolve a template name to a path inside the directory.

        Raises:
            ValidationFailure: If the name is empty or points outside the directory
            TemplateNotFound: If no such file exists
        """
        if not filename or not filename.strip():
            raise ValidationFailure("No template filename provided")

        root = self.directory.resolve()
        path = (root / filename).resolve()
        if root != path and root not in path.parents:
            raise ValidationFailure(f"Template path escapes the template directory: {filename}")

        if not path.is_file():
            raise TemplateNotFound(f"Template not found: {filename}")

        return path

    async def load(self, filename: str) -> ComponentDefinition:
        """Read and parse a template file."""
        path = self.resolve(filename)
        source = await asyncio.to_thread(path.read_text, encoding="utf-8")
        self.logger.debug("Loaded template", filename=filename, size=len(source))
        return parse_component(source, filename=filename)
