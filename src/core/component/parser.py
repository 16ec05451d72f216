"""
Component Parser
================

Split a component source file into its template, script and style sections
and validate the declarative script payload.

A component file looks like::

    <template>
      <h1>{{ title }}</h1>
    </template>

    <script>
    data:
      title: Untitled
    computed:
      heading: title | upper
    </script>

    <style>
    h1 { color: #333; }
    </style>

Using ``<script setup>`` instead of ``<script>`` selects the setup variant,
whose scope is built from caller properties only.
"""

from typing import Dict, List, Any, Optional, Tuple
import re
import yaml  # type: ignore[import-untyped]
from cerberus import Validator  # type: ignore[import-untyped]
from pydantic import BaseModel, Field

from src.config.logging import get_logger
from src.core.errors import ParseFailure
from src.models.schemas import ComponentDefinition, ComponentVariant

logger = get_logger(__name__)

IDENTIFIER = r"^[A-Za-z_][A-Za-z0-9_]*$"

_TEMPLATE_OPEN_RE = re.compile(r"<template(\s[^>]*)?>", re.IGNORECASE)
_TEMPLATE_CLOSE = "</template>"
_BLOCK_RE = re.compile(r"<(script|style)(\s[^>]*)?>(.*?)</\1\s*>", re.IGNORECASE | re.DOTALL)
_SETUP_ATTR_RE = re.compile(r"(^|\s)setup(\s|=|$)", re.IGNORECASE)


class ScriptDeclaration(BaseModel):
    """Declarative component behaviour taken from a ``<script>`` block."""

    name: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    setup: Dict[str, str] = Field(default_factory=dict)
    computed: Dict[str, str] = Field(default_factory=dict)


class ScriptValidator:
    """Cerberus validation of script payload documents."""

    def __init__(self) -> None:
        self.logger: Any = logger.bind(component="script_validator")
        expression_map = {
            "type": "dict",
            "default": {},
            "keysrules": {"type": "string", "regex": IDENTIFIER},
            "valuesrules": {"type": "string", "empty": False},
        }
        self.schema: Dict[str, Any] = {
            "name": {"type": "string", "nullable": True},
            "data": {
                "type": "dict",
                "default": {},
                "keysrules": {"type": "string", "regex": IDENTIFIER},
            },
            "setup": dict(expression_map),
            "computed": dict(expression_map),
        }

    def validate(self, data: Dict[str, Any]) -> Tuple[bool, Dict[str, Any], List[str]]:
        """
        Validate and normalise a script document.

        Returns:
            Tuple of (is_valid, normalized_document, errors)
        """
        validator = Validator(self.schema)  # type: ignore[misc]
        is_valid = validator.validate(data)  # type: ignore[misc]
        if not is_valid:
            return False, {}, self._format_errors(validator.errors)  # type: ignore[attr-defined]
        return True, validator.document, []  # type: ignore[attr-defined]

    def _format_errors(self, errors: Any, path: str = "") -> List[str]:
        """Flatten Cerberus errors into readable messages."""
        formatted: List[str] = []
        for field, error_info in errors.items():
            current_path = f"{path}.{field}" if path else str(field)
            if isinstance(error_info, list):
                for error in error_info:
                    if isinstance(error, dict):
                        formatted.extend(self._format_errors(error, current_path))
                    else:
                        formatted.append(f"{current_path}: {error}")
            elif isinstance(error_info, dict):
                formatted.extend(self._format_errors(error_info, current_path))
        return formatted


_script_validator: Optional[ScriptValidator] = None


def parse_script_payload(payload: str) -> ScriptDeclaration:
    """
    Parse a traditional ``<script>`` payload into a ScriptDeclaration.

    Args:
        payload: Raw YAML text of the script section

    Returns:
        Validated declaration; empty when the payload is blank

    Raises:
        ParseFailure: If the payload is not valid YAML or breaks the schema
    """
    global _script_validator

    if not payload or not payload.strip():
        return ScriptDeclaration()

    try:
        raw = yaml.safe_load(payload)
    except yaml.YAMLError as e:
        raise ParseFailure(f"Invalid script payload: {e}") from e

    if raw is None:
        return ScriptDeclaration()
    if not isinstance(raw, dict):
        raise ParseFailure(f"Script payload must be a mapping, got {type(raw).__name__}")

    if _script_validator is None:
        _script_validator = ScriptValidator()

    is_valid, document, errors = _script_validator.validate(raw)
    if not is_valid:
        raise ParseFailure(f"Invalid script payload: {'; '.join(errors)}")

    return ScriptDeclaration(**document)


def _split_template(source: str) -> Tuple[str, str]:
    """Return (template content, source with the template section removed)."""
    opening = _TEMPLATE_OPEN_RE.search(source)
    if opening is None:
        raise ParseFailure("Component has no <template> section")

    closing = source.lower().rfind(_TEMPLATE_CLOSE)
    if closing < opening.end():
        raise ParseFailure("Unterminated <template> section")

    template = source[opening.end():closing]
    remainder = source[: opening.start()] + source[closing + len(_TEMPLATE_CLOSE):]
    return template, remainder


def parse_component(source: str, filename: Optional[str] = None) -> ComponentDefinition:
    """
    Parse component source into a ComponentDefinition.

    Args:
        source: Full component file content
        filename: Optional name used in log and error messages

    Returns:
        Immutable component definition

    Raises:
        ParseFailure: If the source has no template or repeats a script block
    """
    log = logger.bind(filename=filename)
    template, remainder = _split_template(source)

    script: Optional[str] = None
    script_setup: Optional[str] = None
    styles: List[str] = []

    for match in _BLOCK_RE.finditer(remainder):
        tag = match.group(1).lower()
        attrs = match.group(2) or ""
        content = match.group(3)

        if tag == "style":
            styles.append(content)
        elif _SETUP_ATTR_RE.search(attrs):
            if script_setup is not None:
                raise ParseFailure(f"{filename or 'component'}: more than one <script setup> block")
            script_setup = content
        else:
            if script is not None:
                raise ParseFailure(f"{filename or 'component'}: more than one <script> block")
            script = content

    if script_setup is not None:
        variant = ComponentVariant.SETUP
        payload = script_setup
    else:
        variant = ComponentVariant.TRADITIONAL
        payload = script or ""

    log.debug(
        "Parsed component source",
        variant=variant.value,
        template_length=len(template),
        style_blocks=len(styles),
    )

    return ComponentDefinition(
        template=template.strip(),
        styles=tuple(style.strip() for style in styles),
        variant=variant,
        script_payload=payload,
        filename=filename,
    )
