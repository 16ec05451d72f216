"""
Template Sandbox
================

Sandboxed Jinja2 environments shared by the resolver (expressions) and the
HTML compositor (templates). Undefined bindings render as empty values and
are reported as warnings instead of failing the render. Templates cannot
mutate the values they are given.
"""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator, List, Optional

import jinja2
from jinja2.sandbox import ImmutableSandboxedEnvironment, SandboxedEnvironment

from src.config.logging import get_logger

logger = get_logger(__name__)

_binding_warnings: ContextVar[Optional[List[str]]] = ContextVar("binding_warnings", default=None)


class BindingWarningLog:
    """Logger adapter for ``jinja2.make_logging_undefined``."""

    def __init__(self) -> None:
        self.logger: Any = logger.bind(component="template_sandbox")

    def _record(self, message: str) -> None:
        collected = _binding_warnings.get()
        if collected is not None and message not in collected:
            collected.append(message)

    def warning(self, msg: str, *args: Any) -> None:
        message = msg % args if args else msg
        self._record(message)
        self.logger.warning("Template binding warning", detail=message)

    def error(self, msg: str, *args: Any) -> None:
        message = msg % args if args else msg
        self.logger.error("Template binding error", detail=message)


BindingUndefined = jinja2.make_logging_undefined(
    logger=BindingWarningLog(),  # type: ignore[arg-type]
    base=jinja2.ChainableUndefined,
)


def create_sandbox(enable_async: bool = False) -> SandboxedEnvironment:
    """
    Create a sandboxed environment.

    Args:
        enable_async: Build an environment whose templates render with ``render_async``

    Returns:
        Configured SandboxedEnvironment
    """
    return ImmutableSandboxedEnvironment(
        autoescape=True,
        enable_async=enable_async,
        undefined=BindingUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=False,
    )


@contextmanager
def collect_binding_warnings() -> Iterator[List[str]]:
    """Collect binding warnings raised while the block runs."""
    warnings: List[str] = []
    token = _binding_warnings.set(warnings)
    try:
        yield warnings
    finally:
        _binding_warnings.reset(token)
