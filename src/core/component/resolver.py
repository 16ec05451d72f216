"""
Component Resolver
==================

Turn a parsed component definition and caller-supplied properties into a
render target: the template plus the exact data-binding scope it renders
against.

Scope rules (external properties always win):

- setup variant: the scope is exactly the caller properties.
- traditional variant: declared ``data`` defaults form the base scope. With
  no caller properties the ``setup`` bindings are merged on top; otherwise
  setup still runs but its result is discarded and the caller properties
  replace the declared values. ``computed`` values are evaluated last and
  never shadow a caller property.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple
import copy

import jinja2
from jinja2.exceptions import SecurityError
from jinja2.sandbox import SandboxedEnvironment

from src.config.logging import get_logger
from src.core.component.parser import parse_script_payload
from src.core.component.sandbox import create_sandbox
from src.core.errors import ParseFailure, RenderFailure
from src.models.schemas import ComponentDefinition, ComponentVariant, RenderContext

logger = get_logger(__name__)

ScopeBuilder = Callable[[ComponentDefinition, RenderContext], Tuple[Dict[str, Any], Tuple[str, ...]]]


@dataclass(frozen=True)
class RenderTarget:
    """A template bound to its final scope, ready for the compositor."""

    template: str
    scope: Mapping[str, Any]
    styles: Tuple[str, ...] = ()
    variant: ComponentVariant = ComponentVariant.TRADITIONAL
    name: Optional[str] = None
    discarded_setup: Tuple[str, ...] = ()


class ComponentResolver:
    """Resolve component definitions into render targets."""

    def __init__(self, environment: Optional[SandboxedEnvironment] = None) -> None:
        self.logger: Any = logger.bind(component="resolver")
        self.env = environment or create_sandbox(enable_async=False)
        self._builders: Dict[ComponentVariant, ScopeBuilder] = {
            ComponentVariant.SETUP: self._setup_scope,
            ComponentVariant.TRADITIONAL: self._traditional_scope,
        }

    def resolve(
        self, definition: ComponentDefinition, context: Optional[RenderContext] = None
    ) -> RenderTarget:
        """
        Build the render target for a definition.

        Args:
            definition: Parsed component definition
            context: Caller properties; empty when omitted

        Returns:
            RenderTarget with the final scope

        Raises:
            ParseFailure: If the script payload or one of its expressions is malformed
            RenderFailure: If evaluating a setup or computed expression raises
        """
        context = context or RenderContext()
        scope, discarded = self._builders[definition.variant](definition, context)

        self.logger.debug(
            "Resolved component scope",
            filename=definition.filename,
            variant=definition.variant.value,
            scope_keys=sorted(scope),
            external_keys=len(context.properties),
        )

        return RenderTarget(
            template=definition.template,
            scope=scope,
            styles=definition.styles,
            variant=definition.variant,
            name=definition.filename,
            discarded_setup=discarded,
        )

    def _setup_scope(
        self, definition: ComponentDefinition, context: RenderContext
    ) -> Tuple[Dict[str, Any], Tuple[str, ...]]:
        """Setup variant: the caller properties, nothing else."""
        return dict(context.properties), ()

    def _traditional_scope(
        self, definition: ComponentDefinition, context: RenderContext
    ) -> Tuple[Dict[str, Any], Tuple[str, ...]]:
        """Traditional variant: declared defaults overridden by caller properties."""
        declaration = parse_script_payload(definition.script_payload)
        setup_exprs = self._compile_all(declaration.setup, "setup")
        computed_exprs = self._compile_all(declaration.computed, "computed")

        scope: Dict[str, Any] = copy.deepcopy(declaration.data)

        setup_result: Dict[str, Any] = {}
        for name, expression in setup_exprs.items():
            setup_result[name] = self._evaluate(expression, {**scope, **setup_result}, name)

        discarded: Tuple[str, ...] = ()
        if context:
            # setup ran for its side effects only; external properties replace it
            discarded = tuple(setup_result)
            scope.update(context.properties)
        else:
            scope.update(setup_result)

        for name, expression in computed_exprs.items():
            if name in context.properties:
                continue
            scope[name] = self._evaluate(expression, scope, name)

        return scope, discarded

    def _compile_all(self, expressions: Dict[str, str], section: str) -> Dict[str, Any]:
        compiled: Dict[str, Any] = {}
        for name, source in expressions.items():
            try:
                compiled[name] = self.env.compile_expression(source, undefined_to_none=False)
            except jinja2.TemplateSyntaxError as e:
                raise ParseFailure(f"Invalid {section} expression for '{name}': {e}") from e
        return compiled

    def _evaluate(self, expression: Any, scope: Dict[str, Any], name: str) -> Any:
        try:
            value = expression(scope)
        except SecurityError as e:
            raise RenderFailure(f"Expression for '{name}' is not allowed: {e}") from e
        except Exception as e:
            raise RenderFailure(f"Evaluating '{name}' failed: {e}") from e
        if isinstance(value, jinja2.Undefined):
            return None
        return value


def resolve_component(
    definition: ComponentDefinition, properties: Optional[Dict[str, Any]] = None
) -> RenderTarget:
    """Convenience wrapper resolving with a fresh resolver."""
    return ComponentResolver().resolve(definition, RenderContext(properties=properties or {}))

