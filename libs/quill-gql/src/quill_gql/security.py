"""Operation guards: introspection control and query depth limiting."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from graphql import GraphQLSyntaxError
from graphql import parse as gql_parse
from pydantic import BaseModel, Field
from strawberry.extensions import SchemaExtension

if TYPE_CHECKING:
    from strawberry.types import ExecutionContext

logger = logging.getLogger(__name__)


class GraphQLSecurityConfig(BaseModel):
    """Security settings applied to every GraphQL operation."""

    introspection_enabled: bool = Field(
        default=True,
        description="Allow introspection queries. Disable in production.",
    )
    max_query_depth: int = Field(
        default=8,
        ge=1,
        description="Maximum allowed nesting depth for queries.",
    )

    model_config = {"extra": "forbid"}


class IntrospectionControlExtension(SchemaExtension):
    """Rejects operations that mention ``__schema`` or ``__type`` when disabled."""

    def __init__(self, *, enabled: bool = True, **kwargs: Any) -> None:
        self._enabled = enabled
        super().__init__(**kwargs)

    def on_operation(self) -> Any:
        execution_context: ExecutionContext = self.execution_context
        query = execution_context.query
        if not self._enabled and query and ("__schema" in query or "__type" in query):
            logger.warning("Introspection query blocked", extra={"event": "introspection_blocked"})
            raise PermissionError("Introspection is disabled.")
        yield


def _measure_depth(node: Any, current: int = 0) -> int:
    """Return the deepest selection nesting below *node*."""
    selection_set = getattr(node, "selection_set", None)
    if selection_set is None or not selection_set.selections:
        return current
    return max(_measure_depth(selection, current + 1) for selection in selection_set.selections)


class QueryDepthExtension(SchemaExtension):
    """Rejects operations nested deeper than ``max_depth``.

    Blog data is cyclic (a post's author's posts' comments' author...),
    so an unbounded query could fan out across the whole database.
    """

    def __init__(self, *, max_depth: int = 8, **kwargs: Any) -> None:
        self._max_depth = max_depth
        super().__init__(**kwargs)

    def on_operation(self) -> Any:
        execution_context: ExecutionContext = self.execution_context
        if execution_context.query:
            try:
                document = gql_parse(execution_context.query)
            except GraphQLSyntaxError:
                # Reported by the normal parse step.
                yield
                return
            for definition in document.definitions:
                depth = _measure_depth(definition)
                if depth > self._max_depth:
                    logger.warning(
                        "Query depth %d exceeds limit %d",
                        depth,
                        self._max_depth,
                        extra={"event": "query_depth_exceeded"},
                    )
                    raise PermissionError(f"Query depth {depth} exceeds maximum allowed depth of {self._max_depth}.")
        yield


def build_security_extensions(config: GraphQLSecurityConfig | None = None) -> list[type[SchemaExtension]]:
    """Return configured extension classes for ``strawberry.Schema(extensions=...)``."""
    config = config or GraphQLSecurityConfig()
    return [
        _make_extension_factory(IntrospectionControlExtension, enabled=config.introspection_enabled),
        _make_extension_factory(QueryDepthExtension, max_depth=config.max_query_depth),
    ]


def _make_extension_factory(cls: type[SchemaExtension], **kwargs: Any) -> type[SchemaExtension]:
    """Subclass *cls* so Strawberry can instantiate it with bound settings."""

    class _Configured(cls):  # type: ignore[valid-type, misc]
        def __init__(self, **init_kwargs: Any) -> None:
            super().__init__(**{**kwargs, **init_kwargs})

    _Configured.__name__ = f"{cls.__name__}Configured"
    _Configured.__qualname__ = _Configured.__name__
    return _Configured
