"""Abstract base class for swagg hooks.

Every hook must subclass :class:`Hook` and implement the :attr:`name`
property. The traversal callbacks are optional -- default implementations
are no-ops so hooks only override what they need.

Hooks are observers: each receives an immutable
:class:`~swagg.plugins.hooks.HookContext` and keeps whatever it
accumulates on ``self``. The only way to hand something back to the caller
is :meth:`~swagg.plugins.hooks.FinishContext.register_artifact` during
:meth:`Hook.finish`.

Third-party hooks are registered as entry points in the ``swagg.hooks``
group and discovered at runtime by
:class:`~swagg.plugins.manager.HookManager`.

Example:
    Minimal hook implementation::

        class CountSchemas(Hook):
            def __init__(self):
                self.count = 0

            @property
            def name(self) -> str:
                return "count-schemas"

            def on_schema(self, name, schema, ctx):
                self.count += 1

            def finish(self, ctx):
                ctx.register_artifact("schemas.txt", f"{self.count}\\n")
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from swagg.models import (
    Header,
    HTTPMethod,
    ItemKind,
    Operation,
    Parameter,
    RequestBody,
    Response,
    SecurityScheme,
    Schema,
)

if TYPE_CHECKING:
    from swagg.plugins.hooks import FinishContext, HookContext


class Hook(ABC):
    """Base class for all swagg hooks.

    Subclasses must implement the :attr:`name` property. The
    :class:`~swagg.plugins.hooks.VisitorPipeline` calls the callbacks in
    this order:

    1. :meth:`pre_components`
    2. :meth:`on_item` for every component, by kind (security schemes,
       responses, parameters, request bodies, headers, schemas) and then
       declaration order. The default implementation forwards to the
       kind-specific ``on_*`` method.
    3. :meth:`post_components`
    4. :meth:`pre_paths`
    5. :meth:`on_operation` for every path in document order and every
       method in the order GET, PUT, POST, DELETE, OPTIONS, HEAD, PATCH, TRACE.
    6. :meth:`post_paths`
    7. :meth:`finish`

    Items are passed already resolved: a component declared as a ``$ref``
    arrives as the item at the end of its alias chain.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the unique hook name used for discovery and logging."""
        ...

    @property
    def version(self) -> str:
        return "0.1.0"

    @property
    def description(self) -> str:
        return ""

    def pre_components(self, ctx: HookContext) -> None:
        """Called once before any component is visited."""

    def on_item(self, kind: ItemKind, name: str, item: Any, ctx: HookContext) -> None:
        """Called for every declared component.

        Override this to see every kind in one place; otherwise override the
        kind-specific callbacks below.
        """
        handlers = {
            ItemKind.SECURITY_SCHEMES: self.on_security_scheme,
            ItemKind.RESPONSES: self.on_response,
            ItemKind.PARAMETERS: self.on_parameter,
            ItemKind.REQUEST_BODIES: self.on_request_body,
            ItemKind.HEADERS: self.on_header,
            ItemKind.SCHEMAS: self.on_schema,
        }
        handlers[kind](name, item, ctx)

    def on_security_scheme(self, name: str, scheme: SecurityScheme, ctx: HookContext) -> None:
        pass

    def on_response(self, name: str, response: Response, ctx: HookContext) -> None:
        pass

    def on_parameter(self, name: str, parameter: Parameter, ctx: HookContext) -> None:
        pass

    def on_request_body(self, name: str, body: RequestBody, ctx: HookContext) -> None:
        pass

    def on_header(self, name: str, header: Header, ctx: HookContext) -> None:
        pass

    def on_schema(self, name: str, schema: Schema, ctx: HookContext) -> None:
        pass

    def post_components(self, ctx: HookContext) -> None:
        """Called once after the last component."""

    def pre_paths(self, ctx: HookContext) -> None:
        """Called once before the first operation."""

    def on_operation(
        self, method: HTTPMethod, path: str, operation: Operation, ctx: HookContext
    ) -> None:
        """Called for every operation."""

    def post_paths(self, ctx: HookContext) -> None:
        """Called once after the last operation."""

    def finish(self, ctx: FinishContext) -> None:
        """Called once at the end; register output artifacts here.

        Args:
            ctx: Context whose
                :meth:`~swagg.plugins.hooks.FinishContext.register_artifact`
                adds a named artifact to the generation result.
        """
