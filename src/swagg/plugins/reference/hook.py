"""Render a Markdown API reference from the visited document.

The hook collects plain dictionaries while the pipeline walks the document
and renders them in :meth:`ReferenceDocsHook.finish`:

1. A Jinja2 environment is configured with templates from
   ``plugins/reference/templates/``.
2. Schemas are listed with their properties, and parameters with their
   placement.
3. Operations are grouped by path template, in document order.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from swagg.models import (
    HTTPMethod,
    Operation,
    Parameter,
    Reference,
    Schema,
)
from swagg.plugins.base import Hook
from swagg.plugins.hooks import FinishContext, HookContext

TEMPLATE_DIR = Path(__file__).parent / "templates"
"""Path to the Jinja2 template directory (``plugins/reference/templates/``)."""

ARTIFACT_NAME = "API_REFERENCE.md"


def describe_type(value: Any) -> str:
    """Short human-readable type of a schema or reference."""
    if value is None:
        return "any"
    if isinstance(value, Reference):
        return value.ref.rsplit("/", 1)[-1]
    if value.python_type:
        return value.python_type
    if value.composition:
        return value.composition
    if value.enum is not None:
        return "enum"
    kind = value.primary_type
    if kind == "array":
        return f"array of {describe_type(value.items)}"
    if value.format:
        return f"{kind or 'string'} ({value.format})"
    return kind or ("object" if value.properties is not None else "any")


class ReferenceDocsHook(Hook):
    """Collects schemas, parameters and operations into ``API_REFERENCE.md``."""

    def __init__(self) -> None:
        self._schemas: list[dict[str, Any]] = []
        self._parameters: list[dict[str, Any]] = []
        self._routes: dict[str, list[dict[str, Any]]] = {}

    @property
    def name(self) -> str:
        return "reference-docs"

    @property
    def description(self) -> str:
        return "Render a Markdown API reference"

    def on_schema(self, name: str, schema: Schema, ctx: HookContext) -> None:
        required = set(schema.required)
        properties = [
            {
                "name": prop_name,
                "type": describe_type(prop),
                "required": prop_name in required,
                "description": getattr(prop, "description", None) or "",
            }
            for prop_name, prop in (schema.properties or {}).items()
        ]
        self._schemas.append(
            {
                "name": name,
                "type": describe_type(schema),
                "description": schema.description or "",
                "properties": properties,
                "values": [str(value) for value in schema.enum or []],
            }
        )

    def on_parameter(self, name: str, parameter: Parameter, ctx: HookContext) -> None:
        self._parameters.append(
            {
                "name": name,
                "wire_name": parameter.name,
                "location": parameter.location,
                "required": parameter.required,
                "type": describe_type(parameter.schema_),
                "description": parameter.description or "",
            }
        )

    def on_operation(
        self, method: HTTPMethod, path: str, operation: Operation, ctx: HookContext
    ) -> None:
        self._routes.setdefault(path, []).append(
            {
                "method": method.value.upper(),
                "operation_id": operation.operation_id or "",
                "summary": operation.summary or operation.description or "",
                "deprecated": operation.deprecated,
                "statuses": [entry.status for entry in operation.responses],
            }
        )

    def finish(self, ctx: FinishContext) -> None:
        env = _create_jinja_env()
        info = ctx.document.info
        text = env.get_template("api-reference.md.j2").render(
            title=info.title or "API",
            version=info.version,
            description=info.description or "",
            schemas=self._schemas,
            parameters=self._parameters,
            routes=self._routes,
        )
        ctx.register_artifact(ARTIFACT_NAME, text)


def _create_jinja_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(disabled_extensions=("md.j2",)),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
