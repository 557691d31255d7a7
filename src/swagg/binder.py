"""Bind operations to the component graph.

For every operation, in path order and fixed method order, the binder
produces a :class:`~swagg.models.BoundOperation`: the method and path
template, the request body component, one
:class:`~swagg.models.StatusVariant` per declared response, and the query
parameters. :func:`group_routes` then folds operations sharing a path into
one :class:`~swagg.models.RouteScope`.

Parameter merging follows the OpenAPI specification: path-level parameters
provide defaults, and operation-level parameters override them when they
share the same ``name`` and ``in`` values.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from swagg.exceptions import (
    DuplicateStatusError,
    NameCollisionError,
    UnnamedParameterSchemaError,
)
from swagg.highway.graph import ComponentGraph
from swagg.models import (
    BoundOperation,
    ContentType,
    Document,
    HTTPMethod,
    ItemKind,
    Operation,
    Parameter,
    PathItem,
    QueryParam,
    Reference,
    Response,
    ResponseEntry,
    RouteScope,
    StatusVariant,
    payload_media,
)
from swagg.naming import operation_name, status_label, to_function_name, to_type_name
from swagg.parser.resolver import ref_name, resolve, resolve_item

logger = logging.getLogger(__name__)


def bind(document: Document, graph: ComponentGraph) -> list[BoundOperation]:
    """Bind every operation of *document* against *graph*.

    Raises:
        DuplicateStatusError: If an operation declares a variant label twice.
        UnnamedParameterSchemaError: If a query parameter is not a ``$ref``
            to a built parameter component.
        NameCollisionError: If two operations map to the same method name.
        ResolutionError: If a ``$ref`` cannot be resolved.
    """
    return OperationBinder(document, graph).bind()


def group_routes(operations: list[BoundOperation]) -> list[RouteScope]:
    """Group *operations* by path template, in first-seen order."""
    scopes: dict[str, list[BoundOperation]] = {}
    for operation in operations:
        scopes.setdefault(operation.path, []).append(operation)
    return [RouteScope(path=path, operations=tuple(ops)) for path, ops in scopes.items()]


def labelled_responses(
    document: Document, op_name: str, operation: Operation
) -> list[tuple[ResponseEntry, Response, str]]:
    """Resolve each declared response and compute its variant label.

    Returns:
        ``(entry, resolved_response, label)`` triples in declared order.

    Raises:
        DuplicateStatusError: If two responses end up with the same label.
    """
    labelled = []
    seen: set[str] = set()
    for entry in operation.responses:
        override = None
        if isinstance(entry.response, Reference):
            override = entry.response.variant_name
        response = resolve_item(entry.response, ItemKind.RESPONSES, document)
        label = status_label(entry.status, override or response.variant_name)
        if label in seen:
            raise DuplicateStatusError(op_name, entry.status, label)
        seen.add(label)
        labelled.append((entry, response, label))
    return labelled


def _merge_parameters(
    document: Document, path_params: list[Any], op_params: list[Any]
) -> list[tuple[Any, Parameter]]:
    """Merge path-level and operation-level parameters.

    Returns:
        ``(declared, resolved)`` pairs; *declared* is the original
        parameter or :class:`~swagg.models.Reference`.
    """

    def resolved(values: list[Any]) -> list[tuple[Any, Parameter]]:
        return [(value, resolve_item(value, ItemKind.PARAMETERS, document)) for value in values]

    operation_level = resolved(op_params)
    overridden = {(param.name, param.location) for _, param in operation_level}
    merged = [
        (value, param)
        for value, param in resolved(path_params)
        if (param.name, param.location) not in overridden
    ]
    merged.extend(operation_level)
    return merged


class OperationBinder:
    """Single-use binder; call :meth:`bind` once."""

    def __init__(self, document: Document, graph: ComponentGraph):
        self._document = document
        self._graph = graph

    def bind(self) -> list[BoundOperation]:
        operations = []
        taken: dict[str, str] = {}
        for path, item in self._document.paths.items():
            for method, operation in item.operations():
                bound = self._bind_operation(path, item, method, operation)
                where = f"{method.value.upper()} {path}"
                identifier = to_function_name(bound.name)
                if identifier in taken:
                    raise NameCollisionError(where, taken[identifier], identifier)
                taken[identifier] = where
                operations.append(bound)
        logger.debug("Bound %d operations", len(operations))
        return operations

    def _bind_operation(
        self, path: str, item: PathItem, method: HTTPMethod, operation: Operation
    ) -> BoundOperation:
        name = operation_name(method, path, operation.operation_id)
        request_body, request_content_type = self._request_body(name, operation)
        return BoundOperation(
            name=name,
            method=method,
            path=path,
            request_body=request_body,
            request_content_type=request_content_type,
            responses=tuple(self._variants(name, operation)),
            query_params=tuple(self._query_params(name, item, operation)),
            summary=operation.summary,
            description=operation.description,
        )

    def _request_body(
        self, op_name: str, operation: Operation
    ) -> tuple[Optional[str], Optional[ContentType]]:
        body = operation.request_body
        if body is None:
            return None, None
        if isinstance(body, Reference):
            name = ref_name(body.ref, ItemKind.REQUEST_BODIES)
            media = payload_media(resolve(body.ref, ItemKind.REQUEST_BODIES, self._document).content)
        else:
            media = payload_media(body.content)
            if media is not None:
                name = self._payload_name(media[1], f"{to_type_name(op_name)}RequestBody")
        if media is None:
            return None, None
        return self._present(name, media[0])

    def _variants(self, op_name: str, operation: Operation) -> list[StatusVariant]:
        variants = []
        op_type = to_type_name(op_name)
        for entry, response, label in labelled_responses(self._document, op_name, operation):
            payload: Optional[str] = None
            content_type: Optional[ContentType] = None
            media = payload_media(response.content)
            if media is not None:
                if isinstance(entry.response, Reference):
                    name = ref_name(entry.response.ref, ItemKind.RESPONSES)
                else:
                    name = self._payload_name(media[1], f"{op_type}{label}")
                payload, content_type = self._present(name, media[0])
            variants.append(
                StatusVariant(
                    status=entry.status,
                    label=label,
                    payload=payload,
                    content_type=content_type,
                    description=response.description,
                )
            )
        return variants

    def _query_params(
        self, op_name: str, item: PathItem, operation: Operation
    ) -> list[QueryParam]:
        params = []
        for declared, parameter in _merge_parameters(
            self._document, item.parameters, operation.parameters
        ):
            if parameter.location != "query":
                continue
            if not isinstance(declared, Reference):
                raise UnnamedParameterSchemaError(op_name, parameter.name)
            name = ref_name(declared.ref, ItemKind.PARAMETERS)
            if self._graph.kind_of(name) != ItemKind.PARAMETERS:
                raise UnnamedParameterSchemaError(op_name, parameter.name)
            params.append(
                QueryParam(
                    wire_name=parameter.name,
                    required=parameter.required,
                    description=parameter.description,
                    type_ref=name,
                )
            )
        return params

    def _payload_name(self, schema: Any, synthesized: str) -> str:
        """Component name carrying *schema*: its ``$ref`` target or *synthesized*."""
        if isinstance(schema, Reference):
            resolve(schema.ref, ItemKind.SCHEMAS, self._document)
            return ref_name(schema.ref, ItemKind.SCHEMAS)
        return synthesized

    def _present(
        self, name: str, content_type: ContentType
    ) -> tuple[Optional[str], Optional[ContentType]]:
        if name not in self._graph:
            logger.debug("Payload component '%s' was skipped; binding without payload", name)
            return None, None
        return name, content_type
