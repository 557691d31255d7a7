"""Build the component graph from a document.

The builder walks declared components (parameters, request bodies,
responses, schemas, in that order and each in declaration order) and then
the inline request and response bodies of every operation. Each top-level
item becomes exactly one :data:`~swagg.models.NamedComponent`; anonymous
objects and string enums nested in field position are promoted to their own
components named ``Pascal(parent) + Pascal(field)``.

Shapes outside the supported subset are reported as
:class:`~swagg.models.BuildWarning` and the whole top-level component is
skipped, together with anything promoted from it. Components that end up
referencing a skipped component are skipped in turn.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError

from swagg.exceptions import NameCollisionError
from swagg.highway.graph import ComponentGraph, NameRegistry
from swagg.models import (
    AliasComponent,
    ArrayComponent,
    ArrayOf,
    BuildWarning,
    ComponentField,
    ComponentRef,
    Document,
    EnumComponent,
    EnumVariant,
    FieldType,
    GraphEntry,
    ItemKind,
    MediaType,
    NamedComponent,
    NativeType,
    ObjectComponent,
    Passthrough,
    Reference,
    Scalar,
    ScalarComponent,
    ScalarKind,
    Schema,
    WarningCode,
    payload_media,
)
from swagg.naming import (
    is_blank,
    operation_name,
    to_field_name,
    to_type_name,
    to_variant_name,
)
from swagg.parser.resolver import ref_name, resolve, resolve_item

logger = logging.getLogger(__name__)

MAX_ARRAY_DEPTH = 8
"""Deepest ``array`` of ``array`` nesting accepted in a single schema."""


class _Unsupported(Exception):
    """Raised inside a component conversion to skip the whole component."""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class _Scope:
    """Names and entries produced while converting one top-level component."""

    def __init__(self, kind: ItemKind):
        self.kind = kind
        self.names: list[str] = []
        self.entries: list[Optional[GraphEntry]] = []


def build(document: Document) -> tuple[ComponentGraph, list[BuildWarning]]:
    """Build the component graph for *document*.

    Returns:
        The read-only graph and the warnings collected along the way.

    Raises:
        NameCollisionError: If two components map to the same type name.
        ResolutionError: If a ``$ref`` inside a schema cannot be resolved.
        DuplicateStatusError: If an operation declares a variant label twice.
    """
    return ComponentGraphBuilder(document).build()


class ComponentGraphBuilder:
    """Single-use builder; call :meth:`build` once per document."""

    def __init__(self, document: Document):
        self._document = document
        self._registry = NameRegistry()
        self._entries: list[GraphEntry] = []
        self._families: dict[str, list[str]] = {}
        self._warnings: list[BuildWarning] = []

    def build(self) -> tuple[ComponentGraph, list[BuildWarning]]:
        components = self._document.components
        for name, parameter in components.parameters.items():
            self._add(ItemKind.PARAMETERS, name, self._parameter_builder(name, parameter))
        for name, body in components.request_bodies.items():
            self._add_body(ItemKind.REQUEST_BODIES, name, body)
        for name, response in components.responses.items():
            self._add_body(ItemKind.RESPONSES, name, response)
        for name, schema in components.schemas.items():
            self._add(ItemKind.SCHEMAS, name, self._schema_builder(name, schema))
        self._add_operation_bodies()
        self._drop_dangling()

        logger.debug(
            "Built %d components with %d warnings", len(self._entries), len(self._warnings)
        )
        return ComponentGraph(self._entries), list(self._warnings)

    # ------------------------------------------------------------------ #
    # Top-level items
    # ------------------------------------------------------------------ #

    def _add(
        self,
        kind: ItemKind,
        name: str,
        convert: Callable[[_Scope], NamedComponent],
    ) -> None:
        """Convert one top-level item, committing it only if it is supported."""
        scope = _Scope(kind)
        self._note_blank(name, name)
        try:
            self._claim(scope, name)
            component = convert(scope)
        except _Unsupported as exc:
            for claimed in scope.names:
                self._registry.release(claimed)
            self._warn(WarningCode.UNSUPPORTED, name, exc.detail)
            return

        family = [GraphEntry(kind=kind, component=component)]
        family.extend(entry for entry in scope.entries if entry is not None)
        self._entries.extend(family)
        self._families[name] = [entry.component.name for entry in family]
        logger.debug("Built %s component '%s' (%s)", kind.value, name, component.kind)

    def _parameter_builder(self, name: str, value: Any) -> Callable[[_Scope], NamedComponent]:
        def convert(scope: _Scope) -> NamedComponent:
            if isinstance(value, Reference):
                return self._alias_to(name, value, ItemKind.PARAMETERS)
            schema = value.schema_
            if schema is None and value.content:
                schema = self._media_schema(value.content)
            if schema is None:
                raise _Unsupported("parameter declares no schema")
            return self._component(name, schema, value.description, scope)

        return convert

    def _schema_builder(self, name: str, value: Any) -> Callable[[_Scope], NamedComponent]:
        return lambda scope: self._component(name, value, None, scope)

    def _add_body(self, kind: ItemKind, name: str, value: Any) -> None:
        """Add a declared request body or response.

        Bodies without a JSON or form-encoded schema carry no payload and
        build no component, the same as their inline counterparts.
        """
        target = resolve_item(value, kind, self._document)
        schema = self._media_schema(target.content)
        if schema is None:
            logger.debug("%s '%s' has no JSON or form payload; no component built", kind.value, name)
            return
        if isinstance(value, Reference):
            self._add(kind, name, lambda scope: self._alias_to(name, value, kind))
            return
        self._add(kind, name, self._payload_builder(name, schema, value.description))

    def _payload_builder(
        self, name: str, schema: Union[Reference, Schema], description: Optional[str]
    ) -> Callable[[_Scope], NamedComponent]:
        return lambda scope: self._component(name, schema, description, scope)

    def _add_operation_bodies(self) -> None:
        """Promote inline request and response schemas of every operation."""
        from swagg.binder import labelled_responses

        for path, item in self._document.paths.items():
            for method, operation in item.operations():
                op_name = operation_name(method, path, operation.operation_id)
                op_type = to_type_name(op_name)

                body = operation.request_body
                if body is not None and not isinstance(body, Reference):
                    schema = self._media_schema(body.content)
                    if schema is not None and not isinstance(schema, Reference):
                        self._add(
                            ItemKind.REQUEST_BODIES,
                            f"{op_type}RequestBody",
                            self._payload_builder(f"{op_type}RequestBody", schema, body.description),
                        )

                for entry, response, label in labelled_responses(
                    self._document, op_name, operation
                ):
                    if isinstance(entry.response, Reference):
                        continue
                    schema = self._media_schema(response.content)
                    if schema is None or isinstance(schema, Reference):
                        continue
                    synthesized = f"{op_type}{label}"
                    self._add(
                        ItemKind.RESPONSES,
                        synthesized,
                        self._payload_builder(synthesized, schema, response.description),
                    )

    # ------------------------------------------------------------------ #
    # Schema conversion
    # ------------------------------------------------------------------ #

    def _component(
        self,
        name: str,
        value: Union[Reference, Schema],
        description: Optional[str],
        scope: _Scope,
    ) -> NamedComponent:
        if isinstance(value, Reference):
            target = self._schema_ref(value.ref)
            return AliasComponent(
                name=name,
                description=description or value.description,
                target=ComponentRef(name=target),
            )

        schema = value
        self._check_supported(schema)
        description = schema.description or description

        if schema.python_type:
            return AliasComponent(
                name=name, description=description, target=self._passthrough(schema.python_type)
            )
        if schema.enum is not None:
            return EnumComponent(
                name=name, description=description, variants=self._variants(name, schema)
            )
        if self._is_object(schema):
            return ObjectComponent(
                name=name, description=description, fields=self._fields(name, schema, scope)
            )
        if schema.primary_type == "array":
            array = self._field_type(name, "", schema, scope, depth=0)
            assert isinstance(array, ArrayOf)
            return ArrayComponent(name=name, description=description, item=array.item)
        return ScalarComponent(name=name, description=description, scalar=self._scalar(schema))

    def _fields(self, owner: str, schema: Schema, scope: _Scope) -> tuple[ComponentField, ...]:
        if schema.properties is None:
            raise _Unsupported("free-form object without properties")

        fields = []
        taken: dict[str, str] = {}
        for wire_name, prop in schema.properties.items():
            self._note_blank(f"{owner}.{wire_name}", wire_name)
            field_name = to_field_name(wire_name)
            if field_name in taken:
                raise NameCollisionError(
                    f"{owner}.{wire_name}", f"{owner}.{taken[field_name]}", field_name
                )
            taken[field_name] = wire_name
            fields.append(
                ComponentField(
                    wire_name=wire_name,
                    required=wire_name in schema.required,
                    description=prop.description,
                    type=self._field_type(owner, wire_name, prop, scope, depth=0),
                )
            )
        return tuple(fields)

    def _field_type(
        self,
        owner: str,
        label: str,
        value: Union[Reference, Schema],
        scope: _Scope,
        depth: int,
    ) -> FieldType:
        if isinstance(value, Reference):
            return ComponentRef(name=self._schema_ref(value.ref))

        self._check_supported(value)
        if value.python_type:
            return self._passthrough(value.python_type)
        if value.enum is not None or self._is_object(value):
            return ComponentRef(name=self._promote(to_type_name(f"{owner} {label}"), value, scope))
        if value.primary_type == "array":
            if depth >= MAX_ARRAY_DEPTH:
                raise _Unsupported(f"arrays nested deeper than {MAX_ARRAY_DEPTH} levels")
            if value.items is None:
                raise _Unsupported("array without items")
            item = self._field_type(owner, f"{label} item", value.items, scope, depth + 1)
            return ArrayOf(item=item)
        return NativeType(scalar=self._scalar(value))

    def _promote(self, name: str, schema: Schema, scope: _Scope) -> str:
        self._claim(scope, name)
        slot = len(scope.entries)
        scope.entries.append(None)
        component = self._component(name, schema, None, scope)
        scope.entries[slot] = GraphEntry(kind=scope.kind, component=component)
        return name

    def _variants(self, name: str, schema: Schema) -> tuple[EnumVariant, ...]:
        values = schema.enum or []
        if not values:
            raise _Unsupported("enum without values")
        if not all(isinstance(value, str) for value in values):
            raise _Unsupported("only string enums are supported")

        descriptions = schema.enum_descriptions
        variants = []
        taken: dict[str, str] = {}
        for index, value in enumerate(values):
            self._note_blank(f"{name}.{value}", value)
            member = to_variant_name(value)
            if member in taken:
                raise NameCollisionError(f"{name}.{value}", f"{name}.{taken[member]}", member)
            taken[member] = value
            if isinstance(descriptions, dict):
                description = descriptions.get(value)
            elif isinstance(descriptions, list) and index < len(descriptions):
                description = descriptions[index]
            else:
                description = None
            variants.append(EnumVariant(wire_name=value, description=description))
        return tuple(variants)

    @staticmethod
    def _scalar(schema: Schema) -> Scalar:
        schema_type = schema.primary_type
        if schema_type is None:
            raise _Unsupported("schema declares no type")
        try:
            kind = ScalarKind(schema_type)
        except ValueError:
            raise _Unsupported(f"type '{schema_type}' is not supported") from None
        return Scalar(kind=kind, format=schema.format)

    @staticmethod
    def _passthrough(path: str) -> Passthrough:
        try:
            return Passthrough(path=path)
        except ValidationError:
            raise _Unsupported(f"x-python-type '{path}' is not a dotted identifier") from None

    @staticmethod
    def _is_object(schema: Schema) -> bool:
        schema_type = schema.primary_type
        return schema_type == "object" or (schema_type is None and schema.properties is not None)

    @staticmethod
    def _check_supported(schema: Schema) -> None:
        keyword = schema.composition
        if keyword is not None:
            raise _Unsupported(f"composition keyword '{keyword}' is not supported")
        if schema.format == "binary":
            raise _Unsupported("binary payloads are not supported")

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _schema_ref(self, ref: str) -> str:
        """Validate that *ref* resolves and return the name it points at."""
        resolve(ref, ItemKind.SCHEMAS, self._document)
        return ref_name(ref, ItemKind.SCHEMAS)

    def _alias_to(self, name: str, value: Reference, kind: ItemKind) -> AliasComponent:
        resolve_item(value, kind, self._document)
        return AliasComponent(
            name=name,
            description=value.description,
            target=ComponentRef(name=ref_name(value.ref, kind)),
        )

    @staticmethod
    def _media_schema(content: dict[str, MediaType]) -> Optional[Union[Reference, Schema]]:
        """Schema of the first JSON or form-encoded media type, if any."""
        media = payload_media(content)
        return media[1] if media is not None else None

    def _claim(self, scope: _Scope, name: str) -> None:
        self._registry.register(name)
        scope.names.append(name)

    def _note_blank(self, name: str, wire_name: str) -> None:
        if is_blank(wire_name):
            self._warn(
                WarningCode.EMPTY_NAME,
                name,
                f"wire name {wire_name!r} has no identifier characters; using a placeholder",
            )

    def _warn(self, code: WarningCode, name: str, detail: str) -> None:
        warning = BuildWarning(code=code, name=name, detail=detail)
        logger.warning("%s", warning)
        self._warnings.append(warning)

    def _drop_dangling(self) -> None:
        """Skip every family that references a component no longer in the graph."""
        while True:
            present = {entry.component.name for entry in self._entries}
            broken: dict[str, str] = {}
            for root, members in self._families.items():
                for entry in self._entries:
                    if entry.component.name not in members:
                        continue
                    missing = next(
                        (ref for ref in _references(entry.component) if ref not in present),
                        None,
                    )
                    if missing is not None:
                        broken[root] = missing
                        break
            if not broken:
                return
            for root, missing in broken.items():
                members = self._families.pop(root)
                self._entries = [e for e in self._entries if e.component.name not in members]
                for member in members:
                    self._registry.release(member)
                self._warn(
                    WarningCode.UNSUPPORTED,
                    root,
                    f"references skipped component '{missing}'",
                )


def _references(component: NamedComponent) -> list[str]:
    """Names of every component referenced by *component*."""
    if isinstance(component, ObjectComponent):
        types = [field.type for field in component.fields]
    elif isinstance(component, ArrayComponent):
        types = [component.item]
    elif isinstance(component, AliasComponent):
        types = [component.target]
    else:
        types = []

    names = []
    while types:
        field_type = types.pop(0)
        if isinstance(field_type, ComponentRef):
            names.append(field_type.name)
        elif isinstance(field_type, ArrayOf):
            types.append(field_type.item)
    return names
