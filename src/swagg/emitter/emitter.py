"""Turn the component graph and bound operations into an emission tree.

The generated package has a fixed layout::

    <package>/
        __init__.py            re-exports the API builder and Route
        api.py                 Route and the API builder class
        components/
            __init__.py
            parameters.py      one module per namespace, in build order
            request_bodies.py
            responses.py
            schemas.py
        paths/
            __init__.py
            <scope>.py         one module per route scope

Object components become pydantic models, string enums become
``(str, enum.Enum)`` classes, and arrays, scalars and aliases become
module-level type aliases. Every route scope module holds, per operation,
one model per status variant, a ``<Op>Response`` union and, when the
operation has query parameters, a ``<Op>Query`` model. Variant models carry
a ``body()`` method returning the payload encoded for their content type.

Generated modules import library modules whole under private aliases
(``import typing as _typing``), so no schema or property name can shadow
them.

:func:`emit` is a pure function: the same graph and operations always give
the same tree.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from swagg.binder import group_routes
from swagg.emitter.nodes import (
    AliasDecl,
    BindRoute,
    ClassDecl,
    ClassVarDecl,
    ConfigDecl,
    DocComment,
    EmissionTree,
    EnumMember,
    Exports,
    FieldDecl,
    FunctionDecl,
    Import,
    InitRoutes,
    Module,
    Param,
    Rebuild,
    Rename,
    SerializeBody,
    TypeExpr,
    module_alias,
)
from swagg.exceptions import EmissionError, NameCollisionError
from swagg.highway.graph import ComponentGraph, NameRegistry
from swagg.models import (
    AliasComponent,
    ArrayComponent,
    ArrayOf,
    BoundOperation,
    ComponentRef,
    ContentType,
    EnumComponent,
    FieldType,
    Info,
    ItemKind,
    NamedComponent,
    NativeType,
    ObjectComponent,
    Passthrough,
    QueryParam,
    RouteScope,
    Scalar,
    ScalarComponent,
    ScalarKind,
    StatusVariant,
)
from swagg.naming import (
    needs_rename,
    to_field_name,
    to_function_name,
    to_module_name,
    to_type_name,
    to_variant_name,
)

logger = logging.getLogger(__name__)

COMPONENT_MODULES: dict[ItemKind, str] = {
    ItemKind.PARAMETERS: "components.parameters",
    ItemKind.REQUEST_BODIES: "components.request_bodies",
    ItemKind.RESPONSES: "components.responses",
    ItemKind.SCHEMAS: "components.schemas",
}
"""Component namespaces in emission order, with their module names."""

ROUTE_CLASS = "Route"

_TYPE_MAP: dict[ScalarKind, str] = {
    ScalarKind.STRING: "str",
    ScalarKind.INTEGER: "int",
    ScalarKind.NUMBER: "float",
    ScalarKind.BOOLEAN: "bool",
}

_FORMAT_OVERRIDES: dict[tuple[ScalarKind, str], str] = {
    (ScalarKind.STRING, "byte"): "bytes",
    (ScalarKind.STRING, "date"): "datetime.date",
    (ScalarKind.STRING, "date-time"): "datetime.datetime",
    (ScalarKind.STRING, "time"): "datetime.time",
    (ScalarKind.STRING, "uuid"): "uuid.UUID",
}

_GENERATED_NOTE = "Generated by swagg; do not edit."


def scalar_type(scalar: Scalar) -> str:
    """Python type for a scalar; ``format`` refines strings only."""
    if scalar.format:
        override = _FORMAT_OVERRIDES.get((scalar.kind, scalar.format))
        if override is not None:
            return override
    return _TYPE_MAP[scalar.kind]


def api_class_name(info: Info) -> str:
    name = to_type_name(info.title)
    return name if name.endswith("Api") else f"{name}Api"


def emit(
    graph: ComponentGraph,
    operations: list[BoundOperation],
    info: Info,
    package: Optional[str] = None,
) -> EmissionTree:
    """Build the emission tree for one generated package.

    Args:
        graph: The component graph from :func:`swagg.highway.build`.
        operations: Bound operations from :func:`swagg.binder.bind`.
        info: Document metadata; names the API class and the default
            package.
        package: Import name of the generated package; defaults to
            ``to_module_name(info.title)``.

    Raises:
        NameCollisionError: If a generated path-level name clashes with a
            component.
    """
    return CodeEmitter(graph, info, package).emit(operations)


class _Imports:
    """Collects the imports one module needs, in a stable order.

    Library modules are imported whole under their :func:`module_alias`;
    sibling modules of the generated package are imported by name.
    """

    def __init__(self, module: str, package: bool = False) -> None:
        self._module = module
        self._level = len(module.split(".")) + (1 if package else 0) if module else 1
        self._aliased: dict[str, str] = {}
        self._from: dict[tuple[str, int], set[str]] = {}

    def add_module(self, module: str) -> str:
        """Import *module* under its private alias and return the alias."""
        alias = module_alias(module)
        existing = self._aliased.setdefault(alias, module)
        if existing != module:
            raise EmissionError(
                f"Modules '{existing}' and '{module}' share the import alias '{alias}'"
            )
        return alias

    def qualify(self, path: str) -> str:
        """Rewrite ``module.Name`` to ``<alias>.Name``, importing the module."""
        if "." not in path:
            return path
        module, name = path.rsplit(".", 1)
        return f"{self.add_module(module)}.{name}"

    def add_local(self, module: str, *names: str) -> None:
        """Import *names* from another module of the generated package."""
        if module != self._module:
            self._from.setdefault((module, self._level), set()).update(names)

    def build(self) -> tuple[Import, ...]:
        imports = [Import("__future__", ("annotations",))]
        imports.extend(
            Import(module, alias=alias)
            for alias, module in sorted(self._aliased.items(), key=lambda kv: kv[1])
        )
        for (module, level), names in sorted(self._from.items(), key=lambda kv: (kv[0][1], kv[0][0])):
            if names:
                imports.append(Import(module, tuple(sorted(names)), level))
        return tuple(imports)


class CodeEmitter:
    """Single-use emitter bound to one graph."""

    def __init__(self, graph: ComponentGraph, info: Info, package: Optional[str] = None):
        self._graph = graph
        self._info = info
        self._package = package or to_module_name(info.title)
        self._api_class = api_class_name(info)
        self._registry = NameRegistry()
        self._modules_of: dict[str, str] = {}

    def emit(self, operations: list[BoundOperation]) -> EmissionTree:
        for entry in self._graph:
            self._registry.register(entry.component.name)
            self._modules_of[to_type_name(entry.component.name)] = COMPONENT_MODULES[entry.kind]
        self._registry.register(ROUTE_CLASS)
        self._registry.register(self._api_class)

        scopes = group_routes(operations)
        scope_modules = self._scope_modules(scopes)

        modules = [
            self._root_module(),
            Module(
                "components",
                doc=DocComment(f"Components of {self._title}.\n\n{_GENERATED_NOTE}"),
                package=True,
            ),
        ]
        modules.extend(self._component_module(kind) for kind in COMPONENT_MODULES)
        modules.append(
            Module(
                "paths",
                doc=DocComment(f"Route scopes of {self._title}.\n\n{_GENERATED_NOTE}"),
                package=True,
            )
        )
        modules.extend(
            self._scope_module(scope, module) for scope, module in zip(scopes, scope_modules)
        )
        modules.append(self._api_module(scopes, scope_modules))

        logger.debug("Emitted %d modules for package '%s'", len(modules), self._package)
        return EmissionTree(package=self._package, modules=tuple(modules))

    @property
    def _title(self) -> str:
        return self._info.title or "the API"

    # ------------------------------------------------------------------ #
    # Modules
    # ------------------------------------------------------------------ #

    def _root_module(self) -> Module:
        names = (self._api_class, ROUTE_CLASS)
        doc = self._info.description or f"Typed bindings for {self._title}."
        return Module(
            "",
            doc=DocComment(f"{doc}\n\n{_GENERATED_NOTE}"),
            imports=(Import("api", names, level=1),),
            body=(Exports(names),),
            package=True,
        )

    def _scope_modules(self, scopes: list[RouteScope]) -> list[str]:
        """Module name per scope, in first-seen order.

        A scope whose name is already taken (``/`` and ``/root``, ``/pets``
        and ``/pets/``) gets the first free ``_2``, ``_3``... suffix.
        """
        taken: set[str] = set()
        names = []
        for scope in scopes:
            base = module = to_module_name(scope.path)
            suffix = 2
            while module in taken:
                module = f"{base}_{suffix}"
                suffix += 1
            if module != base:
                logger.debug("Route scope '%s' emitted as paths.%s", scope.path, module)
            taken.add(module)
            names.append(f"paths.{module}")
        return names

    def _component_module(self, kind: ItemKind) -> Module:
        module = COMPONENT_MODULES[kind]
        imports = _Imports(module)
        classes: list[ClassDecl] = []
        aliases: list[AliasDecl] = []
        models: list[str] = []

        for component in self._graph.of_kind(kind):
            decl = self._component(component, imports)
            if isinstance(decl, ClassDecl):
                classes.append(decl)
                if isinstance(component, ObjectComponent):
                    models.append(decl.name)
            else:
                aliases.append(decl)

        body: list = [*classes, *self._order_aliases(aliases)]
        if models:
            body.append(Rebuild(tuple(models)))
        label = module.rsplit(".", 1)[-1].replace("_", " ")
        return Module(
            module,
            doc=DocComment(f"Component {label} of {self._title}.\n\n{_GENERATED_NOTE}"),
            imports=imports.build(),
            body=tuple(body),
        )

    def _scope_module(self, scope: RouteScope, module: str) -> Module:
        imports = _Imports(module)
        registry = self._registry
        classes: list[ClassDecl] = []
        aliases: list[AliasDecl] = []

        for operation in scope.operations:
            op_type = to_type_name(operation.name)
            variants = []
            for variant in operation.responses:
                name = f"{op_type}Response{variant.label}"
                registry.register(name)
                classes.append(self._variant_model(name, variant, imports))
                variants.append(TypeExpr(name))

            union = f"{op_type}Response"
            registry.register(union)
            aliases.append(
                AliasDecl(
                    union,
                    self._union(variants, imports),
                    _doc(f"Responses of {operation.method.value.upper()} {operation.path}."),
                )
            )

            if operation.query_params:
                query = f"{op_type}Query"
                registry.register(query)
                classes.append(self._query_model(query, operation.query_params, imports))

        body: list = [*classes, *aliases]
        if classes:
            body.append(Rebuild(tuple(c.name for c in classes)))
        return Module(
            module,
            doc=DocComment(f"Route scope {scope.path}.\n\n{_GENERATED_NOTE}"),
            imports=imports.build(),
            body=tuple(body),
        )

    def _api_module(self, scopes: list[RouteScope], scope_modules: list[str]) -> Module:
        imports = _Imports("api")
        any_type = TypeExpr(imports.qualify("typing.Any"))

        route = ClassDecl(
            ROUTE_CLASS,
            bases=(TypeExpr(imports.qualify("typing.NamedTuple")),),
            doc=DocComment("A handler bound to a method and path template."),
            body=(
                FieldDecl("path", TypeExpr("str")),
                FieldDecl("method", TypeExpr("str")),
                FieldDecl("handler", _handler(any_type, imports)),
                FieldDecl("response", any_type),
                FieldDecl("request_body", any_type, required=False),
                FieldDecl("query", any_type, required=False),
            ),
        )

        methods: list[FunctionDecl] = [
            FunctionDecl("__init__", returns=TypeExpr("None"), body=(InitRoutes(),))
        ]
        for scope, module in zip(scopes, scope_modules):
            for operation in scope.operations:
                methods.append(self._bind_method(operation, module, imports))

        api = ClassDecl(self._api_class, doc=self._api_doc(), body=tuple(methods))
        return Module(
            "api",
            doc=DocComment(f"Route binding surface of {self._title}.\n\n{_GENERATED_NOTE}"),
            imports=imports.build(),
            body=(route, api),
        )

    # ------------------------------------------------------------------ #
    # Components
    # ------------------------------------------------------------------ #

    def _component(
        self, component: NamedComponent, imports: _Imports
    ) -> Union[ClassDecl, AliasDecl]:
        name = to_type_name(component.name)
        doc = _doc(component.description)
        if isinstance(component, ObjectComponent):
            return self._model(name, component, imports)
        if isinstance(component, EnumComponent):
            members = tuple(
                EnumMember(to_variant_name(variant.wire_name), variant.wire_name, _doc(variant.description))
                for variant in component.variants
            )
            return ClassDecl(
                name,
                bases=(TypeExpr("str"), TypeExpr(imports.qualify("enum.Enum"))),
                doc=doc,
                body=members,
            )
        if isinstance(component, ArrayComponent):
            item = self._type(component.item, imports)
            return AliasDecl(name, TypeExpr(imports.qualify("typing.List"), (item,)), doc)
        if isinstance(component, ScalarComponent):
            return AliasDecl(name, self._type(NativeType(scalar=component.scalar), imports), doc)
        assert isinstance(component, AliasComponent)
        return AliasDecl(name, self._type(component.target, imports), doc)

    def _model(self, name: str, component: ObjectComponent, imports: _Imports) -> ClassDecl:
        fields = []
        for field in component.fields:
            field_type = self._type(field.type, imports)
            fields.append(
                self._field(field.wire_name, field_type, field.required, field.description, imports)
            )
        return ClassDecl(
            name,
            bases=(TypeExpr(imports.qualify("pydantic.BaseModel")),),
            doc=_doc(component.description),
            body=self._with_config(fields, imports),
        )

    def _field(
        self,
        wire_name: str,
        field_type: TypeExpr,
        required: bool,
        description: Optional[str],
        imports: _Imports,
    ) -> FieldDecl:
        field_name = to_field_name(wire_name)
        renamed = needs_rename(wire_name, field_name)
        if not required:
            imports.add_module("typing")
        if renamed or description:
            imports.add_module("pydantic")
        return FieldDecl(
            field_name,
            field_type,
            required=required,
            doc=_doc(description),
            rename=Rename(wire_name) if renamed else None,
        )

    @staticmethod
    def _with_config(fields: list[FieldDecl], imports: _Imports) -> tuple:
        if any(field.rename is not None for field in fields):
            imports.add_module("pydantic")
            return (ConfigDecl(), *fields)
        return tuple(fields)

    def _type(self, field_type: FieldType, imports: _Imports) -> TypeExpr:
        if isinstance(field_type, NativeType):
            return TypeExpr(imports.qualify(scalar_type(field_type.scalar)))
        if isinstance(field_type, ComponentRef):
            return self._ref(field_type.name, imports)
        if isinstance(field_type, ArrayOf):
            item = self._type(field_type.item, imports)
            return TypeExpr(imports.qualify("typing.List"), (item,))
        assert isinstance(field_type, Passthrough)
        path = field_type.path if "." in field_type.path else f"builtins.{field_type.path}"
        return TypeExpr(imports.qualify(path))

    def _ref(self, component: str, imports: _Imports) -> TypeExpr:
        name = to_type_name(component)
        imports.add_local(self._modules_of[name], name)
        return TypeExpr(name)

    @staticmethod
    def _order_aliases(aliases: list[AliasDecl]) -> list[AliasDecl]:
        """Order aliases so each follows the local aliases it targets.

        Names inside subscripts that are still unbound at their alias (only
        possible through a cycle) become string forward references.
        """
        local = {alias.name: alias for alias in aliases}
        bound: set[str] = set()
        ordered: list[AliasDecl] = []
        visiting: set[str] = set()

        def visit(alias: AliasDecl) -> None:
            if alias.name in bound or alias.name in visiting:
                return
            visiting.add(alias.name)
            for name in alias.target.names():
                if name in local:
                    visit(local[name])
            visiting.discard(alias.name)
            ordered.append(
                AliasDecl(alias.name, _quote_pending(alias.target, set(local) - bound), alias.doc)
            )
            bound.add(alias.name)

        for alias in aliases:
            visit(alias)
        return ordered

    # ------------------------------------------------------------------ #
    # Route scopes
    # ------------------------------------------------------------------ #

    def _variant_model(self, name: str, variant: StatusVariant, imports: _Imports) -> ClassDecl:
        content_type = variant.content_type.value if variant.content_type else None
        optional_str = TypeExpr(imports.qualify("typing.Optional"), (TypeExpr("str"),))
        body: list = [
            ClassVarDecl("status", TypeExpr("str"), variant.status),
            ClassVarDecl("content_type", optional_str, content_type),
        ]
        if variant.payload is not None:
            body.append(FieldDecl("payload", self._ref(variant.payload, imports)))
            if variant.content_type is ContentType.FORM:
                imports.add_module("urllib.parse")
            else:
                imports.add_module("json")
        body.append(
            FunctionDecl(
                "body",
                returns=TypeExpr("bytes"),
                doc=DocComment(
                    f"Payload encoded as {content_type}." if content_type else "Empty body."
                ),
                body=(SerializeBody(content_type),),
            )
        )
        doc = variant.description or f"Status {variant.status}."
        return ClassDecl(
            name,
            bases=(TypeExpr(imports.qualify("pydantic.BaseModel")),),
            doc=DocComment(doc),
            body=tuple(body),
        )

    def _union(self, variants: list[TypeExpr], imports: _Imports) -> TypeExpr:
        if not variants:
            return TypeExpr("None")
        if len(variants) == 1:
            return variants[0]
        return TypeExpr(imports.qualify("typing.Union"), tuple(variants))

    def _query_model(
        self, name: str, params: tuple[QueryParam, ...], imports: _Imports
    ) -> ClassDecl:
        fields = []
        taken: dict[str, str] = {}
        for param in params:
            field_name = to_field_name(param.wire_name)
            if field_name in taken:
                raise NameCollisionError(
                    f"{name}.{param.wire_name}", f"{name}.{taken[field_name]}", field_name
                )
            taken[field_name] = param.wire_name
            param_type = self._ref(param.type_ref, imports)
            fields.append(
                self._field(param.wire_name, param_type, param.required, param.description, imports)
            )
        return ClassDecl(
            name,
            bases=(TypeExpr(imports.qualify("pydantic.BaseModel")),),
            doc=DocComment("Query parameters."),
            body=self._with_config(fields, imports),
        )

    # ------------------------------------------------------------------ #
    # API builder
    # ------------------------------------------------------------------ #

    def _bind_method(self, operation: BoundOperation, module: str, imports: _Imports) -> FunctionDecl:
        op_type = to_type_name(operation.name)
        response = TypeExpr(f"{op_type}Response")
        imports.add_local(module, response.name)

        query = None
        if operation.query_params:
            query = TypeExpr(f"{op_type}Query")
            imports.add_local(module, query.name)

        request_body = None
        if operation.request_body is not None:
            request_body = self._ref(operation.request_body, imports)

        handler = _handler(response, imports)
        summary = operation.summary or operation.description
        return FunctionDecl(
            f"bind_{to_function_name(operation.name)}",
            params=(Param("handler", handler),),
            returns=TypeExpr(self._api_class),
            doc=_doc(summary or f"Bind {operation.method.value.upper()} {operation.path}."),
            body=(
                BindRoute(
                    path=operation.path,
                    method=operation.method.value.upper(),
                    response=response,
                    request_body=request_body,
                    query=query,
                ),
            ),
        )

    def _api_doc(self) -> DocComment:
        parts = [self._info.description or f"Route builder for {self._title}."]
        if self._info.terms_of_service:
            parts.append(f"@see {self._info.terms_of_service}")
        return DocComment("\n\n".join(parts))


def _doc(text: Optional[str]) -> Optional[DocComment]:
    return DocComment(text.strip()) if text and text.strip() else None


def _handler(response: TypeExpr, imports: _Imports) -> TypeExpr:
    """``Callable[..., Awaitable[response]]``."""
    awaitable = TypeExpr(imports.qualify("typing.Awaitable"), (response,))
    return TypeExpr(imports.qualify("typing.Callable"), (TypeExpr("..."), awaitable))


def _quote_pending(expr: TypeExpr, pending: set[str]) -> TypeExpr:
    """Quote subscript arguments that name a not-yet-emitted local alias."""
    return TypeExpr(expr.name, tuple(_quote_arg(arg, pending) for arg in expr.args))


def _quote_arg(expr: TypeExpr, pending: set[str]) -> TypeExpr:
    if expr.name in pending and not expr.args:
        return TypeExpr(expr.name, forward=True)
    return TypeExpr(expr.name, tuple(_quote_arg(arg, pending) for arg in expr.args))
