"""Canonical Pydantic models shared across all swagg modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into four groups:

**Configuration models** -- read from ``./swagg.json`` and the environment:
    :class:`HooksConfig` and :class:`GeneratorConfig`.

**Document models** -- the validated, read-only OpenAPI 3.x input:
    :class:`Document`, :class:`Info`, :class:`PathItem`, :class:`Operation`,
    :class:`Parameter`, :class:`RequestBody`, :class:`Response`,
    :class:`MediaType`, :class:`Header`, :class:`SecurityScheme`,
    :class:`Schema`, :class:`Components` and :class:`Reference`.

**Component graph models** -- produced by :mod:`swagg.highway`:
    :data:`FieldType`, :data:`NamedComponent`, :class:`ComponentField`,
    :class:`GraphEntry` and :class:`BuildWarning`.

**Binding models** -- produced by :mod:`swagg.binder`:
    :class:`BoundOperation`, :class:`StatusVariant`, :class:`QueryParam` and
    :class:`RouteScope`.

Document models keep unknown keys (``extra="allow"``) so vendor extensions
survive validation; graph and binding models are frozen once built.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    field_validator,
)


# --- Configuration ---


class HooksConfig(BaseModel):
    """Explicit hook allow/deny lists stored in :class:`GeneratorConfig`."""

    enabled: list[str] = Field(default_factory=list)
    disabled: list[str] = Field(default_factory=list)


class GeneratorConfig(BaseModel):
    """Generation settings resolved by :func:`~swagg.config.resolve_config`.

    Fields here have the lowest precedence and can be overridden by
    environment variables or CLI flags.
    """

    package_name: Optional[str] = Field(
        default=None,
        description="Import name of the generated package; derived from info.title when unset",
    )
    output_dir: str = "./generated"
    strict: bool = Field(
        default=False, description="Treat build warnings as fatal"
    )
    reference_docs: bool = Field(
        default=False, description="Render API_REFERENCE.md alongside the bindings"
    )
    hooks: HooksConfig = Field(default_factory=HooksConfig)


# --- Document ---


_DOCUMENT_CONFIG = ConfigDict(populate_by_name=True, frozen=True, extra="allow")


class HTTPMethod(str, enum.Enum):
    """HTTP methods recognised on an OpenAPI path item.

    Declaration order is the traversal order used by the visitor pipeline
    and the binder.
    """

    GET = "get"
    PUT = "put"
    POST = "post"
    DELETE = "delete"
    OPTIONS = "options"
    HEAD = "head"
    PATCH = "patch"
    TRACE = "trace"


class ItemKind(str, enum.Enum):
    """Component namespaces under ``#/components/``.

    Values are the wire segment names. Declaration order is the order in
    which the visitor pipeline walks components.
    """

    SECURITY_SCHEMES = "securitySchemes"
    RESPONSES = "responses"
    PARAMETERS = "parameters"
    REQUEST_BODIES = "requestBodies"
    HEADERS = "headers"
    SCHEMAS = "schemas"


class Reference(BaseModel):
    """A ``$ref`` pointer, optionally carrying sibling vendor extensions."""

    model_config = _DOCUMENT_CONFIG

    ref: str = Field(alias="$ref")
    description: Optional[str] = None
    variant_name: Optional[str] = Field(default=None, alias="x-variant-name")


def _ref_or_item(value: Any) -> str:
    if isinstance(value, dict):
        return "ref" if "$ref" in value else "item"
    return "ref" if isinstance(value, Reference) else "item"


def _or_ref(model: Any) -> Any:
    """Build a ``Reference | model`` union discriminated on the ``$ref`` key."""
    return Annotated[
        Union[Annotated[Reference, Tag("ref")], Annotated[model, Tag("item")]],
        Discriminator(_ref_or_item),
    ]


_COMPOSITION_KEYWORDS = ("oneOf", "allOf", "anyOf", "not")


class Schema(BaseModel):
    """The supported subset of an OpenAPI Schema Object.

    Composition keywords are modelled only so that they can be detected and
    reported; :mod:`swagg.highway` never expands them.
    """

    model_config = _DOCUMENT_CONFIG

    type: Optional[Union[str, list[str]]] = None
    format: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    properties: Optional[dict[str, SchemaOrRef]] = None
    required: list[str] = Field(default_factory=list)
    items: Optional[SchemaOrRef] = None
    enum: Optional[list[Any]] = None
    one_of: Optional[list[Any]] = Field(default=None, alias="oneOf")
    all_of: Optional[list[Any]] = Field(default=None, alias="allOf")
    any_of: Optional[list[Any]] = Field(default=None, alias="anyOf")
    not_: Optional[Any] = Field(default=None, alias="not")
    additional_properties: Optional[Any] = Field(
        default=None, alias="additionalProperties"
    )
    nullable: bool = False
    python_type: Optional[str] = Field(default=None, alias="x-python-type")
    enum_descriptions: Optional[Union[list[str], dict[str, str]]] = Field(
        default=None, alias="x-enum-descriptions"
    )

    @property
    def primary_type(self) -> Optional[str]:
        """The schema type, taking the first non-``null`` entry of a 3.1 type list."""
        if isinstance(self.type, list):
            non_null = [t for t in self.type if t != "null"]
            return non_null[0] if non_null else None
        return self.type

    @property
    def composition(self) -> Optional[str]:
        """Wire name of the first composition keyword present, if any."""
        values = (self.one_of, self.all_of, self.any_of, self.not_)
        for keyword, value in zip(_COMPOSITION_KEYWORDS, values):
            if value is not None:
                return keyword
        return None


SchemaOrRef = _or_ref(Schema)
Schema.model_rebuild()


class MediaType(BaseModel):
    """One entry of a ``content`` map."""

    model_config = _DOCUMENT_CONFIG

    schema_: Optional[SchemaOrRef] = Field(default=None, alias="schema")


class Header(BaseModel):
    model_config = _DOCUMENT_CONFIG

    description: Optional[str] = None
    required: bool = False
    schema_: Optional[SchemaOrRef] = Field(default=None, alias="schema")


HeaderOrRef = _or_ref(Header)


class Parameter(BaseModel):
    """An OpenAPI Parameter Object."""

    model_config = _DOCUMENT_CONFIG

    name: str
    location: str = Field(alias="in")
    description: Optional[str] = None
    required: bool = False
    deprecated: bool = False
    schema_: Optional[SchemaOrRef] = Field(default=None, alias="schema")
    content: Optional[dict[str, MediaType]] = None


ParameterOrRef = _or_ref(Parameter)


class RequestBody(BaseModel):
    model_config = _DOCUMENT_CONFIG

    description: Optional[str] = None
    required: bool = False
    content: dict[str, MediaType] = Field(default_factory=dict)


RequestBodyOrRef = _or_ref(RequestBody)


class Response(BaseModel):
    """An OpenAPI Response Object.

    ``x-variant-name`` overrides the generated variant label for the status
    this response is declared under.
    """

    model_config = _DOCUMENT_CONFIG

    description: Optional[str] = None
    content: dict[str, MediaType] = Field(default_factory=dict)
    headers: dict[str, HeaderOrRef] = Field(default_factory=dict)
    variant_name: Optional[str] = Field(default=None, alias="x-variant-name")


ResponseOrRef = _or_ref(Response)


class SecurityScheme(BaseModel):
    model_config = _DOCUMENT_CONFIG

    type: str
    description: Optional[str] = None
    name: Optional[str] = None
    location: Optional[str] = Field(default=None, alias="in")
    scheme: Optional[str] = None
    bearer_format: Optional[str] = Field(default=None, alias="bearerFormat")


SecuritySchemeOrRef = _or_ref(SecurityScheme)


class ResponseEntry(BaseModel):
    """A ``(status, response)`` pair in declared order."""

    model_config = _DOCUMENT_CONFIG

    status: str
    response: ResponseOrRef


class Operation(BaseModel):
    """An OpenAPI Operation Object.

    ``responses`` is normalised from a mapping into an ordered list of
    :class:`ResponseEntry` so that status keys which collide after
    stringification (YAML ``200`` and ``"200"``) are both kept.
    """

    model_config = _DOCUMENT_CONFIG

    operation_id: Optional[str] = Field(default=None, alias="operationId")
    summary: Optional[str] = None
    description: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    parameters: list[ParameterOrRef] = Field(default_factory=list)
    request_body: Optional[RequestBodyOrRef] = Field(default=None, alias="requestBody")
    responses: list[ResponseEntry] = Field(default_factory=list)
    deprecated: bool = False

    @field_validator("responses", mode="before")
    @classmethod
    def _responses_in_declared_order(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return [
                {"status": str(status), "response": response}
                for status, response in value.items()
            ]
        return value


class PathItem(BaseModel):
    model_config = _DOCUMENT_CONFIG

    summary: Optional[str] = None
    description: Optional[str] = None
    get: Optional[Operation] = None
    put: Optional[Operation] = None
    post: Optional[Operation] = None
    delete: Optional[Operation] = None
    options: Optional[Operation] = None
    head: Optional[Operation] = None
    patch: Optional[Operation] = None
    trace: Optional[Operation] = None
    parameters: list[ParameterOrRef] = Field(default_factory=list)

    def operations(self) -> list[tuple[HTTPMethod, Operation]]:
        """Defined operations in fixed method order."""
        found = []
        for method in HTTPMethod:
            operation = getattr(self, method.value)
            if operation is not None:
                found.append((method, operation))
        return found


class Components(BaseModel):
    model_config = _DOCUMENT_CONFIG

    schemas: dict[str, SchemaOrRef] = Field(default_factory=dict)
    responses: dict[str, ResponseOrRef] = Field(default_factory=dict)
    parameters: dict[str, ParameterOrRef] = Field(default_factory=dict)
    request_bodies: dict[str, RequestBodyOrRef] = Field(
        default_factory=dict, alias="requestBodies"
    )
    headers: dict[str, HeaderOrRef] = Field(default_factory=dict)
    security_schemes: dict[str, SecuritySchemeOrRef] = Field(
        default_factory=dict, alias="securitySchemes"
    )

    def table(self, kind: ItemKind) -> dict[str, Any]:
        """Return the declared items of one namespace, in declaration order."""
        return {
            ItemKind.SCHEMAS: self.schemas,
            ItemKind.RESPONSES: self.responses,
            ItemKind.PARAMETERS: self.parameters,
            ItemKind.REQUEST_BODIES: self.request_bodies,
            ItemKind.HEADERS: self.headers,
            ItemKind.SECURITY_SCHEMES: self.security_schemes,
        }[kind]


class Info(BaseModel):
    model_config = _DOCUMENT_CONFIG

    title: str = ""
    version: str = ""
    description: Optional[str] = None
    terms_of_service: Optional[str] = Field(default=None, alias="termsOfService")


class Document(BaseModel):
    """A validated OpenAPI 3.x document.

    Immutable once loaded; every ``$ref`` is resolved against this object.
    """

    model_config = _DOCUMENT_CONFIG

    openapi: str = "3.0.0"
    info: Info = Field(default_factory=Info)
    paths: dict[str, PathItem] = Field(default_factory=dict)
    components: Components = Field(default_factory=Components)


# --- Component graph ---


_GRAPH_CONFIG = ConfigDict(frozen=True)


class ScalarKind(str, enum.Enum):
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"


class Scalar(BaseModel):
    """A scalar kind with an optional format refinement (``int64``, ``date-time``...)."""

    model_config = _GRAPH_CONFIG

    kind: ScalarKind
    format: Optional[str] = None


class NativeType(BaseModel):
    model_config = _GRAPH_CONFIG

    kind: Literal["native"] = "native"
    scalar: Scalar


class ComponentRef(BaseModel):
    model_config = _GRAPH_CONFIG

    kind: Literal["ref"] = "ref"
    name: str


class ArrayOf(BaseModel):
    model_config = _GRAPH_CONFIG

    kind: Literal["array"] = "array"
    item: FieldType


class Passthrough(BaseModel):
    """A dotted Python type path copied verbatim from ``x-python-type``."""

    model_config = _GRAPH_CONFIG

    kind: Literal["passthrough"] = "passthrough"
    path: str

    @field_validator("path")
    @classmethod
    def _dotted_identifier(cls, value: str) -> str:
        segments = value.split(".")
        if not all(segment.isidentifier() for segment in segments):
            raise ValueError(f"'{value}' is not a dotted Python identifier")
        return value


FieldType = Annotated[
    Union[NativeType, ComponentRef, ArrayOf, Passthrough],
    Field(discriminator="kind"),
]
ArrayOf.model_rebuild()


class ComponentField(BaseModel):
    model_config = _GRAPH_CONFIG

    wire_name: str
    required: bool
    description: Optional[str] = None
    type: FieldType


class EnumVariant(BaseModel):
    model_config = _GRAPH_CONFIG

    wire_name: str
    description: Optional[str] = None


class ObjectComponent(BaseModel):
    model_config = _GRAPH_CONFIG

    kind: Literal["object"] = "object"
    name: str
    description: Optional[str] = None
    fields: tuple[ComponentField, ...] = ()


class EnumComponent(BaseModel):
    model_config = _GRAPH_CONFIG

    kind: Literal["enum"] = "enum"
    name: str
    description: Optional[str] = None
    variants: tuple[EnumVariant, ...] = ()


class ArrayComponent(BaseModel):
    model_config = _GRAPH_CONFIG

    kind: Literal["array"] = "array"
    name: str
    description: Optional[str] = None
    item: FieldType


class ScalarComponent(BaseModel):
    model_config = _GRAPH_CONFIG

    kind: Literal["scalar"] = "scalar"
    name: str
    description: Optional[str] = None
    scalar: Scalar


class AliasComponent(BaseModel):
    model_config = _GRAPH_CONFIG

    kind: Literal["alias"] = "alias"
    name: str
    description: Optional[str] = None
    target: FieldType


NamedComponent = Annotated[
    Union[
        ObjectComponent, EnumComponent, ArrayComponent, ScalarComponent, AliasComponent
    ],
    Field(discriminator="kind"),
]


class GraphEntry(BaseModel):
    """A component together with the namespace it was declared in."""

    model_config = _GRAPH_CONFIG

    kind: ItemKind
    component: NamedComponent


class WarningCode(str, enum.Enum):
    UNSUPPORTED = "unsupported"
    EMPTY_NAME = "empty_name"


class BuildWarning(BaseModel):
    """A non-fatal build problem; the affected component was skipped or renamed."""

    model_config = _GRAPH_CONFIG

    code: WarningCode
    name: str
    detail: str

    def __str__(self) -> str:
        return f"{self.name}: {self.detail}"


# --- Binding ---


class ContentType(str, enum.Enum):
    """Media types the binding surface can carry a payload for."""

    JSON = "application/json"
    FORM = "application/x-www-form-urlencoded"

    @classmethod
    def match(cls, media_type: str) -> Optional[ContentType]:
        """Classify a media type string, ignoring parameters and case.

        ``application/problem+json`` and ``application/json; charset=utf-8``
        both count as JSON.
        """
        essence = media_type.split(";", 1)[0].strip().lower()
        if essence == cls.JSON.value or essence.endswith("+json"):
            return cls.JSON
        if essence == cls.FORM.value:
            return cls.FORM
        return None


def payload_media(content: dict[str, MediaType]) -> Optional[tuple[ContentType, Any]]:
    """Return the first JSON or form-encoded entry of *content* that has a schema."""
    for media_type, media in content.items():
        content_type = ContentType.match(media_type)
        if content_type is not None and media.schema_ is not None:
            return content_type, media.schema_
    return None


_BINDING_CONFIG = ConfigDict(frozen=True)


class StatusVariant(BaseModel):
    model_config = _BINDING_CONFIG

    status: str
    label: str
    payload: Optional[str] = None
    content_type: Optional[ContentType] = None
    description: Optional[str] = None


class QueryParam(BaseModel):
    """A query parameter whose type is a component in the parameters namespace."""

    model_config = _BINDING_CONFIG

    wire_name: str
    required: bool = False
    description: Optional[str] = None
    type_ref: str


class BoundOperation(BaseModel):
    """One operation ready for emission."""

    model_config = _BINDING_CONFIG

    name: str
    method: HTTPMethod
    path: str
    request_body: Optional[str] = None
    request_content_type: Optional[ContentType] = None
    responses: tuple[StatusVariant, ...] = ()
    query_params: tuple[QueryParam, ...] = ()
    summary: Optional[str] = None
    description: Optional[str] = None


class RouteScope(BaseModel):
    """All operations sharing one path template, in first-seen order."""

    model_config = _BINDING_CONFIG

    path: str
    operations: tuple[BoundOperation, ...] = ()
