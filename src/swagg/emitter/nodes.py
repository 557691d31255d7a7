"""Structured nodes of the emission tree.

The emitter never concatenates source text. It builds these frozen
dataclasses, and :mod:`swagg.emitter.render` turns them into :mod:`ast`
nodes. Every node validates its identifiers on construction, so a tree that
exists is a tree that renders to valid Python.

Node overview::

    EmissionTree
    +-- Module                 one generated file
        +-- Import
        +-- ClassDecl
        |   +-- DocComment, ConfigDecl, FieldDecl, ClassVarDecl,
        |       EnumMember, FunctionDecl
        +-- AliasDecl
        +-- Rebuild
        +-- Exports

    FunctionDecl
    +-- Param
    +-- InitRoutes, BindRoute, SerializeBody
"""

from __future__ import annotations

import keyword
from dataclasses import dataclass
from typing import Optional, Union

from swagg.exceptions import EmissionError


def _check_identifier(value: str, what: str) -> None:
    if not value.isidentifier() or keyword.iskeyword(value):
        raise EmissionError(f"Invalid {what} identifier: {value!r}")


def _check_dotted(value: str, what: str) -> None:
    if not value:
        raise EmissionError(f"Empty {what}")
    for segment in value.split("."):
        _check_identifier(segment, what)


SPECIAL_TYPES = {"None": None, "...": Ellipsis}
"""Type names rendered as constants rather than names."""


def module_alias(module: str) -> str:
    """Private name a generated module binds an imported module to.

    Generated class and field names never start with ``_``, so declarations
    cannot shadow these.
    """
    return "_" + module.replace(".", "_")


TYPING = module_alias("typing")
PYDANTIC = module_alias("pydantic")
JSON = module_alias("json")
URLLIB_PARSE = module_alias("urllib.parse")


@dataclass(frozen=True)
class TypeExpr:
    """A type expression such as ``Optional[List[Pet]]``.

    Attributes:
        name: A dotted name (``List``, ``datetime.date``), ``None`` or
            ``...``.
        args: Subscript arguments, rendered as ``name[args]``.
        forward: Render the name as a string forward reference.
    """

    name: str
    args: tuple[TypeExpr, ...] = ()
    forward: bool = False

    def __post_init__(self) -> None:
        if self.name not in SPECIAL_TYPES:
            _check_dotted(self.name, "type")
        if self.forward and self.args:
            raise EmissionError(f"Forward reference '{self.name}' cannot be subscripted")

    def names(self) -> list[str]:
        """Every name used in this expression, outermost first."""
        found = [self.name]
        for arg in self.args:
            found.extend(arg.names())
        return found


@dataclass(frozen=True)
class DocComment:
    text: str


@dataclass(frozen=True)
class Rename:
    """Serialization alias preserving the original wire name."""

    wire_name: str


@dataclass(frozen=True)
class Import:
    """``import module [as alias]`` or ``from <dots>module import names``."""

    module: str
    names: tuple[str, ...] = ()
    level: int = 0
    alias: Optional[str] = None

    def __post_init__(self) -> None:
        if self.module or not self.level:
            _check_dotted(self.module, "module")
        for name in self.names:
            _check_identifier(name, "import")
        if self.level and not self.names:
            raise EmissionError("Relative imports must name what they import")
        if self.alias is not None:
            _check_identifier(self.alias, "import alias")
            if self.names:
                raise EmissionError(f"Cannot alias a from-import of '{self.module}'")


@dataclass(frozen=True)
class FieldDecl:
    """An annotated model field; optional fields default to ``None``."""

    name: str
    type: TypeExpr
    required: bool = True
    doc: Optional[DocComment] = None
    rename: Optional[Rename] = None

    def __post_init__(self) -> None:
        _check_identifier(self.name, "field")


@dataclass(frozen=True)
class ClassVarDecl:
    name: str
    type: TypeExpr
    value: Optional[str] = None

    def __post_init__(self) -> None:
        _check_identifier(self.name, "class variable")


@dataclass(frozen=True)
class EnumMember:
    name: str
    value: str
    doc: Optional[DocComment] = None

    def __post_init__(self) -> None:
        _check_identifier(self.name, "enum member")


@dataclass(frozen=True)
class ConfigDecl:
    """``model_config = ConfigDict(populate_by_name=True)``."""

    populate_by_name: bool = True


@dataclass(frozen=True)
class Param:
    name: str
    annotation: TypeExpr

    def __post_init__(self) -> None:
        _check_identifier(self.name, "parameter")


@dataclass(frozen=True)
class InitRoutes:
    """``self.routes: List[Route] = []``."""


@dataclass(frozen=True)
class BindRoute:
    """Append a ``Route`` for the handler and return ``self``."""

    path: str
    method: str
    response: TypeExpr
    request_body: Optional[TypeExpr] = None
    query: Optional[TypeExpr] = None


@dataclass(frozen=True)
class SerializeBody:
    """Return ``self.payload`` encoded for *content_type* as bytes.

    The payload is dumped with ``model_dump(mode="json", by_alias=True)``,
    then written with ``json.dumps`` for ``application/json`` or
    ``urllib.parse.urlencode`` for ``application/x-www-form-urlencoded``
    (``None`` values dropped). No content type returns ``b""``.
    """

    content_type: Optional[str] = None


Statement = Union[InitRoutes, BindRoute, SerializeBody]


@dataclass(frozen=True)
class FunctionDecl:
    """A method; ``self`` is implied and must not be listed in *params*."""

    name: str
    params: tuple[Param, ...] = ()
    returns: Optional[TypeExpr] = None
    doc: Optional[DocComment] = None
    body: tuple[Statement, ...] = ()

    def __post_init__(self) -> None:
        _check_identifier(self.name, "function")
        names = [param.name for param in self.params]
        if "self" in names or len(set(names)) != len(names):
            raise EmissionError(f"Invalid parameter list for '{self.name}': {names}")


Member = Union[ConfigDecl, FieldDecl, ClassVarDecl, EnumMember, FunctionDecl]


@dataclass(frozen=True)
class ClassDecl:
    name: str
    bases: tuple[TypeExpr, ...] = ()
    doc: Optional[DocComment] = None
    body: tuple[Member, ...] = ()

    def __post_init__(self) -> None:
        _check_identifier(self.name, "class")
        fields = [m.name for m in self.body if isinstance(m, (FieldDecl, ClassVarDecl, EnumMember))]
        if len(set(fields)) != len(fields):
            raise EmissionError(f"Duplicate member in class '{self.name}'")


@dataclass(frozen=True)
class AliasDecl:
    """``Name = target`` followed by its docstring."""

    name: str
    target: TypeExpr
    doc: Optional[DocComment] = None

    def __post_init__(self) -> None:
        _check_identifier(self.name, "alias")


@dataclass(frozen=True)
class Rebuild:
    """``Name.model_rebuild()`` for every listed model."""

    names: tuple[str, ...]

    def __post_init__(self) -> None:
        for name in self.names:
            _check_identifier(name, "model")


@dataclass(frozen=True)
class Exports:
    """``__all__ = [...]``."""

    names: tuple[str, ...]

    def __post_init__(self) -> None:
        for name in self.names:
            _check_identifier(name, "export")


Declaration = Union[ClassDecl, AliasDecl, Rebuild, Exports]


@dataclass(frozen=True)
class Module:
    """One generated file.

    Attributes:
        name: Dotted name relative to the package root; ``""`` is the root.
        package: The module is a package ``__init__``.
    """

    name: str
    doc: Optional[DocComment] = None
    imports: tuple[Import, ...] = ()
    body: tuple[Declaration, ...] = ()
    package: bool = False

    def __post_init__(self) -> None:
        if self.name:
            _check_dotted(self.name, "module")
        elif not self.package:
            raise EmissionError("The root module must be a package")
        declared = [
            decl.name for decl in self.body if isinstance(decl, (ClassDecl, AliasDecl))
        ]
        if len(set(declared)) != len(declared):
            raise EmissionError(f"Duplicate declaration in module '{self.name or '<root>'}'")

    @property
    def relpath(self) -> str:
        """File path relative to the package directory."""
        parts = self.name.split(".") if self.name else []
        if self.package:
            return "/".join([*parts, "__init__.py"])
        return "/".join(parts) + ".py"


@dataclass(frozen=True)
class EmissionTree:
    """The whole generated package, modules in emission order."""

    package: str
    modules: tuple[Module, ...]

    def __post_init__(self) -> None:
        _check_identifier(self.package, "package")
        names = [module.name for module in self.modules]
        if len(set(names)) != len(names):
            raise EmissionError(f"Duplicate module in package '{self.package}'")

    def module(self, name: str) -> Module:
        for module in self.modules:
            if module.name == name:
                return module
        raise KeyError(name)
