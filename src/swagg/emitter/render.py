"""Render emission nodes to Python source text.

Each node is translated to the equivalent :mod:`ast` node and the module is
printed with :func:`ast.unparse`. Whitespace and line width are whatever
``ast.unparse`` produces; callers that want a particular style pass a
*formatter* to :func:`render_tree`, which is applied to each file's text
unchanged otherwise.
"""

from __future__ import annotations

import ast
from typing import Any, Callable, Optional

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
    JSON,
    Module,
    PYDANTIC,
    Rebuild,
    SerializeBody,
    SPECIAL_TYPES,
    TYPING,
    TypeExpr,
    URLLIB_PARSE,
)
from swagg.models import ContentType

Formatter = Callable[[str], str]


def render_tree(tree: EmissionTree, formatter: Optional[Formatter] = None) -> dict[str, str]:
    """Render every module of *tree*.

    Returns:
        Source text keyed by file path (``<package>/components/schemas.py``),
        in module order.
    """
    files = {}
    for module in tree.modules:
        text = render_module(module)
        if formatter is not None:
            text = formatter(text)
        files[f"{tree.package}/{module.relpath}"] = text
    return files


def render_module(module: Module) -> str:
    body: list[ast.stmt] = []
    if module.doc is not None:
        body.append(_docstring(module.doc))
    body.extend(_import(imp) for imp in module.imports)
    for decl in module.body:
        body.extend(_declaration(decl))
    tree = ast.Module(body=body, type_ignores=[])
    ast.fix_missing_locations(tree)
    return ast.unparse(tree) + "\n"


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


def _const(value: Any) -> ast.Constant:
    return ast.Constant(value=value, kind=None)


def _name(dotted: str) -> ast.expr:
    head, *rest = dotted.split(".")
    node: ast.expr = ast.Name(id=head, ctx=ast.Load())
    for attr in rest:
        node = ast.Attribute(value=node, attr=attr, ctx=ast.Load())
    return node


def _type(expr: TypeExpr) -> ast.expr:
    if expr.forward:
        return _const(expr.name)
    if expr.name in SPECIAL_TYPES:
        base: ast.expr = _const(SPECIAL_TYPES[expr.name])
    else:
        base = _name(expr.name)
    if not expr.args:
        return base
    args = [_type(arg) for arg in expr.args]
    index = args[0] if len(args) == 1 else ast.Tuple(elts=args, ctx=ast.Load())
    return ast.Subscript(value=base, slice=index, ctx=ast.Load())


def _call(func: str, *args: ast.expr, **kwargs: ast.expr) -> ast.Call:
    return ast.Call(
        func=_name(func),
        args=list(args),
        keywords=[ast.keyword(arg=key, value=value) for key, value in kwargs.items()],
    )


def _with_type_params(node_cls: type, **fields: Any) -> Any:
    if "type_params" in node_cls._fields:
        fields["type_params"] = []
    return node_cls(**fields)


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


def _docstring(doc: DocComment) -> ast.Expr:
    return ast.Expr(value=_const(doc.text))


def _import(imp: Import) -> ast.stmt:
    if not imp.names:
        return ast.Import(names=[ast.alias(name=imp.module, asname=imp.alias)])
    return ast.ImportFrom(
        module=imp.module or None,
        names=[ast.alias(name=name, asname=None) for name in imp.names],
        level=imp.level,
    )


def _declaration(decl: Any) -> list[ast.stmt]:
    if isinstance(decl, ClassDecl):
        return [_class(decl)]
    if isinstance(decl, AliasDecl):
        stmts: list[ast.stmt] = [_assign(decl.name, _type(decl.target))]
        if decl.doc is not None:
            stmts.append(_docstring(decl.doc))
        return stmts
    if isinstance(decl, Rebuild):
        return [ast.Expr(value=_call(f"{name}.model_rebuild")) for name in decl.names]
    if isinstance(decl, Exports):
        names = ast.List(elts=[_const(name) for name in decl.names], ctx=ast.Load())
        return [_assign("__all__", names)]
    raise TypeError(f"Unknown declaration node: {decl!r}")


def _assign(target: str, value: ast.expr) -> ast.Assign:
    return ast.Assign(
        targets=[ast.Name(id=target, ctx=ast.Store())], value=value, type_comment=None
    )


def _class(decl: ClassDecl) -> ast.ClassDef:
    body: list[ast.stmt] = []
    if decl.doc is not None:
        body.append(_docstring(decl.doc))
    for member in decl.body:
        body.extend(_member(member))
    return _with_type_params(
        ast.ClassDef,
        name=decl.name,
        bases=[_type(base) for base in decl.bases],
        keywords=[],
        body=body or [ast.Pass()],
        decorator_list=[],
    )


def _member(member: Any) -> list[ast.stmt]:
    if isinstance(member, FieldDecl):
        return [_field(member)]
    if isinstance(member, ConfigDecl):
        config = _call(f"{PYDANTIC}.ConfigDict", populate_by_name=_const(member.populate_by_name))
        return [_assign("model_config", config)]
    if isinstance(member, ClassVarDecl):
        annotation = ast.Subscript(
            value=_name(f"{TYPING}.ClassVar"), slice=_type(member.type), ctx=ast.Load()
        )
        return [_annotated(member.name, annotation, _const(member.value))]
    if isinstance(member, EnumMember):
        stmts: list[ast.stmt] = [_assign(member.name, _const(member.value))]
        if member.doc is not None:
            stmts.append(_docstring(member.doc))
        return stmts
    if isinstance(member, FunctionDecl):
        return [_function(member)]
    raise TypeError(f"Unknown class member node: {member!r}")


def _annotated(name: str, annotation: ast.expr, value: Optional[ast.expr]) -> ast.AnnAssign:
    return ast.AnnAssign(
        target=ast.Name(id=name, ctx=ast.Store()),
        annotation=annotation,
        value=value,
        simple=1,
    )


def _field(decl: FieldDecl) -> ast.AnnAssign:
    annotation = _type(decl.type)
    if not decl.required:
        annotation = ast.Subscript(
            value=_name(f"{TYPING}.Optional"), slice=annotation, ctx=ast.Load()
        )

    options: dict[str, ast.expr] = {}
    if not decl.required:
        options["default"] = _const(None)
    if decl.rename is not None:
        options["alias"] = _const(decl.rename.wire_name)
    if decl.doc is not None:
        options["description"] = _const(decl.doc.text)

    if decl.rename is None and decl.doc is None:
        value = None if decl.required else _const(None)
    else:
        value = _call(f"{PYDANTIC}.Field", **options)
    return _annotated(decl.name, annotation, value)


def _function(decl: FunctionDecl) -> ast.FunctionDef:
    params = [ast.arg(arg="self", annotation=None, type_comment=None)]
    params.extend(
        ast.arg(arg=param.name, annotation=_type(param.annotation), type_comment=None)
        for param in decl.params
    )
    arguments = ast.arguments(
        posonlyargs=[],
        args=params,
        vararg=None,
        kwonlyargs=[],
        kw_defaults=[],
        kwarg=None,
        defaults=[],
    )
    body: list[ast.stmt] = []
    if decl.doc is not None:
        body.append(_docstring(decl.doc))
    for statement in decl.body:
        body.extend(_statement(statement))
    return _with_type_params(
        ast.FunctionDef,
        name=decl.name,
        args=arguments,
        body=body or [ast.Pass()],
        decorator_list=[],
        returns=_type(decl.returns) if decl.returns is not None else None,
        type_comment=None,
    )


def _statement(statement: Any) -> list[ast.stmt]:
    routes = ast.Attribute(value=_name("self"), attr="routes", ctx=ast.Load())
    if isinstance(statement, InitRoutes):
        target = ast.Attribute(value=_name("self"), attr="routes", ctx=ast.Store())
        annotation = _type(TypeExpr(f"{TYPING}.List", (TypeExpr("Route"),)))
        return [
            ast.AnnAssign(
                target=target,
                annotation=annotation,
                value=ast.List(elts=[], ctx=ast.Load()),
                simple=0,
            )
        ]
    if isinstance(statement, BindRoute):
        route = _call(
            "Route",
            path=_const(statement.path),
            method=_const(statement.method),
            handler=_name("handler"),
            response=_type(statement.response),
            request_body=_type(statement.request_body) if statement.request_body else _const(None),
            query=_type(statement.query) if statement.query else _const(None),
        )
        append = ast.Call(
            func=ast.Attribute(value=routes, attr="append", ctx=ast.Load()),
            args=[route],
            keywords=[],
        )
        return [ast.Expr(value=append), ast.Return(value=_name("self"))]
    if isinstance(statement, SerializeBody):
        return [ast.Return(value=_encode_payload(statement.content_type))]
    raise TypeError(f"Unknown statement node: {statement!r}")


def _encode_payload(content_type: Optional[str]) -> ast.expr:
    if content_type is None:
        return _const(b"")
    options: dict[str, ast.expr] = {"mode": _const("json"), "by_alias": _const(True)}
    form = content_type == ContentType.FORM.value
    if form:
        options["exclude_none"] = _const(True)
    payload = ast.Subscript(
        value=_call("self.model_dump", **options), slice=_const("payload"), ctx=ast.Load()
    )
    if form:
        text = _call(f"{URLLIB_PARSE}.urlencode", payload, doseq=_const(True))
    else:
        text = _call(f"{JSON}.dumps", payload)
    encode = ast.Attribute(value=text, attr="encode", ctx=ast.Load())
    return ast.Call(func=encode, args=[], keywords=[])
