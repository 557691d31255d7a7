"""Generation entry points.

The two public functions run the whole pipeline over one document:

* :func:`generate` -- build, bind and emit; returns the :class:`Bindings`.
* :func:`generate_with_hooks` -- the same, plus a
  :class:`~swagg.plugins.hooks.VisitorPipeline` run over the given hooks;
  returns every artifact keyed by name, the bindings under
  :data:`PRIMARY_ARTIFACT`.

Neither function performs I/O. Every failure surfaces as a
:class:`~swagg.exceptions.GenerationError` whose ``cause`` is the original
error and whose ``stage`` names the pipeline step that raised it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from swagg.exceptions import (
    CycleDetectedError,
    DuplicateStatusError,
    GenerationError,
    NameCollisionError,
    NotFoundError,
    SwaggError,
    UnnamedParameterSchemaError,
)
from swagg.models import BuildWarning, Document, RouteScope

logger = logging.getLogger(__name__)

PRIMARY_ARTIFACT = "bindings"
"""Artifact name reserved for the generated bindings."""


@dataclass(frozen=True)
class Bindings:
    """The primary artifact of a generation run.

    Attributes:
        tree: The emission tree of the generated package.
        warnings: Build warnings, in the order they were raised.
        graph: The component graph the tree was emitted from.
        routes: Route scopes in first-seen order.
    """

    tree: Any
    warnings: tuple[BuildWarning, ...] = ()
    graph: Any = None
    routes: tuple[RouteScope, ...] = ()


@dataclass(frozen=True)
class GenerationResult:
    """All artifacts of a hooked run, keyed by name."""

    artifacts: dict[str, Any] = field(default_factory=dict)
    warnings: tuple[BuildWarning, ...] = ()

    @property
    def bindings(self) -> Bindings:
        return self.artifacts[PRIMARY_ARTIFACT]


def generate(
    document: Union[Document, dict[str, Any]],
    *,
    strict: bool = False,
    package: Optional[str] = None,
) -> Bindings:
    """Generate bindings for *document*.

    Args:
        document: A validated :class:`~swagg.models.Document` or the raw
            mapping it is parsed from.
        strict: Fail when the build produced any warning.
        package: Import name of the generated package.

    Returns:
        The :class:`Bindings` for the document.

    Raises:
        GenerationError: If any stage fails, or *strict* is set and
            warnings were raised.
    """
    return _Run(_as_document(document), strict, package).bindings()


def generate_with_hooks(
    document: Union[Document, dict[str, Any]],
    hooks: list[Any],
    *,
    strict: bool = False,
    package: Optional[str] = None,
) -> GenerationResult:
    """Generate bindings and run *hooks* over *document*.

    Hooks run after the bindings are built, so a document that cannot be
    bound never reaches them. Artifacts are only returned when every stage
    and every hook succeeded.

    Raises:
        GenerationError: If any stage or hook fails; a hook failure keeps
            the :class:`~swagg.exceptions.HookError` as ``cause``.
    """
    from swagg.plugins.hooks import VisitorPipeline

    run = _Run(_as_document(document), strict, package)
    bindings = run.bindings()
    with run.stage("hooks"):
        artifacts = VisitorPipeline(hooks).run(run.document, reserved=(PRIMARY_ARTIFACT,))
    logger.info("Hooks registered %d artifact(s)", len(artifacts))
    return GenerationResult(
        artifacts={PRIMARY_ARTIFACT: bindings, **artifacts},
        warnings=bindings.warnings,
    )


def _as_document(document: Union[Document, dict[str, Any]]) -> Document:
    if isinstance(document, Document):
        return document
    from swagg.parser.loader import parse_document

    try:
        return parse_document(document)
    except SwaggError as exc:
        raise GenerationError(str(exc), cause=exc, stage="parse") from exc


class _Stage:
    """Context manager wrapping a :class:`SwaggError` into a :class:`GenerationError`."""

    def __init__(self, name: str):
        self.name = name

    def __enter__(self) -> _Stage:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> bool:
        if exc is None or not isinstance(exc, SwaggError) or isinstance(exc, GenerationError):
            return False
        raise GenerationError(str(exc), cause=exc, stage=self.name, **_context(exc)) from exc


def _context(exc: SwaggError) -> dict[str, Optional[str]]:
    """Component, path and operation details carried by *exc*, if any."""
    if isinstance(exc, (DuplicateStatusError, UnnamedParameterSchemaError)):
        return {"operation": exc.operation}
    if isinstance(exc, NameCollisionError):
        return {"component": exc.proposed}
    if isinstance(exc, NotFoundError):
        return {"component": exc.name}
    if isinstance(exc, CycleDetectedError):
        return {"component": exc.ref}
    return {}


class _Run:
    """One pass over a document: build, bind, emit."""

    def __init__(self, document: Document, strict: bool, package: Optional[str]):
        self.document = document
        self._strict = strict
        self._package = package

    @staticmethod
    def stage(name: str) -> _Stage:
        return _Stage(name)

    def bindings(self) -> Bindings:
        from swagg.binder import bind, group_routes
        from swagg.emitter import emit
        from swagg.highway import build

        with self.stage("build"):
            graph, warnings = build(self.document)
        if self._strict and warnings:
            detail = "; ".join(str(warning) for warning in warnings)
            raise GenerationError(
                f"{len(warnings)} build warning(s) in strict mode: {detail}",
                stage="build",
                component=warnings[0].name,
            )
        with self.stage("bind"):
            operations = bind(self.document, graph)
        with self.stage("emit"):
            tree = emit(graph, operations, self.document.info, self._package)

        logger.info(
            "Generated %d component(s) and %d operation(s) for '%s'",
            len(graph),
            len(operations),
            tree.package,
        )
        return Bindings(
            tree=tree,
            warnings=tuple(warnings),
            graph=graph,
            routes=tuple(group_routes(operations)),
        )
