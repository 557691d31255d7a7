"""Traversal stages, hook contexts and the visitor pipeline.

This module provides the core of the hook system:

* :class:`HookContext` -- An immutable view handed to every callback. It
  exposes the document being visited and a resolver for ``$ref`` pointers.
* :class:`FinishContext` -- The context passed to
  :meth:`~swagg.plugins.base.Hook.finish`, which adds artifact registration.
* :class:`VisitorPipeline` -- Walks a document once and calls every hook in
  registration order at every stage.

Unlike a request/response chain, nothing a hook returns flows into the next
hook. Hooks see the same document, and each produces at most a set of named
artifacts.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Union

from swagg.emitter.nodes import EmissionTree
from swagg.exceptions import ArtifactCollisionError, HookError, SwaggError
from swagg.models import Document, ItemKind
from swagg.parser.resolver import resolve, resolve_item
from swagg.plugins.base import Hook

logger = logging.getLogger(__name__)

Artifact = Union[EmissionTree, str]
"""A generation output: an emission tree or rendered text."""


class Stage(str, enum.Enum):
    """Traversal stages, in the order the pipeline enters them."""

    PRE_COMPONENTS = "pre_components"
    COMPONENTS = "components"
    POST_COMPONENTS = "post_components"
    PRE_PATHS = "pre_paths"
    PATHS = "paths"
    POST_PATHS = "post_paths"
    FINISH = "finish"


@dataclass(frozen=True)
class HookContext:
    """Read-only context threaded through every hook callback.

    Attributes:
        document: The document being traversed.
        stage: The stage the pipeline is currently in.
    """

    document: Document
    stage: Stage

    def resolve(self, ref: str, kind: ItemKind) -> Any:
        """Follow *ref* within the ``kind`` namespace to its final item.

        Raises:
            ResolutionError: If the pointer is foreign, missing or cyclic.
        """
        return resolve(ref, kind, self.document)


class ArtifactCollector:
    """Accumulates named artifacts and rejects duplicate names."""

    def __init__(self, reserved: tuple[str, ...] = ()) -> None:
        self._reserved = frozenset(reserved)
        self._artifacts: dict[str, Artifact] = {}

    def add(self, name: str, artifact: Artifact) -> None:
        """Store *artifact* under *name*.

        Raises:
            ArtifactCollisionError: If *name* is reserved or already taken.
        """
        if name in self._reserved or name in self._artifacts:
            raise ArtifactCollisionError(name)
        self._artifacts[name] = artifact

    @property
    def artifacts(self) -> dict[str, Artifact]:
        return dict(self._artifacts)


@dataclass(frozen=True)
class FinishContext(HookContext):
    """Context for the finish stage; adds :meth:`register_artifact`."""

    collector: ArtifactCollector = field(default_factory=ArtifactCollector)
    owner: str = ""

    def register_artifact(self, name: str, artifact: Artifact) -> None:
        """Add an artifact to the generation result.

        Args:
            name: Unique artifact name, e.g. ``"API_REFERENCE.md"``.
            artifact: An :class:`~swagg.emitter.nodes.EmissionTree` or text.

        Raises:
            ArtifactCollisionError: If the name was registered before.
        """
        self.collector.add(name, artifact)
        logger.debug("Hook '%s' registered artifact '%s'", self.owner, name)


class VisitorPipeline:
    """Runs a fixed list of hooks over a document.

    The pipeline is created by
    :meth:`~swagg.plugins.manager.HookManager.get_pipeline` or directly
    from a list of hooks. Hooks run in the order given.
    """

    def __init__(self, hooks: list[Hook]) -> None:
        self._hooks = list(hooks)

    @property
    def hooks(self) -> list[Hook]:
        return list(self._hooks)

    def run(
        self, document: Document, reserved: tuple[str, ...] = ()
    ) -> dict[str, Artifact]:
        """Traverse *document* once and collect the hooks' artifacts.

        Args:
            document: The document to visit.
            reserved: Artifact names that hooks may not register.

        Returns:
            Registered artifacts keyed by name, in registration order.

        Raises:
            HookError: If a hook raised; the first failure aborts the run.
            SwaggError: Errors raised by swagg itself inside a hook (for
                example a :class:`~swagg.exceptions.ResolutionError` from
                :meth:`HookContext.resolve`) propagate unchanged.
        """
        self._broadcast(HookContext(document, Stage.PRE_COMPONENTS), "pre_components")

        ctx = HookContext(document, Stage.COMPONENTS)
        for kind in ItemKind:
            for name, value in document.components.table(kind).items():
                item = resolve_item(value, kind, document)
                self._each(
                    Stage.COMPONENTS, lambda hook: hook.on_item(kind, name, item, ctx)
                )

        self._broadcast(HookContext(document, Stage.POST_COMPONENTS), "post_components")
        self._broadcast(HookContext(document, Stage.PRE_PATHS), "pre_paths")

        ctx = HookContext(document, Stage.PATHS)
        for path, path_item in document.paths.items():
            for method, operation in path_item.operations():
                self._each(
                    Stage.PATHS,
                    lambda hook: hook.on_operation(method, path, operation, ctx),
                )

        self._broadcast(HookContext(document, Stage.POST_PATHS), "post_paths")

        collector = ArtifactCollector(reserved)
        for hook in self._hooks:
            finish_ctx = FinishContext(document, Stage.FINISH, collector, hook.name)
            self._call(hook, Stage.FINISH, lambda: hook.finish(finish_ctx))
        logger.debug(
            "Pipeline finished with %d hook(s), %d artifact(s)",
            len(self._hooks),
            len(collector.artifacts),
        )
        return collector.artifacts

    def _broadcast(self, ctx: HookContext, callback: str) -> None:
        self._each(ctx.stage, lambda hook: getattr(hook, callback)(ctx))

    def _each(self, stage: Stage, call: Callable[[Hook], None]) -> None:
        for hook in self._hooks:
            self._call(hook, stage, lambda: call(hook))

    @staticmethod
    def _call(hook: Hook, stage: Stage, call: Callable[[], None]) -> None:
        try:
            call()
        except SwaggError:
            raise
        except Exception as exc:
            raise HookError(
                f"Hook '{hook.name}' failed during {stage.value}: {exc}"
            ) from exc
