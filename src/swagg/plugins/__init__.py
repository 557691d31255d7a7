"""Hook system for swagg -- discovery, traversal and artifacts.

Hooks observe a document while :class:`VisitorPipeline` walks it: components
first, by namespace, then every operation, then a finish stage in which each
hook may register named artifacts. Third-party packages register hooks by
declaring an entry point in the ``swagg.hooks`` group; :class:`HookManager`
discovers and loads them.

Key classes:

* :class:`Hook` -- Abstract base class that all hooks must extend.
* :class:`HookManager` -- Discovers, loads and orders hooks.
* :class:`VisitorPipeline` -- Runs hooks over a document.
* :class:`HookContext` -- Read-only context passed to every callback.
* :class:`FinishContext` -- Adds artifact registration in the finish stage.

Example:
    Typical usage::

        from swagg.plugins import HookManager

        manager = HookManager()
        manager.discover(config.hooks)
        artifacts = manager.get_pipeline().run(document)
"""

from swagg.plugins.base import Hook
from swagg.plugins.hooks import (
    Artifact,
    ArtifactCollector,
    FinishContext,
    HookContext,
    Stage,
    VisitorPipeline,
)
from swagg.plugins.manager import HookManager

__all__ = [
    "Artifact",
    "ArtifactCollector",
    "FinishContext",
    "Hook",
    "HookContext",
    "HookManager",
    "Stage",
    "VisitorPipeline",
]
