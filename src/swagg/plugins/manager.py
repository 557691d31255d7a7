"""Hook manager -- discovery, loading and pipeline construction.

This module contains :class:`HookManager`, which discovers hooks registered
as Python entry points, applies the enable/disable lists from
:class:`~swagg.models.HooksConfig`, and builds the
:class:`~swagg.plugins.hooks.VisitorPipeline` that runs them.

The entry-point group used for discovery is ``swagg.hooks``. Third-party
packages register hooks by declaring an entry point under this group in
their ``pyproject.toml``::

    [project.entry-points."swagg.hooks"]
    my-hook = "my_package.hook:MyHook"
"""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Optional

from swagg.exceptions import HookError
from swagg.models import HooksConfig
from swagg.plugins.base import Hook
from swagg.plugins.hooks import VisitorPipeline

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "swagg.hooks"
"""The entry-point group name used for hook discovery."""


class HookManager:
    """Discovers, loads and orders swagg hooks.

    When ``enabled`` is non-empty only those hooks are loaded; otherwise
    every discovered hook not listed in ``disabled`` is loaded. Hooks keep
    the order in which they were loaded, which is the order the pipeline
    calls them in.

    Example:
        Typical usage::

            manager = HookManager()
            manager.discover(config.hooks)
            artifacts = manager.get_pipeline().run(document)
    """

    def __init__(self) -> None:
        self._hooks: dict[str, Hook] = {}
        self._pipeline: Optional[VisitorPipeline] = None

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def discover(self, config: HooksConfig) -> list[str]:
        """Discover and load hooks via Python entry points.

        Args:
            config: The allow/deny lists controlling which hooks load.

        Returns:
            Names of the hooks that were loaded, in load order.

        Raises:
            HookError: If an entry point cannot be imported or instantiated.
                A broken hook aborts discovery rather than silently changing
                the generated output.
        """
        loaded_names: list[str] = []
        enabled_set = set(config.enabled)
        disabled_set = set(config.disabled)

        for ep in importlib.metadata.entry_points(group=ENTRY_POINT_GROUP):
            name = ep.name
            if enabled_set and name not in enabled_set:
                logger.debug("Hook '%s' not in enabled list, skipping", name)
                continue
            if name in disabled_set:
                logger.debug("Hook '%s' is disabled, skipping", name)
                continue

            try:
                hook_cls = ep.load()
                hook: Hook = hook_cls()
            except Exception as exc:
                raise HookError(f"Failed to load hook '{name}': {exc}") from exc
            self.load_hook(hook, name)
            loaded_names.append(name)

        return loaded_names

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_hook(self, hook: Hook, name: Optional[str] = None) -> None:
        """Register a single hook instance.

        Args:
            hook: The hook to register.
            name: Registration name; defaults to ``hook.name``.

        Raises:
            HookError: If a hook with the same name is already loaded.
        """
        name = name or hook.name
        if name in self._hooks:
            raise HookError(f"Hook '{name}' is already loaded")
        self._hooks[name] = hook
        self._pipeline = None
        logger.info("Loaded hook '%s' v%s", name, hook.version)

    # ------------------------------------------------------------------
    # Querying
    # ------------------------------------------------------------------

    def get_hook(self, name: str) -> Hook:
        """Retrieve a loaded hook by name.

        Raises:
            HookError: If no hook with the given *name* is loaded.
        """
        try:
            return self._hooks[name]
        except KeyError:
            raise HookError(f"Hook '{name}' is not loaded") from None

    def list_hooks(self) -> list[dict[str, str]]:
        return [
            {"name": name, "version": hook.version, "description": hook.description}
            for name, hook in self._hooks.items()
        ]

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def get_pipeline(self) -> VisitorPipeline:
        """Return a :class:`~swagg.plugins.hooks.VisitorPipeline` over all loaded hooks.

        The pipeline is cached until :meth:`load_hook` registers another hook.
        """
        if self._pipeline is None:
            self._pipeline = VisitorPipeline(list(self._hooks.values()))
        return self._pipeline
