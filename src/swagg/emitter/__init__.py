"""Code emission -- from the component graph to Python source.

* :mod:`swagg.emitter.nodes` -- frozen, self-validating emission nodes.
* :mod:`swagg.emitter.emitter` -- :func:`emit`, graph + operations to tree.
* :mod:`swagg.emitter.render` -- :func:`render_tree`, tree to source text.
"""

from swagg.emitter.emitter import COMPONENT_MODULES, CodeEmitter, api_class_name, emit
from swagg.emitter.nodes import EmissionTree, Module
from swagg.emitter.render import render_module, render_tree

__all__ = [
    "COMPONENT_MODULES",
    "CodeEmitter",
    "EmissionTree",
    "Module",
    "api_class_name",
    "emit",
    "render_module",
    "render_tree",
]
