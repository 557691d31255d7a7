"""Component graph construction ("highway").

Turns the declared components and inline operation bodies of a
:class:`~swagg.models.Document` into an ordered, read-only
:class:`ComponentGraph` of named components, promoting nested anonymous
structures along the way.

Typical usage::

    from swagg.highway import build

    graph, warnings = build(document)
    for entry in graph:
        print(entry.kind.value, entry.component.name)
"""

from swagg.highway.builder import MAX_ARRAY_DEPTH, ComponentGraphBuilder, build
from swagg.highway.graph import ComponentGraph, NameRegistry

__all__ = [
    "MAX_ARRAY_DEPTH",
    "ComponentGraph",
    "ComponentGraphBuilder",
    "NameRegistry",
    "build",
]
