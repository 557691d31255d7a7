"""Resolve ``$ref`` pointers against a :class:`~swagg.models.Document`.

Every pointer handled by swagg has the shape
``#/components/<kind>/<name>``, where ``<kind>`` is one of the
:class:`~swagg.models.ItemKind` namespaces. Resolution is a pure function of
the pointer and the document: nothing is cached and nothing is copied.

A component may itself be a ``$ref`` to another component of the same kind
(an *alias chain*). Chains are followed iteratively by looking names up in
the flat ``components/<kind>`` table; a chain longer than
:data:`MAX_REFERENCE_DEPTH` is reported as a cycle.

Only **internal** references (those starting with ``#/``) are supported.
Anything else raises :class:`~swagg.exceptions.ExternalReferenceError`.
"""

from __future__ import annotations

import logging
from typing import Any, Union

from swagg.exceptions import (
    CycleDetectedError,
    ExternalReferenceError,
    NotFoundError,
    WrongNamespaceError,
)
from swagg.models import Document, ItemKind, Reference

logger = logging.getLogger(__name__)

MAX_REFERENCE_DEPTH = 32
"""Longest alias chain followed before a cycle is assumed."""


def namespace_prefix(kind: ItemKind) -> str:
    """Return the pointer prefix for *kind*, e.g. ``#/components/schemas/``."""
    return f"#/components/{kind.value}/"


def ref_name(ref: str, kind: ItemKind) -> str:
    """Strip the namespace prefix from *ref* and return the component name.

    Handles RFC 6901 JSON Pointer escaping (``~1`` for ``/``, ``~0`` for
    ``~``) in the name segment.

    Raises:
        ExternalReferenceError: If *ref* does not start with ``#/``.
        WrongNamespaceError: If *ref* points outside ``components/<kind>``
            or deeper than a single name segment.
    """
    prefix = namespace_prefix(kind)
    if not ref.startswith("#/"):
        raise ExternalReferenceError(ref, prefix)
    if not ref.startswith(prefix):
        raise WrongNamespaceError(ref, prefix)
    raw = ref[len(prefix):]
    if not raw or "/" in raw:
        raise WrongNamespaceError(ref, prefix)
    return raw.replace("~1", "/").replace("~0", "~")


def resolve_named(ref: str, kind: ItemKind, document: Document) -> tuple[str, Any]:
    """Resolve *ref* and return ``(name, item)`` for the end of the alias chain.

    Args:
        ref: The pointer string.
        kind: Namespace the pointer is expected to live in.
        document: The document to resolve against.

    Returns:
        The name of the component that finally holds an item, and that item.

    Raises:
        WrongNamespaceError: If any pointer in the chain has the wrong prefix.
        NotFoundError: If any name in the chain is not declared.
        CycleDetectedError: If the chain is longer than
            :data:`MAX_REFERENCE_DEPTH`.
    """
    table = document.components.table(kind)
    chain: list[str] = []
    current = ref
    while True:
        name = ref_name(current, kind)
        chain.append(name)
        if name not in table:
            raise NotFoundError(kind.value, name)
        target = table[name]
        if not isinstance(target, Reference):
            if len(chain) > 1:
                logger.debug("Resolved %s through %s", ref, " -> ".join(chain))
            return name, target
        if len(chain) > MAX_REFERENCE_DEPTH:
            raise CycleDetectedError(ref, chain)
        current = target.ref


def resolve(ref: str, kind: ItemKind, document: Document) -> Any:
    """Resolve *ref* to the item it ultimately points at.

    Example::

        schema = resolve("#/components/schemas/Pet", ItemKind.SCHEMAS, doc)
    """
    return resolve_named(ref, kind, document)[1]


def resolve_item(value: Union[Reference, Any], kind: ItemKind, document: Document) -> Any:
    """Resolve *value* if it is a :class:`~swagg.models.Reference`, else return it."""
    if isinstance(value, Reference):
        return resolve(value.ref, kind, document)
    return value
