"""The component graph and the name registry that guards it.

:class:`NameRegistry` hands out type identifiers during a build and fails on
the first clash. :class:`ComponentGraph` is the finished, read-only result:
an ordered collection of :class:`~swagg.models.GraphEntry` indexed by
component name, shared by the binder and the emitter.
"""

from __future__ import annotations

from collections.abc import Iterator
from types import MappingProxyType
from typing import Optional

from swagg.exceptions import NameCollisionError
from swagg.models import GraphEntry, ItemKind, NamedComponent
from swagg.naming import to_type_name


class NameRegistry:
    """Tracks which wire names own which generated type identifiers.

    Two names that convert to the same identifier under
    :func:`~swagg.naming.to_type_name` cannot both be registered.
    """

    def __init__(self) -> None:
        self._owners: dict[str, str] = {}

    def register(self, name: str) -> str:
        """Claim the identifier for *name* and return it.

        Raises:
            NameCollisionError: If another name already owns the identifier.
        """
        identifier = to_type_name(name)
        existing = self._owners.get(identifier)
        if existing is not None:
            raise NameCollisionError(name, existing, identifier)
        self._owners[identifier] = name
        return identifier

    def release(self, name: str) -> None:
        """Give back the identifier of *name*, if *name* owns it."""
        identifier = to_type_name(name)
        if self._owners.get(identifier) == name:
            del self._owners[identifier]

    def owner(self, identifier: str) -> Optional[str]:
        return self._owners.get(identifier)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._owners


class ComponentGraph:
    """Read-only, insertion-ordered view over built components.

    Iterating yields :class:`~swagg.models.GraphEntry` objects in build
    order. Lookups go by component name (the wire key for declared
    components, the synthesized name for promoted ones).
    """

    def __init__(self, entries: list[GraphEntry]):
        self._entries = tuple(entries)
        self._by_name = MappingProxyType(
            {entry.component.name: entry for entry in self._entries}
        )

    @property
    def entries(self) -> tuple[GraphEntry, ...]:
        return self._entries

    @property
    def by_name(self) -> MappingProxyType:
        return self._by_name

    def get(self, name: str) -> Optional[NamedComponent]:
        entry = self._by_name.get(name)
        return entry.component if entry is not None else None

    def kind_of(self, name: str) -> Optional[ItemKind]:
        entry = self._by_name.get(name)
        return entry.kind if entry is not None else None

    def of_kind(self, kind: ItemKind) -> tuple[NamedComponent, ...]:
        """Components declared under *kind*, in build order."""
        return tuple(entry.component for entry in self._entries if entry.kind == kind)

    def names(self) -> list[str]:
        return [entry.component.name for entry in self._entries]

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[GraphEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ComponentGraph):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"ComponentGraph({len(self._entries)} components)"
