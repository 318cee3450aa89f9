"""Read-only property graph interface consumed by the facet engine.

The engine never touches a model file directly. Every lookup goes through a
``ModelGraph``: element types, scalar attributes, attribute snapshots and
outgoing relationship edges. All methods are coroutines so that resolution
chains of several hops can be interleaved across entities; implementations
must be safe to call concurrently because they never mutate the model.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any


class RelationKind(str, Enum):
    """Relationship edges an element can be asked for.

    Each kind resolves to the relating side of the relationship, i.e. the
    entity "above" the element (its type object, container, material, ...).
    """
    TYPE = "type"
    PROPERTY_SETS = "property_sets"
    MATERIAL = "material"
    CLASSIFICATION = "classification"
    AGGREGATES = "aggregates"
    CONTAINMENT = "containment"
    NESTS = "nests"
    VOIDS = "voids"
    FILLS = "fills"
    GROUP = "group"


@dataclass(frozen=True)
class EntityRef:
    """Reference to another entity inside an attribute value."""
    id: int


@dataclass(frozen=True)
class TypedValue:
    """Value wrapped in an IFC defined type, e.g. ``IfcLabel('F30')``."""
    ifc_type: str
    value: Any


def ref_id(value: Any) -> int | None:
    if isinstance(value, EntityRef):
        return value.id
    return None


def ref_ids(value: Any) -> list[int]:
    if value is None:
        return []
    if isinstance(value, EntityRef):
        return [value.id]
    if isinstance(value, (list, tuple)):
        return [item.id for item in value if isinstance(item, EntityRef)]
    return []


def unwrap(value: Any) -> Any:
    if isinstance(value, TypedValue):
        return value.value
    return value


class ModelGraph(ABC):
    """Read-only oracle over one model snapshot."""

    schema: str = ""

    @abstractmethod
    async def entity_ids(self, ifc_class: str | None = None) -> list[int]:
        """Return ids of addressable elements, optionally of one exact class.

        Class names are matched case-insensitively. The result is sorted.
        """

    @abstractmethod
    async def type_of(self, express_id: int) -> str:
        """Return the type tag of an entity (e.g. ``IfcWall``)."""

    @abstractmethod
    async def attribute(self, express_id: int, name: str) -> Any:
        """Return one attribute value, or ``None`` when absent."""

    @abstractmethod
    async def attributes(self, express_id: int) -> dict[str, Any]:
        """Return a snapshot of all attributes including ``id`` and ``type``."""

    @abstractmethod
    async def relations_of(self, express_id: int, kind: RelationKind) -> list[int]:
        """Return the ids reached through one relationship kind."""


__all__ = [
    "RelationKind",
    "EntityRef",
    "TypedValue",
    "ModelGraph",
    "ref_id",
    "ref_ids",
    "unwrap",
]
