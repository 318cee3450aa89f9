"""In-memory model graph and its JSON snapshot schema."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

from idscheck.exceptions import ModelLoadError, ModelResolutionError
from idscheck.graph.accessor import EntityRef, ModelGraph, RelationKind, TypedValue


class NodeSnapshot(BaseModel):
    """One node of a model snapshot."""
    id: int
    type: str = Field(..., description="IFC class name, e.g. IfcWall")
    attributes: Dict[str, Any] = Field(default_factory=dict)
    relations: Dict[RelationKind, List[int]] = Field(
        default_factory=dict,
        description="Outgoing edges keyed by relation kind",
    )


class ModelSnapshot(BaseModel):
    """Canonical JSON form of a model graph.

    ``elements`` are the addressable units facets select from; ``resources``
    are everything reachable only through edges or references (materials,
    property sets, classifications, ...).
    """
    ifc_schema: str = "IFC4"
    elements: List[NodeSnapshot] = Field(default_factory=list)
    resources: List[NodeSnapshot] = Field(default_factory=list)


class _Node:
    __slots__ = ("type", "attributes", "relations")

    def __init__(self, type_: str, attributes: Mapping[str, Any], relations: Mapping[RelationKind, Iterable[int]]):
        self.type = type_
        self.attributes = dict(attributes)
        self.relations = {RelationKind(kind): list(ids) for kind, ids in relations.items()}


def _decode(value: Any) -> Any:
    """Turn JSON reference/typed-value forms into graph values."""
    if isinstance(value, dict):
        if set(value) == {"ref"}:
            return EntityRef(int(value["ref"]))
        if "ifcType" in value and "value" in value:
            return TypedValue(str(value["ifcType"]), _decode(value["value"]))
        return {key: _decode(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_decode(item) for item in value]
    return value


class MemoryModelGraph(ModelGraph):
    """Model graph backed by plain dictionaries."""

    def __init__(self, schema: str = "IFC4") -> None:
        self.schema = schema
        self._nodes: Dict[int, _Node] = {}
        self._elements: List[int] = []

    def add(
        self,
        express_id: int,
        ifc_class: str,
        attributes: Optional[Mapping[str, Any]] = None,
        relations: Optional[Mapping[RelationKind, Iterable[int]]] = None,
        *,
        element: bool = True,
    ) -> int:
        if express_id in self._nodes:
            raise ValueError(f"Duplicate entity id: {express_id}")
        self._nodes[express_id] = _Node(ifc_class, attributes or {}, relations or {})
        if element:
            self._elements.append(express_id)
        return express_id

    def relate(self, express_id: int, kind: RelationKind, target_id: int) -> None:
        node = self._node(express_id)
        node.relations.setdefault(kind, []).append(target_id)

    @classmethod
    def from_snapshot(cls, snapshot: ModelSnapshot) -> "MemoryModelGraph":
        graph = cls(schema=snapshot.ifc_schema)
        for node in snapshot.elements:
            graph.add(node.id, node.type, _decode(node.attributes), node.relations)
        for node in snapshot.resources:
            graph.add(node.id, node.type, _decode(node.attributes), node.relations, element=False)
        return graph

    @classmethod
    def load(cls, path: Path) -> "MemoryModelGraph":
        try:
            payload = json.loads(Path(path).read_text(encoding="utf-8"))
            snapshot = ModelSnapshot.model_validate(payload)
        except OSError as exc:
            raise ModelLoadError(f"Cannot read model snapshot: {exc}", {"path": str(path)}) from exc
        except (ValueError, ValidationError) as exc:
            raise ModelLoadError(f"Invalid model snapshot: {exc}", {"path": str(path)}) from exc
        try:
            return cls.from_snapshot(snapshot)
        except ValueError as exc:
            raise ModelLoadError(str(exc), {"path": str(path)}) from exc

    def _node(self, express_id: int) -> _Node:
        try:
            return self._nodes[express_id]
        except KeyError:
            raise ModelResolutionError(f"Entity #{express_id} does not exist", {"id": str(express_id)}) from None

    async def entity_ids(self, ifc_class: str | None = None) -> list[int]:
        if ifc_class is None:
            return sorted(self._elements)
        wanted = ifc_class.upper()
        return sorted(eid for eid in self._elements if self._nodes[eid].type.upper() == wanted)

    async def type_of(self, express_id: int) -> str:
        return self._node(express_id).type

    async def attribute(self, express_id: int, name: str) -> Any:
        return self._node(express_id).attributes.get(name)

    async def attributes(self, express_id: int) -> dict[str, Any]:
        node = self._node(express_id)
        snapshot: dict[str, Any] = {"id": express_id, "type": node.type}
        snapshot.update(node.attributes)
        return snapshot

    async def relations_of(self, express_id: int, kind: RelationKind) -> list[int]:
        return list(self._node(express_id).relations.get(kind, ()))


__all__ = ["NodeSnapshot", "ModelSnapshot", "MemoryModelGraph"]
