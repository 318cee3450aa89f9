"""ifcopenshell-backed model graph."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, List

import ifcopenshell
import ifcopenshell.util.element
from loguru import logger

from idscheck.exceptions import ModelLoadError, ModelResolutionError
from idscheck.graph.accessor import EntityRef, ModelGraph, RelationKind, TypedValue


def _open_model(path_or_model: Any) -> ifcopenshell.file:
    if isinstance(path_or_model, ifcopenshell.file):
        return path_or_model
    if isinstance(path_or_model, (str, Path)):
        path = Path(path_or_model)
        if not path.exists():
            raise ModelLoadError(f"IFC file not found: {path}", {"path": str(path)})
        try:
            return ifcopenshell.open(path.as_posix())
        except Exception as exc:  # ifcopenshell raises plain Exception subclasses for parse errors
            raise ModelLoadError(f"Cannot open IFC file: {exc}", {"path": str(path)}) from exc
    raise TypeError("Expected path or ifcopenshell.file")


def _convert(value: Any) -> Any:
    if isinstance(value, ifcopenshell.entity_instance):
        if value.id():
            return EntityRef(value.id())
        # Defined types (IfcLabel, IfcLengthMeasure, ...) are not file instances
        return TypedValue(value.is_a(), _convert(value.wrappedValue))
    if isinstance(value, (list, tuple)):
        return [_convert(item) for item in value]
    return value


def _inverse(entity: ifcopenshell.entity_instance, name: str) -> Iterable[Any]:
    return getattr(entity, name, None) or ()


class IfcModelGraph(ModelGraph):
    """Expose an IFC file as a read-only property graph."""

    def __init__(self, model: ifcopenshell.file) -> None:
        self.model = model
        self.schema = model.schema

    @classmethod
    def open(cls, path_or_model: Any) -> "IfcModelGraph":
        return cls(_open_model(path_or_model))

    def _entity(self, express_id: int) -> ifcopenshell.entity_instance:
        try:
            return self.model.by_id(express_id)
        except RuntimeError:
            raise ModelResolutionError(f"Entity #{express_id} does not exist", {"id": str(express_id)}) from None

    async def entity_ids(self, ifc_class: str | None = None) -> list[int]:
        if ifc_class is None:
            instances = self.model.by_type("IfcObjectDefinition")
        else:
            try:
                instances = self.model.by_type(ifc_class, include_subtypes=False)
            except RuntimeError:
                logger.debug("Class {} is not part of schema {}", ifc_class, self.schema)
                return []
        return sorted(instance.id() for instance in instances)

    async def type_of(self, express_id: int) -> str:
        return self._entity(express_id).is_a()

    async def attribute(self, express_id: int, name: str) -> Any:
        entity = self._entity(express_id)
        try:
            value = getattr(entity, name)
        except AttributeError:
            return None
        return _convert(value)

    async def attributes(self, express_id: int) -> dict[str, Any]:
        entity = self._entity(express_id)
        info = entity.get_info(include_identifier=True, recursive=False)
        snapshot: dict[str, Any] = {"id": info.pop("id"), "type": info.pop("type")}
        for name, value in info.items():
            snapshot[name] = _convert(value)
        return snapshot

    async def relations_of(self, express_id: int, kind: RelationKind) -> list[int]:
        entity = self._entity(express_id)
        targets: List[ifcopenshell.entity_instance] = []

        if kind is RelationKind.TYPE:
            if not entity.is_a("IfcTypeObject"):
                element_type = ifcopenshell.util.element.get_type(entity)
                if element_type is not None:
                    targets.append(element_type)
        elif kind is RelationKind.PROPERTY_SETS:
            if entity.is_a("IfcTypeObject"):
                targets.extend(_inverse(entity, "HasPropertySets"))
            else:
                for rel in _inverse(entity, "IsDefinedBy"):
                    if not rel.is_a("IfcRelDefinesByProperties"):
                        continue
                    definition = rel.RelatingPropertyDefinition
                    if isinstance(definition, (list, tuple)):
                        targets.extend(definition)
                    elif definition is not None:
                        targets.append(definition)
        elif kind is RelationKind.MATERIAL:
            for rel in _inverse(entity, "HasAssociations"):
                if rel.is_a("IfcRelAssociatesMaterial") and rel.RelatingMaterial is not None:
                    targets.append(rel.RelatingMaterial)
        elif kind is RelationKind.CLASSIFICATION:
            for rel in _inverse(entity, "HasAssociations"):
                if rel.is_a("IfcRelAssociatesClassification") and rel.RelatingClassification is not None:
                    targets.append(rel.RelatingClassification)
        elif kind is RelationKind.AGGREGATES:
            for rel in _inverse(entity, "Decomposes"):
                if rel.is_a("IfcRelAggregates"):
                    targets.append(rel.RelatingObject)
        elif kind is RelationKind.CONTAINMENT:
            for rel in _inverse(entity, "ContainedInStructure"):
                targets.append(rel.RelatingStructure)
        elif kind is RelationKind.NESTS:
            # IFC2X3 reports nesting through Decomposes
            for rel in list(_inverse(entity, "Nests")) + list(_inverse(entity, "Decomposes")):
                if rel.is_a("IfcRelNests"):
                    targets.append(rel.RelatingObject)
        elif kind is RelationKind.VOIDS:
            for rel in _inverse(entity, "VoidsElements"):
                targets.append(rel.RelatingBuildingElement)
        elif kind is RelationKind.FILLS:
            for rel in _inverse(entity, "FillsVoids"):
                targets.append(rel.RelatingOpeningElement)
        elif kind is RelationKind.GROUP:
            for rel in _inverse(entity, "HasAssignments"):
                if rel.is_a("IfcRelAssignsToGroup"):
                    targets.append(rel.RelatingGroup)

        return [target.id() for target in targets if target is not None]


__all__ = ["IfcModelGraph"]
