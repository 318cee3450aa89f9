"""Material facet.

Materials reach an element through one of a fixed set of relationship
shapes. ``material_names`` dispatches on the shape and returns every material
name found; a layered, profiled or constituent set contributes the names of
all its members.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Mapping, Optional

from loguru import logger

from idscheck.graph.accessor import ModelGraph, RelationKind, ref_id, ref_ids, unwrap
from idscheck.ids.cardinality import is_present, resolve_cardinality
from idscheck.ids.facets.common import Collector, eval_values, filter_entities, run_test, type_fallback
from idscheck.ids.parameters import FacetParameter
from idscheck.ids.types import Cardinality, CardinalitySpec, FacetType, IDSCheck, IDSCheckResult, Role
from idscheck.ids.xml import element_xml, parameter_xml, role_attributes


class MaterialShape(str, Enum):
    MATERIAL = "IfcMaterial"
    LAYER = "IfcMaterialLayer"
    LAYER_SET = "IfcMaterialLayerSet"
    LAYER_SET_USAGE = "IfcMaterialLayerSetUsage"
    PROFILE = "IfcMaterialProfile"
    PROFILE_SET = "IfcMaterialProfileSet"
    PROFILE_SET_USAGE = "IfcMaterialProfileSetUsage"
    PROFILE_SET_USAGE_TAPERING = "IfcMaterialProfileSetUsageTapering"
    CONSTITUENT = "IfcMaterialConstituent"
    CONSTITUENT_SET = "IfcMaterialConstituentSet"
    LIST = "IfcMaterialList"

    @classmethod
    def from_type(cls, ifc_class: str) -> Optional["MaterialShape"]:
        try:
            return cls(ifc_class)
        except ValueError:
            return None


@dataclass(eq=False)
class MaterialFacet:
    value: Optional[FacetParameter] = None
    uri: Optional[str] = None
    cardinality: CardinalitySpec = Cardinality.REQUIRED
    instructions: Optional[str] = None
    facet_type: FacetType = field(default=FacetType.MATERIAL, init=False)
    test_result: List[IDSCheckResult] = field(default_factory=list, init=False, repr=False)


async def _name(model: ModelGraph, material_id: Optional[int]) -> list[str]:
    if material_id is None:
        return []
    name = unwrap(await model.attribute(material_id, "Name"))
    return [name] if is_present(name) else []


async def _member_names(model: ModelGraph, set_id: int, members: str) -> list[str]:
    names: list[str] = []
    for member_id in ref_ids(await model.attribute(set_id, members)):
        names.extend(await material_names(model, member_id))
    return names


async def material_names(model: ModelGraph, material_id: int) -> list[str]:
    """Names of every material behind one material select, in model order."""
    ifc_class = await model.type_of(material_id)
    shape = MaterialShape.from_type(ifc_class)
    if shape is None:
        logger.debug("Material #{} has unrecognised shape {}", material_id, ifc_class)
        return []

    if shape is MaterialShape.MATERIAL:
        return await _name(model, material_id)
    if shape in (MaterialShape.LAYER, MaterialShape.PROFILE, MaterialShape.CONSTITUENT):
        return await _name(model, ref_id(await model.attribute(material_id, "Material")))
    if shape is MaterialShape.LAYER_SET:
        return await _member_names(model, material_id, "MaterialLayers")
    if shape is MaterialShape.PROFILE_SET:
        return await _member_names(model, material_id, "MaterialProfiles")
    if shape is MaterialShape.CONSTITUENT_SET:
        return await _member_names(model, material_id, "MaterialConstituents")
    if shape is MaterialShape.LIST:
        return await _member_names(model, material_id, "Materials")
    if shape is MaterialShape.LAYER_SET_USAGE:
        layer_set = ref_id(await model.attribute(material_id, "ForLayerSet"))
        return await material_names(model, layer_set) if layer_set is not None else []
    if shape in (MaterialShape.PROFILE_SET_USAGE, MaterialShape.PROFILE_SET_USAGE_TAPERING):
        profile_set = ref_id(await model.attribute(material_id, "ForProfileSet"))
        return await material_names(model, profile_set) if profile_set is not None else []
    return []


async def materials_of(model: ModelGraph, express_id: int) -> list[str]:
    """Distinct material names assigned to an element or, failing that, its type."""
    names: list[str] = []
    for material_id in await type_fallback(model, express_id, RelationKind.MATERIAL):
        for name in await material_names(model, material_id):
            if name not in names:
                names.append(name)
    return names


async def evaluate(
    facet: MaterialFacet,
    express_id: int,
    attrs: Mapping[str, Any],
    model: ModelGraph,
    cardinality: Cardinality,
    checks: List[IDSCheck],
) -> bool:
    names = await materials_of(model, express_id)
    return eval_values(
        [("Material", name) for name in names],
        facet.value,
        "Value",
        cardinality,
        checks,
        require_all=False,
        attribute="Material",
    )


async def get_entities(
    facet: MaterialFacet,
    model: ModelGraph,
    collector: Optional[Collector] = None,
    *,
    concurrency: int | None = None,
) -> list[int]:
    candidates = await model.entity_ids()
    return await filter_entities(
        facet,
        model,
        collector,
        candidates,
        evaluate,
        allow_conditional=True,
        needs_snapshot=False,
        concurrency=concurrency,
    )


async def test(
    facet: MaterialFacet,
    entities: Mapping[int, Mapping[str, Any]],
    model: ModelGraph,
    *,
    concurrency: int | None = None,
) -> list[IDSCheckResult]:
    return await run_test(facet, entities, model, evaluate, allow_conditional=True, concurrency=concurrency)


def serialize(facet: MaterialFacet, role: Role) -> str:
    cardinality = resolve_cardinality(facet.cardinality, role)
    attributes = role_attributes(cardinality, role, uri=facet.uri, instructions=facet.instructions)
    return element_xml("material", attributes, parameter_xml("value", facet.value))


__all__ = ["MaterialShape", "MaterialFacet", "material_names", "materials_of", "get_entities", "test", "serialize"]
