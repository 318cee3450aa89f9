"""Property facet: properties and quantities inside named property sets."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

from idscheck.graph.accessor import ModelGraph, RelationKind, TypedValue, ref_ids, unwrap
from idscheck.ids.cardinality import is_present, resolve_cardinality, value_passes
from idscheck.ids.facets.common import Collector, add_check, eval_observations, filter_entities, run_test
from idscheck.ids.parameters import FacetParameter
from idscheck.ids.types import Cardinality, CardinalitySpec, FacetType, IDSCheck, IDSCheckResult, Role
from idscheck.ids.xml import element_xml, parameter_xml, role_attributes

# Quantity class -> (value attribute, measure type)
QUANTITY_VALUES = {
    "IfcQuantityLength": ("LengthValue", "IFCLENGTHMEASURE"),
    "IfcQuantityArea": ("AreaValue", "IFCAREAMEASURE"),
    "IfcQuantityVolume": ("VolumeValue", "IFCVOLUMEMEASURE"),
    "IfcQuantityCount": ("CountValue", "IFCCOUNTMEASURE"),
    "IfcQuantityWeight": ("WeightValue", "IFCMASSMEASURE"),
    "IfcQuantityTime": ("TimeValue", "IFCTIMEMEASURE"),
}

# (value, data type in upper case or None)
PropertyValue = Tuple[Any, Optional[str]]


@dataclass(eq=False)
class PropertyFacet:
    property_set: FacetParameter
    base_name: FacetParameter
    value: Optional[FacetParameter] = None
    data_type: Optional[str] = None
    uri: Optional[str] = None
    cardinality: CardinalitySpec = Cardinality.REQUIRED
    instructions: Optional[str] = None
    facet_type: FacetType = field(default=FacetType.PROPERTY, init=False)
    test_result: List[IDSCheckResult] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.data_type is not None:
            self.data_type = self.data_type.upper()


def _typed(value: Any) -> PropertyValue:
    if isinstance(value, TypedValue):
        return value.value, value.ifc_type.upper()
    return value, None


async def property_sets_of(model: ModelGraph, express_id: int) -> list[Tuple[int, Optional[str]]]:
    """(id, name) of every property definition, occurrence sets first.

    A set defined on the occurrence overrides a type set with the same name.
    """
    found: list[Tuple[int, Optional[str]]] = []
    seen: set[Optional[str]] = set()
    sources = [express_id] + await model.relations_of(express_id, RelationKind.TYPE)
    for source_id in sources:
        for pset_id in await model.relations_of(source_id, RelationKind.PROPERTY_SETS):
            name = unwrap(await model.attribute(pset_id, "Name"))
            if name in seen:
                continue
            seen.add(name)
            found.append((pset_id, name))
    return found


async def property_values(model: ModelGraph, property_id: int) -> list[PropertyValue]:
    ifc_class = await model.type_of(property_id)
    if ifc_class == "IfcPropertySingleValue":
        return [_typed(await model.attribute(property_id, "NominalValue"))]
    if ifc_class == "IfcPropertyEnumeratedValue":
        return [_typed(item) for item in await model.attribute(property_id, "EnumerationValues") or []]
    if ifc_class == "IfcPropertyListValue":
        return [_typed(item) for item in await model.attribute(property_id, "ListValues") or []]
    if ifc_class in QUANTITY_VALUES:
        attribute, measure = QUANTITY_VALUES[ifc_class]
        return [(unwrap(await model.attribute(property_id, attribute)), measure)]
    return []


async def _members(model: ModelGraph, pset_id: int) -> list[int]:
    members = ref_ids(await model.attribute(pset_id, "HasProperties"))
    if not members:
        members = ref_ids(await model.attribute(pset_id, "Quantities"))
    return members


async def evaluate(
    facet: PropertyFacet,
    express_id: int,
    attrs: Mapping[str, Any],
    model: ModelGraph,
    cardinality: Cardinality,
    checks: List[IDSCheck],
) -> bool:
    observations = []
    for pset_id, pset_name in await property_sets_of(model, express_id):
        if not facet.property_set.matches(pset_name):
            continue
        for property_id in await _members(model, pset_id):
            property_name = unwrap(await model.attribute(property_id, "Name"))
            if not facet.base_name.matches(property_name):
                continue
            label = f"{pset_name}.{property_name}"
            for value, data_type in await property_values(model, property_id):
                if not is_present(value):
                    continue
                matched = facet.value is None or facet.value.matches(value)
                if facet.data_type is not None:
                    type_ok = data_type == facet.data_type
                    matched = matched and type_ok
                    add_check(
                        checks,
                        "DataType",
                        attribute=label,
                        current_value=data_type,
                        required_value=None,
                        # a prohibited facet is satisfied by a type mismatch
                        passed=value_passes(cardinality, matched) if cardinality is Cardinality.PROHIBITED else type_ok,
                    )
                observations.append((label, value, matched))

    return eval_observations(
        observations,
        facet.value,
        "Value",
        cardinality,
        checks,
        require_all=True,
        attribute=f"{facet.property_set.describe()}.{facet.base_name.describe()}",
    )


async def get_entities(
    facet: PropertyFacet,
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
    facet: PropertyFacet,
    entities: Mapping[int, Mapping[str, Any]],
    model: ModelGraph,
    *,
    concurrency: int | None = None,
) -> list[IDSCheckResult]:
    return await run_test(facet, entities, model, evaluate, allow_conditional=True, concurrency=concurrency)


def serialize(facet: PropertyFacet, role: Role) -> str:
    cardinality = resolve_cardinality(facet.cardinality, role)
    attributes = [("dataType", facet.data_type)] + role_attributes(
        cardinality, role, uri=facet.uri, instructions=facet.instructions
    )
    children = (
        parameter_xml("propertySet", facet.property_set)
        + parameter_xml("baseName", facet.base_name)
        + parameter_xml("value", facet.value)
    )
    return element_xml("property", attributes, children)


__all__ = ["PropertyFacet", "QUANTITY_VALUES", "property_sets_of", "property_values", "get_entities", "test", "serialize"]
