"""Entity facet: selects elements by IFC class and predefined type."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, List, Mapping, Optional

from idscheck.exceptions import ConfigurationError
from idscheck.graph.accessor import ModelGraph, RelationKind
from idscheck.ids.facets.common import Collector, eval_requirement, filter_entities, run_test
from idscheck.ids.parameters import FacetParameter, ParameterKind
from idscheck.ids.types import Cardinality, CardinalitySpec, FacetType, IDSCheck, IDSCheckResult, Role
from idscheck.ids.xml import element_xml, parameter_xml

_UNSET_TYPES = {None, "NOTDEFINED"}


def class_name_parameter(name: FacetParameter) -> FacetParameter:
    """Upper-case literal class names, which are compared as ``IFCWALL``."""
    if name.kind is ParameterKind.SIMPLE and isinstance(name.value, str):
        return replace(name, value=name.value.upper())
    if name.kind is ParameterKind.ENUMERATION:
        return replace(name, value=tuple(v.upper() if isinstance(v, str) else v for v in name.value))
    return name


@dataclass(eq=False)
class EntityFacet:
    """Match on the element's class name (upper case, e.g. ``IFCWALL``).

    Only exact classes match; subtypes have to be listed explicitly.
    """
    name: FacetParameter
    predefined_type: Optional[FacetParameter] = None
    cardinality: CardinalitySpec = Cardinality.REQUIRED
    instructions: Optional[str] = None
    facet_type: FacetType = field(default=FacetType.ENTITY, init=False)
    test_result: List[IDSCheckResult] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.cardinality != Cardinality.REQUIRED:
            raise ConfigurationError(
                "Entity facets are always required",
                {"cardinality": repr(self.cardinality)},
            )
        self.name = class_name_parameter(self.name)


async def predefined_type_of(model: ModelGraph, express_id: int) -> Any:
    """Resolve the effective predefined type of an element.

    USERDEFINED defers to ObjectType; an unset value defers to the type
    object (whose USERDEFINED defers to ElementType).
    """
    value = await model.attribute(express_id, "PredefinedType")
    if value == "USERDEFINED":
        return await model.attribute(express_id, "ObjectType")
    if value not in _UNSET_TYPES:
        return value
    for type_id in await model.relations_of(express_id, RelationKind.TYPE):
        type_value = await model.attribute(type_id, "PredefinedType")
        if type_value == "USERDEFINED":
            return await model.attribute(type_id, "ElementType")
        if type_value not in _UNSET_TYPES:
            return type_value
    return value


async def matches_entity(
    model: ModelGraph,
    express_id: int,
    name: FacetParameter,
    predefined_type: Optional[FacetParameter],
    cardinality: Cardinality,
    checks: Optional[List[IDSCheck]],
    *,
    ifc_class: Optional[str] = None,
) -> bool:
    """Class and predefined type comparison shared with the PartOf facet."""
    if ifc_class is None:
        ifc_class = await model.type_of(express_id)
    passed = eval_requirement(ifc_class.upper(), name, "Name", cardinality, checks, attribute="type")
    if predefined_type is not None and passed:
        current = await predefined_type_of(model, express_id)
        passed = eval_requirement(current, predefined_type, "PredefinedType", cardinality, checks, attribute="PredefinedType")
    return passed


async def evaluate(
    facet: EntityFacet,
    express_id: int,
    attrs: Mapping[str, Any],
    model: ModelGraph,
    cardinality: Cardinality,
    checks: List[IDSCheck],
) -> bool:
    return await matches_entity(
        model,
        express_id,
        facet.name,
        facet.predefined_type,
        cardinality,
        checks,
        ifc_class=attrs.get("type"),
    )


async def get_entities(
    facet: EntityFacet,
    model: ModelGraph,
    collector: Optional[Collector] = None,
    *,
    concurrency: int | None = None,
) -> list[int]:
    if facet.name.kind is ParameterKind.SIMPLE:
        candidates = await model.entity_ids(str(facet.name.value))
    elif facet.name.kind is ParameterKind.ENUMERATION:
        found: set[int] = set()
        for ifc_class in facet.name.value:
            found.update(await model.entity_ids(str(ifc_class)))
        candidates = sorted(found)
    else:
        candidates = await model.entity_ids()
    return await filter_entities(
        facet,
        model,
        collector,
        candidates,
        evaluate,
        allow_conditional=False,
        needs_snapshot=False,
        concurrency=concurrency,
    )


async def test(
    facet: EntityFacet,
    entities: Mapping[int, Mapping[str, Any]],
    model: ModelGraph,
    *,
    concurrency: int | None = None,
) -> list[IDSCheckResult]:
    return await run_test(facet, entities, model, evaluate, allow_conditional=False, concurrency=concurrency)


def serialize(facet: EntityFacet, role: Role) -> str:
    role = Role(role)
    children = parameter_xml("name", facet.name) + parameter_xml("predefinedType", facet.predefined_type)
    attributes = [("instructions", facet.instructions)] if role is Role.REQUIREMENT else []
    return element_xml("entity", attributes, children)


__all__ = ["EntityFacet", "predefined_type_of", "matches_entity", "get_entities", "test", "serialize"]
