"""Classification facet.

An element can carry its classification in three encodings. They are tried in
this order and only the first one present on the element is used:

1. ``IfcClassificationReference``: a coded reference into a system
2. ``IfcClassificationNotation``: notation facets (IFC2X3)
3. ``IfcClassification``: the system itself, without a code
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

from loguru import logger

from idscheck.graph.accessor import ModelGraph, RelationKind, ref_id, ref_ids, unwrap
from idscheck.ids.cardinality import is_present, resolve_cardinality
from idscheck.ids.facets.common import Collector, eval_observations, filter_entities, run_test, type_fallback
from idscheck.ids.parameters import FacetParameter
from idscheck.ids.types import Cardinality, CardinalitySpec, FacetType, IDSCheck, IDSCheckResult, Role
from idscheck.ids.xml import element_xml, parameter_xml, role_attributes

ENCODING_PRIORITY = ("IfcClassificationReference", "IfcClassificationNotation", "IfcClassification")
# Identification moved from ItemReference (IFC2X3) to Identification (IFC4)
_IDENTIFICATION_ATTRIBUTES = ("Identification", "ItemReference")
_MAX_REFERENCE_DEPTH = 32

# (system name, identification)
ClassificationValue = Tuple[Optional[str], Optional[str]]


@dataclass(eq=False)
class ClassificationFacet:
    system: Optional[FacetParameter] = None
    value: Optional[FacetParameter] = None
    uri: Optional[str] = None
    cardinality: CardinalitySpec = Cardinality.REQUIRED
    instructions: Optional[str] = None
    facet_type: FacetType = field(default=FacetType.CLASSIFICATION, init=False)
    test_result: List[IDSCheckResult] = field(default_factory=list, init=False, repr=False)


async def _first_present(model: ModelGraph, express_id: int, names: Tuple[str, ...]) -> Any:
    for name in names:
        value = unwrap(await model.attribute(express_id, name))
        if is_present(value):
            return value
    return None


async def _system_of_reference(model: ModelGraph, reference_id: int) -> Optional[str]:
    """Walk ReferencedSource up to the owning IfcClassification."""
    current = ref_id(await model.attribute(reference_id, "ReferencedSource"))
    depth = 0
    while current is not None and depth < _MAX_REFERENCE_DEPTH:
        if await model.type_of(current) == "IfcClassification":
            return unwrap(await model.attribute(current, "Name"))
        current = ref_id(await model.attribute(current, "ReferencedSource"))
        depth += 1
    return None


async def _resolve(model: ModelGraph, encoding: str, classification_id: int) -> list[ClassificationValue]:
    if encoding == "IfcClassificationReference":
        identification = await _first_present(model, classification_id, _IDENTIFICATION_ATTRIBUTES)
        return [(await _system_of_reference(model, classification_id), identification)]
    if encoding == "IfcClassificationNotation":
        values: list[ClassificationValue] = []
        for facet_id in ref_ids(await model.attribute(classification_id, "NotationFacets")):
            notation = unwrap(await model.attribute(facet_id, "NotationValue"))
            if is_present(notation):
                values.append((None, notation))
        return values
    return [(unwrap(await model.attribute(classification_id, "Name")), None)]


async def classifications_of(model: ModelGraph, express_id: int) -> list[ClassificationValue]:
    """All (system, identification) pairs of the first encoding present."""
    by_encoding: dict[str, list[int]] = {}
    for classification_id in await type_fallback(model, express_id, RelationKind.CLASSIFICATION):
        encoding = await model.type_of(classification_id)
        if encoding not in ENCODING_PRIORITY:
            logger.debug("Ignoring classification #{} of unsupported type {}", classification_id, encoding)
            continue
        by_encoding.setdefault(encoding, []).append(classification_id)

    for encoding in ENCODING_PRIORITY:
        if encoding in by_encoding:
            values: list[ClassificationValue] = []
            for classification_id in by_encoding[encoding]:
                values.extend(await _resolve(model, encoding, classification_id))
            return values
    return []


def _matches(facet: ClassificationFacet, system: Optional[str], identification: Optional[str]) -> bool:
    if facet.system is not None and not facet.system.matches(system):
        return False
    if facet.value is not None and not facet.value.matches(identification):
        return False
    return True


async def evaluate(
    facet: ClassificationFacet,
    express_id: int,
    attrs: Mapping[str, Any],
    model: ModelGraph,
    cardinality: Cardinality,
    checks: List[IDSCheck],
) -> bool:
    observations = []
    for system, identification in await classifications_of(model, express_id):
        current = identification if facet.value is not None else system
        observations.append((system, current, _matches(facet, system, identification)))
    name = "Value" if facet.value is not None else "System"
    return eval_observations(
        observations,
        facet.value if facet.value is not None else facet.system,
        name,
        cardinality,
        checks,
        require_all=False,
        attribute="Classification",
    )


async def get_entities(
    facet: ClassificationFacet,
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
        allow_conditional=False,
        needs_snapshot=False,
        concurrency=concurrency,
    )


async def test(
    facet: ClassificationFacet,
    entities: Mapping[int, Mapping[str, Any]],
    model: ModelGraph,
    *,
    concurrency: int | None = None,
) -> list[IDSCheckResult]:
    return await run_test(facet, entities, model, evaluate, allow_conditional=False, concurrency=concurrency)


def serialize(facet: ClassificationFacet, role: Role) -> str:
    cardinality = resolve_cardinality(facet.cardinality, role, allow_conditional=False)
    children = parameter_xml("value", facet.value) + parameter_xml("system", facet.system)
    attributes = role_attributes(cardinality, role, uri=facet.uri, instructions=facet.instructions)
    return element_xml("classification", attributes, children)


__all__ = ["ClassificationFacet", "ENCODING_PRIORITY", "classifications_of", "get_entities", "test", "serialize"]
