"""Attribute facet: tests scalar attributes of the element itself."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from idscheck.graph.accessor import ModelGraph
from idscheck.ids.facets.common import Collector, eval_values, filter_entities, run_test
from idscheck.ids.parameters import FacetParameter, ParameterKind, literal_text
from idscheck.ids.types import Cardinality, CardinalitySpec, FacetType, IDSCheck, IDSCheckResult, Role
from idscheck.ids.cardinality import resolve_cardinality
from idscheck.ids.xml import element_xml, parameter_xml, role_attributes

# Snapshot keys that are bookkeeping rather than schema attributes
_RESERVED = {"id", "type"}


@dataclass(eq=False)
class AttributeFacet:
    name: FacetParameter
    value: Optional[FacetParameter] = None
    cardinality: CardinalitySpec = Cardinality.REQUIRED
    instructions: Optional[str] = None
    facet_type: FacetType = field(default=FacetType.ATTRIBUTE, init=False)
    test_result: List[IDSCheckResult] = field(default_factory=list, init=False, repr=False)


def _attribute_names(facet: AttributeFacet, attrs: Mapping[str, Any]) -> list[str]:
    if facet.name.kind is ParameterKind.SIMPLE:
        return [str(facet.name.value)]
    return [name for name in attrs if name not in _RESERVED and facet.name.matches(name)]


async def evaluate(
    facet: AttributeFacet,
    express_id: int,
    attrs: Mapping[str, Any],
    model: ModelGraph,
    cardinality: Cardinality,
    checks: List[IDSCheck],
) -> bool:
    observed = [(name, attrs.get(name)) for name in _attribute_names(facet, attrs)]
    label = literal_text(facet.name.value) if facet.name.kind is ParameterKind.SIMPLE else facet.name.describe()
    return eval_values(
        observed,
        facet.value,
        "Value",
        cardinality,
        checks,
        require_all=True,
        attribute=label,
    )


async def get_entities(
    facet: AttributeFacet,
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
        needs_snapshot=True,
        concurrency=concurrency,
    )


async def test(
    facet: AttributeFacet,
    entities: Mapping[int, Mapping[str, Any]],
    model: ModelGraph,
    *,
    concurrency: int | None = None,
) -> list[IDSCheckResult]:
    return await run_test(facet, entities, model, evaluate, allow_conditional=True, concurrency=concurrency)


def serialize(facet: AttributeFacet, role: Role) -> str:
    cardinality = resolve_cardinality(facet.cardinality, role)
    children = parameter_xml("name", facet.name) + parameter_xml("value", facet.value)
    return element_xml("attribute", role_attributes(cardinality, role, instructions=facet.instructions), children)


__all__ = ["AttributeFacet", "get_entities", "test", "serialize"]
