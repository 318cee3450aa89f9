"""PartOf facet: the element sits below an ancestor of a given class."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from idscheck.exceptions import UnsupportedRelationError
from idscheck.graph.accessor import ModelGraph, RelationKind
from idscheck.ids.facets.common import Collector, eval_observations, filter_entities, run_test
from idscheck.ids.facets.entity import class_name_parameter, matches_entity
from idscheck.ids.parameters import FacetParameter
from idscheck.ids.types import Cardinality, CardinalitySpec, FacetType, IDSCheck, IDSCheckResult, Role
from idscheck.ids.cardinality import resolve_cardinality
from idscheck.ids.xml import element_xml, parameter_xml, role_attributes


class PartOfRelation(str, Enum):
    AGGREGATES = "IFCRELAGGREGATES"
    GROUP = "IFCRELASSIGNSTOGROUP"
    CONTAINED = "IFCRELCONTAINEDINSPATIALSTRUCTURE"
    NESTS = "IFCRELNESTS"
    VOIDS = "IFCRELVOIDSELEMENT"
    FILLS = "IFCRELFILLSELEMENT"

    @classmethod
    def parse(cls, value: Any) -> "PartOfRelation":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise UnsupportedRelationError(
                f"Unsupported PartOf relation: {value}",
                {"relation": str(value), "supported": ", ".join(member.value for member in cls)},
            ) from None


_UPWARD = (
    RelationKind.CONTAINMENT,
    RelationKind.AGGREGATES,
    RelationKind.NESTS,
    RelationKind.VOIDS,
    RelationKind.FILLS,
    RelationKind.GROUP,
)

# relation -> (first hop, further hops)
_WALKS = {
    None: (_UPWARD, _UPWARD),
    PartOfRelation.AGGREGATES: ((RelationKind.AGGREGATES,), (RelationKind.AGGREGATES,)),
    PartOfRelation.NESTS: ((RelationKind.NESTS,), (RelationKind.NESTS,)),
    PartOfRelation.CONTAINED: (
        (RelationKind.CONTAINMENT,),
        (RelationKind.AGGREGATES, RelationKind.CONTAINMENT),
    ),
    PartOfRelation.GROUP: ((RelationKind.GROUP,), ()),
    PartOfRelation.VOIDS: ((RelationKind.VOIDS,), ()),
    PartOfRelation.FILLS: ((RelationKind.FILLS,), ()),
}


@dataclass(eq=False)
class PartOfFacet:
    entity: FacetParameter
    predefined_type: Optional[FacetParameter] = None
    relation: Optional[PartOfRelation] = None
    cardinality: CardinalitySpec = Cardinality.REQUIRED
    instructions: Optional[str] = None
    facet_type: FacetType = field(default=FacetType.PART_OF, init=False)
    test_result: List[IDSCheckResult] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.relation is not None:
            self.relation = PartOfRelation.parse(self.relation)
        self.entity = class_name_parameter(self.entity)


async def _step(model: ModelGraph, express_id: int, kinds: Sequence[RelationKind]) -> list[int]:
    targets: list[int] = []
    for kind in kinds:
        targets.extend(await model.relations_of(express_id, kind))
    return targets


async def ancestors_of(model: ModelGraph, express_id: int, relation: Optional[PartOfRelation]) -> list[int]:
    """Ancestors breadth first, nearest first, each listed once."""
    first, further = _WALKS[relation]
    seen = {express_id}
    found: list[int] = []
    frontier = [express_id]
    kinds: Tuple[RelationKind, ...] = first
    while frontier and kinds:
        next_frontier: list[int] = []
        for current in frontier:
            for parent in await _step(model, current, kinds):
                if parent in seen:
                    continue
                seen.add(parent)
                found.append(parent)
                next_frontier.append(parent)
        frontier = next_frontier
        kinds = further
    return found


async def evaluate(
    facet: PartOfFacet,
    express_id: int,
    attrs: Mapping[str, Any],
    model: ModelGraph,
    cardinality: Cardinality,
    checks: List[IDSCheck],
) -> bool:
    observations = []
    for parent in await ancestors_of(model, express_id, facet.relation):
        ifc_class = await model.type_of(parent)
        matched = await matches_entity(
            model,
            parent,
            facet.entity,
            facet.predefined_type,
            Cardinality.REQUIRED,
            None,
            ifc_class=ifc_class,
        )
        observations.append((f"#{parent}", ifc_class.upper(), matched))
    return eval_observations(
        observations,
        facet.entity,
        "Entity",
        cardinality,
        checks,
        require_all=False,
        attribute=facet.relation.value if facet.relation else "PartOf",
    )


async def get_entities(
    facet: PartOfFacet,
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
    facet: PartOfFacet,
    entities: Mapping[int, Mapping[str, Any]],
    model: ModelGraph,
    *,
    concurrency: int | None = None,
) -> list[IDSCheckResult]:
    return await run_test(facet, entities, model, evaluate, allow_conditional=False, concurrency=concurrency)


def serialize(facet: PartOfFacet, role: Role) -> str:
    cardinality = resolve_cardinality(facet.cardinality, role, allow_conditional=False)
    attributes = [("relation", facet.relation.value if facet.relation else None)] + role_attributes(
        cardinality, role, instructions=facet.instructions
    )
    entity = element_xml(
        "entity",
        children=parameter_xml("name", facet.entity) + parameter_xml("predefinedType", facet.predefined_type),
    )
    return element_xml("partOf", attributes, entity)


__all__ = ["PartOfRelation", "PartOfFacet", "ancestors_of", "get_entities", "test", "serialize"]
