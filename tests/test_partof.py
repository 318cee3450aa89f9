"""Tests for the PartOf facet and ancestor walks."""

import pytest

from idscheck.exceptions import UnsupportedRelationError
from idscheck.ids import facets
from idscheck.ids.facets import PartOfFacet, PartOfRelation
from idscheck.ids.facets.partof import ancestors_of
from idscheck.ids.parameters import FacetParameter
from idscheck.ids.types import Cardinality
from tests.utils_graph import build_spatial_graph


def _building(**kwargs) -> PartOfFacet:
    return PartOfFacet(entity=FacetParameter.simple("IFCBUILDING"), **kwargs)


@pytest.mark.asyncio()
async def test_unrestricted_walk_reaches_every_ancestor():
    graph = build_spatial_graph()
    assert await ancestors_of(graph, 10, None) == [4, 3, 2, 1]
    # door -> opening -> wall -> storey -> ...
    assert await ancestors_of(graph, 11, None) == [12, 10, 4, 3, 2, 1]
    assert await ancestors_of(graph, 20, None) == []


@pytest.mark.asyncio()
async def test_containment_continues_through_spatial_aggregation():
    graph = build_spatial_graph()
    assert await ancestors_of(graph, 10, PartOfRelation.CONTAINED) == [4, 3, 2, 1]
    assert await ancestors_of(graph, 10, PartOfRelation.AGGREGATES) == []
    assert await ancestors_of(graph, 11, PartOfRelation.FILLS) == [12]
    assert await ancestors_of(graph, 12, PartOfRelation.VOIDS) == [10]


@pytest.mark.asyncio()
@pytest.mark.parametrize(
    ("cardinality", "contained", "loose"),
    [
        (Cardinality.REQUIRED, True, False),
        (Cardinality.OPTIONAL, True, True),
        (Cardinality.PROHIBITED, False, True),
    ],
)
async def test_building_requirement(cardinality, contained, loose):
    graph = build_spatial_graph()
    facet = _building(cardinality=cardinality)
    entities = {10: await graph.attributes(10), 20: await graph.attributes(20)}
    results = await facets.test(facet, entities, graph)
    assert [result.passed for result in results] == [contained, loose]


@pytest.mark.asyncio()
async def test_relation_restricts_selection():
    graph = build_spatial_graph()
    assert await facets.get_entities(_building(relation="IFCRELCONTAINEDINSPATIALSTRUCTURE"), graph) == [10]
    # the site sits above the building, not below it
    assert await facets.get_entities(_building(), graph) == [4, 10, 11, 12]
    wall_host = PartOfFacet(entity=FacetParameter.simple("IFCWALL"), relation=PartOfRelation.VOIDS)
    assert await facets.get_entities(wall_host, graph) == [12]


def test_unknown_relation_raises():
    with pytest.raises(UnsupportedRelationError):
        _building(relation="IFCRELCONNECTSELEMENTS")
    assert _building(relation="ifcrelnests").relation is PartOfRelation.NESTS
