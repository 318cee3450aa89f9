"""Tests for the caller-owned snapshot collector threaded through get_entities."""

import pytest

from idscheck.ids import facets
from idscheck.ids.facets import AttributeFacet, EntityFacet
from idscheck.ids.parameters import FacetParameter
from tests.utils_graph import CountingGraph, build_fire_rating_graph


def _fire_rating() -> AttributeFacet:
    return AttributeFacet(name=FacetParameter.simple("FireRating"), value=FacetParameter.pattern("F[0-9]+"))


@pytest.mark.asyncio()
async def test_get_entities_is_idempotent():
    graph = build_fire_rating_graph()
    collector: dict = {}
    facet = _fire_rating()
    first = await facets.get_entities(facet, graph, collector)
    snapshot = dict(collector)
    second = await facets.get_entities(facet, graph, collector)
    assert first == second == [1, 2, 4]
    assert collector == snapshot


@pytest.mark.asyncio()
async def test_matches_are_collected_with_snapshots():
    graph = build_fire_rating_graph()
    collector: dict = {}
    await facets.get_entities(EntityFacet(name=FacetParameter.simple("IFCWALL")), graph, collector)
    assert sorted(collector) == [1, 2, 3]
    assert collector[1]["FireRating"] == "F30"
    assert collector[1]["type"] == "IfcWall"
    assert collector[1]["id"] == 1


@pytest.mark.asyncio()
async def test_collected_entities_are_not_fetched_again():
    graph = build_fire_rating_graph(CountingGraph())
    collector: dict = {}
    await facets.get_entities(EntityFacet(name=FacetParameter.simple("IFCWALL")), graph, collector)
    assert graph.snapshot_calls == {1: 1, 2: 1, 3: 1}

    await facets.get_entities(_fire_rating(), graph, collector)
    # walls come from the collector; only the slab needed a fetch
    assert graph.snapshot_calls == {1: 1, 2: 1, 3: 1, 4: 1}

    await facets.get_entities(_fire_rating(), graph, collector)
    assert graph.snapshot_calls == {1: 1, 2: 1, 3: 1, 4: 1}


@pytest.mark.asyncio()
async def test_collector_is_optional_and_concurrency_bounded():
    graph = build_fire_rating_graph()
    assert await facets.get_entities(_fire_rating(), graph, concurrency=1) == [1, 2, 4]
