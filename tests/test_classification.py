"""Tests for the Classification facet."""

import pytest

from idscheck.ids import facets
from idscheck.ids.facets import ClassificationFacet
from idscheck.ids.facets.classification import classifications_of
from idscheck.ids.parameters import FacetParameter
from idscheck.ids.types import Cardinality
from tests.utils_graph import build_classification_graph


@pytest.mark.asyncio()
async def test_reference_resolves_system_through_source():
    graph = build_classification_graph()
    assert await classifications_of(graph, 1) == [("Uniclass", "EF_25_10")]


@pytest.mark.asyncio()
async def test_reference_encoding_takes_priority_over_bare_system():
    graph = build_classification_graph()
    assert await classifications_of(graph, 2) == [("OmniClass", "21-02 10")]


@pytest.mark.asyncio()
async def test_type_classification_and_legacy_item_reference():
    graph = build_classification_graph()
    assert await classifications_of(graph, 3) == [("Uniclass", "Ss_25")]
    assert await classifications_of(graph, 4) == []


@pytest.mark.asyncio()
async def test_applicability_by_system_and_value():
    graph = build_classification_graph()
    by_system = ClassificationFacet(system=FacetParameter.simple("Uniclass"))
    assert await facets.get_entities(by_system, graph) == [1, 3]
    by_value = ClassificationFacet(value=FacetParameter.pattern("EF_.*"))
    assert await facets.get_entities(by_value, graph) == [1]
    anything = ClassificationFacet()
    assert await facets.get_entities(anything, graph) == [1, 2, 3]


@pytest.mark.asyncio()
async def test_requirement_outcomes():
    graph = build_classification_graph()
    entities = {eid: await graph.attributes(eid) for eid in (1, 2, 4)}
    required = ClassificationFacet(system=FacetParameter.simple("Uniclass"))
    assert [r.passed for r in await facets.test(required, entities, graph)] == [True, False, False]
    prohibited = ClassificationFacet(system=FacetParameter.simple("Uniclass"), cardinality=Cardinality.PROHIBITED)
    assert [r.passed for r in await facets.test(prohibited, entities, graph)] == [False, True, True]
