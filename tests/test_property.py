"""Tests for the Property facet."""

import pytest

from idscheck.ids import facets
from idscheck.ids.facets import PropertyFacet
from idscheck.ids.facets.properties import property_sets_of
from idscheck.ids.parameters import FacetParameter
from idscheck.ids.types import Cardinality
from tests.utils_graph import build_property_graph


def _is_external(value: str | None = None, **kwargs) -> PropertyFacet:
    return PropertyFacet(
        property_set=FacetParameter.simple("Pset_WallCommon"),
        base_name=FacetParameter.simple("IsExternal"),
        value=FacetParameter.simple(value) if value is not None else None,
        **kwargs,
    )


@pytest.mark.asyncio()
async def test_occurrence_set_overrides_type_set():
    graph = build_property_graph()
    names = [name for _, name in await property_sets_of(graph, 2)]
    assert names == ["Pset_WallCommon", "Qto_WallBaseQuantities"]
    assert await facets.get_entities(_is_external("true"), graph) == [1]
    assert await facets.get_entities(_is_external("false"), graph) == [2]


@pytest.mark.asyncio()
async def test_presence_only_requirement():
    graph = build_property_graph()
    entities = {eid: await graph.attributes(eid) for eid in (1, 2, 3)}
    results = await facets.test(_is_external(), entities, graph)
    assert [result.passed for result in results] == [True, True, False]


@pytest.mark.asyncio()
async def test_data_type_is_checked():
    graph = build_property_graph()
    entities = {1: await graph.attributes(1)}
    ok = await facets.test(_is_external("true", data_type="IfcBoolean"), entities, graph)
    assert ok[0].passed
    wrong = await facets.test(_is_external("true", data_type="IfcLabel"), entities, graph)
    assert not wrong[0].passed
    data_type_check = [check for check in wrong[0].checks if check.parameter == "DataType"][0]
    assert data_type_check.current_value == "IFCBOOLEAN"


@pytest.mark.asyncio()
async def test_quantities_are_properties():
    graph = build_property_graph()
    facet = PropertyFacet(
        property_set=FacetParameter.pattern("Qto_.*"),
        base_name=FacetParameter.simple("Length"),
        value=FacetParameter.bounds(min=4, max=6),
        data_type="IFCLENGTHMEASURE",
    )
    assert await facets.get_entities(facet, graph) == [2]


@pytest.mark.asyncio()
async def test_prohibited_property():
    graph = build_property_graph()
    facet = PropertyFacet(
        property_set=FacetParameter.simple("Pset_WallCommon"),
        base_name=FacetParameter.simple("FireRating"),
        cardinality=Cardinality.PROHIBITED,
    )
    entities = {eid: await graph.attributes(eid) for eid in (1, 2, 3)}
    results = await facets.test(facet, entities, graph)
    assert [result.passed for result in results] == [False, True, True]


@pytest.mark.asyncio()
async def test_prohibited_value_with_data_type():
    graph = build_property_graph()
    entities = {1: await graph.attributes(1)}

    def _facet(data_type: str) -> PropertyFacet:
        return PropertyFacet(
            property_set=FacetParameter.simple("Pset_WallCommon"),
            base_name=FacetParameter.simple("FireRating"),
            value=FacetParameter.simple("F90"),
            data_type=data_type,
            cardinality=Cardinality.PROHIBITED,
        )

    # wall 1 holds FireRating as an IfcLabel, so an IfcText "F90" is absent
    other_type = (await facets.test(_facet("IFCTEXT"), entities, graph))[0]
    assert other_type.passed
    assert [check.passed for check in other_type.checks if check.parameter == "DataType"] == [True]

    same_type = (await facets.test(_facet("IFCLABEL"), entities, graph))[0]
    assert not same_type.passed
    assert [check.passed for check in same_type.checks if check.parameter == "DataType"] == [False]
