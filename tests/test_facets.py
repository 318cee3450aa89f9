"""Tests for the Entity and Attribute facets and generic dispatch."""

import pytest

from idscheck.exceptions import ConfigurationError
from idscheck.graph.accessor import RelationKind
from idscheck.graph.memory import MemoryModelGraph
from idscheck.ids import facets
from idscheck.ids.facets import AttributeFacet, EntityFacet, MaterialFacet, PartOfFacet
from idscheck.ids.parameters import FacetParameter
from idscheck.ids.types import Cardinality, ConditionalCardinality, FacetType, Role
from tests.utils_graph import build_fire_rating_graph


@pytest.mark.asyncio()
async def test_entity_selects_exact_class():
    graph = build_fire_rating_graph()
    facet = EntityFacet(name=FacetParameter.simple("IFCWALL"))
    assert await facets.get_entities(facet, graph) == [1, 2, 3]


@pytest.mark.asyncio()
async def test_entity_class_names_are_upper_cased():
    graph = build_fire_rating_graph()
    facet = EntityFacet(name=FacetParameter.simple("IfcWall"))
    assert facet.name.value == "IFCWALL"
    assert await facets.get_entities(facet, graph) == [1, 2, 3]
    enum_facet = EntityFacet(name=FacetParameter.enumeration(["IfcWall", "IfcSlab"]))
    assert await facets.get_entities(enum_facet, graph) == [1, 2, 3, 4]
    assert PartOfFacet(entity=FacetParameter.simple("IfcBuilding")).entity.value == "IFCBUILDING"


@pytest.mark.asyncio()
async def test_entity_enumeration_and_pattern():
    graph = build_fire_rating_graph()
    enum_facet = EntityFacet(name=FacetParameter.enumeration(["IFCWALL", "IFCSLAB"]))
    assert await facets.get_entities(enum_facet, graph) == [1, 2, 3, 4]
    pattern_facet = EntityFacet(name=FacetParameter.pattern("IFCSL.*"))
    assert await facets.get_entities(pattern_facet, graph) == [4]


@pytest.mark.asyncio()
async def test_entity_predefined_type_resolution():
    graph = MemoryModelGraph()
    graph.add(60, "IfcWallType", {"PredefinedType": "SHEAR"}, element=False)
    graph.add(61, "IfcWallType", {"PredefinedType": "USERDEFINED", "ElementType": "ACOUSTIC"}, element=False)
    graph.add(1, "IfcWall", {"PredefinedType": "PARTITIONING"})
    graph.add(2, "IfcWall", {"PredefinedType": "USERDEFINED", "ObjectType": "CURTAIN"})
    graph.add(3, "IfcWall", {"PredefinedType": "NOTDEFINED"}, {RelationKind.TYPE: [60]})
    graph.add(4, "IfcWall", {}, {RelationKind.TYPE: [61]})

    async def select(value: str) -> list:
        facet = EntityFacet(name=FacetParameter.simple("IFCWALL"), predefined_type=FacetParameter.simple(value))
        return await facets.get_entities(facet, graph)

    assert await select("PARTITIONING") == [1]
    assert await select("CURTAIN") == [2]
    assert await select("SHEAR") == [3]
    assert await select("ACOUSTIC") == [4]


def test_entity_facet_is_always_required():
    with pytest.raises(ConfigurationError):
        EntityFacet(name=FacetParameter.simple("IFCWALL"), cardinality=Cardinality.OPTIONAL)


@pytest.mark.asyncio()
async def test_entity_requirement_records_name_check():
    graph = build_fire_rating_graph()
    facet = EntityFacet(name=FacetParameter.simple("IFCWALL"))
    entities = {1: await graph.attributes(1), 4: await graph.attributes(4)}
    results = await facets.test(facet, entities, graph)
    assert [result.passed for result in results] == [True, False]
    failing = results[1].checks[0]
    assert failing.parameter == "Name"
    assert failing.current_value == "IFCSLAB"
    assert facet.test_result == results


@pytest.mark.asyncio()
async def test_attribute_required_pattern():
    graph = build_fire_rating_graph()
    facet = AttributeFacet(name=FacetParameter.simple("FireRating"), value=FacetParameter.pattern("^F[0-9]+$"))
    entities = {eid: await graph.attributes(eid) for eid in (1, 2, 3)}
    results = await facets.test(facet, entities, graph)
    assert [result.express_id for result in results] == [1, 2, 3]
    assert [result.passed for result in results] == [True, True, False]
    missing = results[2].checks[0].to_dict()
    assert missing["attribute"] == "FireRating"
    assert missing["requiredValue"] == "pattern ^F[0-9]+$"
    assert missing["currentValue"] == "absent"
    assert results[0].guid == "wall-1"
    assert results[0].facet_type is FacetType.ATTRIBUTE


@pytest.mark.asyncio()
@pytest.mark.parametrize(
    ("cardinality", "expected"),
    [
        # F30, F60, absent
        (Cardinality.REQUIRED, [False, True, False]),
        (Cardinality.OPTIONAL, [False, True, True]),
        (Cardinality.PROHIBITED, [True, False, True]),
    ],
)
async def test_attribute_cardinality_policy(cardinality, expected):
    graph = build_fire_rating_graph()
    facet = AttributeFacet(
        name=FacetParameter.simple("FireRating"),
        value=FacetParameter.simple("F60"),
        cardinality=cardinality,
    )
    entities = {eid: await graph.attributes(eid) for eid in (1, 2, 3)}
    results = await facets.test(facet, entities, graph)
    assert [result.passed for result in results] == expected


@pytest.mark.asyncio()
async def test_attribute_prohibited_without_value_forbids_presence():
    graph = build_fire_rating_graph()
    facet = AttributeFacet(name=FacetParameter.simple("FireRating"), cardinality=Cardinality.PROHIBITED)
    entities = {eid: await graph.attributes(eid) for eid in (1, 3)}
    results = await facets.test(facet, entities, graph)
    assert [result.passed for result in results] == [False, True]


@pytest.mark.asyncio()
async def test_attribute_name_pattern_tests_every_matching_attribute():
    graph = MemoryModelGraph()
    graph.add(1, "IfcWall", {"Name": "Wall", "Description": "Wall"})
    graph.add(2, "IfcWall", {"Name": "Wall", "Description": "Other"})
    facet = AttributeFacet(name=FacetParameter.enumeration(["Name", "Description"]), value=FacetParameter.simple("Wall"))
    assert await facets.get_entities(facet, graph) == [1]


@pytest.mark.asyncio()
async def test_attribute_conditional_cardinality():
    graph = build_fire_rating_graph()
    facet = AttributeFacet(
        name=FacetParameter.simple("FireRating"),
        cardinality=ConditionalCardinality(applicability=Cardinality.REQUIRED, requirement=Cardinality.PROHIBITED),
    )
    assert await facets.get_entities(facet, graph) == [1, 2, 4]
    results = await facets.test(facet, {3: await graph.attributes(3)}, graph)
    assert results[0].passed


def test_validate_facet_rejects_conditional_on_simple_only_variants():
    conditional = ConditionalCardinality(applicability=Cardinality.REQUIRED, requirement=Cardinality.OPTIONAL)
    facets.validate_facet(MaterialFacet(cardinality=conditional), [Role.APPLICABILITY, Role.REQUIREMENT])
    with pytest.raises(ConfigurationError):
        facets.validate_facet(
            PartOfFacet(entity=FacetParameter.simple("IFCBUILDING"), cardinality=conditional),
            [Role.REQUIREMENT],
        )


def test_validate_facet_rejects_unknown_objects():
    with pytest.raises(ConfigurationError):
        facets.validate_facet(object(), [Role.REQUIREMENT])
