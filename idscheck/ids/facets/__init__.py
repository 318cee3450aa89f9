"""Facet variants and the generic operations dispatched on ``facet_type``.

The six variants form a closed set. Generic code never relies on a shared
base class; it branches on the tag and hands the facet to its variant module.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Union

from idscheck.exceptions import ConfigurationError
from idscheck.graph.accessor import ModelGraph
from idscheck.ids.cardinality import resolve_cardinality
from idscheck.ids.facets import attribute, classification, entity, material, partof, properties
from idscheck.ids.facets.attribute import AttributeFacet
from idscheck.ids.facets.classification import ClassificationFacet
from idscheck.ids.facets.common import Collector
from idscheck.ids.facets.entity import EntityFacet
from idscheck.ids.facets.material import MaterialFacet, MaterialShape
from idscheck.ids.facets.partof import PartOfFacet, PartOfRelation
from idscheck.ids.facets.properties import PropertyFacet
from idscheck.ids.types import FacetType, IDSCheckResult, Role

Facet = Union[EntityFacet, AttributeFacet, ClassificationFacet, MaterialFacet, PropertyFacet, PartOfFacet]

# Variants whose cardinality may differ between applicability and requirement
CONDITIONAL_FACETS = frozenset({FacetType.ATTRIBUTE, FacetType.MATERIAL, FacetType.PROPERTY})


def _unknown(facet: Any) -> ConfigurationError:
    return ConfigurationError(
        f"Unknown facet type: {getattr(facet, 'facet_type', type(facet).__name__)}",
        {"facet": repr(facet)},
    )


async def get_entities(
    facet: Facet,
    model: ModelGraph,
    collector: Optional[Collector] = None,
    *,
    concurrency: int | None = None,
) -> list[int]:
    """Ids of all entities that satisfy ``facet`` in its applicability role.

    Attribute snapshots of the matches are added to ``collector``; entities it
    already holds are not fetched again.
    """
    facet_type = facet.facet_type
    if facet_type is FacetType.ENTITY:
        return await entity.get_entities(facet, model, collector, concurrency=concurrency)
    if facet_type is FacetType.ATTRIBUTE:
        return await attribute.get_entities(facet, model, collector, concurrency=concurrency)
    if facet_type is FacetType.CLASSIFICATION:
        return await classification.get_entities(facet, model, collector, concurrency=concurrency)
    if facet_type is FacetType.MATERIAL:
        return await material.get_entities(facet, model, collector, concurrency=concurrency)
    if facet_type is FacetType.PROPERTY:
        return await properties.get_entities(facet, model, collector, concurrency=concurrency)
    if facet_type is FacetType.PART_OF:
        return await partof.get_entities(facet, model, collector, concurrency=concurrency)
    raise _unknown(facet)


async def test(
    facet: Facet,
    entities: Mapping[int, Mapping[str, Any]],
    model: ModelGraph,
    *,
    concurrency: int | None = None,
) -> list[IDSCheckResult]:
    """Test each entity snapshot against ``facet`` in its requirement role.

    Returns one result per entity, ordered by express id, and leaves the same
    list in ``facet.test_result``.
    """
    facet_type = facet.facet_type
    if facet_type is FacetType.ENTITY:
        return await entity.test(facet, entities, model, concurrency=concurrency)
    if facet_type is FacetType.ATTRIBUTE:
        return await attribute.test(facet, entities, model, concurrency=concurrency)
    if facet_type is FacetType.CLASSIFICATION:
        return await classification.test(facet, entities, model, concurrency=concurrency)
    if facet_type is FacetType.MATERIAL:
        return await material.test(facet, entities, model, concurrency=concurrency)
    if facet_type is FacetType.PROPERTY:
        return await properties.test(facet, entities, model, concurrency=concurrency)
    if facet_type is FacetType.PART_OF:
        return await partof.test(facet, entities, model, concurrency=concurrency)
    raise _unknown(facet)


def serialize(facet: Facet, role: Role | str) -> str:
    """Render ``facet`` as an IDS XML element for the given role."""
    role = Role(role)
    facet_type = facet.facet_type
    if facet_type is FacetType.ENTITY:
        return entity.serialize(facet, role)
    if facet_type is FacetType.ATTRIBUTE:
        return attribute.serialize(facet, role)
    if facet_type is FacetType.CLASSIFICATION:
        return classification.serialize(facet, role)
    if facet_type is FacetType.MATERIAL:
        return material.serialize(facet, role)
    if facet_type is FacetType.PROPERTY:
        return properties.serialize(facet, role)
    if facet_type is FacetType.PART_OF:
        return partof.serialize(facet, role)
    raise _unknown(facet)


def validate_facet(facet: Facet, roles: Iterable[Role]) -> None:
    """Raise ``ConfigurationError`` if ``facet`` cannot be evaluated in ``roles``."""
    facet_type = getattr(facet, "facet_type", None)
    if not isinstance(facet_type, FacetType):
        raise _unknown(facet)
    for role in roles:
        resolve_cardinality(facet.cardinality, role, allow_conditional=facet_type in CONDITIONAL_FACETS)


__all__ = [
    "Facet",
    "EntityFacet",
    "AttributeFacet",
    "ClassificationFacet",
    "MaterialFacet",
    "MaterialShape",
    "PropertyFacet",
    "PartOfFacet",
    "PartOfRelation",
    "CONDITIONAL_FACETS",
    "get_entities",
    "test",
    "serialize",
    "validate_facet",
]
