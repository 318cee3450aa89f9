"""IDS facets, specifications and their evaluation."""

from idscheck.ids.facets import (
    AttributeFacet,
    ClassificationFacet,
    EntityFacet,
    Facet,
    MaterialFacet,
    MaterialShape,
    PartOfFacet,
    PartOfRelation,
    PropertyFacet,
    get_entities,
    serialize,
    validate_facet,
)
from idscheck.ids.loader import load_ids, parse_facet, parse_ids, serialize_ids
from idscheck.ids.parameters import Bounds, FacetParameter, LengthBounds, ParameterKind
from idscheck.ids.report import DocumentReport, EntityVerdict, SpecificationReport, SpecificationStatus
from idscheck.ids.runner import SpecificationRunner
from idscheck.ids.specification import IDSDocument, Specification
from idscheck.ids.types import (
    Cardinality,
    ConditionalCardinality,
    FacetType,
    IDSCheck,
    IDSCheckResult,
    Role,
)

__all__ = [
    "AttributeFacet",
    "Bounds",
    "Cardinality",
    "ClassificationFacet",
    "ConditionalCardinality",
    "DocumentReport",
    "EntityFacet",
    "EntityVerdict",
    "Facet",
    "FacetParameter",
    "FacetType",
    "IDSCheck",
    "IDSCheckResult",
    "IDSDocument",
    "LengthBounds",
    "MaterialFacet",
    "MaterialShape",
    "ParameterKind",
    "PartOfFacet",
    "PartOfRelation",
    "PropertyFacet",
    "Role",
    "Specification",
    "SpecificationReport",
    "SpecificationRunner",
    "SpecificationStatus",
    "get_entities",
    "load_ids",
    "parse_facet",
    "parse_ids",
    "serialize",
    "serialize_ids",
    "validate_facet",
]
