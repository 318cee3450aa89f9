"""Rendering helpers for the IDS XML interchange format."""

from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence, Tuple
from xml.sax.saxutils import escape

from idscheck.exceptions import ParameterError
from idscheck.ids.parameters import Bounds, FacetParameter, LengthBounds, ParameterKind, literal_text
from idscheck.ids.types import Cardinality, Role

IDS_NS = "http://standards.buildingsmart.org/IDS"
XS_NS = "http://www.w3.org/2001/XMLSchema"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
IDS_SCHEMA_LOCATION = "http://standards.buildingsmart.org/IDS http://standards.buildingsmart.org/IDS/1.0/ids.xsd"

Attribute = Tuple[str, Optional[Any]]

# Whitespace other than spaces is normalized away in attribute values unless escaped
_ATTRIBUTE_ENTITIES = {'"': "&quot;", "\n": "&#10;", "\r": "&#13;", "\t": "&#9;"}


def text(value: Any) -> str:
    return escape(literal_text(value), {"\r": "&#13;"})


def attr_value(value: Any) -> str:
    return escape(literal_text(value), _ATTRIBUTE_ENTITIES)


def attributes_xml(attributes: Iterable[Attribute]) -> str:
    return "".join(f' {name}="{attr_value(value)}"' for name, value in attributes if value is not None)


def element_xml(tag: str, attributes: Iterable[Attribute] = (), children: str = "") -> str:
    return f"<ids:{tag}{attributes_xml(attributes)}>{children}</ids:{tag}>"


def role_attributes(
    cardinality: Cardinality,
    role: Role,
    *,
    uri: Optional[str] = None,
    instructions: Optional[str] = None,
) -> list[Attribute]:
    """Attributes a facet carries in the given role.

    Requirement facets state their cardinality, URI and instructions.
    Applicability facets only select, so they carry a cardinality only when it
    deviates from the implicit ``required``.
    """
    if Role(role) is Role.REQUIREMENT:
        return [("cardinality", cardinality.value), ("uri", uri), ("instructions", instructions)]
    if cardinality is not Cardinality.REQUIRED:
        return [("cardinality", cardinality.value)]
    return []


def _restriction(base: str, facets: Sequence[Tuple[str, Any]]) -> str:
    inner = "".join(f'<xs:{name} value="{attr_value(value)}"/>' for name, value in facets)
    return f'<xs:restriction base="{attr_value(base)}">{inner}</xs:restriction>'


def parameter_xml(tag: str, parameter: Optional[FacetParameter]) -> str:
    """Render ``<ids:tag>`` holding a constraint, or nothing for no constraint."""
    if parameter is None:
        return ""
    if not parameter.case_sensitive:
        # IDS has no marker for case-insensitive comparison
        raise ParameterError(
            f"Case-insensitive constraint on <ids:{tag}> cannot be written as IDS",
            {"tag": tag, "value": parameter.describe()},
        )
    kind = parameter.kind
    if kind is ParameterKind.SIMPLE:
        body = f"<ids:simpleValue>{text(parameter.value)}</ids:simpleValue>"
    elif kind is ParameterKind.ENUMERATION:
        body = _restriction(parameter.base or "xs:string", [("enumeration", v) for v in parameter.value])
    elif kind is ParameterKind.PATTERN:
        body = _restriction(parameter.base or "xs:string", [("pattern", parameter.value)])
    elif kind is ParameterKind.BOUNDS:
        bounds: Bounds = parameter.value
        facets = []
        if bounds.min is not None:
            facets.append(("minInclusive" if bounds.min_inclusive else "minExclusive", bounds.min))
        if bounds.max is not None:
            facets.append(("maxInclusive" if bounds.max_inclusive else "maxExclusive", bounds.max))
        body = _restriction(parameter.base or "xs:double", facets)
    else:
        length: LengthBounds = parameter.value
        facets = []
        if length.length is not None:
            facets.append(("length", length.length))
        if length.min is not None:
            facets.append(("minLength", length.min))
        if length.max is not None:
            facets.append(("maxLength", length.max))
        body = _restriction(parameter.base or "xs:string", facets)
    return f"<ids:{tag}>{body}</ids:{tag}>"


__all__ = [
    "IDS_NS",
    "XS_NS",
    "XSI_NS",
    "IDS_SCHEMA_LOCATION",
    "attributes_xml",
    "element_xml",
    "parameter_xml",
    "role_attributes",
    "text",
]
