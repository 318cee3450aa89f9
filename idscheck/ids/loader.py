"""Read and write IDS documents.

Parsing uses ``xml.etree.ElementTree``; writing goes through the string
helpers in ``idscheck.ids.xml`` so the output is stable and diff-friendly.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union
from xml.etree import ElementTree as ET

from loguru import logger

from idscheck.exceptions import ConfigurationError, SpecificationParseError
from idscheck.ids.facets import (
    AttributeFacet,
    ClassificationFacet,
    EntityFacet,
    Facet,
    MaterialFacet,
    PartOfFacet,
    PropertyFacet,
    serialize,
)
from idscheck.ids.parameters import FacetParameter
from idscheck.ids.specification import IDSDocument, Specification
from idscheck.ids.types import Cardinality, Role
from idscheck.ids.xml import IDS_NS, IDS_SCHEMA_LOCATION, XS_NS, XSI_NS, element_xml, text

_NS = {"ids": IDS_NS, "xs": XS_NS}
_INFO_FIELDS = ("title", "copyright", "version", "description", "author", "date", "purpose", "milestone")

_BOUND_TAGS = {
    "minInclusive": ("min", True),
    "minExclusive": ("min", False),
    "maxInclusive": ("max", True),
    "maxExclusive": ("max", False),
}

_LENGTH_TAGS = {"length": "length", "minLength": "min", "maxLength": "max"}


def _ids(tag: str) -> str:
    return f"{{{IDS_NS}}}{tag}"


def _xs(tag: str) -> str:
    return f"{{{XS_NS}}}{tag}"


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _number(raw: Optional[str], tag: str) -> float:
    try:
        return float(raw)
    except (TypeError, ValueError):
        raise SpecificationParseError(f"Restriction {tag} needs a numeric value, got {raw!r}", {"tag": tag}) from None


def _integer(raw: Optional[str], tag: str) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise SpecificationParseError(f"Restriction {tag} needs an integer value, got {raw!r}", {"tag": tag}) from None


def _restriction(element: ET.Element) -> FacetParameter:
    base = element.get("base")
    children = list(element)
    if not children:
        raise SpecificationParseError("Empty xs:restriction", {"base": base or ""})

    enumeration: List[str] = []
    patterns: List[str] = []
    bounds: Dict[str, Any] = {}
    lengths: Dict[str, int] = {}
    for child in children:
        tag = _local(child.tag)
        if child.tag == _xs("enumeration"):
            enumeration.append(child.get("value", ""))
        elif child.tag == _xs("pattern"):
            patterns.append(child.get("value", ""))
        elif tag in _BOUND_TAGS:
            side, inclusive = _BOUND_TAGS[tag]
            bounds[side] = _number(child.get("value"), tag)
            bounds[f"{side}_inclusive"] = inclusive
        elif tag in _LENGTH_TAGS:
            lengths[_LENGTH_TAGS[tag]] = _integer(child.get("value"), tag)
        else:
            raise SpecificationParseError(f"Unsupported restriction facet xs:{tag}", {"tag": tag})

    # one constraint kind per parameter
    groups = [name for name, found in (
        ("enumeration", enumeration),
        ("pattern", patterns),
        ("bounds", bounds),
        ("length", lengths),
    ) if found]
    if len(groups) > 1:
        raise SpecificationParseError(
            f"xs:restriction mixes {' and '.join(groups)} facets",
            {"base": base or "", "facets": ", ".join(groups)},
        )
    if len(patterns) > 1:
        raise SpecificationParseError("xs:restriction holds more than one xs:pattern", {"base": base or ""})

    if enumeration:
        return FacetParameter.enumeration(enumeration, base=base)
    if patterns:
        return FacetParameter.pattern(patterns[0], base=base)
    if bounds:
        return FacetParameter.bounds(base=base, **bounds)
    return FacetParameter.length(base=base, **lengths)


def parse_parameter(element: Optional[ET.Element]) -> Optional[FacetParameter]:
    """Read the constraint held by an ``ids:name``/``ids:value``-style element."""
    if element is None:
        return None
    simple = element.find("ids:simpleValue", _NS)
    if simple is not None:
        return FacetParameter.simple(simple.text or "")
    restriction = element.find("xs:restriction", _NS)
    if restriction is not None:
        return _restriction(restriction)
    raise SpecificationParseError(
        f"<{_local(element.tag)}> has neither a simpleValue nor a restriction",
        {"element": _local(element.tag)},
    )


def _child(element: ET.Element, tag: str) -> Optional[FacetParameter]:
    return parse_parameter(element.find(f"ids:{tag}", _NS))


def _required_child(element: ET.Element, tag: str) -> FacetParameter:
    parameter = _child(element, tag)
    if parameter is None:
        raise SpecificationParseError(
            f"<{_local(element.tag)}> is missing <{tag}>",
            {"facet": _local(element.tag), "child": tag},
        )
    return parameter


def _cardinality(element: ET.Element) -> Cardinality:
    raw = element.get("cardinality")
    if raw is None:
        return Cardinality.REQUIRED
    try:
        return Cardinality(raw)
    except ValueError:
        raise SpecificationParseError(f"Unknown cardinality {raw!r}", {"facet": _local(element.tag)}) from None


def _entity(element: ET.Element) -> EntityFacet:
    return EntityFacet(
        name=_required_child(element, "name"),
        predefined_type=_child(element, "predefinedType"),
        instructions=element.get("instructions"),
    )


def _attribute(element: ET.Element) -> AttributeFacet:
    return AttributeFacet(
        name=_required_child(element, "name"),
        value=_child(element, "value"),
        cardinality=_cardinality(element),
        instructions=element.get("instructions"),
    )


def _classification(element: ET.Element) -> ClassificationFacet:
    return ClassificationFacet(
        system=_child(element, "system"),
        value=_child(element, "value"),
        uri=element.get("uri"),
        cardinality=_cardinality(element),
        instructions=element.get("instructions"),
    )


def _material(element: ET.Element) -> MaterialFacet:
    return MaterialFacet(
        value=_child(element, "value"),
        uri=element.get("uri"),
        cardinality=_cardinality(element),
        instructions=element.get("instructions"),
    )


def _property(element: ET.Element) -> PropertyFacet:
    return PropertyFacet(
        property_set=_required_child(element, "propertySet"),
        base_name=_required_child(element, "baseName"),
        value=_child(element, "value"),
        data_type=element.get("dataType"),
        uri=element.get("uri"),
        cardinality=_cardinality(element),
        instructions=element.get("instructions"),
    )


def _part_of(element: ET.Element) -> PartOfFacet:
    entity = element.find("ids:entity", _NS)
    if entity is None:
        raise SpecificationParseError("<partOf> is missing <entity>", {"facet": "partOf"})
    return PartOfFacet(
        entity=_required_child(entity, "name"),
        predefined_type=_child(entity, "predefinedType"),
        relation=element.get("relation"),
        cardinality=_cardinality(element),
        instructions=element.get("instructions"),
    )


_FACET_PARSERS: Dict[str, Callable[[ET.Element], Facet]] = {
    "entity": _entity,
    "attribute": _attribute,
    "classification": _classification,
    "material": _material,
    "property": _property,
    "partOf": _part_of,
}


def facet_from_element(element: ET.Element, role: Role | str) -> Facet:
    role = Role(role)
    tag = _local(element.tag)
    parser = _FACET_PARSERS.get(tag)
    if parser is None:
        raise SpecificationParseError(f"Unknown facet <{tag}>", {"facet": tag, "role": role.value})
    if tag == "entity" and element.get("cardinality") not in (None, Cardinality.REQUIRED.value):
        raise SpecificationParseError("Entity facets cannot carry a cardinality", {"role": role.value})
    return parser(element)


def parse_facet(source: Union[str, ET.Element], role: Role | str) -> Facet:
    """Parse a single facet, either an element or an XML fragment.

    Fragments may use the ``ids:`` and ``xs:`` prefixes without declaring them.
    """
    if isinstance(source, ET.Element):
        return facet_from_element(source, role)
    wrapped = f'<fragment xmlns:ids="{IDS_NS}" xmlns:xs="{XS_NS}">{source.strip()}</fragment>'
    try:
        root = ET.fromstring(wrapped)
    except ET.ParseError as exc:
        raise SpecificationParseError(f"Malformed facet XML: {exc}", {"role": Role(role).value}) from exc
    children = list(root)
    if len(children) != 1:
        raise SpecificationParseError(f"Expected exactly one facet, found {len(children)}", {"role": Role(role).value})
    return facet_from_element(children[0], role)


def _facets(container: Optional[ET.Element], role: Role) -> List[Facet]:
    if container is None:
        return []
    return [facet_from_element(child, role) for child in container]


def _specification(element: ET.Element) -> Specification:
    name = element.get("name")
    if not name:
        raise SpecificationParseError("Specification without a name", {})
    try:
        return Specification(
            name=name,
            applicability=_facets(element.find("ids:applicability", _NS), Role.APPLICABILITY),
            requirements=_facets(element.find("ids:requirements", _NS), Role.REQUIREMENT),
            ifc_versions=(element.get("ifcVersion") or "").split(),
            description=element.get("description"),
            instructions=element.get("instructions"),
            identifier=element.get("identifier"),
        )
    except ConfigurationError as exc:
        raise SpecificationParseError(
            f"Specification '{name}' is invalid: {exc.message}",
            {"specification": name, **exc.details},
        ) from exc


def parse_ids(source: Union[str, bytes]) -> IDSDocument:
    """Parse a complete IDS document."""
    try:
        root = ET.fromstring(source)
    except ET.ParseError as exc:
        raise SpecificationParseError(f"Malformed IDS XML: {exc}", {}) from exc
    if root.tag != _ids("ids"):
        raise SpecificationParseError(f"Root element is {root.tag}, expected ids:ids", {"root": root.tag})

    info: Dict[str, Optional[str]] = {}
    info_element = root.find("ids:info", _NS)
    if info_element is not None:
        for field_name in _INFO_FIELDS:
            child = info_element.find(f"ids:{field_name}", _NS)
            if child is not None and child.text:
                info[field_name] = child.text.strip()

    specifications_element = root.find("ids:specifications", _NS)
    specifications = [] if specifications_element is None else [
        _specification(element) for element in specifications_element.findall("ids:specification", _NS)
    ]
    title = info.pop("title", None) or "Untitled"
    logger.debug("Parsed IDS document '{}' with {} specifications", title, len(specifications))
    return IDSDocument(title=title, specifications=specifications, **info)


def load_ids(path: Union[str, Path]) -> IDSDocument:
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise SpecificationParseError(f"Cannot read IDS file {path}: {exc}", {"path": str(path)}) from exc
    return parse_ids(data)


def _specification_xml(specification: Specification) -> str:
    attributes = [
        ("name", specification.name),
        ("ifcVersion", " ".join(specification.ifc_versions) or None),
        ("identifier", specification.identifier),
        ("description", specification.description),
        ("instructions", specification.instructions),
    ]
    applicability = "".join(serialize(facet, Role.APPLICABILITY) for facet in specification.applicability)
    requirements = "".join(serialize(facet, Role.REQUIREMENT) for facet in specification.requirements)
    children = element_xml("applicability", children=applicability)
    if requirements:
        children += element_xml("requirements", children=requirements)
    return element_xml("specification", attributes, children)


def serialize_ids(document: IDSDocument) -> str:
    """Render a complete IDS document."""
    info = ""
    for field_name in _INFO_FIELDS:
        value = getattr(document, field_name)
        if value is not None:
            info += f"<ids:{field_name}>{text(value)}</ids:{field_name}>"
    specifications = "".join(_specification_xml(specification) for specification in document.specifications)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<ids:ids xmlns:ids="{IDS_NS}" xmlns:xs="{XS_NS}" xmlns:xsi="{XSI_NS}" '
        f'xsi:schemaLocation="{IDS_SCHEMA_LOCATION}">'
        f"<ids:info>{info}</ids:info>"
        f"<ids:specifications>{specifications}</ids:specifications>"
        "</ids:ids>\n"
    )


__all__ = ["parse_parameter", "parse_facet", "facet_from_element", "parse_ids", "load_ids", "serialize_ids"]
