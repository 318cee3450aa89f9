from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from idscheck.ids.facets import Facet


@dataclass(frozen=True)
class Specification:
    """One rule: which elements it concerns and what they must satisfy."""
    name: str
    applicability: Tuple[Facet, ...]
    requirements: Tuple[Facet, ...] = ()
    ifc_versions: Tuple[str, ...] = ()
    description: Optional[str] = None
    instructions: Optional[str] = None
    identifier: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "applicability", tuple(self.applicability))
        object.__setattr__(self, "requirements", tuple(self.requirements))
        object.__setattr__(self, "ifc_versions", tuple(version.upper() for version in self.ifc_versions))

    def applies_to_schema(self, schema: str) -> bool:
        if not self.ifc_versions:
            return True
        return schema.upper() in self.ifc_versions


@dataclass(frozen=True)
class IDSDocument:
    """A set of specifications plus the metadata of the document holding them."""
    title: str
    specifications: Tuple[Specification, ...] = field(default_factory=tuple)
    description: Optional[str] = None
    author: Optional[str] = None
    version: Optional[str] = None
    date: Optional[str] = None
    purpose: Optional[str] = None
    milestone: Optional[str] = None
    copyright: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "specifications", tuple(self.specifications))


__all__ = ["Specification", "IDSDocument"]
