from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from idscheck.exceptions import CardinalityError
from idscheck.ids.parameters import FacetParameter, literal_text
from idscheck.graph.accessor import EntityRef, TypedValue


class FacetType(str, Enum):
    ENTITY = "Entity"
    ATTRIBUTE = "Attribute"
    CLASSIFICATION = "Classification"
    MATERIAL = "Material"
    PROPERTY = "Property"
    PART_OF = "PartOf"


class Role(str, Enum):
    APPLICABILITY = "applicability"
    REQUIREMENT = "requirement"


class Cardinality(str, Enum):
    REQUIRED = "required"
    OPTIONAL = "optional"
    PROHIBITED = "prohibited"


@dataclass(frozen=True)
class ConditionalCardinality:
    """Cardinality that depends on the role the facet plays."""
    applicability: Optional[Cardinality] = None
    requirement: Optional[Cardinality] = None

    def resolve(self, role: Role) -> Cardinality:
        role = Role(role)
        value = self.applicability if role is Role.APPLICABILITY else self.requirement
        if value is None:
            raise CardinalityError(
                f"Conditional cardinality has no entry for the {role.value} role",
                {"role": role.value},
            )
        return Cardinality(value)


CardinalitySpec = Union[Cardinality, ConditionalCardinality]


def _render_value(value: Any) -> Any:
    if value is None:
        return "absent"
    if isinstance(value, TypedValue):
        return _render_value(value.value)
    if isinstance(value, EntityRef):
        return f"#{value.id}"
    if isinstance(value, (list, tuple)):
        return [_render_value(item) for item in value]
    if isinstance(value, (bool, int, float, str)):
        return value
    return literal_text(value)


@dataclass
class IDSCheck:
    """One atomic comparison made while testing a facet."""
    parameter: str
    current_value: Any = None
    required_value: Optional[FacetParameter] = None
    passed: bool = False
    attribute: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "parameter": self.parameter,
            "attribute": self.attribute,
            "requiredValue": self.required_value.describe() if self.required_value is not None else None,
            "currentValue": _render_value(self.current_value),
            "pass": self.passed,
        }


@dataclass
class IDSCheckResult:
    """Outcome of one facet on one entity."""
    express_id: int
    passed: bool
    checks: List[IDSCheck] = field(default_factory=list)
    guid: Optional[str] = None
    facet_type: Optional[FacetType] = None
    instructions: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "expressId": self.express_id,
            "guid": self.guid,
            "facetType": self.facet_type.value if self.facet_type else None,
            "pass": self.passed,
            "instructions": self.instructions,
            "checks": [check.to_dict() for check in self.checks],
        }


__all__ = [
    "FacetType",
    "Role",
    "Cardinality",
    "ConditionalCardinality",
    "CardinalitySpec",
    "IDSCheck",
    "IDSCheckResult",
]
