"""Cardinality resolution and the pass/fail policy shared by all facets.

Facets reduce what they observe on an entity to a list of per-value
outcomes (did this value match the constraint?). The policy below turns those
outcomes into a verdict:

* required: at least one value exists and the values match
* optional: no value exists, or the values match
* prohibited: no value exists, or no value matches

"The values match" means *any* value for facets whose target is a set of
alternatives (materials, classifications, ancestors) and *all* values for
facets that test every occurrence found (attributes and properties).
"""

from __future__ import annotations

from typing import Any, Sequence

from idscheck.exceptions import ConfigurationError
from idscheck.ids.types import Cardinality, CardinalitySpec, ConditionalCardinality, Role


def resolve_cardinality(
    cardinality: CardinalitySpec,
    role: Role,
    *,
    allow_conditional: bool = True,
) -> Cardinality:
    if isinstance(cardinality, ConditionalCardinality):
        if not allow_conditional:
            raise ConfigurationError(
                "Conditional cardinality is not supported by this facet",
                {"cardinality": repr(cardinality)},
            )
        return cardinality.resolve(role)
    try:
        return Cardinality(cardinality)
    except ValueError:
        raise ConfigurationError(f"Unknown cardinality: {cardinality!r}", {"cardinality": repr(cardinality)}) from None


def is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and value == "":
        return False
    if isinstance(value, (list, tuple)) and not value:
        return False
    return True


def value_passes(cardinality: Cardinality, matched: bool) -> bool:
    """Verdict for one observed value in isolation."""
    if cardinality is Cardinality.PROHIBITED:
        return not matched
    return matched


def conclude(cardinality: Cardinality, outcomes: Sequence[bool], *, require_all: bool) -> bool:
    """Reduce per-value match outcomes to a facet verdict."""
    if not outcomes:
        return cardinality is not Cardinality.REQUIRED
    if cardinality is Cardinality.PROHIBITED:
        return not any(outcomes)
    if require_all:
        return all(outcomes)
    return any(outcomes)


__all__ = ["resolve_cardinality", "is_present", "value_passes", "conclude"]
