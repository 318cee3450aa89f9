"""Facet constraint parameters and value matching."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, Optional, Sequence

from idscheck.exceptions import ParameterError
from idscheck.graph.accessor import EntityRef, TypedValue

NUMERIC_REL_TOL = 1e-6


class ParameterKind(str, Enum):
    SIMPLE = "simple"
    ENUMERATION = "enumeration"
    PATTERN = "pattern"
    BOUNDS = "bounds"
    LENGTH = "length"


@dataclass(frozen=True)
class Bounds:
    """Numeric range; a missing side is unbounded."""
    min: Optional[float] = None
    max: Optional[float] = None
    min_inclusive: bool = True
    max_inclusive: bool = True


@dataclass(frozen=True)
class LengthBounds:
    """String length constraint: exact ``length`` or a ``min``/``max`` window."""
    length: Optional[int] = None
    min: Optional[int] = None
    max: Optional[int] = None


@dataclass(frozen=True)
class FacetParameter:
    """A constraint value plus the comparison it implies.

    ``value`` holds a literal (simple), a tuple of literals (enumeration), a
    regular expression (pattern), ``Bounds`` or ``LengthBounds``. ``base`` is
    the XSD base type written when the parameter is serialized as a
    restriction.
    """
    kind: ParameterKind
    value: Any
    case_sensitive: bool = True
    base: Optional[str] = None

    def __post_init__(self) -> None:
        kind = ParameterKind(self.kind)
        object.__setattr__(self, "kind", kind)
        if kind is ParameterKind.SIMPLE:
            if self.value is None or isinstance(self.value, (list, tuple, dict, set)):
                raise ParameterError("Simple parameter needs a single literal", {"value": repr(self.value)})
        elif kind is ParameterKind.ENUMERATION:
            values = tuple(self.value or ())
            if not values:
                raise ParameterError("Enumeration parameter needs at least one value")
            object.__setattr__(self, "value", values)
        elif kind is ParameterKind.PATTERN:
            if not isinstance(self.value, str):
                raise ParameterError("Pattern parameter needs a string", {"value": repr(self.value)})
            try:
                _compile(self.value, self.case_sensitive)
            except re.error as exc:
                raise ParameterError(f"Invalid pattern {self.value!r}: {exc}", {"pattern": self.value}) from exc
        elif kind is ParameterKind.BOUNDS:
            _check_bounds(self.value)
        elif kind is ParameterKind.LENGTH:
            _check_length(self.value)

    @classmethod
    def simple(cls, value: Any, *, case_sensitive: bool = True) -> "FacetParameter":
        return cls(ParameterKind.SIMPLE, value, case_sensitive)

    @classmethod
    def enumeration(cls, values: Sequence[Any], *, case_sensitive: bool = True, base: str | None = None) -> "FacetParameter":
        return cls(ParameterKind.ENUMERATION, tuple(values), case_sensitive, base)

    @classmethod
    def pattern(cls, pattern: str, *, case_sensitive: bool = True, base: str | None = None) -> "FacetParameter":
        return cls(ParameterKind.PATTERN, pattern, case_sensitive, base)

    @classmethod
    def bounds(
        cls,
        min: float | None = None,
        max: float | None = None,
        *,
        min_inclusive: bool = True,
        max_inclusive: bool = True,
        base: str | None = None,
    ) -> "FacetParameter":
        return cls(ParameterKind.BOUNDS, Bounds(min, max, min_inclusive, max_inclusive), base=base)

    @classmethod
    def length(
        cls,
        length: int | None = None,
        *,
        min: int | None = None,
        max: int | None = None,
        base: str | None = None,
    ) -> "FacetParameter":
        return cls(ParameterKind.LENGTH, LengthBounds(length, min, max), base=base)

    def matches(self, value: Any) -> bool:
        return match_parameter(self, value)

    def describe(self) -> str:
        suffix = "" if self.case_sensitive else " (case-insensitive)"
        if self.kind is ParameterKind.SIMPLE:
            return f"{literal_text(self.value)}{suffix}"
        if self.kind is ParameterKind.ENUMERATION:
            return "one of [" + ", ".join(literal_text(v) for v in self.value) + "]" + suffix
        if self.kind is ParameterKind.PATTERN:
            return f"pattern {self.value}{suffix}"
        if self.kind is ParameterKind.BOUNDS:
            bounds: Bounds = self.value
            low = "(-inf" if bounds.min is None else ("[" if bounds.min_inclusive else "(") + literal_text(bounds.min)
            high = "+inf)" if bounds.max is None else literal_text(bounds.max) + ("]" if bounds.max_inclusive else ")")
            return f"range {low}, {high}"
        length: LengthBounds = self.value
        if length.length is not None:
            return f"length {length.length}"
        return f"length between {length.min if length.min is not None else 0} and {length.max if length.max is not None else 'inf'}"


def _check_bounds(bounds: Any) -> None:
    if not isinstance(bounds, Bounds):
        raise ParameterError("Bounds parameter needs a Bounds value", {"value": repr(bounds)})
    if bounds.min is None and bounds.max is None:
        raise ParameterError("Bounds parameter needs at least one bound")
    for side in (bounds.min, bounds.max):
        if side is not None and _as_number(side) is None:
            raise ParameterError(f"Bound {side!r} is not numeric", {"bound": repr(side)})
    if bounds.min is not None and bounds.max is not None:
        low, high = float(bounds.min), float(bounds.max)
        if low > high:
            raise ParameterError(
                f"Lower bound {bounds.min} is greater than upper bound {bounds.max}",
                {"min": str(bounds.min), "max": str(bounds.max)},
            )
        if low == high and not (bounds.min_inclusive and bounds.max_inclusive):
            raise ParameterError(f"Range around {bounds.min} is empty", {"min": str(bounds.min), "max": str(bounds.max)})


def _check_length(length: Any) -> None:
    if not isinstance(length, LengthBounds):
        raise ParameterError("Length parameter needs a LengthBounds value", {"value": repr(length)})
    sides = (length.length, length.min, length.max)
    if all(side is None for side in sides):
        raise ParameterError("Length parameter needs a length, min or max")
    if any(side is not None and side < 0 for side in sides):
        raise ParameterError("Length constraints cannot be negative")
    if length.min is not None and length.max is not None and length.min > length.max:
        raise ParameterError(
            f"Minimum length {length.min} is greater than maximum length {length.max}",
            {"min": str(length.min), "max": str(length.max)},
        )


@lru_cache(maxsize=256)
def _compile(pattern: str, case_sensitive: bool) -> re.Pattern[str]:
    return re.compile(pattern, 0 if case_sensitive else re.IGNORECASE)


def literal_text(value: Any) -> str:
    """Render a literal the way it is written in IDS documents."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value)) if abs(value) < 1e15 else repr(value)
    return str(value)


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", ".t."}:
            return True
        if lowered in {"false", ".f."}:
            return False
    return None


def _equals(expected: Any, observed: Any, case_sensitive: bool) -> bool:
    if isinstance(observed, bool) or isinstance(expected, bool):
        left, right = _as_bool(expected), _as_bool(observed)
        return left is not None and left == right
    if isinstance(observed, (int, float)):
        number = _as_number(expected)
        if number is None:
            return False
        return math.isclose(float(observed), number, rel_tol=NUMERIC_REL_TOL)
    if case_sensitive:
        return str(expected) == str(observed)
    return str(expected).casefold() == str(observed).casefold()


def match_parameter(parameter: FacetParameter, value: Any) -> bool:
    """Check a single observed value against a constraint."""
    if isinstance(value, TypedValue):
        value = value.value
    if value is None or isinstance(value, (EntityRef, list, tuple, dict)):
        return False

    kind = parameter.kind
    if kind is ParameterKind.SIMPLE:
        return _equals(parameter.value, value, parameter.case_sensitive)
    if kind is ParameterKind.ENUMERATION:
        return any(_equals(option, value, parameter.case_sensitive) for option in parameter.value)
    if kind is ParameterKind.PATTERN:
        text = literal_text(value) if isinstance(value, bool) else str(value)
        return _compile(parameter.value, parameter.case_sensitive).fullmatch(text) is not None
    if kind is ParameterKind.BOUNDS:
        number = _as_number(value)
        if number is None:
            return False
        bounds: Bounds = parameter.value
        if bounds.min is not None:
            low = float(bounds.min)
            if number < low or (number == low and not bounds.min_inclusive):
                return False
        if bounds.max is not None:
            high = float(bounds.max)
            if number > high or (number == high and not bounds.max_inclusive):
                return False
        return True
    if kind is ParameterKind.LENGTH:
        size = len(str(value))
        length: LengthBounds = parameter.value
        if length.length is not None and size != length.length:
            return False
        if length.min is not None and size < length.min:
            return False
        if length.max is not None and size > length.max:
            return False
        return True
    return False


__all__ = [
    "ParameterKind",
    "Bounds",
    "LengthBounds",
    "FacetParameter",
    "literal_text",
    "match_parameter",
]
