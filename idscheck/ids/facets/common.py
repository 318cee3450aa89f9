"""Machinery shared by every facet variant.

A facet module provides an ``evaluate`` coroutine that decides one entity and
logs its comparisons into a check buffer. The helpers here turn that into the
two public operations: ``filter_entities`` for the applicability role and
``run_test`` for the requirement role.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from loguru import logger

from idscheck.exceptions import ModelResolutionError
from idscheck.graph.accessor import ModelGraph, RelationKind, unwrap
from idscheck.ids.cardinality import conclude, is_present, resolve_cardinality, value_passes
from idscheck.ids.parameters import FacetParameter
from idscheck.ids.types import Cardinality, IDSCheck, IDSCheckResult, Role

Collector = Dict[int, Dict[str, Any]]
Evaluate = Callable[[Any, int, Mapping[str, Any], ModelGraph, Cardinality, List[IDSCheck]], Awaitable[bool]]
# (label, observed value, matched)
Observation = Tuple[Optional[str], Any, bool]


async def gather_limited(coros: Sequence[Awaitable[Any]], concurrency: int | None = None) -> list[Any]:
    """Await coroutines concurrently, at most ``concurrency`` at a time."""
    if not concurrency:
        return list(await asyncio.gather(*coros))
    semaphore = asyncio.Semaphore(concurrency)

    async def _bounded(coro: Awaitable[Any]) -> Any:
        async with semaphore:
            return await coro

    return list(await asyncio.gather(*(_bounded(coro) for coro in coros)))


def add_check(
    checks: Optional[List[IDSCheck]],
    parameter: str,
    *,
    attribute: Optional[str],
    current_value: Any,
    required_value: Optional[FacetParameter],
    passed: bool,
) -> IDSCheck:
    check = IDSCheck(
        parameter=parameter,
        current_value=current_value,
        required_value=required_value,
        passed=passed,
        attribute=attribute,
    )
    if checks is not None:
        checks.append(check)
    return check


def eval_observations(
    observations: Sequence[Observation],
    parameter: Optional[FacetParameter],
    name: str,
    cardinality: Cardinality,
    checks: Optional[List[IDSCheck]],
    *,
    require_all: bool,
    attribute: Optional[str] = None,
) -> bool:
    """Apply the cardinality policy to pre-matched observations and log them."""
    outcomes: list[bool] = []
    for label, value, matched in observations:
        outcomes.append(matched)
        add_check(
            checks,
            name,
            attribute=label,
            current_value=value,
            required_value=parameter,
            passed=value_passes(cardinality, matched),
        )
    passed = conclude(cardinality, outcomes, require_all=require_all)
    if not outcomes:
        add_check(checks, name, attribute=attribute, current_value=None, required_value=parameter, passed=passed)
    return passed


def eval_values(
    observed: Iterable[Tuple[Optional[str], Any]],
    parameter: Optional[FacetParameter],
    name: str,
    cardinality: Cardinality,
    checks: Optional[List[IDSCheck]],
    *,
    require_all: bool,
    attribute: Optional[str] = None,
) -> bool:
    """Match every present value against ``parameter``; absent values are skipped."""
    observations = [
        (label, value, True if parameter is None else parameter.matches(value))
        for label, value in observed
        if is_present(unwrap(value))
    ]
    return eval_observations(
        observations,
        parameter,
        name,
        cardinality,
        checks,
        require_all=require_all,
        attribute=attribute,
    )


def eval_requirement(
    value: Any,
    parameter: Optional[FacetParameter],
    name: str,
    cardinality: Cardinality,
    checks: Optional[List[IDSCheck]] = None,
    *,
    attribute: Optional[str] = None,
) -> bool:
    """Single-value form of ``eval_values``."""
    return eval_values(
        [(attribute, value)],
        parameter,
        name,
        cardinality,
        checks,
        require_all=True,
        attribute=attribute,
    )


async def type_fallback(model: ModelGraph, express_id: int, kind: RelationKind) -> list[int]:
    """Edges of an element, or of its type object when the element has none."""
    targets = await model.relations_of(express_id, kind)
    if targets:
        return targets
    for type_id in await model.relations_of(express_id, RelationKind.TYPE):
        targets.extend(await model.relations_of(type_id, kind))
    return targets


def save_result(facet: Any, express_id: int, attrs: Mapping[str, Any], passed: bool, checks: List[IDSCheck]) -> IDSCheckResult:
    guid = unwrap(attrs.get("GlobalId"))
    return IDSCheckResult(
        express_id=express_id,
        passed=passed,
        checks=checks,
        guid=str(guid) if guid is not None else None,
        facet_type=facet.facet_type,
        instructions=facet.instructions,
    )


async def filter_entities(
    facet: Any,
    model: ModelGraph,
    collector: Optional[Collector],
    candidates: Iterable[int],
    evaluate: Evaluate,
    *,
    allow_conditional: bool,
    needs_snapshot: bool,
    concurrency: int | None = None,
) -> list[int]:
    """Return the candidates satisfying ``facet`` in its applicability role.

    Snapshots of matching entities are added to ``collector``; an entity that
    is already collected is never fetched again.
    """
    if collector is None:
        collector = {}
    cardinality = resolve_cardinality(facet.cardinality, Role.APPLICABILITY, allow_conditional=allow_conditional)

    async def _select(express_id: int) -> int | None:
        attrs = collector.get(express_id)
        if attrs is None and needs_snapshot:
            attrs = await model.attributes(express_id)
        if not await evaluate(facet, express_id, attrs or {}, model, cardinality, []):
            return None
        if express_id not in collector:
            collector[express_id] = attrs if attrs is not None else await model.attributes(express_id)
        return express_id

    matched = await gather_limited([_select(express_id) for express_id in candidates], concurrency)
    return [express_id for express_id in matched if express_id is not None]


async def run_test(
    facet: Any,
    entities: Mapping[int, Mapping[str, Any]],
    model: ModelGraph,
    evaluate: Evaluate,
    *,
    allow_conditional: bool,
    concurrency: int | None = None,
) -> list[IDSCheckResult]:
    """Test every entity against ``facet`` in its requirement role."""
    cardinality = resolve_cardinality(facet.cardinality, Role.REQUIREMENT, allow_conditional=allow_conditional)
    facet.test_result = []

    async def _evaluate(express_id: int, attrs: Mapping[str, Any]) -> IDSCheckResult:
        checks: list[IDSCheck] = []
        try:
            passed = await evaluate(facet, express_id, attrs, model, cardinality, checks)
        except ModelResolutionError as exc:
            logger.warning("Entity #{} could not be resolved for {} facet: {}", express_id, facet.facet_type.value, exc.message)
            add_check(checks, "Model", attribute=exc.message, current_value=None, required_value=None, passed=False)
            passed = False
        return save_result(facet, express_id, attrs, passed, checks)

    results = await gather_limited([_evaluate(eid, attrs) for eid, attrs in entities.items()], concurrency)
    results.sort(key=lambda result: result.express_id)
    facet.test_result = results
    return results


__all__ = [
    "Collector",
    "Evaluate",
    "gather_limited",
    "add_check",
    "eval_observations",
    "eval_values",
    "eval_requirement",
    "type_fallback",
    "save_result",
    "filter_entities",
    "run_test",
]
