"""Aggregation of facet check results into entity and specification verdicts."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence

from idscheck.ids.types import IDSCheck, IDSCheckResult


class SpecificationStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    # Nothing matched the applicability facets; neither a pass nor a fail
    NO_APPLICABLE_ENTITIES = "no_applicable_entities"


@dataclass
class EntityVerdict:
    express_id: int
    passed: bool
    results: List[IDSCheckResult] = field(default_factory=list)
    guid: Optional[str] = None

    @property
    def checks(self) -> List[IDSCheck]:
        return [check for result in self.results for check in result.checks]

    @property
    def failed_checks(self) -> List[IDSCheck]:
        return [check for check in self.checks if not check.passed]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "expressId": self.express_id,
            "guid": self.guid,
            "pass": self.passed,
            "results": [result.to_dict() for result in self.results],
        }


@dataclass
class SpecificationReport:
    name: str
    status: SpecificationStatus
    applicable_count: int = 0
    passed_count: int = 0
    failed_count: int = 0
    failures: List[EntityVerdict] = field(default_factory=list)
    identifier: Optional[str] = None
    description: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.status is not SpecificationStatus.FAILED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "identifier": self.identifier,
            "description": self.description,
            "status": self.status.value,
            "summary": {
                "applicable": self.applicable_count,
                "passed": self.passed_count,
                "failed": self.failed_count,
            },
            "failures": [verdict.to_dict() for verdict in self.failures],
        }


@dataclass
class DocumentReport:
    title: str
    specifications: List[SpecificationReport] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(report.passed for report in self.specifications)

    def counts(self) -> Dict[str, int]:
        counts = {status.value: 0 for status in SpecificationStatus}
        for report in self.specifications:
            counts[report.status.value] += 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "pass": self.passed,
            "summary": self.counts(),
            "specifications": [report.to_dict() for report in self.specifications],
        }


def aggregate_entity(express_id: int, results: Iterable[IDSCheckResult]) -> EntityVerdict:
    """AND together every facet result recorded for one entity."""
    results = list(results)
    guid = next((result.guid for result in results if result.guid), None)
    return EntityVerdict(
        express_id=express_id,
        passed=all(result.passed for result in results),
        results=results,
        guid=guid,
    )


def aggregate_specification(
    name: str,
    applicable_ids: Iterable[int],
    facet_results: Sequence[Sequence[IDSCheckResult]],
    *,
    failure_detail_limit: int | None = None,
    identifier: str | None = None,
    description: str | None = None,
) -> SpecificationReport:
    """Reduce per-facet results to a specification verdict.

    Results are keyed by express id and sorted before reduction, so the
    report does not depend on the order in which evaluations completed.
    Only failing entities keep their detail; ``failure_detail_limit`` caps how
    many are kept without affecting the counts.
    """
    applicable = sorted(set(applicable_ids))
    if not applicable:
        return SpecificationReport(
            name=name,
            status=SpecificationStatus.NO_APPLICABLE_ENTITIES,
            identifier=identifier,
            description=description,
        )

    by_entity: Dict[int, List[IDSCheckResult]] = {express_id: [] for express_id in applicable}
    for results in facet_results:
        for result in results:
            by_entity.setdefault(result.express_id, []).append(result)

    passed_count = 0
    failures: List[EntityVerdict] = []
    failed_count = 0
    for express_id in sorted(by_entity):
        verdict = aggregate_entity(express_id, by_entity[express_id])
        if verdict.passed:
            passed_count += 1
            continue
        failed_count += 1
        if failure_detail_limit is None or len(failures) < failure_detail_limit:
            failures.append(verdict)

    return SpecificationReport(
        name=name,
        status=SpecificationStatus.FAILED if failed_count else SpecificationStatus.PASSED,
        applicable_count=len(by_entity),
        passed_count=passed_count,
        failed_count=failed_count,
        failures=failures,
        identifier=identifier,
        description=description,
    )


__all__ = [
    "SpecificationStatus",
    "EntityVerdict",
    "SpecificationReport",
    "DocumentReport",
    "aggregate_entity",
    "aggregate_specification",
]
