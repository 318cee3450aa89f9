"""Two-phase evaluation of specifications against a model graph."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

from loguru import logger

from idscheck.exceptions import ConfigurationError
from idscheck.graph.accessor import ModelGraph
from idscheck.ids import facets
from idscheck.ids.facets import Facet
from idscheck.ids.report import DocumentReport, SpecificationReport, aggregate_specification
from idscheck.ids.specification import IDSDocument, Specification
from idscheck.ids.types import Role
from idscheck.logging_config import specification_context
from idscheck.settings import Settings


class SpecificationRunner:
    """Evaluate specifications against one model.

    Phase one intersects the entity sets selected by every applicability facet,
    collecting attribute snapshots as it goes. Phase two tests the surviving
    entities against each requirement facet and aggregates the results.
    """

    def __init__(
        self,
        model: ModelGraph,
        *,
        concurrency: int | None = None,
        failure_detail_limit: int | None = None,
    ) -> None:
        self.model = model
        self.concurrency = concurrency
        self.failure_detail_limit = failure_detail_limit

    @classmethod
    def from_settings(cls, model: ModelGraph, settings: Settings) -> "SpecificationRunner":
        return cls(
            model,
            concurrency=settings.engine.max_concurrency,
            failure_detail_limit=settings.engine.failure_detail_limit,
        )

    def validate(self, specification: Specification) -> None:
        """Raise ``ConfigurationError`` if ``specification`` cannot be evaluated.

        Runs before any model access.
        """
        if not specification.applicability:
            raise ConfigurationError(
                f"Specification '{specification.name}' has no applicability facets",
                {"specification": specification.name},
            )
        for role, group in ((Role.APPLICABILITY, specification.applicability), (Role.REQUIREMENT, specification.requirements)):
            for facet in group:
                try:
                    facets.validate_facet(facet, [role])
                except ConfigurationError as exc:
                    raise type(exc)(
                        f"Specification '{specification.name}': {exc.message}",
                        {"specification": specification.name, "role": role.value, **exc.details},
                    ) from exc

    async def collect_applicable(self, specification: Specification) -> Dict[int, Dict[str, Any]]:
        """Entities matching every applicability facet, with their snapshots."""
        collector: Dict[int, Dict[str, Any]] = {}
        applicable: Optional[set[int]] = None
        for facet in specification.applicability:
            found = set(await facets.get_entities(facet, self.model, collector, concurrency=self.concurrency))
            applicable = found if applicable is None else applicable & found
            if not applicable:
                logger.debug(
                    "Specification '{}': no entities left after {} facet",
                    specification.name,
                    facet.facet_type.value,
                )
                return {}
        return {express_id: collector[express_id] for express_id in sorted(applicable or ())}

    async def _test(self, facet: Facet, entities: Dict[int, Dict[str, Any]]):
        return await facets.test(facet, entities, self.model, concurrency=self.concurrency)

    async def run(self, specification: Specification) -> SpecificationReport:
        self.validate(specification)
        with specification_context(specification.name):
            return await self._evaluate(specification)

    async def _evaluate(self, specification: Specification) -> SpecificationReport:
        if not specification.applies_to_schema(self.model.schema):
            logger.warning(
                "Specification '{}' targets {} but the model is {}; evaluating anyway",
                specification.name,
                ", ".join(specification.ifc_versions),
                self.model.schema,
            )

        entities = await self.collect_applicable(specification)
        facet_results = []
        if entities and specification.requirements:
            facet_results = await asyncio.gather(*(self._test(facet, entities) for facet in specification.requirements))

        report = aggregate_specification(
            specification.name,
            entities.keys(),
            facet_results,
            failure_detail_limit=self.failure_detail_limit,
            identifier=specification.identifier,
            description=specification.description,
        )
        logger.info(
            "Specification '{}': {} ({} applicable, {} passed, {} failed)",
            specification.name,
            report.status.value,
            report.applicable_count,
            report.passed_count,
            report.failed_count,
        )
        return report

    async def run_document(self, document: IDSDocument) -> DocumentReport:
        # Refuse the whole document before touching the model if any rule is malformed
        for specification in document.specifications:
            self.validate(specification)
        report = DocumentReport(title=document.title)
        for specification in document.specifications:
            report.specifications.append(await self.run(specification))
        logger.info("Document '{}': {}", document.title, report.counts())
        return report


__all__ = ["SpecificationRunner"]
