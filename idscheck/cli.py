from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Sequence

from loguru import logger
from pydantic import ValidationError

from idscheck.exceptions import ConfigurationError, IdsCheckError
from idscheck.graph import open_model
from idscheck.ids.loader import load_ids
from idscheck.ids.report import DocumentReport, SpecificationStatus
from idscheck.ids.runner import SpecificationRunner
from idscheck.logging_config import setup_logging
from idscheck.settings import Settings

EXIT_PASSED = 0
EXIT_FAILED = 1
EXIT_ERROR = 2


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Check an IFC model (or JSON model snapshot) against an IDS document.",
    )
    parser.add_argument("ids_path", type=Path, help="Path to the IDS document")
    parser.add_argument("model_path", type=Path, help="Path to the .ifc model or .json snapshot")
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the report as formatted JSON instead of human-readable text.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to a YAML configuration file")
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        settings = Settings.load(args.config)
        if args.log_level:
            try:
                settings.logging.level = args.log_level
            except ValidationError as exc:
                raise ConfigurationError(f"Invalid log level: {args.log_level}", {"level": args.log_level}) from exc
        setup_logging(
            level=settings.logging.level,
            json_format=settings.logging.json_format,
            log_file=settings.logging.log_file,
        )
        document = load_ids(args.ids_path)
        model = open_model(args.model_path)
        runner = SpecificationRunner.from_settings(model, settings)
        report = asyncio.run(runner.run_document(document))
    except ConfigurationError as exc:
        logger.error("Configuration error: {}", exc.message)
        return EXIT_ERROR
    except IdsCheckError as exc:
        logger.error("{}: {}", type(exc).__name__, exc.message)
        return EXIT_ERROR

    if args.json:
        print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False, default=str))
    else:
        pretty_print_report(report)

    return EXIT_PASSED if report.passed else EXIT_FAILED


def pretty_print_report(report: DocumentReport) -> None:
    print(f"IDS: {report.title}")
    for specification in report.specifications:
        marker = {
            SpecificationStatus.PASSED: "PASS",
            SpecificationStatus.FAILED: "FAIL",
            SpecificationStatus.NO_APPLICABLE_ENTITIES: "N/A ",
        }[specification.status]
        print(
            f"  [{marker}] {specification.name}: "
            f"{specification.passed_count}/{specification.applicable_count} passed"
        )
        for verdict in specification.failures:
            label = verdict.guid or f"#{verdict.express_id}"
            for check in verdict.failed_checks:
                detail = check.to_dict()
                print(
                    f"      {label} {detail['parameter']} {detail['attribute'] or ''}: "
                    f"expected {detail['requiredValue'] or 'present'}, got {detail['currentValue']}"
                )
    counts = report.counts()
    print(
        f"Summary: {counts['passed']} passed, {counts['failed']} failed, "
        f"{counts['no_applicable_entities']} without applicable entities"
    )


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
