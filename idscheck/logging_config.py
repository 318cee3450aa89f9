"""Logging setup for idscheck runs.

Every record carries the name of the specification being evaluated (``-``
outside of one), bound by the runner through :func:`specification_context`.
"""

from __future__ import annotations

import json
import sys
from contextlib import AbstractContextManager
from pathlib import Path
from typing import Any

from loguru import logger

NO_SPECIFICATION = "-"

TEXT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{extra[specification]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


class JSONFormatter:
    """One JSON object per line, with the specification context as a field."""

    def __call__(self, record: dict[str, Any]) -> str:
        extra = dict(record.get("extra") or {})
        log_data = {
            "timestamp": record["time"].isoformat(),
            "level": record["level"].name,
            "specification": str(extra.pop("specification", NO_SPECIFICATION)),
            "message": record["message"],
            "module": record.get("module", ""),
            "line": record.get("line", 0),
        }

        exception = record.get("exception")
        if exception is not None:
            log_data["exception"] = {
                "type": exception.type.__name__ if exception.type else None,
                "value": str(exception.value) if exception.value else None,
            }

        if extra:
            log_data["context"] = {key: str(value) for key, value in extra.items()}

        # loguru treats the returned string as a format template
        return json.dumps(log_data, ensure_ascii=False).replace("{", "{{").replace("}", "}}") + "\n"


def specification_context(name: str) -> AbstractContextManager:
    """Tag records emitted inside the block with the specification ``name``."""
    return logger.contextualize(specification=name)


def setup_logging(
    *,
    level: str = "INFO",
    json_format: bool = False,
    log_file: Path | None = None,
) -> None:
    """Configure logging for a check run.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: Whether to use JSON formatting (useful for CI pipelines).
        log_file: Optional path to log file. If None, logs only to stderr.
    """
    logger.remove()
    logger.configure(extra={"specification": NO_SPECIFICATION})

    formatter: Any = JSONFormatter() if json_format else TEXT_FORMAT
    logger.add(sys.stderr, format=formatter, level=level, colorize=not json_format)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=formatter,
            level=level,
            rotation="10 MB",
            retention="7 days",
            compression="zip",
        )


__all__ = ["JSONFormatter", "setup_logging", "specification_context"]
