"""Custom exception hierarchy for idscheck."""

from __future__ import annotations

from typing import Any


class IdsCheckError(Exception):
    """Base exception for all idscheck-specific errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(IdsCheckError):
    """Raised when a specification, facet or setting is invalid.

    Configuration errors are fatal: a run refuses to start when one is found.
    """
    pass


class CardinalityError(ConfigurationError):
    """Raised when a conditional cardinality cannot be resolved for a role."""
    pass


class ParameterError(ConfigurationError):
    """Raised when a facet constraint parameter is malformed."""
    pass


class UnsupportedRelationError(ConfigurationError):
    """Raised when a PartOf facet requests an unknown relationship kind."""
    pass


class SpecificationParseError(IdsCheckError):
    """Raised when an IDS document or facet fragment cannot be parsed."""
    pass


class ModelError(IdsCheckError):
    """Base class for model graph errors."""
    pass


class ModelLoadError(ModelError):
    """Raised when a model file cannot be opened."""
    pass


class ModelResolutionError(ModelError):
    """Raised when the model graph holds a dangling or malformed reference."""
    pass


__all__ = [
    "IdsCheckError",
    "ConfigurationError",
    "CardinalityError",
    "ParameterError",
    "UnsupportedRelationError",
    "SpecificationParseError",
    "ModelError",
    "ModelLoadError",
    "ModelResolutionError",
]
