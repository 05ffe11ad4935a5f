"""Custom exception hierarchy for plancore.

Geometry entry points never raise for bad input; they report issues in
their results. These exceptions cover misuse outside the per-frame path
(configuration loading, illegal placement-session transitions).
"""

from __future__ import annotations


class PlanCoreError(Exception):
    """Base exception for all plancore-specific errors."""

    def __init__(self, message: str, details: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(PlanCoreError):
    """Raised when configuration is invalid or missing."""
    pass


class PlacementError(PlanCoreError):
    """Base class for interactive placement errors."""
    pass


class PlacementStateError(PlacementError):
    """Raised when a placement session is driven through an illegal transition."""
    pass
