"""Tests for custom exception hierarchy."""

import pytest

from plancore.exceptions import (
    ConfigurationError,
    PlacementError,
    PlacementStateError,
    PlanCoreError,
)


def test_plancore_error_base():
    """Test base PlanCoreError."""
    error = PlanCoreError("Test error", {"key": "value"})
    assert str(error) == "Test error"
    assert error.message == "Test error"
    assert error.details == {"key": "value"}


def test_details_default_to_empty():
    assert PlanCoreError("No details").details == {}


def test_configuration_error():
    """Test ConfigurationError."""
    error = ConfigurationError("Config missing", {"path": "config/default.yaml"})
    assert isinstance(error, PlanCoreError)
    assert error.message == "Config missing"


def test_placement_error_hierarchy():
    """Test placement error hierarchy."""
    state_error = PlacementStateError("Cannot commit", {"state": "idle"})
    assert isinstance(state_error, PlacementError)
    assert isinstance(state_error, PlanCoreError)
    assert state_error.details == {"state": "idle"}


def test_exception_inheritance():
    """Test exception inheritance hierarchy."""
    assert issubclass(ConfigurationError, PlanCoreError)
    assert issubclass(PlacementError, PlanCoreError)
    assert issubclass(PlacementStateError, PlacementError)


def test_errors_are_catchable_as_base():
    with pytest.raises(PlanCoreError):
        raise PlacementStateError("Illegal transition")


def test_package_exports_only_raised_errors():
    import plancore

    exported = {name for name in plancore.__all__ if name.endswith("Error")}
    assert exported == {"PlanCoreError", "ConfigurationError", "PlacementError", "PlacementStateError"}
    for name in exported:
        assert issubclass(getattr(plancore, name), PlanCoreError)
