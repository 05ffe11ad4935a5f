"""Tests for the snapshot data model."""

from __future__ import annotations

import pytest
from pydantic import TypeAdapter, ValidationError

from plancore.geometry import contract
from plancore.models import Door, Opening, Point, SwingDirection, Wall, Window


def test_negative_thickness_is_normalised():
    wall = Wall(id="w", start=Point(x=0, y=0), end=Point(x=100, y=0), thickness=-5)
    assert wall.thickness == 5.0


def test_zero_thickness_falls_back():
    wall = Wall(id="w", start=Point(x=0, y=0), end=Point(x=100, y=0), thickness=0)
    assert wall.thickness == contract.FALLBACK_WALL_THICKNESS


def test_wall_helpers():
    wall = Wall(id="w", start=Point(x=0, y=0), end=Point(x=0, y=200))
    assert wall.length == pytest.approx(200.0)
    assert wall.direction == pytest.approx((0.0, 1.0))
    assert wall.midpoint == Point(x=0, y=100)
    assert wall.point_at(50.0) == Point(x=0, y=50)


def test_snapshots_are_frozen():
    point = Point(x=1, y=2)
    with pytest.raises(ValidationError):
        point.x = 5  # type: ignore[misc]


def test_opening_union_discriminates_on_kind():
    adapter = TypeAdapter(Opening)
    door = adapter.validate_python(
        {"kind": "door", "id": "d1", "host_wall_id": "w", "offset": 10, "width": 80, "height": 210, "swing_direction": "right"}
    )
    window = adapter.validate_python(
        {"kind": "window", "id": "o1", "host_wall_id": "w", "offset": 10, "width": 120, "height": 100}
    )
    assert isinstance(door, Door)
    assert door.swing_direction is SwingDirection.RIGHT
    assert isinstance(window, Window)
    assert window.sill_height is None
    assert window.end_offset == 130.0


def test_opening_rejects_negative_offset():
    with pytest.raises(ValidationError):
        Door(id="d", host_wall_id="w", offset=-1, width=80, height=210)
