from __future__ import annotations

import pytest

from plancore.exceptions import PlacementStateError
from plancore.interaction.placement import OpeningPlacementSession, PlacementState
from plancore.models import Door, Point, SwingDirection, Wall, Window
from plancore.reconstruct.openings import OpeningValidation


def _walls():
    return [Wall(id="w1", start=Point(x=0, y=0), end=Point(x=300, y=0), thickness=20)]


def test_door_placement_flow():
    session = OpeningPlacementSession("door", 90.0, 210.0, swing_direction=SwingDirection.RIGHT)
    assert session.state is PlacementState.IDLE
    session.begin()
    assert session.state is PlacementState.PREVIEWING

    validation = session.move(Point(x=150, y=5), _walls())
    assert validation.is_valid
    assert session.state is PlacementState.VALID

    door = session.commit()
    assert isinstance(door, Door)
    assert door.host_wall_id == "w1"
    assert door.offset == pytest.approx(105.0)
    assert door.swing_direction is SwingDirection.RIGHT
    assert door.id.startswith("door-")
    assert session.state is PlacementState.COMMITTED


def test_window_commit_carries_sill_height():
    session = OpeningPlacementSession("window", 120.0, 100.0)
    session.begin()
    session.move(Point(x=150, y=0), _walls())
    window = session.commit()
    assert isinstance(window, Window)
    assert window.sill_height == 90.0


def test_invalid_preview_does_not_commit():
    session = OpeningPlacementSession("door", 90.0, 210.0)
    session.begin()
    session.move(Point(x=150, y=200), _walls())
    assert session.state is PlacementState.INVALID
    assert session.commit() is None
    assert session.state is PlacementState.INVALID


def test_preview_recovers_after_invalid_move():
    session = OpeningPlacementSession("door", 90.0, 210.0)
    session.begin()
    session.move(Point(x=150, y=200), _walls())
    session.move(Point(x=150, y=0), _walls())
    assert session.state is PlacementState.VALID


def test_moving_existing_opening_keeps_id():
    existing = [Door(id="d1", host_wall_id="w1", offset=105, width=90, height=210)]
    session = OpeningPlacementSession("door", 90.0, 210.0, opening_id="d1")
    session.begin()
    session.move(Point(x=160, y=0), _walls(), existing)
    moved = session.commit()
    assert moved.id == "d1"
    assert moved.offset == pytest.approx(115.0)


def test_illegal_transitions():
    session = OpeningPlacementSession("door", 90.0, 210.0)
    with pytest.raises(PlacementStateError):
        session.move(Point(x=0, y=0), _walls())
    session.begin()
    with pytest.raises(PlacementStateError):
        session.begin()
    with pytest.raises(PlacementStateError):
        session.commit()
    session.cancel()
    assert session.state is PlacementState.CANCELLED
    assert session.validation is None
    with pytest.raises(PlacementStateError):
        session.cancel()


def test_commit_without_placement_raises():
    session = OpeningPlacementSession("door", 90.0, 210.0)
    session.state = PlacementState.VALID
    session.validation = OpeningValidation(is_valid=True)
    with pytest.raises(PlacementStateError) as exc_info:
        session.commit()
    assert exc_info.value.details["state"] == "valid"
    assert session.state is PlacementState.VALID


def test_unknown_kind_is_rejected():
    with pytest.raises(TypeError):
        OpeningPlacementSession("skylight", 90.0, 100.0)  # type: ignore[arg-type]
