from __future__ import annotations

import pytest

from plancore.models import IssueCode, Point, Wall
from plancore.reconstruct.rooms import detect_rooms, find_room_cycles, is_closed_shape
from plancore.settings import RoomSettings


def _wall(wall_id: str, x1: float, y1: float, x2: float, y2: float) -> Wall:
    return Wall(id=wall_id, start=Point(x=x1, y=y1), end=Point(x=x2, y=y2))


def _rectangle(width: float = 100.0, height: float = 200.0):
    return [
        _wall("bottom", 0, 0, width, 0),
        _wall("right", width, 0, width, height),
        _wall("top", width, height, 0, height),
        _wall("left", 0, height, 0, 0),
    ]


def test_rectangle_is_one_room():
    rooms = detect_rooms(_rectangle())
    assert len(rooms) == 1
    room = rooms[0]
    assert room.area == pytest.approx(20000.0)
    assert room.perimeter == pytest.approx(600.0)
    assert room.centroid.x == pytest.approx(50.0)
    assert room.centroid.y == pytest.approx(100.0)
    assert room.points == (Point(x=0, y=0), Point(x=100, y=0), Point(x=100, y=200), Point(x=0, y=200))
    assert room.boundary_wall_ids == ("bottom", "right", "top", "left")


def test_rooms_do_not_depend_on_input_order():
    walls = _rectangle()
    reordered = [walls[2], walls[0], walls[3], walls[1]]
    assert detect_rooms(walls) == detect_rooms(reordered)


def test_reversed_wall_directions_give_same_room():
    flipped = [
        _wall(w.id, w.end.x, w.end.y, w.start.x, w.start.y) for w in _rectangle()
    ]
    assert [r.id for r in detect_rooms(flipped)] == [r.id for r in detect_rooms(_rectangle())]


def test_shared_wall_makes_two_rooms():
    walls = [
        _wall("bottom", 0, 0, 200, 0),
        _wall("right", 200, 0, 200, 100),
        _wall("top", 200, 100, 0, 100),
        _wall("left", 0, 100, 0, 0),
        _wall("middle", 100, 0, 100, 100),
    ]
    rooms = detect_rooms(walls)
    assert len(rooms) == 2
    assert [r.area for r in rooms] == pytest.approx([10000.0, 10000.0])
    # Sorted by area, then centroid
    assert rooms[0].centroid.x == pytest.approx(50.0)
    assert rooms[1].centroid.x == pytest.approx(150.0)
    assert "middle" in rooms[0].boundary_wall_ids
    assert "middle" in rooms[1].boundary_wall_ids


def test_t_junction_split_gives_two_rooms():
    walls = _rectangle(300.0, 200.0) + [_wall("e", 150, 0, 150, 200)]
    rooms = detect_rooms(walls)
    assert [r.area for r in rooms] == pytest.approx([30000.0, 30000.0])
    assert all(r.area > 0 for r in rooms)
    assert [r.centroid.x for r in rooms] == pytest.approx([75.0, 225.0])


def test_plus_split_gives_four_rooms():
    walls = _rectangle(300.0, 200.0) + [
        _wall("e", 150, 0, 150, 200),
        _wall("f", 0, 100, 300, 100),
    ]
    rooms = detect_rooms(walls)
    assert [r.area for r in rooms] == pytest.approx([15000.0] * 4)
    assert len({r.id for r in rooms}) == 4
    # No room spans the whole outline
    assert all(len(r.points) == 4 for r in rooms)


def test_bridged_island_keeps_both_rooms():
    outer = [
        _wall("o1", 0, 0, 400, 0),
        _wall("o2", 400, 0, 400, 400),
        _wall("o3", 400, 400, 0, 400),
        _wall("o4", 0, 400, 0, 0),
    ]
    inner = [
        _wall("i1", 100, 100, 200, 100),
        _wall("i2", 200, 100, 200, 200),
        _wall("i3", 200, 200, 100, 200),
        _wall("i4", 100, 200, 100, 100),
    ]
    bridge = [_wall("link", 0, 150, 100, 150)]
    rooms = detect_rooms(outer + inner + bridge)
    assert [r.area for r in rooms] == pytest.approx([160000.0, 10000.0])


def test_crossing_walls_enclose_center():
    walls = [
        _wall("h1", -50, 0, 150, 0),
        _wall("h2", -50, 100, 150, 100),
        _wall("v1", 0, -50, 0, 150),
        _wall("v2", 100, -50, 100, 150),
    ]
    rooms = detect_rooms(walls)
    assert len(rooms) == 1
    assert rooms[0].area == pytest.approx(10000.0)


def test_open_chain_has_no_rooms():
    walls = _rectangle()[:3]
    assert detect_rooms(walls) == []
    assert not is_closed_shape(walls)


def test_dangling_wall_does_not_change_room():
    walls = _rectangle() + [_wall("stub", 0, 100, 50, 100)]
    rooms = detect_rooms(walls)
    assert len(rooms) == 1
    assert rooms[0].area == pytest.approx(20000.0)
    assert len(rooms[0].points) == 4


def test_duplicate_walls_are_ignored():
    walls = _rectangle() + [_wall("bottom-copy", 100, 0, 0, 0)]
    result = find_room_cycles(walls)
    assert len(result.rooms) == 1
    assert result.rooms[0].area == pytest.approx(20000.0)
    assert IssueCode.DUPLICATE_WALL in [w.code for w in result.warnings]


def test_small_faces_are_dropped():
    assert detect_rooms(_rectangle(5.0, 5.0)) == []
    assert len(detect_rooms(_rectangle(5.0, 5.0), RoomSettings(min_room_area=1.0))) == 1


def test_island_inside_room():
    outer = [
        _wall("o1", 0, 0, 400, 0),
        _wall("o2", 400, 0, 400, 400),
        _wall("o3", 400, 400, 0, 400),
        _wall("o4", 0, 400, 0, 0),
    ]
    inner = [
        _wall("i1", 100, 100, 200, 100),
        _wall("i2", 200, 100, 200, 200),
        _wall("i3", 200, 200, 100, 200),
        _wall("i4", 100, 200, 100, 100),
    ]
    rooms = detect_rooms(outer + inner)
    assert [r.area for r in rooms] == pytest.approx([160000.0, 10000.0])


def test_fewer_than_three_walls():
    assert detect_rooms([]) == []
    assert detect_rooms(_rectangle()[:2]) == []
