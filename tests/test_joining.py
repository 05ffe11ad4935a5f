from __future__ import annotations

from plancore.models import Point, Wall
from plancore.topology.joining import plan_wall_join


def _wall(wall_id: str, x1: float, y1: float, x2: float, y2: float) -> Wall:
    return Wall(id=wall_id, start=Point(x=x1, y=y1), end=Point(x=x2, y=y2), thickness=15)


def test_crossing_splits_existing_wall():
    existing = [_wall("a", 0, 0, 100, 0)]
    plan = plan_wall_join(_wall("new", 50, -50, 50, 50), existing)
    assert plan.should_join
    assert plan.join_point == Point(x=50, y=0)
    assert plan.removed_wall_ids == ["a"]
    first, second = plan.new_walls
    assert (first.id, first.start, first.end) == ("a-split1", Point(x=0, y=0), Point(x=50, y=0))
    assert (second.id, second.start, second.end) == ("a-split2", Point(x=50, y=0), Point(x=100, y=0))
    assert first.thickness == 15.0
    # Inputs are untouched
    assert existing[0].end == Point(x=100, y=0)


def test_near_end_extends_existing_wall():
    existing = [_wall("a", 0, 0, 99.5, 0)]
    plan = plan_wall_join(_wall("new", 100, -50, 100, 50), existing)
    assert plan.should_join
    assert plan.removed_wall_ids == []
    assert [w.end for w in plan.updated_walls] == [Point(x=100, y=0)]


def test_shared_endpoint_needs_no_edit():
    existing = [_wall("a", 0, 0, 100, 0)]
    plan = plan_wall_join(_wall("new", 100, 0, 100, 100), existing)
    assert plan.should_join
    assert plan.updated_walls == []
    assert plan.new_walls == []


def test_disjoint_walls_do_not_join():
    existing = [_wall("a", 0, 0, 100, 0)]
    plan = plan_wall_join(_wall("new", 0, 50, 100, 50), existing)
    assert not plan.should_join
    assert plan.join_point is None


def test_degenerate_new_wall_is_ignored():
    plan = plan_wall_join(_wall("new", 10, 10, 10, 10), [_wall("a", 0, 0, 100, 0)])
    assert not plan.should_join
