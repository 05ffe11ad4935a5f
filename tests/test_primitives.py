from __future__ import annotations

import math

import pytest

from plancore.geometry import contract
from plancore.geometry.primitives import (
    angle_between_deg,
    angle_of,
    are_collinear,
    polygon_area,
    polygon_perimeter,
    project_point_to_segment,
    remove_collinear_vertices,
    segment_intersection,
    signed_area,
)


def test_segment_intersection_parameters():
    inter = segment_intersection((0, 0), (100, 0), (50, -50), (50, 50))
    assert inter is not None
    assert inter.point == pytest.approx((50.0, 0.0))
    assert inter.t1 == pytest.approx(0.5)
    assert inter.t2 == pytest.approx(0.5)


def test_parallel_segments_have_no_intersection():
    assert segment_intersection((0, 0), (100, 0), (0, 10), (100, 10)) is None
    assert segment_intersection((0, 0), (100, 0), (200, 0), (300, 0)) is None


def test_intersection_outside_segments_is_still_reported():
    # Caller decides which parameter range counts as touching
    inter = segment_intersection((0, 0), (100, 0), (150, -10), (150, 10))
    assert inter is not None
    assert inter.t1 == pytest.approx(1.5)


def test_projection_clamps_to_segment():
    proj = project_point_to_segment((150, 20), (0, 0), (100, 0))
    assert proj.t == 1.0
    assert proj.raw_t == pytest.approx(1.5)
    assert proj.point == (100.0, 0.0)
    assert proj.distance == pytest.approx(math.hypot(50, 20))


def test_signed_area_orientation():
    ccw = [(0, 0), (100, 0), (100, 200), (0, 200)]
    assert signed_area(ccw) == pytest.approx(20000.0)
    assert signed_area(list(reversed(ccw))) == pytest.approx(-20000.0)
    assert polygon_area(list(reversed(ccw))) == pytest.approx(20000.0)
    assert polygon_perimeter(ccw) == pytest.approx(600.0)


def test_remove_collinear_vertices():
    ring = [(0, 0), (50, 0), (100, 0), (100, 100), (0, 100), (0, 50)]
    assert remove_collinear_vertices(ring, 1e-6) == [(0, 0), (100, 0), (100, 100), (0, 100)]


def test_angles():
    assert angle_of((0, 0), (0, -1)) == pytest.approx(1.5 * math.pi)
    assert angle_between_deg((0, 0), (1, 0), (0, 0), (0, 1)) == pytest.approx(90.0)
    assert angle_between_deg((0, 0), (1, 0), (0, 0), (-1, 0)) == pytest.approx(180.0)


def test_are_collinear_uses_perpendicular_distance():
    assert are_collinear((0, 0), (100, 0), (150, 0.5), (300, -0.5), 1.0)
    assert not are_collinear((0, 0), (100, 0), (150, 5), (300, 0), 1.0)


def test_unit_helpers():
    assert contract.cm(2.5) == 250.0
    assert contract.m(250.0) == 2.5
