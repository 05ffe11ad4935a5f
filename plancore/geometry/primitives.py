"""Plain-tuple vector math shared by every geometry module.

Coordinates are ``(x, y)`` float tuples; the pydantic models convert to
and from them at the module boundaries so the hot paths stay cheap.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from plancore.geometry.contract import EPS

XY = Tuple[float, float]


@dataclass(frozen=True)
class Projection:
    """Closest point of a segment to a query point."""
    t: float  # clamped parameter in [0, 1]
    point: XY
    distance: float
    raw_t: float  # unclamped parameter along the infinite line


@dataclass(frozen=True)
class SegmentIntersection:
    point: XY
    t1: float
    t2: float


def distance(a: XY, b: XY) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def midpoint(a: XY, b: XY) -> XY:
    return ((a[0] + b[0]) / 2.0, (a[1] + b[1]) / 2.0)


def lerp(a: XY, b: XY, t: float) -> XY:
    return (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t)


def points_close(a: XY, b: XY, tolerance: float) -> bool:
    return distance(a, b) <= tolerance


def is_finite_point(p: XY) -> bool:
    return math.isfinite(p[0]) and math.isfinite(p[1])


def angle_of(a: XY, b: XY) -> float:
    """Direction of ``a -> b`` in radians, normalised to [0, 2π)."""
    return normalize_angle(math.atan2(b[1] - a[1], b[0] - a[0]))


def normalize_angle(angle: float) -> float:
    two_pi = 2.0 * math.pi
    ang = angle % two_pi
    if ang < 0.0:
        ang += two_pi
    return ang


def angle_between_deg(a1: XY, a2: XY, b1: XY, b2: XY) -> float:
    """Unsigned angle between two segment directions, in [0, 180] degrees."""
    ux, uy = a2[0] - a1[0], a2[1] - a1[1]
    vx, vy = b2[0] - b1[0], b2[1] - b1[1]
    nu = math.hypot(ux, uy)
    nv = math.hypot(vx, vy)
    if nu < EPS or nv < EPS:
        return 0.0
    cos_a = (ux * vx + uy * vy) / (nu * nv)
    cos_a = max(-1.0, min(1.0, cos_a))
    return math.degrees(math.acos(cos_a))


def project_point_to_segment(p: XY, a: XY, b: XY) -> Projection:
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    len_sq = dx * dx + dy * dy
    if len_sq < EPS:
        return Projection(t=0.0, point=a, distance=distance(p, a), raw_t=0.0)
    raw_t = ((p[0] - a[0]) * dx + (p[1] - a[1]) * dy) / len_sq
    t = max(0.0, min(1.0, raw_t))
    closest = (a[0] + t * dx, a[1] + t * dy)
    return Projection(t=t, point=closest, distance=distance(p, closest), raw_t=raw_t)


def point_line_distance(p: XY, a: XY, b: XY) -> float:
    """Perpendicular distance from ``p`` to the infinite line through ``a``, ``b``."""
    length = distance(a, b)
    if length < EPS:
        return distance(p, a)
    cross = (b[0] - a[0]) * (p[1] - a[1]) - (b[1] - a[1]) * (p[0] - a[0])
    return abs(cross) / length


def segment_intersection(
    a1: XY,
    a2: XY,
    b1: XY,
    b2: XY,
    epsilon: float = 1e-9,
) -> SegmentIntersection | None:
    """Intersection of the two supporting lines, parametrised on each segment.

    Returns ``None`` when the determinant is negligible relative to the
    segment lengths (parallel or near-parallel). The caller decides which
    parameter ranges count as "on the segment".
    """
    rx, ry = a2[0] - a1[0], a2[1] - a1[1]
    sx, sy = b2[0] - b1[0], b2[1] - b1[1]
    denom = rx * sy - ry * sx
    scale = math.hypot(rx, ry) * math.hypot(sx, sy)
    if scale < EPS or abs(denom) <= epsilon * scale:
        return None
    qx, qy = b1[0] - a1[0], b1[1] - a1[1]
    t1 = (qx * sy - qy * sx) / denom
    t2 = (qx * ry - qy * rx) / denom
    point = (a1[0] + t1 * rx, a1[1] + t1 * ry)
    return SegmentIntersection(point=point, t1=t1, t2=t2)


def are_collinear(a1: XY, a2: XY, b1: XY, b2: XY, tolerance: float) -> bool:
    """True when both ends of ``b`` lie within ``tolerance`` of line ``a``."""
    return (
        point_line_distance(b1, a1, a2) <= tolerance
        and point_line_distance(b2, a1, a2) <= tolerance
    )


def signed_area(points: Sequence[XY]) -> float:
    """Shoelace signed area; positive for counter-clockwise rings."""
    if len(points) < 3:
        return 0.0
    arr = np.asarray(points, dtype=float)
    x = arr[:, 0]
    y = arr[:, 1]
    return float(0.5 * (np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))))


def polygon_area(points: Sequence[XY]) -> float:
    return abs(signed_area(points))


def polygon_perimeter(points: Sequence[XY]) -> float:
    if len(points) < 2:
        return 0.0
    arr = np.asarray(points, dtype=float)
    deltas = np.roll(arr, -1, axis=0) - arr
    return float(np.hypot(deltas[:, 0], deltas[:, 1]).sum())


def remove_collinear_vertices(points: Sequence[XY], tolerance: float) -> List[XY]:
    """Drop ring vertices that sit on the straight line between their neighbours."""
    ring = list(points)
    changed = True
    while changed and len(ring) > 3:
        changed = False
        for i in range(len(ring)):
            prev_pt = ring[i - 1]
            cur = ring[i]
            nxt = ring[(i + 1) % len(ring)]
            between = 0.0 < project_point_to_segment(cur, prev_pt, nxt).raw_t < 1.0
            if points_close(prev_pt, cur, tolerance) or (
                between and point_line_distance(cur, prev_pt, nxt) <= tolerance
            ):
                del ring[i]
                changed = True
                break
    return ring
