from __future__ import annotations

import math
from typing import Iterable, List, Optional, Sequence

from plancore.geometry import contract
from plancore.geometry.primitives import distance, is_finite_point
from plancore.models import Point, SnapCandidate, SnapKind, SnapResult, Topology, Wall
from plancore.settings import SnapSettings
from plancore.topology.walls import sanitize_walls

# Lower wins when two features sit at the same distance
_KIND_PRIORITY = {
    SnapKind.ENDPOINT: 0,
    SnapKind.JUNCTION: 1,
    SnapKind.MIDPOINT: 2,
    SnapKind.GRID: 3,
}


def _unsnapped(point: Point) -> SnapResult:
    return SnapResult(point=point, snapped=False)


def snap_to_grid(point: Point, grid_size: float, tolerance: float = contract.SNAP_TOLERANCE) -> SnapResult:
    """Round to the nearest grid intersection if it lies within ``tolerance``."""
    xy = point.as_tuple()
    if grid_size <= 0.0 or not math.isfinite(grid_size) or not is_finite_point(xy):
        return _unsnapped(point)
    gx = round(xy[0] / grid_size) * grid_size
    gy = round(xy[1] / grid_size) * grid_size
    dist = distance(xy, (gx, gy))
    if dist > tolerance:
        return _unsnapped(point)
    return SnapResult(point=Point(x=gx, y=gy), snapped=True, kind=SnapKind.GRID, distance=dist)


def snap_to_candidates(
    point: Point,
    candidates: Iterable[SnapCandidate],
    tolerance: float = contract.SNAP_TOLERANCE,
) -> SnapResult:
    """Nearest feature within ``tolerance``; ties go to endpoints, then junctions, then midpoints."""
    xy = point.as_tuple()
    if not is_finite_point(xy):
        return _unsnapped(point)

    best: Optional[SnapCandidate] = None
    best_key = None
    best_dist = 0.0
    for candidate in candidates:
        target = candidate.point.as_tuple()
        if not is_finite_point(target):
            continue
        dist = distance(xy, target)
        if dist > tolerance:
            continue
        key = (round(dist, 9), _KIND_PRIORITY.get(candidate.kind, 99), candidate.source_id or "")
        if best_key is None or key < best_key:
            best, best_key, best_dist = candidate, key, dist

    if best is None:
        return _unsnapped(point)
    return SnapResult(
        point=best.point,
        snapped=True,
        kind=best.kind,
        source_id=best.source_id,
        distance=best_dist,
    )


def snap(
    point: Point,
    grid_size: float,
    candidates: Sequence[SnapCandidate] = (),
    grid_enabled: bool = True,
    tolerance: float = contract.SNAP_TOLERANCE,
) -> SnapResult:
    """Snap ``point`` to a wall feature, else to the grid, else leave it alone."""
    if not is_finite_point(point.as_tuple()):
        return _unsnapped(point)

    feature = snap_to_candidates(point, candidates, tolerance)
    if feature.snapped:
        return feature
    if grid_enabled:
        return snap_to_grid(point, grid_size, tolerance)
    return _unsnapped(point)


def snap_with_settings(
    point: Point,
    candidates: Sequence[SnapCandidate] = (),
    settings: SnapSettings | None = None,
) -> SnapResult:
    if settings is None:
        settings = SnapSettings()
    return snap(point, settings.grid_size, candidates, settings.grid_enabled, settings.tolerance)


def collect_snap_candidates(
    walls: Sequence[Wall],
    topology: Topology | None = None,
    include_midpoints: bool | None = None,
    exclude_wall_ids: Iterable[str] = (),
    settings: SnapSettings | None = None,
) -> List[SnapCandidate]:
    """Endpoints, midpoints and junction positions to offer as snap targets.

    ``exclude_wall_ids`` leaves out the wall being drawn or dragged so it
    cannot snap onto itself. ``include_midpoints`` defaults to the
    settings value.
    """
    if include_midpoints is None:
        include_midpoints = (settings or SnapSettings()).include_midpoints
    excluded = set(exclude_wall_ids)
    clean, _ = sanitize_walls(walls)
    candidates: List[SnapCandidate] = []
    for wall in clean:
        if wall.id in excluded:
            continue
        candidates.append(SnapCandidate(point=wall.start, kind=SnapKind.ENDPOINT, source_id=wall.id))
        candidates.append(SnapCandidate(point=wall.end, kind=SnapKind.ENDPOINT, source_id=wall.id))
        if include_midpoints:
            candidates.append(SnapCandidate(point=wall.midpoint, kind=SnapKind.MIDPOINT, source_id=wall.id))

    if topology is not None:
        for junction in topology.junctions:
            if excluded and excluded.issuperset(junction.member_wall_ids):
                continue
            candidates.append(SnapCandidate(point=junction.position, kind=SnapKind.JUNCTION, source_id=junction.id))
    return candidates
