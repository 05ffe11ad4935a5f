from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from plancore.geometry.contract import DOOR_CLOSED_ANGLE_DEG, EPS
from plancore.geometry.primitives import project_point_to_segment
from plancore.models import (
    Door,
    GeometryIssue,
    IssueCode,
    Opening,
    Point,
    SwingDirection,
    Wall,
    Window,
)
from plancore.settings import OpeningSettings
from plancore.topology.walls import sanitize_walls

Interval = Tuple[float, float]


@dataclass
class HostWallMatch:
    wall: Wall
    distance: float
    along: float  # projection of the query point, clamped to [0, wall length]
    point: Point  # closest point on the centerline


@dataclass
class OpeningValidation:
    """Outcome of one placement query.

    ``offset`` and ``position`` are only filled in when the placement is
    valid, so a reported offset always respects the corner clearance.
    ``requested_offset`` and ``clamped_offset`` are reported whenever a
    host wall was found, letting the caller pick its own policy.
    """

    is_valid: bool
    wall_id: Optional[str] = None
    offset: Optional[float] = None
    position: Optional[Point] = None
    requested_offset: Optional[float] = None
    clamped_offset: Optional[float] = None
    clamped: bool = False
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    issues: List[GeometryIssue] = field(default_factory=list)

    def has_critical_issues(self) -> bool:
        return len(self.errors) > 0

    @property
    def codes(self) -> List[IssueCode]:
        return [issue.code for issue in self.issues]


@dataclass
class DoorSwing:
    hinge: Point
    radius: float
    closed_angle: float  # degrees, world frame
    open_angle: float


@dataclass
class OpeningGeometry:
    world_position: Point
    rotation: float  # radians, wall direction
    segment: Tuple[Point, Point]
    depth: float
    floor_offset: float
    is_valid: bool
    swing: Optional[DoorSwing] = None


def find_host_wall(
    point: Point,
    walls: Sequence[Wall],
    settings: OpeningSettings | None = None,
) -> Optional[HostWallMatch]:
    """Nearest wall whose centerline lies within half its thickness plus the snap tolerance."""
    if settings is None:
        settings = OpeningSettings()
    query = point.as_tuple()
    if not (math.isfinite(query[0]) and math.isfinite(query[1])):
        return None

    clean, _ = sanitize_walls(walls)
    best: Optional[HostWallMatch] = None
    for wall in clean:
        proj = project_point_to_segment(query, wall.start.as_tuple(), wall.end.as_tuple())
        limit = wall.thickness / 2.0 + settings.snap_tolerance
        if proj.distance > limit:
            continue
        if best is None or proj.distance < best.distance:
            best = HostWallMatch(
                wall=wall,
                distance=proj.distance,
                along=proj.t * wall.length,
                point=Point.from_tuple(proj.point),
            )
    return best


def opening_interval(opening: Opening, clearance: float = 0.0) -> Interval:
    return (opening.offset - clearance, opening.offset + opening.width + clearance)


def openings_on_wall(
    wall_id: str,
    openings: Iterable[Opening],
    ignore_opening_id: str | None = None,
) -> List[Opening]:
    hosted = [o for o in openings if o.host_wall_id == wall_id and o.id != ignore_opening_id]
    hosted.sort(key=lambda o: (o.offset, o.id))
    return hosted


def free_spans(length: float, corner_clearance: float, blocked: Sequence[Interval]) -> List[Interval]:
    """Parts of ``[c, L - c]`` not covered by any blocked interval."""
    lo, hi = corner_clearance, length - corner_clearance
    if hi < lo:
        return []
    spans: List[Interval] = []
    cursor = lo
    for b_lo, b_hi in sorted(blocked):
        if b_hi <= cursor:
            continue
        if b_lo >= hi:
            break
        if b_lo > cursor:
            spans.append((cursor, b_lo))
        cursor = max(cursor, b_hi)
    if cursor < hi:
        spans.append((cursor, hi))
    return spans


def nearest_admissible_offset(desired: float, width: float, spans: Sequence[Interval]) -> Optional[float]:
    """Start offset closest to ``desired`` that fits ``width`` inside one span."""
    best: Optional[float] = None
    for lo, hi in spans:
        if hi - lo + EPS < width:
            continue
        candidate = min(max(desired, lo), max(lo, hi - width))
        if best is None or abs(candidate - desired) < abs(best - desired):
            best = candidate
    return best


def _overlaps(a: Interval, b: Interval) -> bool:
    return a[0] < b[1] - EPS and a[1] > b[0] + EPS


def validate_opening(
    point: Point,
    width: float,
    walls: Sequence[Wall],
    existing_openings: Sequence[Opening] = (),
    settings: OpeningSettings | None = None,
    *,
    auto_clamp: bool | None = None,
    ignore_opening_id: str | None = None,
) -> OpeningValidation:
    """Check whether an opening of ``width`` centred at ``point`` fits on a wall.

    Args:
        point: Pointer position in model space; it marks the opening's center.
        width: Candidate opening width.
        walls: Wall snapshot.
        existing_openings: Openings already placed (any wall).
        settings: Clearances and tolerances (uses defaults if None).
        auto_clamp: Relocate an overlapping candidate to the nearest free
            position instead of rejecting it; defaults to ``settings.auto_clamp``.
        ignore_opening_id: Opening being moved, excluded from overlap checks.

    Returns:
        OpeningValidation. Never raises.
    """
    if settings is None:
        settings = OpeningSettings()
    if auto_clamp is None:
        auto_clamp = settings.auto_clamp

    if not math.isfinite(width) or width <= 0.0:
        message = "Opening width must be a positive number"
        return OpeningValidation(
            is_valid=False,
            errors=[message],
            issues=[GeometryIssue(code=IssueCode.DEGENERATE_INPUT, message=message)],
        )

    match = find_host_wall(point, walls, settings)
    if match is None:
        message = "No suitable wall found for opening placement"
        return OpeningValidation(
            is_valid=False,
            errors=[message],
            issues=[GeometryIssue(code=IssueCode.NO_HOST_WALL, message=message)],
        )

    wall = match.wall
    length = wall.length
    corner = settings.corner_clearance
    requested = match.along - width / 2.0
    result = OpeningValidation(is_valid=False, wall_id=wall.id, requested_offset=requested)

    usable = length - 2.0 * corner
    # Filling the usable span exactly counts as oversized
    if width >= usable - EPS:
        message = f"Opening too wide for wall ({width:.1f} >= {max(usable, 0.0):.1f} available)"
        result.errors.append(message)
        result.issues.append(GeometryIssue(code=IssueCode.OVERSIZED_OPENING, message=message, element_ids=(wall.id,)))
        return result

    if width / length > settings.max_opening_ratio:
        result.warnings.append(
            f"Opening takes {width / length * 100.0:.1f}% of the wall (> {settings.max_opening_ratio * 100.0:.0f}%)"
        )

    candidate = (requested, requested + width)
    conflicts: List[GeometryIssue] = []
    if candidate[0] < corner - EPS or candidate[1] > length - corner + EPS:
        conflicts.append(
            GeometryIssue(
                code=IssueCode.CORNER_CLEARANCE,
                message=f"Opening closer than {corner:g} to a wall end",
                element_ids=(wall.id,),
            )
        )

    blocked: List[Interval] = []
    for other in openings_on_wall(wall.id, existing_openings, ignore_opening_id):
        interval = opening_interval(other, settings.opening_clearance)
        blocked.append(interval)
        if _overlaps(candidate, interval):
            conflicts.append(
                GeometryIssue(
                    code=IssueCode.OPENING_OVERLAP,
                    message=f"Opening overlaps existing {other.kind} {other.id}",
                    element_ids=(wall.id, other.id),
                )
            )

    spans = free_spans(length, corner, blocked)
    result.clamped_offset = nearest_admissible_offset(requested, width, spans)

    if not conflicts:
        result.is_valid = True
        result.offset = requested
        result.position = wall.point_at(requested + width / 2.0)
        return result

    if result.clamped_offset is None:
        message = f"No free span on wall {wall.id} fits an opening of width {width:g}"
        result.errors.extend(issue.message for issue in conflicts)
        result.errors.append(message)
        result.issues.extend(conflicts)
        result.issues.append(GeometryIssue(code=IssueCode.NO_FREE_SPACE, message=message, element_ids=(wall.id,)))
        return result

    if auto_clamp:
        result.is_valid = True
        result.clamped = True
        result.offset = result.clamped_offset
        result.position = wall.point_at(result.clamped_offset + width / 2.0)
        result.warnings.extend(issue.message for issue in conflicts)
        result.warnings.append(f"Opening moved from {requested:.1f} to {result.clamped_offset:.1f}")
        result.issues.extend(conflicts)
        logger.debug("Clamped opening on wall {} from {} to {}", wall.id, requested, result.clamped_offset)
        return result

    result.errors.extend(issue.message for issue in conflicts)
    result.issues.extend(conflicts)
    return result


def can_place_opening(
    point: Point,
    width: float,
    walls: Sequence[Wall],
    existing_openings: Sequence[Opening] = (),
    settings: OpeningSettings | None = None,
    *,
    auto_clamp: bool | None = None,
    ignore_opening_id: str | None = None,
) -> OpeningValidation:
    return validate_opening(
        point,
        width,
        walls,
        existing_openings,
        settings,
        auto_clamp=auto_clamp,
        ignore_opening_id=ignore_opening_id,
    )


def swing_angles(door: Door, settings: OpeningSettings | None = None) -> Tuple[float, float]:
    """Closed and open leaf angles in degrees, relative to the wall direction."""
    if settings is None:
        settings = OpeningSettings()
    if door.swing_direction is SwingDirection.LEFT:
        return (DOOR_CLOSED_ANGLE_DEG, DOOR_CLOSED_ANGLE_DEG + settings.door_open_angle)
    if door.swing_direction is SwingDirection.RIGHT:
        return (DOOR_CLOSED_ANGLE_DEG, DOOR_CLOSED_ANGLE_DEG - settings.door_open_angle)
    raise TypeError(f"Unsupported swing direction: {door.swing_direction!r}")


def _floor_offset(opening: Opening, settings: OpeningSettings) -> float:
    if isinstance(opening, Door):
        return 0.0
    if isinstance(opening, Window):
        return opening.sill_height if opening.sill_height is not None else settings.window_sill_height
    raise TypeError(f"Unsupported opening kind: {type(opening).__name__}")


def _door_swing(door: Door, wall: Wall, settings: OpeningSettings) -> DoorSwing:
    closed_rel, open_rel = swing_angles(door, settings)
    base = math.degrees(wall.angle)
    if door.swing_direction is SwingDirection.LEFT:
        hinge = wall.point_at(door.offset)
    else:
        hinge = wall.point_at(door.offset + door.width)
        base += 180.0
    return DoorSwing(
        hinge=hinge,
        radius=door.width,
        closed_angle=base + closed_rel,
        open_angle=base + open_rel,
    )


def compute_opening_geometry(
    opening: Opening,
    wall: Wall,
    settings: OpeningSettings | None = None,
) -> OpeningGeometry:
    """World-space placement of ``opening`` on its host ``wall``."""
    if settings is None:
        settings = OpeningSettings()
    if isinstance(opening, Door):
        swing: Optional[DoorSwing] = _door_swing(opening, wall, settings)
    elif isinstance(opening, Window):
        swing = None
    else:
        raise TypeError(f"Unsupported opening kind: {type(opening).__name__}")

    length = wall.length
    corner = settings.corner_clearance
    start_offset = opening.offset
    end_offset = opening.offset + opening.width
    is_valid = (
        opening.host_wall_id == wall.id
        and length > 0.0
        and start_offset >= corner - EPS
        and end_offset <= length - corner + EPS
    )

    return OpeningGeometry(
        world_position=wall.point_at(start_offset + opening.width / 2.0),
        rotation=wall.angle,
        segment=(wall.point_at(start_offset), wall.point_at(end_offset)),
        depth=wall.thickness,
        floor_offset=_floor_offset(opening, settings),
        is_valid=is_valid,
        swing=swing,
    )


def corner_clearance_markers(wall: Wall, settings: OpeningSettings | None = None) -> Tuple[Point, Point]:
    """Points at the corner clearance from each end, for constraint indicators."""
    if settings is None:
        settings = OpeningSettings()
    length = wall.length
    reach = min(settings.corner_clearance, length / 2.0)
    return (wall.point_at(reach), wall.point_at(length - reach))
