from __future__ import annotations

from typing import List, Sequence, Tuple

from loguru import logger

from plancore.geometry import contract
from plancore.geometry.primitives import is_finite_point, points_close
from plancore.models import GeometryIssue, IssueCode, Wall


def sanitize_walls(
    walls: Sequence[Wall],
    min_wall_length: float = contract.MIN_WALL_LENGTH,
) -> Tuple[List[Wall], List[GeometryIssue]]:
    """Filter degenerate walls and return the survivors sorted by id.

    Non-finite coordinates, walls shorter than ``min_wall_length`` (or with
    coincident ends) and repeated ids never reach topology construction;
    each one is reported as a warning instead. Sorting by id makes every
    downstream result independent of the caller's ordering.
    """
    kept: dict[str, Wall] = {}
    issues: List[GeometryIssue] = []
    floor = max(float(min_wall_length), contract.EPS)

    for wall in walls:
        start = wall.start.as_tuple()
        end = wall.end.as_tuple()
        if not (is_finite_point(start) and is_finite_point(end)):
            issues.append(
                GeometryIssue(
                    code=IssueCode.DEGENERATE_INPUT,
                    message=f"Wall {wall.id} has non-finite coordinates",
                    element_ids=(wall.id,),
                )
            )
            continue
        if points_close(start, end, floor):
            issues.append(
                GeometryIssue(
                    code=IssueCode.DEGENERATE_INPUT,
                    message=f"Wall {wall.id} is shorter than {floor:g}",
                    element_ids=(wall.id,),
                )
            )
            continue
        if wall.id in kept:
            issues.append(
                GeometryIssue(
                    code=IssueCode.DUPLICATE_WALL,
                    message=f"Duplicate wall id {wall.id}; keeping the first occurrence",
                    element_ids=(wall.id,),
                )
            )
            continue
        kept[wall.id] = wall

    if issues:
        logger.warning("Dropped {} wall(s) during sanitizing", len(issues))
    return [kept[key] for key in sorted(kept)], issues


def dedupe_walls(
    walls: Sequence[Wall],
    tolerance: float = contract.DEDUPE_TOLERANCE,
) -> Tuple[List[Wall], List[GeometryIssue]]:
    """Drop walls whose (start, end) matches an earlier wall in either direction."""
    kept: List[Wall] = []
    issues: List[GeometryIssue] = []
    for wall in walls:
        a = wall.start.as_tuple()
        b = wall.end.as_tuple()
        duplicate_of = None
        for other in kept:
            oa = other.start.as_tuple()
            ob = other.end.as_tuple()
            same = points_close(a, oa, tolerance) and points_close(b, ob, tolerance)
            flipped = points_close(a, ob, tolerance) and points_close(b, oa, tolerance)
            if same or flipped:
                duplicate_of = other
                break
        if duplicate_of is not None:
            issues.append(
                GeometryIssue(
                    code=IssueCode.DUPLICATE_WALL,
                    message=f"Wall {wall.id} duplicates wall {duplicate_of.id}",
                    element_ids=(wall.id, duplicate_of.id),
                )
            )
            continue
        kept.append(wall)
    return kept, issues
