"""Plan how a newly drawn wall joins the walls already in the design.

The plan is data only: the drawing tool applies it to its store in one
commit, so nothing here mutates the snapshots it receives.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from loguru import logger

from plancore.geometry.primitives import segment_intersection
from plancore.models import Point, Wall
from plancore.settings import TopologySettings
from plancore.topology.walls import sanitize_walls


@dataclass
class WallJoinPlan:
    should_join: bool = False
    join_point: Optional[Point] = None
    updated_walls: List[Wall] = field(default_factory=list)
    removed_wall_ids: List[str] = field(default_factory=list)
    new_walls: List[Wall] = field(default_factory=list)


def plan_wall_join(
    new_wall: Wall,
    existing_walls: Sequence[Wall],
    settings: TopologySettings | None = None,
) -> WallJoinPlan:
    """Work out the edits that connect ``new_wall`` to what it touches.

    An existing wall crossed well inside its span is replaced by two walls
    split at the intersection; one touched near an end has that end moved
    onto the intersection so the pair shares an exact endpoint.
    """
    if settings is None:
        settings = TopologySettings()
    tol = settings.junction_tolerance

    candidates, _ = sanitize_walls([new_wall], settings.min_wall_length)
    if not candidates:
        return WallJoinPlan()
    clean_existing, _ = sanitize_walls(existing_walls, settings.min_wall_length)

    plan = WallJoinPlan()
    n1, n2 = new_wall.start.as_tuple(), new_wall.end.as_tuple()
    new_tol = tol / new_wall.length

    for wall in clean_existing:
        if wall.id == new_wall.id:
            continue
        inter = segment_intersection(
            n1,
            n2,
            wall.start.as_tuple(),
            wall.end.as_tuple(),
            settings.intersection_epsilon,
        )
        if inter is None:
            continue
        length = wall.length
        wall_tol = tol / length
        if not (-new_tol <= inter.t1 <= 1.0 + new_tol and -wall_tol <= inter.t2 <= 1.0 + wall_tol):
            continue

        point = Point.from_tuple(inter.point)
        plan.should_join = True
        plan.join_point = point
        along = inter.t2 * length

        if along <= tol:
            if wall.start != point:
                plan.updated_walls.append(wall.model_copy(update={"start": point}))
        elif length - along <= tol:
            if wall.end != point:
                plan.updated_walls.append(wall.model_copy(update={"end": point}))
        else:
            plan.removed_wall_ids.append(wall.id)
            plan.new_walls.append(wall.model_copy(update={"id": f"{wall.id}-split1", "end": point}))
            plan.new_walls.append(wall.model_copy(update={"id": f"{wall.id}-split2", "start": point}))

    if plan.should_join:
        logger.debug(
            "Wall {} joins {} update(s), {} split(s)",
            new_wall.id,
            len(plan.updated_walls),
            len(plan.removed_wall_ids),
        )
    return plan
