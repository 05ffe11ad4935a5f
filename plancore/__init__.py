"""Geometry core for a 2D floor-plan editor.

Walls in, topology, rooms, opening placement and snapping out. Logging is
off until the host calls :func:`plancore.logging_config.setup_logging`.
"""

from __future__ import annotations

from loguru import logger

from plancore.exceptions import (
    ConfigurationError,
    PlacementError,
    PlacementStateError,
    PlanCoreError,
)
from plancore.interaction.door_animation import AnimationRegistry, DoorAnimationState
from plancore.interaction.placement import OpeningPlacementSession, PlacementState
from plancore.models import (
    Door,
    GeometryIssue,
    IssueCode,
    Junction,
    JunctionKind,
    Opening,
    Point,
    Room,
    Segment,
    SnapCandidate,
    SnapKind,
    SnapResult,
    SwingDirection,
    Topology,
    Wall,
    WallType,
    Window,
    WindowStyle,
)
from plancore.reconstruct.openings import (
    OpeningGeometry,
    OpeningValidation,
    can_place_opening,
    compute_opening_geometry,
    find_host_wall,
    validate_opening,
)
from plancore.reconstruct.rooms import detect_rooms, find_room_cycles, is_closed_shape
from plancore.settings import Settings, get_settings
from plancore.topology.joining import WallJoinPlan, plan_wall_join
from plancore.topology.wall_graph import TopologyCache, resolve
from plancore.vector.snap import collect_snap_candidates, snap, snap_with_settings

logger.disable("plancore")

__version__ = "0.1.0"

__all__ = [
    "AnimationRegistry",
    "ConfigurationError",
    "Door",
    "DoorAnimationState",
    "GeometryIssue",
    "IssueCode",
    "Junction",
    "JunctionKind",
    "Opening",
    "OpeningGeometry",
    "OpeningPlacementSession",
    "OpeningValidation",
    "PlacementError",
    "PlacementState",
    "PlacementStateError",
    "PlanCoreError",
    "Point",
    "Room",
    "Segment",
    "Settings",
    "SnapCandidate",
    "SnapKind",
    "SnapResult",
    "SwingDirection",
    "Topology",
    "TopologyCache",
    "Wall",
    "WallJoinPlan",
    "WallType",
    "Window",
    "WindowStyle",
    "can_place_opening",
    "collect_snap_candidates",
    "compute_opening_geometry",
    "detect_rooms",
    "find_host_wall",
    "find_room_cycles",
    "get_settings",
    "is_closed_shape",
    "plan_wall_join",
    "resolve",
    "snap",
    "snap_with_settings",
    "validate_opening",
]
