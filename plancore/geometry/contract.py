from __future__ import annotations

"""
Geometry Contract

Single source of truth for tolerances and defaults used by the topology,
room, opening and snapping modules. Settings models take their defaults
from here instead of hardcoding.
"""

# All lengths in model units (centimeters); angles in degrees unless noted

# Walls
MIN_WALL_LENGTH = 1.0
FALLBACK_WALL_THICKNESS = 10.0
DEFAULT_WALL_HEIGHT = 250.0
JUNCTION_TOLERANCE = 1.0  # endpoint / intersection merge distance
INTERSECTION_EPSILON = 1e-9  # relative determinant threshold (parallel test)

# Rooms
MIN_ROOM_AREA = 100.0  # cm²
DEDUPE_TOLERANCE = 1.0

# Openings
OPENING_SNAP_TOLERANCE = 20.0
CORNER_CLEARANCE = 10.0
OPENING_CLEARANCE = 5.0
MAX_OPENING_RATIO = 0.8
WINDOW_SILL_HEIGHT = 90.0
DOOR_OPEN_ANGLE_DEG = 90.0
DOOR_CLOSED_ANGLE_DEG = 0.0

# Snapping
GRID_SIZE = 10.0
SNAP_TOLERANCE = 15.0

# Numerics
EPS = 1e-9


def cm(value_m: float) -> float:
    """Convert meters to centimeters."""
    return float(value_m * 100.0)


def m(value_cm: float) -> float:
    """Convert centimeters to meters."""
    return float(value_cm / 100.0)
