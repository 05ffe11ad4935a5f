"""Canonical data model for wall snapshots and derived geometry.

Entities owned by the host's design store (walls, openings) come in as
frozen snapshots; everything the geometry core derives (junctions,
segments, rooms, snap results) goes out as new frozen values.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Annotated, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from plancore.geometry import contract
from plancore.geometry.primitives import XY, distance, lerp


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Point(_Frozen):
    """2D point in model space (centimeters)."""
    x: float
    y: float

    def as_tuple(self) -> XY:
        return (self.x, self.y)

    @classmethod
    def from_tuple(cls, xy: XY) -> "Point":
        return cls(x=float(xy[0]), y=float(xy[1]))

    def distance_to(self, other: "Point") -> float:
        return distance(self.as_tuple(), other.as_tuple())


class WallType(str, Enum):
    EXTERIOR = "exterior"
    INTERIOR = "interior"
    PARTITION = "partition"


class Wall(_Frozen):
    """Wall element with a straight centerline."""
    kind: Literal["wall"] = "wall"
    id: str
    start: Point
    end: Point
    thickness: float = Field(contract.FALLBACK_WALL_THICKNESS, description="Wall thickness, abs-normalised")
    height: float = Field(contract.DEFAULT_WALL_HEIGHT, description="Wall height")
    type: WallType = WallType.INTERIOR

    @field_validator("thickness", mode="before")
    @classmethod
    def _normalize_thickness(cls, value: object) -> float:
        try:
            number = abs(float(value))  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise ValueError("thickness must be numeric") from exc
        if not math.isfinite(number) or number == 0.0:
            return contract.FALLBACK_WALL_THICKNESS
        return number

    @property
    def length(self) -> float:
        return distance(self.start.as_tuple(), self.end.as_tuple())

    @property
    def direction(self) -> XY:
        """Unit vector from start to end; (0, 0) for a zero-length wall."""
        length = self.length
        if length <= 0.0:
            return (0.0, 0.0)
        return ((self.end.x - self.start.x) / length, (self.end.y - self.start.y) / length)

    @property
    def midpoint(self) -> Point:
        return Point(x=(self.start.x + self.end.x) / 2.0, y=(self.start.y + self.end.y) / 2.0)

    @property
    def angle(self) -> float:
        """Direction of start -> end in radians."""
        return math.atan2(self.end.y - self.start.y, self.end.x - self.start.x)

    def point_at(self, offset: float) -> Point:
        """Point at ``offset`` along the centerline (0 at ``start``)."""
        length = self.length
        if length <= 0.0:
            return self.start
        return Point.from_tuple(lerp(self.start.as_tuple(), self.end.as_tuple(), offset / length))


class SwingDirection(str, Enum):
    LEFT = "left"
    RIGHT = "right"


class WindowStyle(str, Enum):
    CASEMENT = "casement"
    SLIDING = "sliding"
    FIXED = "fixed"
    AWNING = "awning"


class _OpeningBase(_Frozen):
    id: str
    host_wall_id: str = Field(..., description="ID of wall containing this opening")
    offset: float = Field(..., ge=0.0, description="Distance from wall start to the opening's near edge")
    width: float = Field(..., gt=0.0)
    height: float = Field(..., gt=0.0)

    @property
    def end_offset(self) -> float:
        return self.offset + self.width


class Door(_OpeningBase):
    kind: Literal["door"] = "door"
    swing_direction: SwingDirection = SwingDirection.LEFT


class Window(_OpeningBase):
    kind: Literal["window"] = "window"
    style: WindowStyle = WindowStyle.CASEMENT
    sill_height: Optional[float] = Field(None, ge=0.0, description="Floor offset; settings default when unset")


Opening = Annotated[Union[Door, Window], Field(discriminator="kind")]
OpeningKind = Literal["door", "window"]


class JunctionKind(str, Enum):
    CORNER = "corner"
    T_JUNCTION = "t_junction"
    CROSS = "cross"


class Junction(_Frozen):
    id: str
    position: Point
    member_wall_ids: Tuple[str, ...]
    kind: JunctionKind
    angle: Optional[float] = Field(None, description="Meeting angle in degrees for two-wall junctions")
    ambiguous: bool = False


class Segment(_Frozen):
    """Piece of a wall between consecutive junctions (or the whole wall)."""
    id: str
    wall_id: str
    start: Point
    end: Point
    index: int = 0

    @property
    def length(self) -> float:
        return self.start.distance_to(self.end)


class IssueCode(str, Enum):
    DEGENERATE_INPUT = "degenerate_input"
    DUPLICATE_WALL = "duplicate_wall"
    NO_HOST_WALL = "no_host_wall"
    AMBIGUOUS_JUNCTION = "ambiguous_junction"
    NUMERICAL_NEAR_DEGENERACY = "numerical_near_degeneracy"
    OVERSIZED_OPENING = "oversized_opening"
    OPENING_OVERLAP = "opening_overlap"
    CORNER_CLEARANCE = "corner_clearance"
    NO_FREE_SPACE = "no_free_space"
    INVALID_ROOM = "invalid_room"


class GeometryIssue(_Frozen):
    code: IssueCode
    message: str
    element_ids: Tuple[str, ...] = ()

    def __str__(self) -> str:
        return self.message


class Topology(_Frozen):
    junctions: Tuple[Junction, ...] = ()
    split_segments: Tuple[Segment, ...] = ()
    warnings: Tuple[GeometryIssue, ...] = ()
    version: str = ""


class Room(_Frozen):
    """Enclosed face of the wall graph."""
    id: str
    boundary_wall_ids: Tuple[str, ...] = Field(..., description="Walls forming the boundary, in cyclic order")
    points: Tuple[Point, ...] = Field(..., description="Counter-clockwise outline without repeated first vertex")
    area: float = Field(..., ge=0.0)
    perimeter: float = Field(..., ge=0.0)
    centroid: Point


class SnapKind(str, Enum):
    GRID = "grid"
    ENDPOINT = "endpoint"
    MIDPOINT = "midpoint"
    JUNCTION = "junction"


class SnapCandidate(_Frozen):
    point: Point
    kind: SnapKind
    source_id: Optional[str] = None


class SnapResult(_Frozen):
    point: Point
    snapped: bool
    kind: Optional[SnapKind] = None
    source_id: Optional[str] = None
    distance: float = 0.0


__all__ = [
    "Point",
    "WallType",
    "Wall",
    "SwingDirection",
    "WindowStyle",
    "Door",
    "Window",
    "Opening",
    "OpeningKind",
    "JunctionKind",
    "Junction",
    "Segment",
    "IssueCode",
    "GeometryIssue",
    "Topology",
    "Room",
    "SnapKind",
    "SnapCandidate",
    "SnapResult",
]
