"""Interactive door/window placement.

The session only validates and previews; ``commit`` hands the finished
opening back to the caller, which owns the design store.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Optional, Sequence

from loguru import logger

from plancore.exceptions import PlacementStateError
from plancore.models import Door, Opening, OpeningKind, Point, SwingDirection, Wall, Window
from plancore.reconstruct.openings import OpeningValidation, validate_opening
from plancore.settings import OpeningSettings


class PlacementState(str, Enum):
    IDLE = "idle"
    PREVIEWING = "previewing"
    VALID = "valid"
    INVALID = "invalid"
    COMMITTED = "committed"
    CANCELLED = "cancelled"


_ACTIVE = {PlacementState.PREVIEWING, PlacementState.VALID, PlacementState.INVALID}


class OpeningPlacementSession:
    """One preview-and-commit cycle for a single opening.

    Pass ``opening_id`` to move an existing opening: it is left out of the
    overlap checks and keeps its id on commit.
    """

    def __init__(
        self,
        kind: OpeningKind,
        width: float,
        height: float,
        settings: OpeningSettings | None = None,
        *,
        swing_direction: SwingDirection = SwingDirection.LEFT,
        opening_id: str | None = None,
    ) -> None:
        if kind not in ("door", "window"):
            raise TypeError(f"Unsupported opening kind: {kind!r}")
        self.kind = kind
        self.width = width
        self.height = height
        self.settings = settings or OpeningSettings()
        self.swing_direction = swing_direction
        self.opening_id = opening_id
        self.state = PlacementState.IDLE
        self.validation: Optional[OpeningValidation] = None

    def begin(self) -> None:
        if self.state is not PlacementState.IDLE:
            raise PlacementStateError(
                f"Cannot begin placement from state {self.state.value}",
                {"state": self.state.value},
            )
        self.state = PlacementState.PREVIEWING

    def move(
        self,
        point: Point,
        walls: Sequence[Wall],
        openings: Sequence[Opening] = (),
    ) -> OpeningValidation:
        """Re-validate the preview at ``point``."""
        if self.state not in _ACTIVE:
            raise PlacementStateError(
                f"Cannot move preview in state {self.state.value}",
                {"state": self.state.value},
            )
        self.validation = validate_opening(
            point,
            self.width,
            walls,
            openings,
            self.settings,
            ignore_opening_id=self.opening_id,
        )
        self.state = PlacementState.VALID if self.validation.is_valid else PlacementState.INVALID
        return self.validation

    def commit(self) -> Optional[Opening]:
        """Finish placement; ``None`` when the last preview was not placeable."""
        if self.state is PlacementState.INVALID:
            logger.debug("Commit ignored, preview is invalid")
            return None
        if self.state is not PlacementState.VALID or self.validation is None:
            raise PlacementStateError(
                f"Cannot commit placement from state {self.state.value}",
                {"state": self.state.value},
            )

        validation = self.validation
        if validation.wall_id is None or validation.offset is None:
            raise PlacementStateError(
                "Cannot commit a preview without a host wall and offset",
                {"state": self.state.value},
            )
        opening_id = self.opening_id or f"{self.kind}-{uuid.uuid4().hex[:8]}"
        opening: Opening
        if self.kind == "door":
            opening = Door(
                id=opening_id,
                host_wall_id=validation.wall_id,
                offset=max(validation.offset, 0.0),
                width=self.width,
                height=self.height,
                swing_direction=self.swing_direction,
            )
        elif self.kind == "window":
            opening = Window(
                id=opening_id,
                host_wall_id=validation.wall_id,
                offset=max(validation.offset, 0.0),
                width=self.width,
                height=self.height,
                sill_height=self.settings.window_sill_height,
            )
        else:
            raise TypeError(f"Unsupported opening kind: {self.kind!r}")

        self.state = PlacementState.COMMITTED
        logger.debug("Placed {} {} on wall {} at {:.1f}", self.kind, opening.id, opening.host_wall_id, opening.offset)
        return opening

    def cancel(self) -> None:
        if self.state in (PlacementState.COMMITTED, PlacementState.CANCELLED):
            raise PlacementStateError(
                f"Cannot cancel placement in state {self.state.value}",
                {"state": self.state.value},
            )
        self.validation = None
        self.state = PlacementState.CANCELLED
