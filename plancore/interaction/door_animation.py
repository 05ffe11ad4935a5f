"""Open/closed state of door leaves, keyed by door id.

Only the start and end angles live here; easing between them is left to
the renderer, which calls ``complete`` when its tween finishes.
"""

from __future__ import annotations

from typing import Dict

from pydantic import BaseModel, ConfigDict, Field

from plancore.geometry import contract
from plancore.models import Door
from plancore.reconstruct.openings import swing_angles
from plancore.settings import OpeningSettings


class DoorAnimationState(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_open: bool = False
    is_animating: bool = False
    current_angle: float = contract.DOOR_CLOSED_ANGLE_DEG
    target_angle: float = contract.DOOR_CLOSED_ANGLE_DEG


class AnimationRegistry(BaseModel):
    """Immutable map of door id to animation state; every update returns a new registry."""

    model_config = ConfigDict(frozen=True)

    open_angle: float = Field(contract.DOOR_OPEN_ANGLE_DEG, gt=0.0, le=180.0)
    closed_angle: float = contract.DOOR_CLOSED_ANGLE_DEG
    states: Dict[str, DoorAnimationState] = Field(default_factory=dict)

    @classmethod
    def from_settings(cls, settings: OpeningSettings | None = None) -> "AnimationRegistry":
        if settings is None:
            settings = OpeningSettings()
        return cls(open_angle=settings.door_open_angle)

    def get(self, door_id: str) -> DoorAnimationState:
        state = self.states.get(door_id)
        if state is None:
            return DoorAnimationState(current_angle=self.closed_angle, target_angle=self.closed_angle)
        return state

    def _with(self, door_id: str, state: DoorAnimationState | None) -> "AnimationRegistry":
        states = dict(self.states)
        if state is None:
            states.pop(door_id, None)
        else:
            states[door_id] = state
        return self.model_copy(update={"states": states})

    def _open_target(self, door: Door | None) -> float:
        if door is None:
            return self.open_angle
        closed, opened = swing_angles(door, OpeningSettings(door_open_angle=self.open_angle))
        return self.closed_angle + (opened - closed)

    def toggle(self, door: str | Door) -> "AnimationRegistry":
        """Start swinging the door towards its other position; ignored mid-swing.

        Given a ``Door`` rather than an id, the leaf opens to the side its
        swing direction points at, so right-hand doors end at a negative angle.
        """
        door_id = door.id if isinstance(door, Door) else door
        state = self.get(door_id)
        if state.is_animating:
            return self
        if state.is_open:
            target = self.closed_angle
        else:
            target = self._open_target(door if isinstance(door, Door) else None)
        return self._with(door_id, state.model_copy(update={"is_animating": True, "target_angle": target}))

    def complete(self, door_id: str) -> "AnimationRegistry":
        state = self.get(door_id)
        if not state.is_animating:
            return self
        finished = DoorAnimationState(
            is_open=state.target_angle != self.closed_angle,
            is_animating=False,
            current_angle=state.target_angle,
            target_angle=state.target_angle,
        )
        return self._with(door_id, finished)

    def reset(self, door_id: str) -> "AnimationRegistry":
        if door_id not in self.states:
            return self
        return self._with(door_id, None)

    def reset_all(self) -> "AnimationRegistry":
        return self.model_copy(update={"states": {}})


__all__ = ["DoorAnimationState", "AnimationRegistry"]
