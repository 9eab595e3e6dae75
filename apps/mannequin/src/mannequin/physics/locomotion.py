from __future__ import annotations

import math
from dataclasses import dataclass, field

from panda3d.core import LVector3f

from mannequin.common.input_snapshot import InputSnapshot
from mannequin.physics.tuning import CharacterTuning


@dataclass
class Actor:
    """Committed character pose. Y-up; heading is yaw in radians (0 faces +Z)."""

    position: LVector3f = field(default_factory=lambda: LVector3f(0, 0, 0))
    heading: float = 0.0


@dataclass(frozen=True)
class MovementIntent:
    """Tentative displacement for one tick; nothing moves until it is committed."""

    displacement: LVector3f
    direction: LVector3f
    # None when the input direction is the zero vector.
    heading: float | None

    @property
    def is_moving(self) -> bool:
        return self.heading is not None

    @classmethod
    def still(cls) -> "MovementIntent":
        return cls(displacement=LVector3f(0, 0, 0), direction=LVector3f(0, 0, 0), heading=None)


def wish_direction(snapshot: InputSnapshot) -> LVector3f:
    """Ground-plane direction from the four axis flags; opposite flags cancel."""

    d = LVector3f(0, 0, 0)
    if snapshot.forward:
        d.z -= 1.0
    if snapshot.back:
        d.z += 1.0
    if snapshot.left:
        d.x -= 1.0
    if snapshot.right:
        d.x += 1.0
    return d


class LocomotionIntegrator:
    """Input flags -> tentative ground displacement + facing."""

    def __init__(self, *, tuning: CharacterTuning) -> None:
        self._tuning = tuning

    @property
    def move_speed(self) -> float:
        return max(0.0, float(self._tuning.move_speed))

    def compute_intent(self, snapshot: InputSnapshot, *, dt: float) -> MovementIntent:
        direction = wish_direction(snapshot)
        if direction.lengthSquared() <= 1e-12:
            return MovementIntent.still()
        direction.normalize()
        step = self.move_speed * max(0.0, float(dt))
        return MovementIntent(
            displacement=LVector3f(direction * step),
            direction=LVector3f(direction),
            heading=math.atan2(float(direction.x), float(direction.z)),
        )

    @staticmethod
    def intended_position(actor: Actor, intent: MovementIntent) -> LVector3f:
        return LVector3f(actor.position + intent.displacement)

    @staticmethod
    def commit(actor: Actor, intent: MovementIntent) -> None:
        actor.position = LVector3f(actor.position + intent.displacement)
        if intent.heading is not None:
            actor.heading = float(intent.heading)


__all__ = ["Actor", "LocomotionIntegrator", "MovementIntent", "wish_direction"]
