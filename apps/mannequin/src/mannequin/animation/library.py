from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from mannequin.errors import NotReady, UnknownAction

logger = logging.getLogger(__name__)


class ActionId(str, Enum):
    STAND = "stand"
    SEAT = "seat"
    STAND_TO_SEAT = "standToSeat"
    KICK = "kick"
    JUMP = "jump"
    WALKING = "walking"
    COLLISION = "collision"


class LoopMode(str, Enum):
    LOOPING = "looping"
    ONE_SHOT_HOLD = "one_shot_hold"


REQUIRED_ACTIONS: tuple[ActionId, ...] = (
    ActionId.STAND,
    ActionId.SEAT,
    ActionId.STAND_TO_SEAT,
    ActionId.KICK,
    ActionId.JUMP,
    ActionId.WALKING,
    ActionId.COLLISION,
)

DEFAULT_IDLE_ACTION = ActionId.STAND


@dataclass(frozen=True)
class ActionDescriptor:
    action_id: ActionId
    duration: float
    loop_mode: LoopMode = LoopMode.LOOPING
    # Default playback speed; the sign is the default direction.
    playback_rate: float = 1.0
    # Root translation stripped by the loader (clip plays in place).
    in_place: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "action_id", coerce_action_id(self.action_id))
        object.__setattr__(self, "loop_mode", LoopMode(self.loop_mode))
        object.__setattr__(self, "duration", max(0.0, float(self.duration)))
        object.__setattr__(self, "playback_rate", float(self.playback_rate))

    @property
    def one_shot(self) -> bool:
        return self.loop_mode is LoopMode.ONE_SHOT_HOLD


def coerce_action_id(value: ActionId | str) -> ActionId:
    if isinstance(value, ActionId):
        return value
    try:
        return ActionId(str(value))
    except ValueError:
        raise UnknownAction(value) from None


class ActionLibrary:
    """Clip metadata by action id, plus readiness of the full required set."""

    def __init__(self) -> None:
        self._descriptors: dict[ActionId, ActionDescriptor] = {}

    def register(self, action_id: ActionId | str, descriptor: ActionDescriptor) -> None:
        aid = coerce_action_id(action_id)
        if descriptor.action_id is not aid:
            raise ValueError(f"descriptor for {descriptor.action_id.value!r} registered under {aid.value!r}")
        was_ready = self.is_ready()
        self._descriptors[aid] = descriptor
        logger.debug("Registered action %s (%.3fs, %s)", aid.value, descriptor.duration, descriptor.loop_mode.value)
        if not was_ready and self.is_ready():
            logger.info("Action library ready (%d actions)", len(self._descriptors))

    def is_ready(self) -> bool:
        return all(aid in self._descriptors for aid in REQUIRED_ACTIONS)

    def missing(self) -> tuple[ActionId, ...]:
        return tuple(aid for aid in REQUIRED_ACTIONS if aid not in self._descriptors)

    def get(self, action_id: ActionId | str) -> ActionDescriptor:
        aid = coerce_action_id(action_id)
        desc = self._descriptors.get(aid)
        if desc is None:
            raise NotReady(aid.value, missing=tuple(a.value for a in self.missing()))
        return desc

    def __contains__(self, action_id: object) -> bool:
        try:
            return coerce_action_id(action_id) in self._descriptors  # type: ignore[arg-type]
        except UnknownAction:
            return False

    def __len__(self) -> int:
        return len(self._descriptors)


__all__ = [
    "ActionDescriptor",
    "ActionId",
    "ActionLibrary",
    "DEFAULT_IDLE_ACTION",
    "LoopMode",
    "REQUIRED_ACTIONS",
    "coerce_action_id",
]
