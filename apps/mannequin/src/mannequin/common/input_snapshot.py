from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Trigger(str, Enum):
    SIT_TOGGLE = "sit_toggle"
    KICK = "kick"
    JUMP = "jump"


@dataclass(frozen=True)
class InputSnapshot:
    """Input for one tick: four held movement axes and three discrete triggers."""

    forward: bool = False
    back: bool = False
    left: bool = False
    right: bool = False
    sit_toggle: bool = False
    kick: bool = False
    jump: bool = False

    def trigger(self, which: Trigger) -> bool:
        return bool(getattr(self, which.value))

    @classmethod
    def from_dict(cls, payload: dict) -> "InputSnapshot":
        names = ("forward", "back", "left", "right", "sit_toggle", "kick", "jump")
        return cls(**{n: bool(payload.get(n, False)) for n in names})


__all__ = ["InputSnapshot", "Trigger"]
