from __future__ import annotations

from dataclasses import dataclass


@dataclass
class StateFlags:
    """Per-character gates. `is_sitting` and `is_action_playing` are orthogonal; both block locomotion."""

    is_moving: bool = False
    is_sitting: bool = False
    is_action_playing: bool = False

    def reset(self) -> None:
        self.is_moving = False
        self.is_sitting = False
        self.is_action_playing = False

    def locomotion_blocked(self) -> bool:
        return bool(self.is_sitting or self.is_action_playing)


__all__ = ["StateFlags"]
