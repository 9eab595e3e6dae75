from __future__ import annotations

from dataclasses import dataclass, field

from mannequin.animation.library import ActionLibrary
from mannequin.common.error_log import ErrorLog
from mannequin.common.flags import StateFlags
from mannequin.physics.collision_index import CollisionVolumeIndex
from mannequin.physics.locomotion import Actor
from mannequin.physics.tuning import CharacterTuning


@dataclass
class CharacterContext:
    """
    Everything one character instance owns or reads.

    Passed explicitly to each component so several characters can share a
    library/collider without any module-level state.
    """

    library: ActionLibrary
    collision: CollisionVolumeIndex
    tuning: CharacterTuning = field(default_factory=CharacterTuning)
    actor: Actor | None = None
    flags: StateFlags = field(default_factory=StateFlags)
    error_log: ErrorLog = field(default_factory=ErrorLog)

    def __post_init__(self) -> None:
        if self.actor is None:
            self.actor = Actor(position=self.tuning.spawn_point(), heading=0.0)


__all__ = ["CharacterContext"]
