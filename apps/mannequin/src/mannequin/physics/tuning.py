from __future__ import annotations

from dataclasses import dataclass

from panda3d.core import LVector3f

from mannequin.common.aabb import AABB


@dataclass
class CharacterTuning:
    # Ground speed in world units per second (0.03 per frame at 60 Hz).
    move_speed: float = 1.8
    # Inward shrink applied to the actor box before overlap queries.
    collision_margin: float = 0.05
    # Shared fade-out/fade-in span for action crossfades.
    fade_duration: float = 0.2

    # Actor box, origin at the feet (Y-up).
    actor_half_width: float = 0.25
    actor_height: float = 1.8

    spawn_x: float = 0.8
    spawn_y: float = 0.1
    spawn_z: float = 0.2

    # Viewer-only toggles.
    debug_draw_colliders: bool = True

    def spawn_point(self) -> LVector3f:
        return LVector3f(float(self.spawn_x), float(self.spawn_y), float(self.spawn_z))

    def actor_local_bounds(self) -> AABB:
        w = max(0.0, float(self.actor_half_width))
        h = max(0.0, float(self.actor_height))
        return AABB(minimum=LVector3f(-w, 0.0, -w), maximum=LVector3f(w, h, w))


__all__ = ["CharacterTuning"]
