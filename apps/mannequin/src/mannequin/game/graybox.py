from __future__ import annotations

from panda3d.core import LVector3f

from mannequin.common.aabb import AABB
from mannequin.physics.collision_index import CollisionVolumeIndex

# Core-space (Y-up) graybox: two blocks with a walkable gap between them, plus a back wall.
GRAYBOX_BLOCKS: tuple[AABB, ...] = (
    AABB(minimum=LVector3f(-3.0, 0.0, -4.0), maximum=LVector3f(-1.0, 1.0, -3.0)),
    AABB(minimum=LVector3f(1.0, 0.0, -4.0), maximum=LVector3f(3.0, 1.0, -3.0)),
    AABB(minimum=LVector3f(-6.0, 0.0, 3.0), maximum=LVector3f(6.0, 2.0, 3.5)),
)


def graybox_collision() -> CollisionVolumeIndex:
    return CollisionVolumeIndex(GRAYBOX_BLOCKS)


__all__ = ["GRAYBOX_BLOCKS", "graybox_collision"]
