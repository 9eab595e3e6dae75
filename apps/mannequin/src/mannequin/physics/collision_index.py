from __future__ import annotations

import logging
from typing import Callable, Iterable, Iterator

from panda3d.core import LVector3f, NodePath

from mannequin.common.aabb import AABB

logger = logging.getLogger(__name__)


DEFAULT_COLLISION_MARGIN = 0.05


class CollisionVolumeIndex:
    """
    Static environment volumes for overlap queries.

    One box per environment sub-mesh (never a single aggregate box), so the actor
    can pass through gaps between the parts of a composite environment.
    Built once; read-only afterwards.
    """

    def __init__(self, volumes: Iterable[AABB] = ()) -> None:
        self._volumes: tuple[AABB, ...] = tuple(v for v in volumes if not v.is_empty())

    @classmethod
    def from_scene(
        cls,
        root: NodePath,
        *,
        convert: Callable[[LVector3f, LVector3f], AABB] | None = None,
    ) -> "CollisionVolumeIndex":
        """
        Tight bounds (relative to `root`) for every GeomNode below `root`.

        `convert` maps scene-space (min, max) corners into the query space when the two differ.
        """

        boxes: list[AABB] = []
        for geom_np in root.findAllMatches("**/+GeomNode"):
            bounds = geom_np.getTightBounds(root)
            if not bounds:
                continue
            lo, hi = bounds
            if convert is not None:
                boxes.append(convert(LVector3f(lo), LVector3f(hi)))
            else:
                boxes.append(AABB(minimum=LVector3f(lo), maximum=LVector3f(hi)))
        logger.info("Built collision index: %d volume(s) from %s", len(boxes), root.getName())
        return cls(boxes)

    @staticmethod
    def candidate_volume(
        *,
        local_bounds: AABB,
        position: LVector3f,
        margin: float = DEFAULT_COLLISION_MARGIN,
    ) -> AABB:
        """Actor bounds placed at `position` and shrunk inward against near-touch false positives."""

        return local_bounds.translated(position).shrunk(margin)

    def intersects(self, candidate: AABB) -> bool:
        for box in self._volumes:
            if box.intersects(candidate):
                return True
        return False

    def volumes(self) -> tuple[AABB, ...]:
        return self._volumes

    def __len__(self) -> int:
        return len(self._volumes)

    def __iter__(self) -> Iterator[AABB]:
        return iter(self._volumes)


__all__ = ["CollisionVolumeIndex", "DEFAULT_COLLISION_MARGIN"]
