from __future__ import annotations

from dataclasses import dataclass

from panda3d.core import LVector3f


@dataclass(frozen=True)
class AABB:
    minimum: LVector3f
    maximum: LVector3f

    def is_empty(self) -> bool:
        return (
            self.maximum.x < self.minimum.x
            or self.maximum.y < self.minimum.y
            or self.maximum.z < self.minimum.z
        )

    def intersects(self, other: "AABB") -> bool:
        # Touching faces count as contact.
        if self.is_empty() or other.is_empty():
            return False
        return not (
            other.maximum.x < self.minimum.x
            or other.minimum.x > self.maximum.x
            or other.maximum.y < self.minimum.y
            or other.minimum.y > self.maximum.y
            or other.maximum.z < self.minimum.z
            or other.minimum.z > self.maximum.z
        )

    def translated(self, offset: LVector3f) -> "AABB":
        d = LVector3f(offset)
        return AABB(minimum=LVector3f(self.minimum + d), maximum=LVector3f(self.maximum + d))

    def shrunk(self, margin: float) -> "AABB":
        """
        Move every face inward by `margin`.

        An axis narrower than `2 * margin` collapses to its center instead of inverting.
        """

        m = max(0.0, float(margin))
        lo = [0.0, 0.0, 0.0]
        hi = [0.0, 0.0, 0.0]
        for axis in range(3):
            a = float(self.minimum[axis])
            b = float(self.maximum[axis])
            if (b - a) <= 2.0 * m:
                mid = (a + b) * 0.5
                lo[axis] = hi[axis] = mid
            else:
                lo[axis] = a + m
                hi[axis] = b - m
        return AABB(minimum=LVector3f(*lo), maximum=LVector3f(*hi))


__all__ = ["AABB"]
