from __future__ import annotations

import math

from panda3d.core import LineSegs, LVector3f, NodePath

from mannequin.common.aabb import AABB

# The character core is Y-up with "forward" along -Z; Panda3D scenes are Z-up with
# forward along +Y. core (x, y, z) <-> panda (x, -z, y).


def panda_point(p: LVector3f) -> LVector3f:
    return LVector3f(float(p.x), -float(p.z), float(p.y))


def panda_heading_deg(heading: float) -> float:
    """Panda3D H (degrees, [-180, 180)) facing the same way as a core heading in radians."""

    h = math.degrees(float(heading)) + 180.0
    return ((h + 180.0) % 360.0) - 180.0


def core_box_from_panda(lo: LVector3f, hi: LVector3f) -> AABB:
    return AABB(
        minimum=LVector3f(float(lo.x), float(lo.z), -float(hi.y)),
        maximum=LVector3f(float(hi.x), float(hi.z), -float(lo.y)),
    )


def panda_box_from_core(box: AABB) -> tuple[LVector3f, LVector3f]:
    lo, hi = box.minimum, box.maximum
    return (
        LVector3f(float(lo.x), -float(hi.z), float(lo.y)),
        LVector3f(float(hi.x), -float(lo.z), float(hi.y)),
    )


def build_box_lines(
    parent: NodePath,
    *,
    name: str,
    boxes: list[AABB],
    color: tuple[float, float, float, float],
) -> NodePath:
    """Wireframe helper for core-space boxes (debug view of colliders / actor volume)."""

    ls = LineSegs(str(name))
    ls.setThickness(2.0)
    ls.setColor(float(color[0]), float(color[1]), float(color[2]), float(color[3]))
    for box in boxes:
        lo, hi = panda_box_from_core(box)
        xs = (float(lo.x), float(hi.x))
        ys = (float(lo.y), float(hi.y))
        zs = (float(lo.z), float(hi.z))
        for z in zs:
            ls.moveTo(xs[0], ys[0], z)
            ls.drawTo(xs[1], ys[0], z)
            ls.drawTo(xs[1], ys[1], z)
            ls.drawTo(xs[0], ys[1], z)
            ls.drawTo(xs[0], ys[0], z)
        for x in xs:
            for y in ys:
                ls.moveTo(x, y, zs[0])
                ls.drawTo(x, y, zs[1])
    np = parent.attachNewNode(ls.create())
    np.setLightOff(1)
    return np


__all__ = [
    "build_box_lines",
    "core_box_from_panda",
    "panda_box_from_core",
    "panda_heading_deg",
    "panda_point",
]
