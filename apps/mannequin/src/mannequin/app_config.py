from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RunConfig:
    smoke: bool = False
    # Clip manifest JSON (see mannequin.animation.manifest). None uses the stock clip set.
    manifest: str | None = None
    # Optional environment model for the viewer; None builds the graybox room.
    environment: str | None = None
    # Draw collider boxes and the actor box.
    debug_boxes: bool = True
    # Clips registered per frame while "loading" (0 registers everything up front).
    clips_per_frame: int = 1
