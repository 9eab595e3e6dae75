from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from mannequin.animation.library import (
    ActionDescriptor,
    ActionId,
    ActionLibrary,
    LoopMode,
    coerce_action_id,
)
from mannequin.errors import UnknownAction

logger = logging.getLogger(__name__)


MANIFEST_FORMAT_VERSION = 1


@dataclass(frozen=True)
class ClipEntry:
    """One clip as the asset loader describes it."""

    action_id: ActionId
    file: str
    duration: float
    loop_mode: LoopMode
    playback_rate: float = 1.0
    in_place: bool = False

    def descriptor(self) -> ActionDescriptor:
        return ActionDescriptor(
            action_id=self.action_id,
            duration=self.duration,
            loop_mode=self.loop_mode,
            playback_rate=self.playback_rate,
            in_place=self.in_place,
        )


def default_manifest() -> list[ClipEntry]:
    """
    Stock character clip set, in load order.

    Kick, jump, collision and the stand/seat transition play once and hold their
    last frame; everything else loops. Walking has its root translation stripped.
    """

    return [
        ClipEntry(ActionId.STAND, "character_stand.fbx", 2.0, LoopMode.LOOPING),
        ClipEntry(ActionId.SEAT, "character_seat.fbx", 2.0, LoopMode.LOOPING),
        ClipEntry(ActionId.STAND_TO_SEAT, "character_stand_to_seat.fbx", 1.5, LoopMode.ONE_SHOT_HOLD),
        ClipEntry(ActionId.KICK, "character_kick.fbx", 1.2, LoopMode.ONE_SHOT_HOLD),
        ClipEntry(ActionId.JUMP, "character_jump.fbx", 1.0, LoopMode.ONE_SHOT_HOLD),
        ClipEntry(ActionId.WALKING, "character_walking.fbx", 1.0, LoopMode.LOOPING, in_place=True),
        ClipEntry(ActionId.COLLISION, "character_collision.fbx", 0.8, LoopMode.ONE_SHOT_HOLD),
    ]


def _parse_entry(raw: object, *, index: int) -> ClipEntry:
    if not isinstance(raw, dict):
        raise ValueError(f"clip #{index}: expected an object")
    name = raw.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValueError(f"clip #{index}: missing name")
    try:
        aid = coerce_action_id(name.strip())
    except UnknownAction:
        raise ValueError(f"clip #{index}: unknown action {name!r}") from None
    duration = raw.get("duration")
    if isinstance(duration, bool) or not isinstance(duration, (int, float)) or float(duration) < 0.0:
        raise ValueError(f"clip {aid.value!r}: duration must be a non-negative number")
    loop_raw = raw.get("loop", LoopMode.LOOPING.value)
    try:
        loop_mode = LoopMode(str(loop_raw))
    except ValueError:
        raise ValueError(f"clip {aid.value!r}: unsupported loop mode {loop_raw!r}") from None
    rate = raw.get("playback_rate", 1.0)
    if isinstance(rate, bool) or not isinstance(rate, (int, float)) or float(rate) == 0.0:
        raise ValueError(f"clip {aid.value!r}: playback_rate must be a non-zero number")
    file = raw.get("file")
    return ClipEntry(
        action_id=aid,
        file=str(file) if isinstance(file, str) else "",
        duration=float(duration),
        loop_mode=loop_mode,
        playback_rate=float(rate),
        in_place=bool(raw.get("in_place", False)),
    )


def parse_manifest(payload: object) -> list[ClipEntry]:
    if not isinstance(payload, dict):
        raise ValueError("clip manifest must be a JSON object")
    version = payload.get("format_version", MANIFEST_FORMAT_VERSION)
    if version != MANIFEST_FORMAT_VERSION:
        raise ValueError(f"unsupported clip manifest version: {version!r}")
    clips = payload.get("clips")
    if not isinstance(clips, list):
        raise ValueError("clip manifest needs a 'clips' list")
    return [_parse_entry(raw, index=i) for i, raw in enumerate(clips)]


def load_manifest(path: Path) -> list[ClipEntry]:
    p = Path(path)
    payload = json.loads(p.read_text(encoding="utf-8"))
    entries = parse_manifest(payload)
    logger.info("Loaded clip manifest %s (%d clips)", p, len(entries))
    return entries


def manifest_payload(entries: list[ClipEntry]) -> dict:
    return {
        "format_version": MANIFEST_FORMAT_VERSION,
        "clips": [
            {
                "name": e.action_id.value,
                "file": e.file,
                "duration": float(e.duration),
                "loop": e.loop_mode.value,
                "playback_rate": float(e.playback_rate),
                "in_place": bool(e.in_place),
            }
            for e in entries
        ],
    }


def register_entry(library: ActionLibrary, entry: ClipEntry) -> None:
    library.register(entry.action_id, entry.descriptor())
    logger.info("Loaded animation: %s", entry.action_id.value)


def register_manifest(library: ActionLibrary, entries: list[ClipEntry]) -> None:
    for e in entries:
        register_entry(library, e)


__all__ = [
    "ClipEntry",
    "MANIFEST_FORMAT_VERSION",
    "default_manifest",
    "load_manifest",
    "manifest_payload",
    "parse_manifest",
    "register_entry",
    "register_manifest",
]
