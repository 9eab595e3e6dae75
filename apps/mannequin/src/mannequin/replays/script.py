from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from mannequin.common.input_snapshot import InputSnapshot, Trigger
from mannequin.game.controller import CharacterController, TickReport
from mannequin.game.input_system import KeyLatch
from mannequin.replays.trace import StateTrace, deterministic_state_hash

SCRIPT_FORMAT_VERSION = 1
DEFAULT_SCRIPT_DT = 1.0 / 60.0

_MOVEMENT = ("forward", "back", "left", "right")


@dataclass(frozen=True)
class ScriptFrame:
    """
    A block of identical ticks.

    Movement keys are held for the whole block. Trigger keys are pressed on the
    block's first tick and stay down (latched) until consumed or the block ends.
    """

    held: InputSnapshot
    repeat: int = 1


@dataclass
class InputScript:
    dt: float = DEFAULT_SCRIPT_DT
    frames: list[ScriptFrame] = field(default_factory=list)

    def tick_count(self) -> int:
        return sum(max(0, int(f.repeat)) for f in self.frames)


def parse_script(payload: object) -> InputScript:
    if not isinstance(payload, dict):
        raise ValueError("input script must be a JSON object")
    version = payload.get("format_version", SCRIPT_FORMAT_VERSION)
    if version != SCRIPT_FORMAT_VERSION:
        raise ValueError(f"unsupported input script version: {version!r}")
    dt = payload.get("dt", DEFAULT_SCRIPT_DT)
    if isinstance(dt, bool) or not isinstance(dt, (int, float)) or float(dt) <= 0.0:
        raise ValueError("input script dt must be a positive number")
    raw_frames = payload.get("frames")
    if not isinstance(raw_frames, list):
        raise ValueError("input script needs a 'frames' list")
    frames: list[ScriptFrame] = []
    for i, raw in enumerate(raw_frames):
        if not isinstance(raw, dict):
            raise ValueError(f"frame #{i}: expected an object")
        repeat = raw.get("repeat", 1)
        if isinstance(repeat, bool) or not isinstance(repeat, int) or repeat < 1:
            raise ValueError(f"frame #{i}: repeat must be a positive integer")
        frames.append(ScriptFrame(held=InputSnapshot.from_dict(raw), repeat=int(repeat)))
    return InputScript(dt=float(dt), frames=frames)


def load_script(path: Path) -> InputScript:
    return parse_script(json.loads(Path(path).read_text(encoding="utf-8")))


def builtin_demo_script() -> InputScript:
    """Walk, rest, kick, sit down, stand up, jump. Used by the headless smoke run."""

    return InputScript(
        dt=DEFAULT_SCRIPT_DT,
        frames=[
            ScriptFrame(held=InputSnapshot(), repeat=5),
            ScriptFrame(held=InputSnapshot(forward=True), repeat=60),
            ScriptFrame(held=InputSnapshot(), repeat=30),
            ScriptFrame(held=InputSnapshot(kick=True), repeat=90),
            ScriptFrame(held=InputSnapshot(sit_toggle=True), repeat=150),
            ScriptFrame(held=InputSnapshot(sit_toggle=True), repeat=120),
            ScriptFrame(held=InputSnapshot(jump=True), repeat=90),
        ],
    )


def run_script(
    controller: CharacterController,
    script: InputScript,
    *,
    latch: KeyLatch | None = None,
    trace: StateTrace | None = None,
) -> list[TickReport]:
    """Feed `script` through `controller` tick by tick, clearing consumed triggers like a live input adapter."""

    keys = latch if latch is not None else KeyLatch()
    reports: list[TickReport] = []
    flags = controller.ctx.flags
    for frame in script.frames:
        for channel in _MOVEMENT:
            keys.set_channel(channel, bool(getattr(frame.held, channel)))
        for t in Trigger:
            keys.set_channel(t.value, frame.held.trigger(t))
        for _ in range(int(frame.repeat)):
            report = controller.tick(keys.snapshot(), dt=script.dt)
            keys.consume(report.consumed)
            reports.append(report)
            if trace is not None:
                trace.record(
                    state=report.state.value,
                    rule=report.rule.value if report.rule is not None else "",
                    tick_hash=deterministic_state_hash(
                        pos=report.position,
                        heading=report.heading,
                        state=report.state.value,
                        is_moving=flags.is_moving,
                        is_sitting=flags.is_sitting,
                        is_action_playing=flags.is_action_playing,
                    ),
                )
    return reports


__all__ = [
    "DEFAULT_SCRIPT_DT",
    "InputScript",
    "SCRIPT_FORMAT_VERSION",
    "ScriptFrame",
    "builtin_demo_script",
    "load_script",
    "parse_script",
    "run_script",
]
