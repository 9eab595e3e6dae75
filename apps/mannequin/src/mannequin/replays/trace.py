from __future__ import annotations

import hashlib
import json
from collections import deque
from dataclasses import asdict, dataclass
from pathlib import Path

from panda3d.core import LVector3f


def deterministic_state_hash(
    *,
    pos: LVector3f,
    heading: float,
    state: str,
    is_moving: bool,
    is_sitting: bool,
    is_action_playing: bool,
) -> str:
    """Quantized per-tick state hash for replay determinism checks."""

    q = (
        int(round(float(pos.x) * 1000.0)),
        int(round(float(pos.y) * 1000.0)),
        int(round(float(pos.z) * 1000.0)),
        int(round(float(heading) * 1000.0)),
        str(state),
        int(bool(is_moving)),
        int(bool(is_sitting)),
        int(bool(is_action_playing)),
    )
    h = hashlib.blake2b(digest_size=8)
    h.update(repr(q).encode("utf-8", errors="strict"))
    return h.hexdigest()


@dataclass(frozen=True)
class TraceSample:
    tick: int
    state: str
    rule: str
    tick_hash: str
    trace_hash: str


class StateTrace:
    """Rolling per-tick trace with a cumulative hash over every recorded tick."""

    def __init__(self, *, max_samples: int = 600) -> None:
        self._samples: deque[TraceSample] = deque(maxlen=max(1, int(max_samples)))
        self._trace_hash = "0" * 16
        self._ticks = 0

    def reset(self) -> None:
        self._samples.clear()
        self._trace_hash = "0" * 16
        self._ticks = 0

    def record(self, *, state: str, rule: str, tick_hash: str) -> str:
        h = hashlib.blake2b(digest_size=8)
        h.update(self._trace_hash.encode("utf-8", errors="strict"))
        h.update(str(tick_hash).encode("utf-8", errors="strict"))
        self._trace_hash = h.hexdigest()
        self._samples.append(
            TraceSample(
                tick=self._ticks,
                state=str(state),
                rule=str(rule),
                tick_hash=str(tick_hash),
                trace_hash=self._trace_hash,
            )
        )
        self._ticks += 1
        return self._trace_hash

    def latest_trace_hash(self) -> str:
        return str(self._trace_hash)

    def tick_count(self) -> int:
        return int(self._ticks)

    def samples(self) -> list[TraceSample]:
        return list(self._samples)

    def dump_json(self, *, out_path: Path) -> None:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "tick_count": int(self._ticks),
            "latest_trace_hash": str(self._trace_hash),
            "samples": [asdict(s) for s in self._samples],
        }
        out_path.write_text(json.dumps(payload, ensure_ascii=True, sort_keys=True, indent=2) + "\n", encoding="utf-8")


__all__ = ["StateTrace", "TraceSample", "deterministic_state_hash"]
