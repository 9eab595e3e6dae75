from __future__ import annotations

from typing import Iterable

from mannequin.common.input_snapshot import InputSnapshot, Trigger

DEFAULT_BINDINGS: dict[str, str] = {
    "w": "forward",
    "s": "back",
    "a": "left",
    "d": "right",
    "c": Trigger.SIT_TOGGLE.value,
    "k": Trigger.KICK.value,
    "j": Trigger.JUMP.value,
}

_CHANNELS = ("forward", "back", "left", "right", "sit_toggle", "kick", "jump")


def normalize_bind_key(key: str) -> str | None:
    k = (key or "").strip().lower()
    if not k:
        return None
    aliases = {
        "space": "space",
        "spacebar": "space",
        "up": "arrow_up",
        "down": "arrow_down",
        "left": "arrow_left",
        "right": "arrow_right",
    }
    if k in aliases:
        return aliases[k]
    if len(k) == 1 and ord(k) < 128:
        return k
    if k.startswith("arrow_") or k in {"tab", "enter", "shift", "control", "alt"}:
        return k
    return None


class KeyLatch:
    """
    Key-state adapter producing one `InputSnapshot` per tick.

    Movement channels follow key down/up. Trigger channels are set on key down and
    stay set until the controller reports them consumed (or the key is released),
    so a trigger pressed while its guard is blocked fires on the first eligible tick.
    """

    def __init__(self, *, bindings: dict[str, str] | None = None) -> None:
        self._bindings: dict[str, str] = {}
        for key, channel in (bindings if bindings is not None else DEFAULT_BINDINGS).items():
            k = normalize_bind_key(key)
            if k is None:
                raise ValueError(f"Unsupported key binding: {key!r}")
            if channel not in _CHANNELS:
                raise ValueError(f"Unknown input channel: {channel!r}")
            self._bindings[k] = channel
        self._down: dict[str, bool] = {c: False for c in _CHANNELS}

    @property
    def bindings(self) -> dict[str, str]:
        return dict(self._bindings)

    def press(self, key: str) -> None:
        channel = self._bindings.get(normalize_bind_key(key) or "")
        if channel is not None:
            self._down[channel] = True

    def release(self, key: str) -> None:
        channel = self._bindings.get(normalize_bind_key(key) or "")
        if channel is not None:
            self._down[channel] = False

    def set_channel(self, channel: str, down: bool) -> None:
        if channel not in self._down:
            raise ValueError(f"Unknown input channel: {channel!r}")
        self._down[channel] = bool(down)

    def snapshot(self) -> InputSnapshot:
        return InputSnapshot(**self._down)

    def consume(self, triggers: Iterable[Trigger]) -> None:
        for t in triggers:
            self._down[t.value] = False

    def clear(self) -> None:
        for c in self._down:
            self._down[c] = False

    def bind(self, base) -> None:
        """Register key down/up handlers on a Panda3D `DirectObject` (e.g. `ShowBase`)."""

        for key in self._bindings:
            base.accept(key, self.press, [key])
            base.accept(f"{key}-up", self.release, [key])


__all__ = ["DEFAULT_BINDINGS", "KeyLatch", "normalize_bind_key"]
