from __future__ import annotations

import pytest

from mannequin.common.input_snapshot import InputSnapshot, Trigger
from mannequin.game.input_system import DEFAULT_BINDINGS, KeyLatch, normalize_bind_key


class _FakeBase:
    def __init__(self) -> None:
        self.accepted: dict[str, tuple] = {}

    def accept(self, event, fn, args=None):  # type: ignore[no-untyped-def]
        self.accepted[event] = (fn, list(args or []))


def test_normalize_bind_key_aliases() -> None:
    assert normalize_bind_key(" W ") == "w"
    assert normalize_bind_key("up") == "arrow_up"
    assert normalize_bind_key("spacebar") == "space"
    assert normalize_bind_key("") is None
    assert normalize_bind_key("f13-weird") is None


def test_movement_follows_key_down_and_up() -> None:
    keys = KeyLatch()
    keys.press("w")
    keys.press("d")
    assert keys.snapshot() == InputSnapshot(forward=True, right=True)
    keys.release("w")
    assert keys.snapshot() == InputSnapshot(right=True)


def test_trigger_stays_latched_until_consumed() -> None:
    keys = KeyLatch()
    keys.press("k")
    keys.press("j")
    assert keys.snapshot().kick
    assert keys.snapshot().kick

    keys.consume((Trigger.KICK,))
    snap = keys.snapshot()
    assert not snap.kick
    assert snap.jump


def test_unknown_keys_are_ignored_and_bad_bindings_rejected() -> None:
    keys = KeyLatch()
    keys.press("z")
    assert keys.snapshot() == InputSnapshot()

    with pytest.raises(ValueError):
        KeyLatch(bindings={"w": "fly"})
    with pytest.raises(ValueError):
        KeyLatch(bindings={"": "forward"})
    with pytest.raises(ValueError):
        keys.set_channel("fly", True)


def test_custom_bindings_and_clear() -> None:
    keys = KeyLatch(bindings={"up": "forward", "space": "jump"})
    keys.press("arrow_up")
    keys.press("space")
    assert keys.snapshot() == InputSnapshot(forward=True, jump=True)
    keys.clear()
    assert keys.snapshot() == InputSnapshot()


def test_bind_registers_down_and_up_events() -> None:
    base = _FakeBase()
    keys = KeyLatch()
    keys.bind(base)
    assert set(base.accepted) == set(DEFAULT_BINDINGS) | {f"{k}-up" for k in DEFAULT_BINDINGS}

    fn, args = base.accepted["c"]
    fn(*args)
    assert keys.snapshot().sit_toggle
    fn, args = base.accepted["c-up"]
    fn(*args)
    assert not keys.snapshot().sit_toggle


def test_snapshot_from_dict_reads_known_channels() -> None:
    snap = InputSnapshot.from_dict({"forward": True, "jump": 1, "fly": True})
    assert snap == InputSnapshot(forward=True, jump=True)
    assert snap.trigger(Trigger.JUMP)
    assert not snap.trigger(Trigger.KICK)
