from __future__ import annotations

import pytest
from panda3d.core import LVector3f

from mannequin.animation.library import ActionId, ActionLibrary
from mannequin.animation.manifest import default_manifest, register_manifest
from mannequin.common.aabb import AABB
from mannequin.common.input_snapshot import InputSnapshot, Trigger
from mannequin.errors import NotReady
from mannequin.game.controller import CharacterController
from mannequin.game.state_machine import STATE_TABLE, ActionState, Rule
from mannequin.physics.collision_index import CollisionVolumeIndex

DT = 1.0 / 60.0
IDLE = InputSnapshot()


def _controller(
    *,
    walls: list[AABB] | None = None,
    transitions: list[tuple[ActionState, ActionState]] | None = None,
) -> CharacterController:
    lib = ActionLibrary()
    register_manifest(lib, default_manifest())
    listener = None
    if transitions is not None:

        def listener(old: ActionState, new: ActionState) -> None:
            transitions.append((old, new))

    return CharacterController.create(
        library=lib,
        collision=CollisionVolumeIndex(walls or []),
        listener=listener,
    )


def _run(ctrl: CharacterController, snap: InputSnapshot, ticks: int) -> None:
    for _ in range(ticks):
        ctrl.tick(snap, dt=DT)


def test_state_table_covers_every_state() -> None:
    assert set(STATE_TABLE) == set(ActionState)
    one_shots = {e.action_id for e in default_manifest() if e.loop_mode.value == "one_shot_hold"}
    for state, row in STATE_TABLE.items():
        assert (row.on_complete is not None) == (row.action_id in one_shots), state
    assert STATE_TABLE[ActionState.SIT_TRANSITION_OUT].reversed
    assert not STATE_TABLE[ActionState.SIT_TRANSITION_IN].reversed


def test_nothing_runs_until_library_is_ready() -> None:
    lib = ActionLibrary()
    register_manifest(lib, default_manifest()[:3])
    ctrl = CharacterController.create(library=lib)
    spawn = LVector3f(ctrl.ctx.actor.position)

    report = ctrl.tick(InputSnapshot(forward=True, kick=True), dt=DT)
    assert not report.ready
    assert report.consumed == ()
    assert not ctrl.machine.started()
    assert ctrl.ctx.actor.position == spawn

    register_manifest(lib, default_manifest()[3:])
    report = ctrl.tick(InputSnapshot(forward=True), dt=DT)
    assert report.ready
    assert report.state is ActionState.WALKING


def test_walk_then_release_returns_to_idle() -> None:
    ctrl = _controller()
    report = ctrl.tick(InputSnapshot(forward=True), dt=DT)
    assert report.rule is Rule.WALK
    assert report.committed
    assert ctrl.state is ActionState.WALKING
    assert ctrl.ctx.flags.is_moving
    assert report.position.z == pytest.approx(0.2 - 0.03, abs=1e-5)

    report = ctrl.tick(IDLE, dt=DT)
    assert report.rule is Rule.REST
    assert ctrl.state is ActionState.IDLE
    assert not ctrl.ctx.flags.is_moving


def test_blocked_move_rolls_back_and_plays_collision_reaction() -> None:
    wall = AABB(minimum=LVector3f(-5, 0, -2), maximum=LVector3f(5, 2, 0.0))
    ctrl = _controller(walls=[wall])
    spawn = LVector3f(ctrl.ctx.actor.position)

    report = ctrl.tick(InputSnapshot(forward=True), dt=DT)
    assert report.rule is Rule.COLLISION
    assert report.collided
    assert not report.committed
    assert ctrl.state is ActionState.COLLISION_REACTING
    assert ctrl.ctx.actor.position == spawn
    assert ctrl.ctx.actor.heading == 0.0
    assert ctrl.ctx.flags.is_action_playing

    # Movement input is ignored while the reaction plays.
    report = ctrl.tick(InputSnapshot(forward=True), dt=DT)
    assert report.rule is Rule.ONE_SHOT
    assert ctrl.ctx.actor.position == spawn

    _run(ctrl, IDLE, 60)
    assert ctrl.state is ActionState.IDLE
    assert not ctrl.ctx.flags.is_action_playing


def test_moving_away_from_a_wall_is_not_blocked() -> None:
    wall = AABB(minimum=LVector3f(-5, 0, -2), maximum=LVector3f(5, 2, 0.0))
    ctrl = _controller(walls=[wall])
    report = ctrl.tick(InputSnapshot(back=True), dt=DT)
    assert report.rule is Rule.WALK
    assert ctrl.state is ActionState.WALKING


def test_sit_toggle_wins_over_kick_and_jump() -> None:
    ctrl = _controller()
    report = ctrl.tick(InputSnapshot(sit_toggle=True, kick=True, jump=True), dt=DT)
    assert report.rule is Rule.SIT_TOGGLE
    assert report.consumed == (Trigger.SIT_TOGGLE,)
    assert ctrl.state is ActionState.SIT_TRANSITION_OUT
    assert ctrl.ctx.flags.is_sitting


def test_kick_wins_over_jump() -> None:
    ctrl = _controller()
    report = ctrl.tick(InputSnapshot(kick=True, jump=True), dt=DT)
    assert report.rule is Rule.KICK
    assert report.consumed == (Trigger.KICK,)
    assert ctrl.state is ActionState.KICKING


def test_movement_wins_over_triggers_and_leaves_them_latched() -> None:
    ctrl = _controller()
    report = ctrl.tick(InputSnapshot(forward=True, sit_toggle=True), dt=DT)
    assert report.rule is Rule.WALK
    assert report.consumed == ()
    assert not ctrl.ctx.flags.is_sitting


def test_sit_down_and_stand_up_are_symmetric() -> None:
    transitions: list[tuple[ActionState, ActionState]] = []
    ctrl = _controller(transitions=transitions)

    ctrl.tick(InputSnapshot(sit_toggle=True), dt=DT)
    assert ctrl.blend.active_id is ActionId.STAND_TO_SEAT
    assert ctrl.blend.active.rate < 0.0
    _run(ctrl, IDLE, 100)
    assert ctrl.state is ActionState.SEATED
    assert ctrl.ctx.flags.is_sitting

    # Seated: movement is ignored, the character stays put.
    before = LVector3f(ctrl.ctx.actor.position)
    report = ctrl.tick(InputSnapshot(forward=True), dt=DT)
    assert report.rule is Rule.HOLD_SEATED
    assert ctrl.ctx.actor.position == before

    ctrl.tick(InputSnapshot(sit_toggle=True), dt=DT)
    assert ctrl.blend.active.rate > 0.0
    _run(ctrl, IDLE, 100)

    assert transitions == [
        (ActionState.IDLE, ActionState.SIT_TRANSITION_OUT),
        (ActionState.SIT_TRANSITION_OUT, ActionState.SEATED),
        (ActionState.SEATED, ActionState.SIT_TRANSITION_IN),
        (ActionState.SIT_TRANSITION_IN, ActionState.IDLE),
    ]
    assert not ctrl.ctx.flags.is_sitting


def test_kick_while_seated_is_not_consumed() -> None:
    ctrl = _controller()
    ctrl.tick(InputSnapshot(sit_toggle=True), dt=DT)
    _run(ctrl, IDLE, 100)

    report = ctrl.tick(InputSnapshot(kick=True), dt=DT)
    assert report.rule is Rule.HOLD_SEATED
    assert report.consumed == ()
    assert ctrl.state is ActionState.SEATED


def test_trigger_held_during_one_shot_fires_after_it_completes() -> None:
    ctrl = _controller()
    ctrl.tick(InputSnapshot(jump=True), dt=DT)
    assert ctrl.state is ActionState.JUMPING

    report = ctrl.tick(InputSnapshot(kick=True), dt=DT)
    assert report.rule is Rule.ONE_SHOT
    assert report.consumed == ()

    states = []
    for _ in range(90):
        report = ctrl.tick(InputSnapshot(kick=True), dt=DT)
        states.append(report.state)
        if report.consumed:
            break
    assert report.consumed == (Trigger.KICK,)
    assert ctrl.state is ActionState.KICKING
    assert ActionState.JUMPING in states


def test_cancel_action_returns_to_idle() -> None:
    ctrl = _controller()
    assert ctrl.cancel_action() is False

    ctrl.tick(InputSnapshot(kick=True), dt=DT)
    assert ctrl.cancel_action() is True
    assert ctrl.state is ActionState.IDLE
    assert not ctrl.ctx.flags.is_action_playing

    ctrl.tick(InputSnapshot(sit_toggle=True), dt=DT)
    assert ctrl.cancel_action() is True
    assert ctrl.state is ActionState.IDLE
    assert not ctrl.ctx.flags.is_sitting

    report = ctrl.tick(InputSnapshot(forward=True), dt=DT)
    assert report.rule is Rule.WALK


def test_completion_survives_a_thousand_ticks_without_refiring() -> None:
    transitions: list[tuple[ActionState, ActionState]] = []
    ctrl = _controller(transitions=transitions)
    ctrl.tick(InputSnapshot(kick=True), dt=DT)
    _run(ctrl, IDLE, 1000)
    assert transitions == [
        (ActionState.IDLE, ActionState.KICKING),
        (ActionState.KICKING, ActionState.IDLE),
    ]


def test_tick_failure_is_logged_and_state_held(monkeypatch: pytest.MonkeyPatch) -> None:
    ctrl = _controller()
    ctrl.tick(IDLE, dt=DT)

    def _boom(*args, **kwargs):  # type: ignore[no-untyped-def]
        raise NotReady("kick")

    monkeypatch.setattr(ctrl.machine, "resolve", _boom)
    r1 = ctrl.tick(InputSnapshot(kick=True), dt=DT)
    r2 = ctrl.tick(InputSnapshot(kick=True), dt=DT)
    assert r1.error is not None and "kick" in r1.error
    assert r2.state is ActionState.IDLE
    items = ctrl.ctx.error_log.items()
    assert len(items) == 1
    assert items[0].context == "controller.tick"
    assert items[0].count == 2


def test_reset_returns_to_spawn() -> None:
    ctrl = _controller()
    _run(ctrl, InputSnapshot(right=True), 10)
    ctrl.reset()
    assert ctrl.ctx.actor.position == ctrl.ctx.tuning.spawn_point()
    assert ctrl.ctx.actor.heading == 0.0
    assert not ctrl.machine.started()

    report = ctrl.tick(IDLE, dt=DT)
    assert report.ready
    assert ctrl.state is ActionState.IDLE


def test_pose_mirrors_committed_actor() -> None:
    ctrl = _controller()
    ctrl.tick(InputSnapshot(right=True), dt=DT)
    pose = ctrl.pose()
    assert pose.state is ActionState.WALKING
    assert pose.position == ctrl.ctx.actor.position
    assert any(t.active and t.action_id is ActionId.WALKING for t in pose.tracks)
    vol = ctrl.actor_volume()
    assert vol.minimum.y == pytest.approx(float(pose.position.y))
    assert float(vol.maximum.y - vol.minimum.y) == pytest.approx(ctrl.ctx.tuning.actor_height)


def test_left_and_right_together_stop_walking() -> None:
    ctrl = _controller()
    _run(ctrl, InputSnapshot(forward=True), 5)
    assert ctrl.state is ActionState.WALKING
    before = LVector3f(ctrl.ctx.actor.position)

    report = ctrl.tick(InputSnapshot(left=True, right=True), dt=DT)
    assert report.rule is Rule.REST
    assert not report.committed
    assert ctrl.state is ActionState.IDLE
    assert not ctrl.ctx.flags.is_moving
    assert ctrl.ctx.actor.position == before


def _clip_time(ctrl: CharacterController, action_id: ActionId) -> float:
    return next(p.time for p in ctrl.blend.tracks() if p.action_id is action_id)


def _record_transition(ctrl: CharacterController, state: ActionState) -> list[float]:
    times = [_clip_time(ctrl, ActionId.STAND_TO_SEAT)]
    while ctrl.state is state:
        assert len(times) < 200
        ctrl.tick(IDLE, dt=DT)
        times.append(_clip_time(ctrl, ActionId.STAND_TO_SEAT))
    return times


def test_sit_transitions_play_the_shared_clip_end_to_end() -> None:
    ctrl = _controller()
    duration = ctrl.ctx.library.get(ActionId.STAND_TO_SEAT).duration

    ctrl.tick(InputSnapshot(sit_toggle=True), dt=DT)
    down = _record_transition(ctrl, ActionState.SIT_TRANSITION_OUT)
    assert ctrl.state is ActionState.SEATED
    assert down[0] == pytest.approx(duration - DT)
    assert all(b < a for a, b in zip(down, down[1:]))
    assert down[-1] == 0.0

    # Let the finished track fade out before standing up.
    _run(ctrl, IDLE, 30)
    ctrl.tick(InputSnapshot(sit_toggle=True), dt=DT)
    up = _record_transition(ctrl, ActionState.SIT_TRANSITION_IN)
    assert ctrl.state is ActionState.IDLE
    assert up[0] == pytest.approx(DT)
    assert all(b > a for a, b in zip(up, up[1:]))
    assert up[-1] == pytest.approx(duration)
