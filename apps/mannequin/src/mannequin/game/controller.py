from __future__ import annotations

import logging
from dataclasses import dataclass

from panda3d.core import LVector3f

from mannequin.animation.blend import ActionPose, AnimationBlendController
from mannequin.animation.library import ActionLibrary
from mannequin.common.aabb import AABB
from mannequin.common.input_snapshot import InputSnapshot, Trigger
from mannequin.errors import MannequinError
from mannequin.game.context import CharacterContext
from mannequin.game.state_machine import ActionState, ActionStateMachine, Rule, StateListener
from mannequin.physics.collision_index import CollisionVolumeIndex
from mannequin.physics.locomotion import LocomotionIntegrator, MovementIntent
from mannequin.physics.tuning import CharacterTuning

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TickReport:
    ready: bool
    state: ActionState
    position: LVector3f
    heading: float
    rule: Rule | None = None
    committed: bool = False
    collided: bool = False
    consumed: tuple[Trigger, ...] = ()
    error: str | None = None


@dataclass(frozen=True)
class RenderPose:
    """What the renderer reads each frame. Sink only."""

    position: LVector3f
    heading: float
    state: ActionState
    tracks: tuple[ActionPose, ...]


class CharacterController:
    """
    Per-tick pipeline for one character:
    intent -> collision probe at the intended position -> state resolution ->
    commit or roll back -> blend update.

    Nothing runs until the action library reports ready.
    """

    def __init__(self, ctx: CharacterContext, *, listener: StateListener | None = None) -> None:
        self.ctx = ctx
        self._integrator = LocomotionIntegrator(tuning=ctx.tuning)
        self._blend = AnimationBlendController(
            library=ctx.library,
            flags=ctx.flags,
            fade_duration=ctx.tuning.fade_duration,
        )
        self._machine = ActionStateMachine(flags=ctx.flags, blend=self._blend, listener=listener)
        self._waiting_logged = False

    @classmethod
    def create(
        cls,
        *,
        library: ActionLibrary,
        collision: CollisionVolumeIndex | None = None,
        tuning: CharacterTuning | None = None,
        listener: StateListener | None = None,
    ) -> "CharacterController":
        ctx = CharacterContext(
            library=library,
            collision=collision if collision is not None else CollisionVolumeIndex(),
            tuning=tuning if tuning is not None else CharacterTuning(),
        )
        return cls(ctx, listener=listener)

    @property
    def state(self) -> ActionState:
        return self._machine.state

    @property
    def machine(self) -> ActionStateMachine:
        return self._machine

    @property
    def blend(self) -> AnimationBlendController:
        return self._blend

    @property
    def integrator(self) -> LocomotionIntegrator:
        return self._integrator

    def candidate_volume(self, intent: MovementIntent) -> AABB:
        actor = self.ctx.actor
        assert actor is not None
        return CollisionVolumeIndex.candidate_volume(
            local_bounds=self.ctx.tuning.actor_local_bounds(),
            position=self._integrator.intended_position(actor, intent),
            margin=self.ctx.tuning.collision_margin,
        )

    def actor_volume(self) -> AABB:
        actor = self.ctx.actor
        assert actor is not None
        return self.ctx.tuning.actor_local_bounds().translated(actor.position)

    def tick(self, snapshot: InputSnapshot, *, dt: float) -> TickReport:
        ctx = self.ctx
        if not ctx.library.is_ready():
            if not self._waiting_logged:
                logger.info("Waiting for actions: %s", ", ".join(a.value for a in ctx.library.missing()))
                self._waiting_logged = True
            return self._report(ready=False)

        try:
            if not self._machine.started():
                self._machine.start()
            intent = self._integrator.compute_intent(snapshot, dt=dt)
            blocked = bool(intent.is_moving) and ctx.collision.intersects(self.candidate_volume(intent))
            res = self._machine.resolve(snapshot, intent=intent, blocked=blocked)
            if res.commit:
                assert ctx.actor is not None
                self._integrator.commit(ctx.actor, intent)
            self._machine.apply(res)
            self._blend.update(dt)
        except MannequinError as exc:
            # Hold the previous pose/action for this tick.
            ctx.error_log.log_exception(context="controller.tick", exc=exc)
            return self._report(ready=True, error=str(exc))

        return self._report(
            ready=True,
            rule=res.rule,
            committed=res.commit,
            collided=res.collided,
            consumed=res.consumed,
        )

    def cancel_action(self) -> bool:
        """Abort an in-flight one-shot; the character returns to idle."""

        if not self._machine.started() or not self._blend.cancel():
            return False
        # Idle is a standing state; an aborted sit-down must not leave the sit gate set.
        self.ctx.flags.is_sitting = False
        self._machine.enter(ActionState.IDLE)
        return True

    def reset(self) -> None:
        ctx = self.ctx
        assert ctx.actor is not None
        ctx.actor.position = ctx.tuning.spawn_point()
        ctx.actor.heading = 0.0
        self._machine.reset()
        self._waiting_logged = False

    def pose(self) -> RenderPose:
        actor = self.ctx.actor
        assert actor is not None
        return RenderPose(
            position=LVector3f(actor.position),
            heading=float(actor.heading),
            state=self._machine.state,
            tracks=tuple(self._blend.tracks()),
        )

    def _report(
        self,
        *,
        ready: bool,
        rule: Rule | None = None,
        committed: bool = False,
        collided: bool = False,
        consumed: tuple[Trigger, ...] = (),
        error: str | None = None,
    ) -> TickReport:
        actor = self.ctx.actor
        assert actor is not None
        return TickReport(
            ready=ready,
            state=self._machine.state,
            position=LVector3f(actor.position),
            heading=float(actor.heading),
            rule=rule,
            committed=committed,
            collided=collided,
            consumed=consumed,
            error=error,
        )


__all__ = ["CharacterController", "RenderPose", "TickReport"]
