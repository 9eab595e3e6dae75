from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Callable

from mannequin.animation.blend import AnimationBlendController
from mannequin.animation.library import ActionId
from mannequin.common.flags import StateFlags
from mannequin.common.input_snapshot import InputSnapshot, Trigger
from mannequin.physics.locomotion import MovementIntent

logger = logging.getLogger(__name__)


class ActionState(str, Enum):
    IDLE = "idle"
    WALKING = "walking"
    SIT_TRANSITION_IN = "sit_transition_in"
    SEATED = "seated"
    SIT_TRANSITION_OUT = "sit_transition_out"
    KICKING = "kicking"
    JUMPING = "jumping"
    COLLISION_REACTING = "collision_reacting"


@dataclass(frozen=True)
class StateSpec:
    action_id: ActionId
    reversed: bool = False
    # Follow-up state entered when a one-shot clip finishes.
    on_complete: ActionState | None = None


# The single "standToSeat" clip is authored once: played reversed to sit down, forward to stand up.
STATE_TABLE: dict[ActionState, StateSpec] = {
    ActionState.IDLE: StateSpec(ActionId.STAND),
    ActionState.WALKING: StateSpec(ActionId.WALKING),
    ActionState.SEATED: StateSpec(ActionId.SEAT),
    ActionState.SIT_TRANSITION_OUT: StateSpec(
        ActionId.STAND_TO_SEAT, reversed=True, on_complete=ActionState.SEATED
    ),
    ActionState.SIT_TRANSITION_IN: StateSpec(ActionId.STAND_TO_SEAT, on_complete=ActionState.IDLE),
    ActionState.KICKING: StateSpec(ActionId.KICK, on_complete=ActionState.IDLE),
    ActionState.JUMPING: StateSpec(ActionId.JUMP, on_complete=ActionState.IDLE),
    ActionState.COLLISION_REACTING: StateSpec(ActionId.COLLISION, on_complete=ActionState.IDLE),
}


class Rule(str, Enum):
    """Which resolution step produced a tick's outcome."""

    ONE_SHOT = "one_shot"
    WALK = "walk"
    COLLISION = "collision"
    SIT_TOGGLE = "sit_toggle"
    KICK = "kick"
    JUMP = "jump"
    REST = "rest"
    HOLD_SEATED = "hold_seated"


@dataclass(frozen=True)
class Resolution:
    rule: Rule
    # None keeps the current state.
    target: ActionState | None = None
    commit: bool = False
    moving: bool = False
    toggle_sit: bool = False
    collided: bool = False
    consumed: tuple[Trigger, ...] = ()


StateListener = Callable[[ActionState, ActionState], None]


class ActionStateMachine:
    """
    Decides the character's next action each tick.

    Resolution is first-match-wins:
    one-shot in flight > movement (walk or collision) > sit toggle > kick > jump > rest.
    Triggers blocked by a guard are not reported as consumed; they stay latched
    until the caller clears them.
    """

    def __init__(
        self,
        *,
        flags: StateFlags,
        blend: AnimationBlendController,
        listener: StateListener | None = None,
    ) -> None:
        self._flags = flags
        self._blend = blend
        self._listener = listener
        self._state = ActionState.IDLE
        self._started = False

    @property
    def state(self) -> ActionState:
        return self._state

    def started(self) -> bool:
        return self._started

    def start(self) -> None:
        self._flags.reset()
        self._blend.start(STATE_TABLE[ActionState.IDLE].action_id)
        self._state = ActionState.IDLE
        self._started = True

    def reset(self) -> None:
        self._blend.reset()
        self._flags.reset()
        self._state = ActionState.IDLE
        self._started = False

    def resolve(self, snapshot: InputSnapshot, *, intent: MovementIntent, blocked: bool) -> Resolution:
        f = self._flags
        if f.is_action_playing:
            return Resolution(rule=Rule.ONE_SHOT, target=None, moving=False)

        if intent.is_moving and not f.is_sitting:
            if blocked:
                return Resolution(
                    rule=Rule.COLLISION,
                    target=ActionState.COLLISION_REACTING,
                    commit=False,
                    moving=False,
                    collided=True,
                )
            return Resolution(rule=Rule.WALK, target=ActionState.WALKING, commit=True, moving=True)

        if snapshot.sit_toggle:
            target = ActionState.SIT_TRANSITION_IN if f.is_sitting else ActionState.SIT_TRANSITION_OUT
            return Resolution(
                rule=Rule.SIT_TOGGLE,
                target=target,
                toggle_sit=True,
                consumed=(Trigger.SIT_TOGGLE,),
            )

        if not f.is_sitting:
            if snapshot.kick:
                return Resolution(rule=Rule.KICK, target=ActionState.KICKING, consumed=(Trigger.KICK,))
            if snapshot.jump:
                return Resolution(rule=Rule.JUMP, target=ActionState.JUMPING, consumed=(Trigger.JUMP,))
            return Resolution(rule=Rule.REST, target=ActionState.IDLE)

        return Resolution(rule=Rule.HOLD_SEATED, target=None)

    def apply(self, resolution: Resolution) -> None:
        f = self._flags
        f.is_moving = bool(resolution.moving)
        if resolution.toggle_sit:
            f.is_sitting = not f.is_sitting
        if resolution.target is not None:
            self.enter(resolution.target)

    def enter(self, state: ActionState) -> None:
        row = STATE_TABLE[state]
        on_complete: Callable[[], None] | None = None
        if row.on_complete is not None:
            on_complete = partial(self.enter, row.on_complete)

        self._blend.transition_to(row.action_id, reversed=row.reversed, on_complete=on_complete)
        prev = self._state
        self._state = state
        if prev is not state:
            logger.debug("State %s -> %s", prev.value, state.value)
            if self._listener is not None:
                self._listener(prev, state)


__all__ = [
    "ActionState",
    "ActionStateMachine",
    "Resolution",
    "Rule",
    "STATE_TABLE",
    "StateListener",
    "StateSpec",
]
