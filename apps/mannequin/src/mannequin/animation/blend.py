from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from mannequin.animation.library import (
    DEFAULT_IDLE_ACTION,
    ActionDescriptor,
    ActionId,
    ActionLibrary,
    coerce_action_id,
)
from mannequin.common.flags import StateFlags
from mannequin.errors import InvalidTransition

logger = logging.getLogger(__name__)


DEFAULT_FADE_DURATION = 0.2


@dataclass
class ActionTrack:
    """Playback cursor and blend weight for one action."""

    descriptor: ActionDescriptor
    time: float = 0.0
    rate: float = 1.0
    weight: float = 0.0
    fade_to: float = 0.0
    # Weight change per time unit; 0 means the weight is settled.
    fade_speed: float = 0.0

    @property
    def action_id(self) -> ActionId:
        return self.descriptor.action_id

    def fade(self, *, target: float, duration: float) -> None:
        self.fade_to = max(0.0, min(1.0, float(target)))
        d = max(0.0, float(duration))
        if d <= 1e-9:
            self.weight = self.fade_to
            self.fade_speed = 0.0
            return
        self.fade_speed = 1.0 / d

    def advance(self, dt: float) -> None:
        duration = float(self.descriptor.duration)
        t = float(self.time) + float(dt) * float(self.rate)
        if self.descriptor.one_shot:
            # Hold the boundary frame, no wraparound.
            self.time = max(0.0, min(duration, t))
        elif duration <= 0.0:
            self.time = 0.0
        else:
            self.time = t % duration
        if self.fade_speed > 0.0:
            delta = float(self.fade_to) - float(self.weight)
            step = self.fade_speed * max(0.0, float(dt))
            if abs(delta) <= step:
                self.weight = self.fade_to
                self.fade_speed = 0.0
            else:
                self.weight += step if delta > 0.0 else -step

    def reached_boundary(self) -> bool:
        if not self.descriptor.one_shot:
            return False
        if self.rate > 0.0:
            return self.time >= float(self.descriptor.duration)
        if self.rate < 0.0:
            return self.time <= 0.0
        return False


@dataclass(frozen=True)
class ActionPose:
    action_id: ActionId
    time: float
    rate: float
    weight: float
    active: bool


@dataclass
class _Completion:
    action_id: ActionId
    on_complete: Callable[[], None] | None


class AnimationBlendController:
    """
    Owns the single active action and crossfades between actions.

    One-shot (hold) actions arm one completion slot. The slot is cleared before it
    fires, and any transition away from the armed action clears it, so a completion
    can neither fire twice nor outlive its activation.
    """

    def __init__(
        self,
        *,
        library: ActionLibrary,
        flags: StateFlags,
        fade_duration: float = DEFAULT_FADE_DURATION,
        default_action: ActionId = DEFAULT_IDLE_ACTION,
    ) -> None:
        self._library = library
        self._flags = flags
        self._fade_duration = max(0.0, float(fade_duration))
        self._default_action = coerce_action_id(default_action)
        self._tracks: dict[ActionId, ActionTrack] = {}
        self._active: ActionTrack | None = None
        self._completion: _Completion | None = None

    @property
    def active_id(self) -> ActionId | None:
        return self._active.action_id if self._active is not None else None

    @property
    def active(self) -> ActionTrack | None:
        return self._active

    @property
    def fade_duration(self) -> float:
        return self._fade_duration

    def started(self) -> bool:
        return self._active is not None

    def armed_completion(self) -> ActionId | None:
        return self._completion.action_id if self._completion is not None else None

    def start(self, action_id: ActionId | str) -> None:
        """Install the spawn action at full weight, discarding any previous playback."""

        desc = self._library.get(action_id)
        self._disarm()
        track = ActionTrack(descriptor=desc, rate=float(desc.playback_rate), weight=1.0, fade_to=1.0)
        track.time = float(desc.duration) if track.rate < 0.0 else 0.0
        self._tracks = {desc.action_id: track}
        self._active = track
        if desc.one_shot:
            self._arm(desc.action_id, None)

    def reset(self) -> None:
        self._disarm()
        self._tracks.clear()
        self._active = None

    def transition_to(
        self,
        action_id: ActionId | str,
        *,
        reversed: bool = False,
        on_complete: Callable[[], None] | None = None,
    ) -> bool:
        """
        Crossfade to `action_id`. Returns False (and changes nothing) if it is already active.

        Reversed playback starts at the clip end with a negated rate.
        """

        aid = coerce_action_id(action_id)
        current = self._active
        if current is None:
            raise InvalidTransition(f"transition to {aid.value!r} before the controller was started")
        if current.action_id is aid:
            return False
        desc = self._library.get(aid)

        self._disarm()
        current.fade(target=0.0, duration=self._fade_duration)

        track = self._tracks.get(aid)
        if track is None:
            track = ActionTrack(descriptor=desc)
            self._tracks[aid] = track
        track.descriptor = desc
        base_rate = float(desc.playback_rate)
        track.rate = -base_rate if reversed else base_rate
        track.time = float(desc.duration) if track.rate < 0.0 else 0.0
        track.fade(target=1.0, duration=self._fade_duration)
        self._active = track

        if desc.one_shot:
            self._arm(aid, on_complete)
        logger.debug("Action %s -> %s%s", current.action_id.value, aid.value, " (reversed)" if reversed else "")
        return True

    def cancel(self) -> bool:
        """Abort an in-flight one-shot and return to the default idle action."""

        if self._completion is None:
            return False
        self._disarm()
        self.transition_to(self._default_action)
        return True

    def update(self, dt: float) -> None:
        step = max(0.0, float(dt))
        for track in list(self._tracks.values()):
            track.advance(step)
        for aid, track in list(self._tracks.items()):
            if track is self._active:
                continue
            # Fully faded out.
            if track.weight <= 0.0 and track.fade_speed <= 0.0:
                del self._tracks[aid]
        self._fire_completion()

    def tracks(self) -> list[ActionPose]:
        return [
            ActionPose(
                action_id=t.action_id,
                time=float(t.time),
                rate=float(t.rate),
                weight=float(t.weight),
                active=t is self._active,
            )
            for t in self._tracks.values()
        ]

    def weights(self) -> dict[ActionId, float]:
        return {aid: float(t.weight) for aid, t in self._tracks.items()}

    def _arm(self, action_id: ActionId, on_complete: Callable[[], None] | None) -> None:
        self._completion = _Completion(action_id=action_id, on_complete=on_complete)
        self._flags.is_action_playing = True

    def _disarm(self) -> None:
        if self._completion is None:
            return
        self._completion = None
        self._flags.is_action_playing = False

    def _fire_completion(self) -> None:
        c = self._completion
        active = self._active
        if c is None or active is None:
            return
        if active.action_id is not c.action_id or not active.reached_boundary():
            return
        self._completion = None
        self._flags.is_action_playing = False
        logger.debug("Action %s finished", c.action_id.value)
        if c.on_complete is not None:
            c.on_complete()
        else:
            self.transition_to(self._default_action)


__all__ = [
    "ActionPose",
    "ActionTrack",
    "AnimationBlendController",
    "DEFAULT_FADE_DURATION",
]
