from __future__ import annotations

import logging

from direct.gui.OnscreenText import OnscreenText
from direct.showbase.ShowBase import ShowBase
from direct.showbase.ShowBaseGlobal import globalClock
from panda3d.core import (
    AmbientLight,
    CardMaker,
    DirectionalLight,
    LVector3f,
    LVector4,
    NodePath,
    TextNode,
    loadPrcFileData,
)

from mannequin.animation.library import ActionLibrary
from mannequin.animation.manifest import ClipEntry, default_manifest, register_entry
from mannequin.app_config import RunConfig
from mannequin.common.aabb import AABB
from mannequin.common.error_log import ErrorLog
from mannequin.game.context import CharacterContext
from mannequin.game.controller import CharacterController
from mannequin.game.graybox import GRAYBOX_BLOCKS, graybox_collision
from mannequin.game.input_system import KeyLatch
from mannequin.game.scene_adapter import (
    build_box_lines,
    core_box_from_panda,
    panda_box_from_core,
    panda_heading_deg,
    panda_point,
)
from mannequin.game.state_machine import ActionState
from mannequin.physics.collision_index import CollisionVolumeIndex
from mannequin.physics.tuning import CharacterTuning

logger = logging.getLogger(__name__)

_STATE_COLORS: dict[ActionState, tuple[float, float, float, float]] = {
    ActionState.IDLE: (0.80, 0.80, 0.85, 1.0),
    ActionState.WALKING: (0.35, 0.75, 0.95, 1.0),
    ActionState.SIT_TRANSITION_OUT: (0.95, 0.80, 0.35, 1.0),
    ActionState.SEATED: (0.95, 0.65, 0.20, 1.0),
    ActionState.SIT_TRANSITION_IN: (0.95, 0.80, 0.35, 1.0),
    ActionState.KICKING: (0.55, 0.90, 0.40, 1.0),
    ActionState.JUMPING: (0.70, 0.50, 0.95, 1.0),
    ActionState.COLLISION_REACTING: (0.95, 0.30, 0.30, 1.0),
}


class MannequinViewer(ShowBase):
    """Panda3D viewer: renders the committed pose and feeds keyboard input to the controller."""

    def __init__(
        self,
        cfg: RunConfig,
        *,
        tuning: CharacterTuning | None = None,
        clips: list[ClipEntry] | None = None,
    ) -> None:
        # Keep audio from being a dependency for smoke runs / CI.
        loadPrcFileData("", "audio-library-name null")
        if cfg.smoke:
            loadPrcFileData("", "window-type offscreen")

        super().__init__()
        self.disableMouse()

        self.cfg = cfg
        self.tuning = tuning if tuning is not None else CharacterTuning()
        self.error_log = ErrorLog()
        self.library = ActionLibrary()
        self._pending_clips: list[ClipEntry] = list(clips if clips is not None else default_manifest())
        if int(cfg.clips_per_frame) <= 0:
            self._load_pending_clips(limit=None)

        collision = self._setup_scene()
        self.controller = CharacterController(
            CharacterContext(
                library=self.library,
                collision=collision,
                tuning=self.tuning,
                error_log=self.error_log,
            )
        )
        self._setup_avatar()

        self.keys = KeyLatch()
        self.keys.bind(self)
        self.accept("r", self._reset_character)
        self.accept("x", self.controller.cancel_action)
        self.accept("f3", self._toggle_debug_boxes)
        self._setup_ui()

        self.taskMgr.add(self._update, "update-loop")

        if cfg.smoke:
            self._frames_left = 12
            self.taskMgr.add(self._smoke_task, "smoke-exit")

    def _load_pending_clips(self, *, limit: int | None) -> None:
        n = len(self._pending_clips) if limit is None else max(0, int(limit))
        for _ in range(min(n, len(self._pending_clips))):
            entry = self._pending_clips.pop(0)
            try:
                register_entry(self.library, entry)
            except ValueError as exc:
                self.error_log.log_exception(context=f"clips.{entry.action_id.value}", exc=exc)

    def _setup_scene(self) -> CollisionVolumeIndex:
        cm = CardMaker("ground")
        cm.setFrame(-50, 50, -50, 50)
        ground = self.render.attachNewNode(cm.generate())
        ground.setP(-90)
        ground.setColor(0.35, 0.33, 0.30, 1)

        self._debug_root = self.render.attachNewNode("debug-boxes")
        if self.cfg.environment:
            env = self.loader.loadModel(self.cfg.environment)
            env.reparentTo(self.render)
            collision = CollisionVolumeIndex.from_scene(env, convert=core_box_from_panda)
        else:
            for i, box in enumerate(GRAYBOX_BLOCKS):
                self._attach_block(box, name=f"graybox-{i}")
            collision = graybox_collision()

        build_box_lines(self._debug_root, name="colliders", boxes=list(collision), color=(1.0, 0.0, 0.0, 1.0))
        if not (self.cfg.debug_boxes and self.tuning.debug_draw_colliders):
            self._debug_root.hide()

        ambient = AmbientLight("ambient")
        ambient.setColor(LVector4(0.4, 0.4, 0.4, 1))
        self.render.setLight(self.render.attachNewNode(ambient))
        sun = DirectionalLight("sun")
        sun.setColor(LVector4(0.9, 0.9, 0.9, 1))
        sun_np = self.render.attachNewNode(sun)
        sun_np.setHpr(45, -45, 0)
        self.render.setLight(sun_np)
        return collision

    def _attach_block(self, box: AABB, *, name: str) -> NodePath:
        lo, hi = panda_box_from_core(box)
        # models/box spans (0, 0, 0)..(1, 1, 1).
        model = self.loader.loadModel("models/box")
        model.setName(name)
        model.reparentTo(self.render)
        model.setPos(lo)
        model.setScale(hi - lo)
        model.setColor(0.55, 0.55, 0.60, 1)
        return model

    def _setup_avatar(self) -> None:
        local = self.tuning.actor_local_bounds()
        lo, hi = panda_box_from_core(local)
        self.avatar = self.render.attachNewNode("avatar")
        body = self.loader.loadModel("models/box")
        body.reparentTo(self.avatar)
        body.setPos(lo)
        body.setScale(hi - lo)
        self._avatar_body = body
        self._actor_lines = build_box_lines(
            self._debug_root,
            name="actor-box",
            boxes=[local],
            color=(0.0, 1.0, 0.0, 1.0),
        )
        self.camera.setPos(0, -12, 6)

    def _setup_ui(self) -> None:
        self._hud = OnscreenText(
            text="",
            parent=self.aspect2d,
            pos=(-1.32, 0.9),
            align=TextNode.ALeft,
            scale=0.045,
            fg=(1, 1, 1, 1),
            shadow=(0, 0, 0, 0.6),
        )

    def _reset_character(self) -> None:
        self.controller.reset()
        self.keys.clear()

    def _toggle_debug_boxes(self) -> None:
        if self._debug_root.isHidden():
            self._debug_root.show()
        else:
            self._debug_root.hide()

    def _update(self, task):  # type: ignore[no-untyped-def]
        if self._pending_clips:
            self._load_pending_clips(limit=self.cfg.clips_per_frame)

        dt = min(globalClock.getDt(), 0.05)
        report = self.controller.tick(self.keys.snapshot(), dt=dt)
        self.keys.consume(report.consumed)

        pose = self.controller.pose()
        self.avatar.setPos(panda_point(pose.position))
        self.avatar.setH(panda_heading_deg(pose.heading))
        self._avatar_body.setColor(*_STATE_COLORS[pose.state])
        self._actor_lines.setPos(panda_point(pose.position))

        target = panda_point(pose.position)
        self.camera.setPos(target + LVector3f(0, -12, 6))
        self.camera.lookAt(target)
        self._update_hud(report_ready=report.ready)
        return task.cont

    def _update_hud(self, *, report_ready: bool) -> None:
        flags = self.controller.ctx.flags
        lines = [
            "Controls: WASD move | C sit/stand | K kick | J jump | X cancel | R reset | F3 boxes",
            "",
        ]
        if not report_ready:
            missing = ", ".join(a.value for a in self.library.missing())
            lines.append(f"Loading clips... missing: {missing}")
        else:
            lines.append(f"State: {self.controller.state.value}")
            lines.append(
                f"moving={flags.is_moving} sitting={flags.is_sitting} action_playing={flags.is_action_playing}"
            )
            for track in self.controller.blend.tracks():
                mark = "*" if track.active else " "
                lines.append(f"{mark} {track.action_id.value:<12} t={track.time:5.2f} w={track.weight:4.2f}")
        last = self.error_log.latest()
        if last is not None:
            lines.append("")
            lines.append(f"Last error: {last.summary_line()}")
        self._hud.setText("\n".join(lines))

    def _smoke_task(self, task):  # type: ignore[no-untyped-def]
        self._frames_left -= 1
        if self._frames_left <= 0:
            self.userExit()
            return task.done
        return task.cont


def run(cfg: RunConfig, *, tuning: CharacterTuning | None = None, clips: list[ClipEntry] | None = None) -> None:
    app = MannequinViewer(cfg, tuning=tuning, clips=clips)
    app.run()


__all__ = ["MannequinViewer", "run"]
