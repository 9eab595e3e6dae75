"""Clip metadata, readiness, and crossfaded playback of the character's actions."""

from mannequin.animation.blend import ActionPose, ActionTrack, AnimationBlendController
from mannequin.animation.library import (
    DEFAULT_IDLE_ACTION,
    REQUIRED_ACTIONS,
    ActionDescriptor,
    ActionId,
    ActionLibrary,
    LoopMode,
)
from mannequin.animation.manifest import ClipEntry, default_manifest, load_manifest, register_manifest

__all__ = [
    "ActionDescriptor",
    "ActionId",
    "ActionLibrary",
    "ActionPose",
    "ActionTrack",
    "AnimationBlendController",
    "ClipEntry",
    "DEFAULT_IDLE_ACTION",
    "LoopMode",
    "REQUIRED_ACTIONS",
    "default_manifest",
    "load_manifest",
    "register_manifest",
]
