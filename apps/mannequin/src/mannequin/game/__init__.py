"""
Per-character gameplay wiring.

`CharacterController` is the per-tick entry point; the Panda3D viewer lives in
`mannequin.game.app` and is imported lazily by the CLI.
"""

from mannequin.game.context import CharacterContext
from mannequin.game.controller import CharacterController, RenderPose, TickReport
from mannequin.game.input_system import KeyLatch
from mannequin.game.state_machine import STATE_TABLE, ActionState, ActionStateMachine, Resolution, Rule

__all__ = [
    "ActionState",
    "ActionStateMachine",
    "CharacterContext",
    "CharacterController",
    "KeyLatch",
    "RenderPose",
    "Resolution",
    "Rule",
    "STATE_TABLE",
    "TickReport",
]
