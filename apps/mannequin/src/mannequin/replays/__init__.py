from mannequin.replays.script import (
    InputScript,
    ScriptFrame,
    builtin_demo_script,
    load_script,
    parse_script,
    run_script,
)
from mannequin.replays.trace import StateTrace, TraceSample, deterministic_state_hash

__all__ = [
    "InputScript",
    "ScriptFrame",
    "StateTrace",
    "TraceSample",
    "builtin_demo_script",
    "deterministic_state_hash",
    "load_script",
    "parse_script",
    "run_script",
]
