from __future__ import annotations

import json
import logging
import os
import secrets
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

from mannequin.physics.tuning import CharacterTuning

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MannequinState:
    last_manifest: str | None = None
    last_environment: str | None = None
    tuning_overrides: dict[str, float | bool] = field(default_factory=dict)


def state_dir() -> Path:
    """
    Directory for small persistent user state.

    Override for tests/dev via `MANNEQUIN_STATE_DIR`.
    """

    override = os.environ.get("MANNEQUIN_STATE_DIR")
    if override:
        return Path(override)
    return Path.home() / ".mannequin"


def state_path() -> Path:
    return state_dir() / "state.json"


def _clean_overrides(raw: object) -> dict[str, float | bool]:
    out: dict[str, float | bool] = {}
    if not isinstance(raw, dict):
        return out
    for key, value in raw.items():
        if not isinstance(key, str) or not key.strip():
            continue
        if isinstance(value, bool):
            out[key] = value
            continue
        if isinstance(value, (int, float)):
            out[key] = float(value)
    return out


def load_state() -> MannequinState:
    p = state_path()
    if not p.exists():
        return MannequinState()
    try:
        payload = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        logger.warning("Ignoring unreadable state file %s", p)
        return MannequinState()

    if not isinstance(payload, dict):
        return MannequinState()
    lm = payload.get("last_manifest")
    le = payload.get("last_environment")
    return MannequinState(
        last_manifest=str(lm) if isinstance(lm, str) and lm.strip() else None,
        last_environment=str(le) if isinstance(le, str) and le.strip() else None,
        tuning_overrides=_clean_overrides(payload.get("tuning_overrides")),
    )


def save_state(state: MannequinState) -> None:
    d = state_dir()
    d.mkdir(parents=True, exist_ok=True)
    p = state_path()
    # Unique tmp name so parallel runs never clobber each other's partial write.
    tmp = p.with_name(f"{p.name}.{os.getpid()}.{secrets.token_hex(6)}.tmp")
    tmp.write_text(
        json.dumps(
            {
                "last_manifest": state.last_manifest,
                "last_environment": state.last_environment,
                "tuning_overrides": state.tuning_overrides,
            },
            indent=2,
            sort_keys=True,
        )
        + "\n",
        encoding="utf-8",
    )
    tmp.replace(p)


def update_state(
    *,
    last_manifest: str | None = None,
    last_environment: str | None = None,
    tuning_overrides: dict[str, float | bool] | None = None,
) -> None:
    s = load_state()
    merged_tuning = dict(s.tuning_overrides)
    if tuning_overrides is not None:
        merged_tuning.update(tuning_overrides)
    save_state(
        MannequinState(
            last_manifest=last_manifest if last_manifest is not None else s.last_manifest,
            last_environment=last_environment if last_environment is not None else s.last_environment,
            tuning_overrides=merged_tuning,
        )
    )


def apply_tuning_overrides(tuning: CharacterTuning, overrides: dict[str, float | bool]) -> CharacterTuning:
    """
    Return a copy of `tuning` with matching overrides applied.

    Unknown keys and values whose kind (bool vs number) does not match the field are skipped.
    """

    kinds = {f.name: type(getattr(tuning, f.name)) for f in fields(tuning)}
    changes: dict[str, float | bool] = {}
    for key, value in overrides.items():
        kind = kinds.get(key)
        if kind is None:
            logger.warning("Ignoring unknown tuning override %r", key)
            continue
        if kind is bool:
            if isinstance(value, bool):
                changes[key] = value
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        changes[key] = float(value)
    return replace(tuning, **changes)


__all__ = [
    "MannequinState",
    "apply_tuning_overrides",
    "load_state",
    "save_state",
    "state_dir",
    "state_path",
    "update_state",
]
