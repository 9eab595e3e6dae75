from __future__ import annotations

import argparse
import logging
from pathlib import Path

from mannequin.animation.library import ActionLibrary
from mannequin.animation.manifest import ClipEntry, default_manifest, load_manifest, register_manifest
from mannequin.app_config import RunConfig
from mannequin.game.context import CharacterContext
from mannequin.game.controller import CharacterController
from mannequin.game.graybox import graybox_collision
from mannequin.physics.tuning import CharacterTuning
from mannequin.replays.script import InputScript, builtin_demo_script, load_script, run_script
from mannequin.replays.trace import StateTrace
from mannequin.state import MannequinState, apply_tuning_overrides, load_state, update_state

logger = logging.getLogger(__name__)


def resolve_clips(explicit: str | None, saved: MannequinState) -> tuple[str | None, list[ClipEntry]]:
    """
    Clip manifest for this run: `--manifest` first, then the last one used, then the stock set.

    An explicit manifest that fails to load is fatal; a stale remembered one only warns.
    """

    if explicit:
        return explicit, load_manifest(Path(explicit))
    if saved.last_manifest:
        try:
            return saved.last_manifest, load_manifest(Path(saved.last_manifest))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring saved clip manifest %s: %s", saved.last_manifest, exc)
    return None, default_manifest()


def resolve_environment(explicit: str | None, saved: MannequinState) -> str | None:
    if explicit:
        return explicit
    if saved.last_environment:
        if Path(saved.last_environment).is_file():
            return saved.last_environment
        logger.warning("Ignoring saved environment %s: file not found", saved.last_environment)
    return None


def run_headless(
    script: InputScript,
    *,
    clips: list[ClipEntry],
    tuning: CharacterTuning,
    trace_out: Path | None = None,
) -> str:
    """Replay `script` against the graybox colliders without opening a window. Returns the final trace hash."""

    library = ActionLibrary()
    register_manifest(library, clips)
    controller = CharacterController(
        CharacterContext(library=library, collision=graybox_collision(), tuning=tuning),
        listener=lambda old, new: print(f"  {old.value} -> {new.value}"),
    )
    trace = StateTrace(max_samples=max(1, script.tick_count()))
    reports = run_script(controller, script, trace=trace)
    pos = controller.pose().position
    print(f"[headless] ticks={len(reports)} state={controller.state.value}")
    print(f"[headless] position=({pos.x:.3f}, {pos.y:.3f}, {pos.z:.3f}) heading={controller.pose().heading:.3f}")
    print(f"[headless] trace_hash={trace.latest_trace_hash()}")
    if trace_out is not None:
        trace.dump_json(out_path=trace_out)
        print(f"[headless] trace written to {trace_out}")
    return trace.latest_trace_hash()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="mannequin", description="Mannequin character controller viewer")
    parser.add_argument(
        "--smoke",
        action="store_true",
        help="Run the viewer offscreen for a few frames and exit (for quick verification).",
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Replay the built-in demo input script without a window and print the state trace.",
    )
    parser.add_argument(
        "--script",
        default=None,
        help="Replay an input script JSON without a window (implies --headless).",
    )
    parser.add_argument(
        "--trace-out",
        default=None,
        help="Optional JSON output path for the headless tick trace.",
    )
    parser.add_argument(
        "--manifest",
        default=None,
        help="Clip manifest JSON. Defaults to the last manifest used, then the stock clip set.",
    )
    parser.add_argument(
        "--env",
        dest="environment",
        default=None,
        help="Environment model for the viewer (one collider per sub-mesh). Defaults to the graybox room.",
    )
    parser.add_argument(
        "--no-debug-boxes",
        action="store_true",
        help="Start with collider/actor wireframes hidden (F3 toggles them).",
    )
    parser.add_argument(
        "--clips-per-frame",
        type=int,
        default=1,
        help="Clips registered per frame while loading; 0 registers all of them before the first frame.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Debug-level logging.",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    saved = load_state()
    tuning = apply_tuning_overrides(CharacterTuning(), saved.tuning_overrides)
    manifest, clips = resolve_clips(args.manifest, saved)
    if args.manifest:
        update_state(last_manifest=str(Path(args.manifest).resolve()))

    if args.headless or args.script:
        script = load_script(Path(args.script)) if args.script else builtin_demo_script()
        run_headless(
            script,
            clips=clips,
            tuning=tuning,
            trace_out=Path(args.trace_out) if args.trace_out else None,
        )
        return

    if args.environment:
        update_state(last_environment=str(Path(args.environment).resolve()))

    # Imported late so headless runs never touch ShowBase.
    from mannequin.game.app import run

    run(
        RunConfig(
            smoke=bool(args.smoke),
            manifest=manifest,
            environment=resolve_environment(args.environment, saved),
            debug_boxes=not bool(args.no_debug_boxes),
            clips_per_frame=int(args.clips_per_frame),
        ),
        tuning=tuning,
        clips=clips,
    )


if __name__ == "__main__":
    main()
