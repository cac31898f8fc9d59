# src/event_loop_lab/cli/commands.py

from __future__ import annotations

import inspect
import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import cast

from ..core.state import AppState, reset_session
from ..simulation.samples import FEATURE_KEYS, FEATURE_LABELS, Complexity, generate_code
from .bootstrap import load_script, save_script, save_snapshot
from .render import format_code, format_snapshot, format_step

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

MAX_STEPS_PER_COMMAND = 10_000


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /step, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except Exception:
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _parse_int(raw: str, default: int) -> int:
    try:
        return int(raw)
    except ValueError:
        return default


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help() + "\n  /edit - Enter a new script (finish with a single '.')"


def cmd_status(state: AppState, args: list[str]) -> str:
    sim = state.simulator
    mode = "AUTO-RUN" if sim.running else "MANUAL"
    enabled = [FEATURE_LABELS[k] for k in FEATURE_KEYS if state.features.get(k)]
    return (
        "Status:\n"
        f"  Mode: {mode} (every {sim.step_interval_ms} ms, tick {sim.tick_ms} ms)\n"
        f"  Finished: {'yes' if sim.state.finished else 'no'}\n"
        f"  Script: {len(sim.source.splitlines())} lines, {len(sim.program)} top-level tasks\n"
        f"  Generator: {state.complexity.value}; features: {', '.join(enabled) or '(none)'}"
    )


def cmd_show(state: AppState, args: list[str]) -> str:
    return format_snapshot(state.simulator.snapshot())


def cmd_code(state: AppState, args: list[str]) -> str:
    sim = state.simulator
    return format_code(sim.source, sim.state.active_line)


def cmd_step(
    state: AppState,
    args: list[str],
    emit: CommandEmitter | None = None,
) -> str:
    """
    /step      -> one step
    /step N    -> N steps (stops early when finished), each one reported via emit
    """
    sim = state.simulator
    n = _parse_int(args[0], 1) if args else 1
    n = min(MAX_STEPS_PER_COMMAND, max(1, n))

    sim.pause()
    done = 0
    for _ in range(n):
        if sim.state.finished:
            break
        sim.step()
        done += 1
        if emit and n > 1:
            emit(format_step("step", sim.snapshot()))
    return f"Stepped {done}x.\n" + format_snapshot(sim.snapshot())


def cmd_tick(state: AppState, args: list[str]) -> str:
    """
    /tick      -> one timer tick of the configured interval
    /tick MS   -> one tick of MS milliseconds
    """
    sim = state.simulator
    elapsed = _parse_int(args[0], sim.tick_ms) if args else sim.tick_ms
    sim.tick(elapsed)
    return f"Ticked {max(0, elapsed)} ms.\n" + format_snapshot(sim.snapshot())


def cmd_run(state: AppState, args: list[str]) -> str:
    sim = state.simulator
    if sim.state.finished:
        reset_session(state, autoplay=True)
        return "Replaying from the start."
    result = sim.toggle()
    if result == "paused":
        return "Paused."
    return f"Running (every {sim.step_interval_ms} ms). Use /pause or /run to stop."


def cmd_pause(state: AppState, args: list[str]) -> str:
    state.simulator.pause()
    return "Paused."


def cmd_speed(state: AppState, args: list[str]) -> str:
    """
    /speed      -> show step interval
    /speed MS   -> set step interval (100..2000 ms)
    """
    sim = state.simulator
    if not args:
        return f"Speed: {sim.step_interval_ms} ms per step."
    ms = sim.set_speed(_parse_int(args[0], sim.step_interval_ms))
    return f"Speed set to {ms} ms per step."


def cmd_reset(state: AppState, args: list[str]) -> str:
    reset_session(state)
    return "Reset.\n" + format_snapshot(state.simulator.snapshot())


def cmd_gen(state: AppState, args: list[str]) -> str:
    """
    /gen           -> regenerate with current complexity
    /gen simple    -> flat sample
    /gen complex   -> nested sample
    """
    if args:
        try:
            state.complexity = Complexity(args[0].lower())
        except ValueError:
            return "Usage: /gen simple | /gen complex"
    code = generate_code(state.complexity, state.features)
    logger.debug("Generated %s sample (%d lines)", state.complexity.value, len(code.splitlines()))
    reset_session(state, code)
    return format_code(code, None)


def cmd_feature(state: AppState, args: list[str]) -> str:
    """
    /feature              -> list features
    /feature NAME on|off  -> toggle a generator feature
    """
    if not args:
        lines = ["Generator features:"]
        for key in FEATURE_KEYS:
            flag = "x" if state.features.get(key) else " "
            lines.append(f"  [{flag}] {key} ({FEATURE_LABELS[key]})")
        return "\n".join(lines)

    by_lower = {k.lower(): k for k in FEATURE_KEYS}
    key = by_lower.get(args[0].lower())
    if key is None:
        return f"Unknown feature: {args[0]}. Known: {', '.join(FEATURE_KEYS)}"

    if len(args) > 1:
        value = args[1].lower() in ("on", "1", "true", "yes")
    else:
        value = not state.features.get(key, False)
    state.features[key] = value
    return f"Feature {key} is now {'ON' if value else 'OFF'}. Use /gen to regenerate."


def cmd_load(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /load <path>"
    text = load_script(args[0])
    if text is None:
        return f"Could not read {args[0]}."
    reset_session(state, text)
    return format_code(text, None)


def cmd_save(state: AppState, args: list[str]) -> str:
    path = save_script(state, args[0] if args else getattr(state.settings, "script_path", None))
    return f"Saved script to {path}." if path else "Script was not saved (see log)."


def cmd_json(state: AppState, args: list[str]) -> str:
    """
    /json        -> print the snapshot as JSON
    /json PATH   -> write it to PATH
    """
    if not args:
        return json.dumps(state.simulator.snapshot(), ensure_ascii=False, indent=2)
    path = save_snapshot(state, Path(args[0]))
    return f"Snapshot written to {path}." if path else "Snapshot was not written (see log)."


def cmd_predict(state: AppState, args: list[str]) -> str:
    """
    /predict            -> show the current guess
    /predict move I J   -> move item I to position J (1-based)
    /predict check      -> compare with the actual output (after the run finished)
    """
    game = state.prediction
    sim = state.simulator

    if args and args[0].lower() == "move":
        if len(args) < 3:
            return "Usage: /predict move I J"
        src, dst = _parse_int(args[1], 0) - 1, _parse_int(args[2], 0) - 1
        if not game.move(src, dst):
            return f"Positions must be between 1 and {len(game.items)}."
        args = []

    if args and args[0].lower() == "check":
        if not sim.state.finished:
            return "The run is not finished yet. Use /run or /step first."
        verdict = game.verdict(sim.state.output)
        lines = ["CORRECT" if verdict.correct else "INCORRECT"]
        for i, (item, ok) in enumerate(zip(game.items, verdict.marks), start=1):
            lines.append(f"  {'+' if ok else 'x'} #{i} {item}")
        lines.append("Actual: " + ", ".join(sim.state.output))
        return "\n".join(lines)

    if args:
        return "Usage: /predict | /predict move I J | /predict check"

    if not game.items:
        return "No logs detected."
    lines = ["Your predicted output order:"]
    lines.extend(f"  #{i} {item}" for i, item in enumerate(game.items, start=1))
    return "\n".join(lines)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show mode, speed and generator settings.")
registry.register("show", cmd_show, help_text="Show stack, Web APIs, queues and output.", aliases=["s"])
registry.register("code", cmd_code, help_text="Show the script with the active line marked.")
registry.register("step", cmd_step, help_text="Execute one step: /step [n].", aliases=["n"])
registry.register("tick", cmd_tick, help_text="Advance timers once: /tick [ms].")
registry.register("run", cmd_run, help_text="Play / pause (replay when finished).", aliases=["play"])
registry.register("pause", cmd_pause, help_text="Pause auto-run.")
registry.register("speed", cmd_speed, help_text="Show or set the step interval: /speed [ms].")
registry.register("reset", cmd_reset, help_text="Re-parse the script and start over.")
registry.register("gen", cmd_gen, help_text="Generate a sample: /gen simple | /gen complex.")
registry.register("feature", cmd_feature, help_text="Generator features: /feature [name on|off].")
registry.register("load", cmd_load, help_text="Load a script file: /load <path>.")
registry.register("save", cmd_save, help_text="Save the script: /save [path].")
registry.register("json", cmd_json, help_text="Dump the state snapshot as JSON: /json [path].")
registry.register(
    "predict", cmd_predict, help_text="Prediction game: /predict | /predict move I J | /predict check."
)
