# src/event_loop_lab/connectors/console_connector.py

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..cli.render import format_code, format_step
from ..core.ports import Snapshot
from ..core.state import AppState, reset_session

logger = logging.getLogger(__name__)

EDIT_TERMINATOR = "."


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


class ConsoleSnapshotSink:
    """
    Prints compact progress lines while auto-run is active.

    Manual /step and /tick print their own full snapshot, so only steps taken while the
    simulator is running are echoed here. Idle steps render the same line as the previous
    step and are not echoed again.
    """

    def __init__(self, state: AppState, printer: Callable[[str], None] = _print_ts) -> None:
        self._state = state
        self._printer = printer
        self._lock = threading.Lock()
        self._last_line = ""

    def publish(self, event: str, snapshot: Snapshot) -> None:
        if event != "step":
            return
        sim = self._state.simulator
        if not sim.running and not snapshot.get("finished"):
            return
        with self._lock:
            line = format_step(event, snapshot)
            if line == self._last_line:
                return
            self._last_line = line
            self._printer(line)
            if snapshot.get("finished"):
                verdict = self._state.prediction.verdict(snapshot.get("output") or [])
                self._printer(
                    "Run finished. Output: "
                    + ", ".join(snapshot.get("output") or [])
                    + f"  Prediction: {'CORRECT' if verdict.correct else 'INCORRECT'}"
                )


def _read_script(prompt: str = "... ") -> str | None:
    """Collect lines until a line containing only '.'; None on EOF/interrupt."""
    lines: list[str] = []
    while True:
        try:
            line = input(prompt)
        except (EOFError, KeyboardInterrupt):
            print()
            return None
        if line.strip() == EDIT_TERMINATOR:
            return "\n".join(lines)
        lines.append(line)


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started (running=%s).", state.simulator.running)
    _print_ts("[CONSOLE] Use /help for commands, /edit to type a script, /exit to quit.\n")

    sink = ConsoleSnapshotSink(state)
    state.simulator.subscribe(sink)

    def emit(text: str) -> None:
        # Immediate user-visible feedback for multi-step commands.
        print(f"[{_ts_local()}] {text}", flush=True)

    try:
        while True:
            try:
                user_input = input(">>> ").strip()
            except EOFError:
                logger.info("Console EOF received, exiting.")
                break
            except KeyboardInterrupt:
                logger.info("Console KeyboardInterrupt, exiting.")
                print()
                break

            if not user_input:
                continue

            if user_input.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            if user_input.lower() == "/edit":
                _print_ts("Enter the script. Finish with a line containing only '.'")
                text = _read_script()
                if text is None:
                    _print_ts("Edit cancelled.")
                    continue
                try:
                    reset_session(state, text)
                    _print_ts("Script loaded.\n" + format_code(text, None))
                except Exception:
                    logger.exception("Failed to load edited script.")
                    _print_ts("Internal error while loading the script.")
                continue

            try:
                cmd_response = command_registry.handle(state, user_input, emit=emit)
            except Exception:
                logger.exception("Command handler crashed.")
                cmd_response = "Internal error while handling a command."

            if cmd_response is None:
                cmd_response = "Not a command. Use /help to list commands or /edit to enter a script."

            print(f"[{_ts_local()}] {cmd_response}")
    finally:
        state.simulator.unsubscribe(sink)

    logger.info("Console connector finished.")
