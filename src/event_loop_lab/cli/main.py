# src/event_loop_lab/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, starts the simulation drivers (timer ticks +
auto-run) in a background thread, then runs either:
- the console REPL in the main thread, or
- a headless auto-run that prints the output when the script finishes.
"""

from __future__ import annotations

import logging
import signal
import threading

from ..cli.bootstrap import create_initial_state, save_script
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.ports import Snapshot
from ..core.state import AppState
from ..logging_setup import setup_logging
from ..simulation.runner import SimulationBackgroundRunner, start_simulation_in_background

logger = logging.getLogger(__name__)


def _shutdown(state: AppState, runner: SimulationBackgroundRunner | None) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        state.simulator.pause()
    except Exception:
        logger.debug("Simulator pause failed.", exc_info=True)

    if runner is not None:
        runner.stop()
        runner.join(timeout=5.0)

    try:
        save_script(state)
    except Exception:
        logger.exception("Failed to save script.")


class _FinishedSink:
    """Wakes the headless main thread once the run finishes."""

    def __init__(self, done: threading.Event) -> None:
        self._done = done

    def publish(self, event: str, snapshot: Snapshot) -> None:
        if snapshot.get("finished"):
            self._done.set()


def main() -> None:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    setup_logging(log_dir=settings.data_dir, console_level=console_level)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logger.info("Starting %s...", settings.app_name)

    state = create_initial_state(settings=settings)
    runner = start_simulation_in_background(state.simulator)

    # Use an Event so main can wait without a busy while-loop.
    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    try:
        signal.signal(signal.SIGINT, _handle_signal)
        signal.signal(signal.SIGTERM, _handle_signal)
    except Exception:
        # Some platforms may not support SIGTERM, etc.
        logger.debug("Signal handlers not installed.", exc_info=True)

    try:
        if settings.console_enabled:
            run_console_loop(state)
            stop_main.set()
        else:
            logger.info("Console disabled. Auto-running the script. Press Ctrl+C to stop.")
            state.simulator.subscribe(_FinishedSink(stop_main))
            state.simulator.play()
            if state.simulator.state.finished:
                stop_main.set()
            stop_main.wait()
            print("\n".join(state.simulator.state.output))
    finally:
        _shutdown(state, runner)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
