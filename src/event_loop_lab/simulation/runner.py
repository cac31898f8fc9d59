# src/event_loop_lab/simulation/runner.py

from __future__ import annotations

"""
Simulation runner.

`Simulator` owns the current EngineState. Exactly two operations replace it:
- step()  -> one event-loop step (manual or auto-run),
- tick()  -> one timer-advancer tick.
Both run under one lock, so a tick never sees a half-applied step and vice versa.

Two polling loops drive it in the background:
- run_timer_advancer: ticks every interval, regardless of play/pause,
- run_autoplay: steps every `step_interval_ms` while the simulator is running.

To stop a loop, cancel the coroutine/task (or set its stop_event).
"""

import asyncio
import contextlib
import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass

from ..core.ports import Snapshot, SnapshotSink
from .engine import initial_state, snapshot, step
from .models import EngineState, Task
from .parser import parse_code
from .timers import advance_timers

logger = logging.getLogger(__name__)

SPEED_MIN_MS = 100
SPEED_MAX_MS = 2000
DEFAULT_TICK_MS = 100


def clamp_speed(ms: float) -> int:
    return int(min(SPEED_MAX_MS, max(SPEED_MIN_MS, int(ms))))


class Simulator:
    """Lock-guarded owner of the simulation state."""

    def __init__(
            self,
            source: str = "",
            *,
            tick_ms: int = DEFAULT_TICK_MS,
            step_interval_ms: int = 1000,
            sinks: Iterable[SnapshotSink] | None = None,
    ) -> None:
        self._lock = threading.RLock()
        self._sinks: list[SnapshotSink] = list(sinks or [])

        self.tick_ms = max(1, int(tick_ms))
        self.step_interval_ms = clamp_speed(step_interval_ms)

        self.source = source
        self.program: tuple[Task, ...] = parse_code(source)
        self.state: EngineState = initial_state(self.program)
        self.running = False
        self.generation = 0

    # ---- observers ----

    def subscribe(self, sink: SnapshotSink) -> None:
        with self._lock:
            self._sinks.append(sink)

    def unsubscribe(self, sink: SnapshotSink) -> None:
        with self._lock:
            with contextlib.suppress(ValueError):
                self._sinks.remove(sink)

    def _publish(self, event: str) -> None:
        snap = snapshot(self.state)
        for sink in list(self._sinks):
            try:
                sink.publish(event, snap)
            except Exception:
                logger.exception("Snapshot sink failed event=%s", event)

    def snapshot(self) -> Snapshot:
        with self._lock:
            return snapshot(self.state)

    # ---- mutating operations ----

    def reset(self, source: str | None = None, *, autoplay: bool = False) -> EngineState:
        """
        Discard all state and rebuild it from a fresh parse of `source`
        (or the current text). Safe to call while auto-run is active.
        """
        with self._lock:
            if source is not None:
                self.source = source
            self.program = parse_code(self.source)
            self.state = initial_state(self.program)
            self.running = bool(autoplay)
            self.generation += 1
            logger.info(
                "Simulation reset: %d top-level tasks, autoplay=%s, generation=%d",
                len(self.program),
                self.running,
                self.generation,
            )
            self._publish("reset")
            return self.state

    def step(self) -> EngineState:
        with self._lock:
            self.state = step(self.state)
            if self.state.finished and self.running:
                self.running = False
                logger.info("Simulation finished; auto-run stopped.")
            self._publish("step")
            return self.state

    def tick(self, elapsed_ms: int | None = None) -> EngineState:
        with self._lock:
            self.state = advance_timers(self.state, self.tick_ms if elapsed_ms is None else elapsed_ms)
            self._publish("tick")
            return self.state

    def autoplay_step(self, generation: int) -> bool:
        """
        Step on behalf of the auto-run loop.

        Dropped if auto-run is off or the step was scheduled before the last reset.
        """
        with self._lock:
            if not self.running or generation != self.generation or self.state.finished:
                return False
            self.step()
            return True

    # ---- play / pause / speed ----

    def play(self) -> None:
        with self._lock:
            if self.state.finished:
                return
            self.running = True
            logger.info("Auto-run started (every %d ms).", self.step_interval_ms)

    def pause(self) -> None:
        with self._lock:
            if self.running:
                logger.info("Auto-run paused.")
            self.running = False

    def toggle(self) -> str:
        """Play / pause, or replay from the start when the run is finished."""
        with self._lock:
            if self.state.finished:
                self.reset(autoplay=True)
                return "replay"
            if self.running:
                self.pause()
                return "paused"
            self.play()
            return "running"

    def set_speed(self, ms: float) -> int:
        with self._lock:
            self.step_interval_ms = clamp_speed(ms)
            return self.step_interval_ms


async def run_timer_advancer(
        sim: Simulator,
        *,
        interval_ms: int | None = None,
        stop_event: asyncio.Event | None = None,
) -> None:
    """
    Fixed-cadence timer advancer.

    Every interval_ms: promote expired pending timers, decrement the others.
    """
    interval = max(1, int(interval_ms or sim.tick_ms))
    while stop_event is None or not stop_event.is_set():
        await asyncio.sleep(interval / 1000.0)
        try:
            sim.tick(interval)
        except Exception:
            logger.exception("Timer tick failed")


async def run_autoplay(
        sim: Simulator,
        *,
        poll_ms: int = 50,
        stop_event: asyncio.Event | None = None,
) -> None:
    """
    Auto-run loop.

    While the simulator is running, call step() every `sim.step_interval_ms`.
    While paused, poll for a resume every `poll_ms`.
    """
    poll_s = max(0.005, poll_ms / 1000.0)
    while stop_event is None or not stop_event.is_set():
        if not sim.running:
            await asyncio.sleep(poll_s)
            continue

        generation = sim.generation
        await asyncio.sleep(sim.step_interval_ms / 1000.0)
        try:
            sim.autoplay_step(generation)
        except Exception:
            logger.exception("Auto-run step failed")


async def _run_drivers(sim: Simulator, stop_event: asyncio.Event) -> None:
    tasks = [
        asyncio.create_task(run_timer_advancer(sim, stop_event=stop_event)),
        asyncio.create_task(run_autoplay(sim, stop_event=stop_event)),
    ]
    try:
        await stop_event.wait()
    finally:
        for t in tasks:
            t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


@dataclass(slots=True)
class SimulationBackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except Exception:
            logger.debug("Failed to signal simulation drivers stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_simulation_in_background(sim: Simulator) -> SimulationBackgroundRunner | None:
    """
    Start the timer advancer and auto-run loops in a background thread.

    The console REPL blocks on input(), so the drivers get their own event loop.
    """
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(_run_drivers(sim, stop_event))
        finally:
            with contextlib.suppress(Exception):
                loop.stop()
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="simulation-drivers", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Simulation thread did not initialize properly.")
        return None

    logger.info("Simulation drivers started (tick=%d ms).", sim.tick_ms)
    return SimulationBackgroundRunner(thread=t, loop=loop, stop_event=stop_event)
