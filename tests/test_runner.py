# tests/test_runner.py

from __future__ import annotations

import asyncio

import pytest

from event_loop_lab.simulation.engine import initial_state
from event_loop_lab.simulation.parser import parse_code
from event_loop_lab.simulation.runner import (
    SPEED_MAX_MS,
    SPEED_MIN_MS,
    Simulator,
    run_autoplay,
    run_timer_advancer,
    start_simulation_in_background,
)

from .fakes import ExplodingSink, RecordingSink

TIMER_THEN_LOG = "setTimeout(() => {\n  console.log('T');\n}, 0);\nconsole.log('A');"


def test_every_step_and_tick_publishes_a_snapshot() -> None:
    sink = RecordingSink()
    sim = Simulator(TIMER_THEN_LOG, sinks=[sink])

    sim.step()  # register timer
    sim.tick()  # promote
    sim.tick()  # nothing pending, clock only

    assert sink.events() == ["step", "tick", "tick"]
    promoted, clock_only = sink.published[1].snapshot, sink.published[2].snapshot
    assert promoted["macrotask_queue"][0]["content"] == "Timeout Callback"
    assert (promoted["clock_ms"], clock_only["clock_ms"]) == (100, 200)


def test_no_op_steps_are_published_too() -> None:
    sink = RecordingSink()
    sim = Simulator("", sinks=[sink])
    sim.step()  # pop main
    sim.step()  # finished
    sim.step()  # no-op
    assert sink.events() == ["step", "step", "step"]
    assert sink.published[-1].snapshot == sink.published[-2].snapshot
    assert sim.state.finished


def test_failing_sink_does_not_break_the_simulation() -> None:
    bad = ExplodingSink()
    sim = Simulator("console.log('A');", sinks=[bad])
    sim.step()
    assert sim.state.output == ("A",)
    assert bad.calls == 1


def test_reset_reparses_and_discards_state() -> None:
    sim = Simulator("console.log('A');")
    sim.step()
    sim.play()
    gen = sim.generation

    sim.reset("console.log('B');\nconsole.log('C');")

    assert sim.source.endswith("console.log('C');")
    assert sim.state == initial_state(parse_code(sim.source))
    assert sim.running is False
    assert sim.generation == gen + 1

    sim.reset(autoplay=True)
    assert sim.running is True
    assert sim.state.output == ()


def test_toggle_plays_pauses_and_replays() -> None:
    sim = Simulator("console.log('A');")
    assert sim.toggle() == "running"
    assert sim.toggle() == "paused"

    for _ in range(3):
        sim.step()
    assert sim.state.finished

    assert sim.toggle() == "replay"
    assert sim.running
    assert sim.state.output == ()


def test_finishing_stops_auto_run() -> None:
    sim = Simulator("console.log('A');")
    sim.play()
    for _ in range(3):
        sim.autoplay_step(sim.generation)
    assert sim.state.finished
    assert not sim.running
    assert sim.autoplay_step(sim.generation) is False


def test_play_is_ignored_once_finished() -> None:
    sim = Simulator("")
    sim.step()
    sim.step()
    sim.play()
    assert not sim.running


def test_stale_autoplay_step_is_dropped_after_reset() -> None:
    sim = Simulator("console.log('A');")
    sim.play()
    scheduled_in = sim.generation

    sim.reset(autoplay=True)
    assert sim.autoplay_step(scheduled_in) is False
    assert sim.state.output == ()
    assert sim.autoplay_step(sim.generation) is True
    assert sim.state.output == ("A",)


def test_speed_is_clamped() -> None:
    sim = Simulator("")
    assert sim.set_speed(5) == SPEED_MIN_MS
    assert sim.set_speed(99_999) == SPEED_MAX_MS
    assert sim.set_speed(700) == 700
    assert Simulator("", step_interval_ms=1).step_interval_ms == SPEED_MIN_MS


@pytest.mark.asyncio
async def test_drivers_run_script_to_completion() -> None:
    sim = Simulator(TIMER_THEN_LOG, tick_ms=1)
    sim.step_interval_ms = 1  # bypass the UI clamp to keep the test fast
    sim.play()

    ticker = asyncio.create_task(run_timer_advancer(sim, interval_ms=1))
    player = asyncio.create_task(run_autoplay(sim, poll_ms=1))

    for _ in range(400):
        if sim.state.finished:
            break
        await asyncio.sleep(0.005)

    for t in (ticker, player):
        t.cancel()
        with pytest.raises(asyncio.CancelledError):
            await t

    assert sim.state.finished
    assert list(sim.state.output) == ["A", "T"]
    assert not sim.running


@pytest.mark.asyncio
async def test_reset_during_auto_run_leaves_fresh_state() -> None:
    sim = Simulator("console.log('A');\nconsole.log('B');\nconsole.log('C');")
    sim.step_interval_ms = 1
    sim.play()

    player = asyncio.create_task(run_autoplay(sim, poll_ms=1))
    await asyncio.sleep(0.01)
    sim.reset("console.log('Z');")
    await asyncio.sleep(0.02)

    player.cancel()
    with pytest.raises(asyncio.CancelledError):
        await player

    assert sim.state == initial_state(parse_code("console.log('Z');"))


@pytest.mark.asyncio
async def test_drivers_stop_on_stop_event() -> None:
    sim = Simulator("", tick_ms=1)
    stop = asyncio.Event()
    ticker = asyncio.create_task(run_timer_advancer(sim, interval_ms=1, stop_event=stop))

    await asyncio.sleep(0.01)
    stop.set()
    await asyncio.wait_for(ticker, timeout=1.0)

    assert sim.state.clock_ms > 0


def test_background_runner_starts_and_stops() -> None:
    sim = Simulator("console.log('A');", tick_ms=1)
    runner = start_simulation_in_background(sim)
    assert runner is not None
    assert runner.thread.is_alive()

    runner.stop()
    runner.join(timeout=5.0)
    assert not runner.thread.is_alive()
