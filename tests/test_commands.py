# tests/test_commands.py

from __future__ import annotations

import json

from event_loop_lab.cli.commands import CommandRegistry, registry
from event_loop_lab.simulation.samples import Complexity


def _finish(state) -> None:
    for _ in range(200):
        if state.simulator.state.finished:
            return
        registry.handle(state, "/step")
        registry.handle(state, "/tick")


def test_command_registry_routes_2_and_3_params(state) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}
    notes: list[str] = []

    def h2(state, args):
        called["h2"] += 1
        return "h2:" + ",".join(args)

    def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3"

    reg.register("a", h2, "a", aliases=["aa"])
    reg.register("b", h3, "b")

    assert reg.handle(state, "/a x y") == "h2:x,y"
    assert reg.handle(state, "/AA") == "h2:"
    assert reg.handle(state, "/b", emit=notes.append) == "h3"
    assert called == {"h2": 2, "h3": 1}
    assert notes == ["note"]


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "Empty command" in (reg.handle(state, "/") or "")


def test_help_lists_commands(state) -> None:
    text = registry.handle(state, "/help") or ""
    for name in ("/step", "/tick", "/run", "/predict", "/edit"):
        assert name in text


def test_step_reports_progress_and_pauses(state) -> None:
    state.simulator.play()
    notes: list[str] = []
    reply = registry.handle(state, "/step 2", emit=notes.append) or ""

    assert reply.startswith("Stepped 2x.")
    assert len(notes) == 2
    assert state.simulator.running is False
    assert state.simulator.state.output == ("Start",)


def test_tick_promotes_timer(state) -> None:
    registry.handle(state, "/step 3")  # Start, promise, timeout
    assert len(state.simulator.state.pending) == 1
    reply = registry.handle(state, "/tick") or ""
    assert reply.startswith("Ticked 100 ms.")
    assert state.simulator.state.pending == ()
    assert len(state.simulator.state.macrotasks) == 1


def test_run_toggles_and_replays(state) -> None:
    assert "Running" in (registry.handle(state, "/run") or "")
    assert state.simulator.running
    assert registry.handle(state, "/pause") == "Paused."
    assert not state.simulator.running

    _finish(state)
    assert state.simulator.state.finished
    assert "Replaying" in (registry.handle(state, "/run") or "")
    assert state.simulator.running
    assert state.simulator.state.output == ()


def test_predict_check_requires_finished_run(state) -> None:
    assert "not finished" in (registry.handle(state, "/predict check") or "")

    _finish(state)
    state.prediction.items = list(state.simulator.state.output)
    reply = registry.handle(state, "/predict check") or ""
    assert reply.startswith("CORRECT")

    registry.handle(state, "/predict move 1 4")
    assert (registry.handle(state, "/predict check") or "").startswith("INCORRECT")


def test_predict_move_validates_positions(state) -> None:
    assert "between 1 and 4" in (registry.handle(state, "/predict move 0 9") or "")
    first = state.prediction.items[0]
    registry.handle(state, "/predict move 1 2")
    assert state.prediction.items[1] == first


def test_gen_and_feature(state) -> None:
    reply = registry.handle(state, "/feature nextTick on") or ""
    assert "ON" in reply
    assert state.features["nextTick"] is True
    assert "Unknown feature" in (registry.handle(state, "/feature bogus") or "")

    registry.handle(state, "/gen complex")
    assert state.complexity == Complexity.COMPLEX
    assert "Next Tick inside Timeout" in state.source
    assert "Usage" in (registry.handle(state, "/gen medium") or "")


def test_speed_is_clamped(state) -> None:
    assert registry.handle(state, "/speed 5") == "Speed set to 100 ms per step."
    assert registry.handle(state, "/speed 9000") == "Speed set to 2000 ms per step."
    assert registry.handle(state, "/speed") == "Speed: 2000 ms per step."


def test_load_save_and_json(state, tmp_path) -> None:
    script = tmp_path / "in.js"
    script.write_text("console.log('loaded');", "utf-8")
    registry.handle(state, f"/load {script}")
    assert state.source == "console.log('loaded');"
    assert "Could not read" in (registry.handle(state, f"/load {tmp_path / 'missing.js'}") or "")

    out = tmp_path / "out.js"
    assert "Saved script" in (registry.handle(state, f"/save {out}") or "")
    assert out.read_text("utf-8") == "console.log('loaded');"

    snap_path = tmp_path / "snap.json"
    registry.handle(state, f"/json {snap_path}")
    data = json.loads(snap_path.read_text("utf-8"))
    assert data["call_stack"][0]["name"] == "main()"

    printed = json.loads(registry.handle(state, "/json") or "{}")
    assert printed["finished"] is False
