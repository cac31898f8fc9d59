# tests/test_samples.py

from __future__ import annotations

import pytest

from event_loop_lab.simulation.engine import initial_state, run_until_finished
from event_loop_lab.simulation.parser import parse_code
from event_loop_lab.simulation.samples import INITIAL_FEATURES, generate_code, normalize_features


def _output(code: str) -> list[str]:
    return list(run_until_finished(initial_state(parse_code(code))).output)


def test_default_simple_sample_text() -> None:
    assert generate_code("simple") == (
        "console.log('Start');\n"
        "\n"
        "Promise.resolve().then(() => {\n"
        "  console.log('Promise');\n"
        "});\n"
        "\n"
        "setTimeout(() => {\n"
        "  console.log('Timeout');\n"
        "}, 0);\n"
        "\n"
        "console.log('End');"
    )


def test_default_samples_run_in_event_loop_order() -> None:
    assert _output(generate_code("simple", INITIAL_FEATURES)) == ["Start", "End", "Promise", "Timeout"]
    assert _output(generate_code("complex", INITIAL_FEATURES)) == [
        "Start",
        "End",
        "Promise 1",
        "Timeout 1",
        "Promise inside Timeout",
        "Timeout inside Promise",
    ]


def test_simple_sample_with_every_feature() -> None:
    features = dict.fromkeys(INITIAL_FEATURES, True)
    assert _output(generate_code("simple", features)) == [
        "Start",
        "End",
        "Next Tick",
        "Promise",
        "Microtask",
        "Timeout",
        "Immediate",
    ]


def test_without_log_bodies_are_placeholders() -> None:
    features = {**INITIAL_FEATURES, "log": False}
    code = generate_code("simple", features)
    assert "console.log" not in code
    assert "// code" in code
    assert _output(code) == []
    assert len(parse_code(code)) == 2


@pytest.mark.parametrize("complexity", ["weird", "", "SIMPLE"])
def test_unknown_complexity_falls_back_to_simple(complexity: str) -> None:
    assert generate_code(complexity) == generate_code("simple")


def test_normalize_features_keeps_known_keys_only() -> None:
    f = normalize_features({"timeout": 1, "bogus": True})
    assert f["timeout"] is True
    assert "bogus" not in f
    assert f["log"] is False
