# src/event_loop_lab/simulation/samples.py

"""
Sample script generator.

Fills fixed templates according to a complexity selector and a set of feature flags.
The output always stays inside the grammar understood by parser.py.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum


class Complexity(StrEnum):
    SIMPLE = "simple"
    COMPLEX = "complex"


FEATURE_KEYS = ("log", "timeout", "promise", "microtask", "nextTick", "setImmediate")

FEATURE_LABELS = {
    "log": "Log",
    "timeout": "setTimeout",
    "promise": "Promise",
    "microtask": "queueMicrotask",
    "nextTick": "process.nextTick",
    "setImmediate": "setImmediate",
}

INITIAL_FEATURES: dict[str, bool] = {
    "log": True,
    "timeout": True,
    "promise": True,
    "microtask": False,
    "nextTick": False,
    "setImmediate": False,
}


def normalize_features(features: Mapping[str, bool] | None) -> dict[str, bool]:
    """Known keys only; missing keys are off."""
    features = features or {}
    return {k: bool(features.get(k, False)) for k in FEATURE_KEYS}


def _body(log: bool, text: str, indent: str = "  ") -> str:
    return f"{indent}console.log('{text}');" if log else f"{indent}// code"


def _simple(f: dict[str, bool]) -> list[str]:
    log = f["log"]
    parts: list[str] = []
    if f["nextTick"]:
        parts.append(f"process.nextTick(() => {{\n{_body(log, 'Next Tick')}\n}});")
    if f["promise"]:
        parts.append(f"Promise.resolve().then(() => {{\n{_body(log, 'Promise')}\n}});")
    if f["microtask"]:
        parts.append(f"queueMicrotask(() => {{\n{_body(log, 'Microtask')}\n}});")
    if f["timeout"]:
        parts.append(f"setTimeout(() => {{\n{_body(log, 'Timeout')}\n}}, 0);")
    if f["setImmediate"]:
        parts.append(f"setImmediate(() => {{\n{_body(log, 'Immediate')}\n}});")
    return parts


def _complex(f: dict[str, bool]) -> list[str]:
    log = f["log"]
    parts: list[str] = []

    # Timeout with nested microtasks
    if f["timeout"]:
        inner = ""
        if log:
            inner += "  console.log('Timeout 1');\n"
        if f["promise"]:
            inner += (
                "  Promise.resolve().then(() => {\n"
                f"{_body(log, 'Promise inside Timeout', '    ')}\n"
                "  });"
            )
        if f["nextTick"]:
            inner += (
                "\n  process.nextTick(() => {\n"
                f"{_body(log, 'Next Tick inside Timeout', '    ')}\n"
                "  });"
            )
        parts.append(f"setTimeout(() => {{\n{inner}\n}}, 0);")

    # Promise with nested timeout
    if f["promise"]:
        inner = ""
        if log:
            inner += "  console.log('Promise 1');\n"
        if f["timeout"]:
            inner += (
                "  setTimeout(() => {\n"
                f"{_body(log, 'Timeout inside Promise', '    ')}\n"
                "  }, 0);"
            )
        parts.append(f"Promise.resolve().then(() => {{\n{inner}\n}});")

    # Immediate with nested microtask
    if f["setImmediate"]:
        inner = ""
        if log:
            inner += "  console.log('Immediate 1');\n"
        if f["microtask"]:
            inner += (
                "  queueMicrotask(() => {\n"
                f"{_body(log, 'Microtask inside Immediate', '    ')}\n"
                "  });"
            )
        parts.append(f"setImmediate(() => {{\n{inner}\n}});")

    return parts


def generate_code(complexity: Complexity | str, features: Mapping[str, bool] | None = None) -> str:
    f = normalize_features(INITIAL_FEATURES if features is None else features)
    try:
        level = Complexity(str(complexity).lower())
    except ValueError:
        level = Complexity.SIMPLE

    parts: list[str] = []
    if f["log"]:
        parts.append("console.log('Start');")

    parts.extend(_simple(f) if level == Complexity.SIMPLE else _complex(f))

    if f["log"]:
        parts.append("console.log('End');")

    return "\n\n".join(parts)
