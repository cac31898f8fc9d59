# src/event_loop_lab/simulation/parser.py

from __future__ import annotations

"""
Script parser.

Extracts a Task tree from a small subset of JavaScript:
- console.log('msg')
- setTimeout(() => { ... }, delay)
- setImmediate(() => { ... })
- Promise.resolve().then(() => { ... }) / queueMicrotask(() => { ... }) / process.nextTick(() => { ... })

Everything else is skipped. Parsing never raises: an unterminated callback body is
truncated to the lines that are available.
"""

import itertools
import logging
import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from .models import Task, TaskKind

logger = logging.getLogger(__name__)

LOG_RE = re.compile(r"console\.log\((['\"`])(.+?)\1\)")
TIMEOUT_RE = re.compile(r"setTimeout\(\s*\(\)\s*=>\s*\{\s*$")
IMMEDIATE_RE = re.compile(r"setImmediate\(\s*\(\)\s*=>\s*\{\s*$")
MICROTASK_RE = re.compile(
    r"(Promise\.resolve\(\)\.then|queueMicrotask|process\.nextTick)\(\s*\(\)\s*=>\s*\{\s*$"
)
DELAY_RE = re.compile(r"\},\s*(\d+)\s*\)")

MICROTASK_LABELS = {
    "Promise.resolve().then": "Promise.then",
    "queueMicrotask": "queueMicrotask",
    "process.nextTick": "process.nextTick",
}


def parse_code(code: str) -> tuple[Task, ...]:
    """
    Parse `code` into the top-level Task sequence.

    Identifiers come from a counter owned by this call, so parsing the same text twice
    yields identical trees.
    """
    lines = (code or "").split("\n")
    ids = (f"task-{n}" for n in itertools.count())
    tasks, _ = _parse_range(lines, 0, len(lines), ids)
    logger.debug("Parsed %d top-level tasks from %d lines", len(tasks), len(lines))
    return tasks




@dataclass(slots=True)
class _OpenBody:
    """A callback whose body is being parsed; closed when its line range is consumed."""

    kind: TaskKind
    content: str
    opening: int
    close: int
    parent: list[Task]
    parent_end: int


def _callback_header(raw: str) -> tuple[TaskKind, str] | None:
    if TIMEOUT_RE.search(raw):
        return TaskKind.TIMER, "setTimeout"
    if IMMEDIATE_RE.search(raw):
        return TaskKind.TIMER, "setImmediate"
    m = MICROTASK_RE.search(raw)
    if m:
        return TaskKind.MICROTASK, MICROTASK_LABELS[m.group(1)]
    return None


def _parse_range(
        lines: Sequence[str],
        start: int,
        end: int,
        ids: Iterator[str],
) -> tuple[tuple[Task, ...], int]:
    """
    Parse lines[start:end]; return (tasks, next unconsumed index).

    Nested bodies are tracked on an explicit stack, so nesting depth is bounded only by
    the input length.
    """
    root: list[Task] = []
    open_bodies: list[_OpenBody] = []
    out, i, limit = root, start, end

    while True:
        if i < limit:
            raw = lines[i].strip()
            if not raw or raw.startswith("//"):
                i += 1
                continue

            m = LOG_RE.search(raw)
            if m:
                out.append(Task(id=next(ids), kind=TaskKind.LOG, content=m.group(2), line=i + 1))
                i += 1
                continue

            header = _callback_header(raw)
            if header is None:
                logger.debug("Skipping unrecognized line %d: %r", i + 1, raw)
                i += 1
                continue

            kind, content = header
            close = find_closing_line(lines, i, limit)
            open_bodies.append(
                _OpenBody(kind=kind, content=content, opening=i, close=close, parent=out, parent_end=limit)
            )
            out, i, limit = [], i + 1, close
            continue

        if not open_bodies:
            return tuple(root), i

        body = open_bodies.pop()
        body.parent.append(_close_body(body, tuple(out), lines, ids))
        out, i, limit = body.parent, body.close + 1, body.parent_end


def _close_body(body: _OpenBody, children: tuple[Task, ...], lines: Sequence[str], ids: Iterator[str]) -> Task:
    delay = None
    if body.kind == TaskKind.TIMER:
        delay = 0
        if body.content == "setTimeout":
            closing = lines[body.close] if body.close < body.parent_end else ""
            dm = DELAY_RE.search(closing)
            delay = int(dm.group(1)) if dm else 0
    return Task(
        id=next(ids),
        kind=body.kind,
        content=body.content,
        delay=delay,
        children=children,
        line=body.opening + 1,
    )


def find_closing_line(lines: Sequence[str], opening: int, end: int) -> int:
    """
    Index of the line that closes the callback opened at `opening`, or `end` if the
    body is unterminated.

    Brace counting is textual: braces inside string literals are counted too.
    """
    balance = 1
    for j in range(opening + 1, end):
        balance += lines[j].count("{") - lines[j].count("}")
        if balance <= 0:
            return j
    return end
