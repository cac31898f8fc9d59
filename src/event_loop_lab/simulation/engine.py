# src/event_loop_lab/simulation/engine.py

from __future__ import annotations

"""
Execution engine.

The engine is a pure transition function over EngineState:

    transition(state, Step())      -> execute one instruction OR dequeue one callback
    transition(state, Tick(ms))    -> advance pending timers (see timers.py)

Scheduling rules reproduced here:
- the call stack is drained before any queue is consulted,
- the microtask queue is preferred over the macrotask queue,
- both queues are FIFO.
"""

import logging
from collections.abc import Iterable
from dataclasses import replace
from typing import Any

from .models import EngineState, Event, Frame, PendingTimer, Step, Task, TaskKind, Tick
from .timers import advance_timers

logger = logging.getLogger(__name__)

MAIN_FRAME_ID = "main"
MAIN_FRAME_NAME = "main()"

PROMISE_CALLBACK = "Promise Callback"


def initial_state(program: tuple[Task, ...]) -> EngineState:
    """Fresh state with the whole script wrapped in a `main()` frame."""
    main = Frame(
        id=MAIN_FRAME_ID,
        name=MAIN_FRAME_NAME,
        kind=TaskKind.MAIN,
        instructions=program,
        cursor=0,
        highlight_line=None,
    )
    return EngineState(program=program, stack=(main,))


def microtask_label(registration: Task) -> str:
    if registration.content in ("process.nextTick", "queueMicrotask"):
        return registration.content
    return PROMISE_CALLBACK


def macrotask_frame_name(entry: Task) -> str:
    return "setImmediate" if entry.content == "setImmediate" else "setTimeout"


def step(state: EngineState) -> EngineState:
    """
    Single step of the event loop.

    Performs at most one instruction execution or one dequeue, never both.
    """
    if state.finished:
        return state

    if state.stack:
        return _execute_top(state)

    if state.microtasks:
        entry, rest = state.microtasks[0], state.microtasks[1:]
        frame = _callback_frame(entry, name=entry.content, kind=TaskKind.MICROTASK)
        logger.debug("Dequeued microtask %s (%s)", entry.id, entry.content)
        return replace(
            state,
            stack=(frame,),
            microtasks=rest,
            active_line=entry.line,
        )

    if state.macrotasks:
        entry, rest = state.macrotasks[0], state.macrotasks[1:]
        frame = _callback_frame(entry, name=macrotask_frame_name(entry), kind=TaskKind.TIMER)
        logger.debug("Dequeued macrotask %s (%s)", entry.id, entry.content)
        return replace(
            state,
            stack=(frame,),
            macrotasks=rest,
            active_line=entry.line,
        )

    if state.idle and not state.pending:
        logger.debug("Event loop finished; output=%s", list(state.output))
        return replace(state, finished=True, active_line=None)

    # Idle: waiting for a pending timer to be promoted.
    return state


def _callback_frame(entry: Task, *, name: str, kind: TaskKind) -> Frame:
    return Frame(
        id=entry.id,
        name=name,
        kind=kind,
        instructions=entry.children or (),
        cursor=0,
        highlight_line=entry.line,
    )


def _execute_top(state: EngineState) -> EngineState:
    top = state.stack[-1]
    below = state.stack[:-1]

    if top.exhausted:
        # Callback returned.
        return replace(state, stack=below, active_line=None)

    task = top.instructions[top.cursor]
    stack = below + (replace(top, cursor=top.cursor + 1),)
    active_line = task.line if task.line else state.active_line

    if task.kind == TaskKind.LOG:
        return replace(
            state,
            stack=stack,
            output=state.output + (task.content,),
            active_line=active_line,
        )

    if task.kind == TaskKind.TIMER:
        timer = PendingTimer(task=task, created_at=state.clock_ms, remaining=task.delay or 0)
        return replace(
            state,
            stack=stack,
            pending=state.pending + (timer,),
            active_line=active_line,
        )

    if task.kind == TaskKind.MICROTASK:
        entry = Task(
            id=f"micro-{state.seq}",
            kind=TaskKind.MICROTASK,
            content=microtask_label(task),
            children=task.children or (),
            line=task.line,
        )
        return replace(
            state,
            stack=stack,
            microtasks=state.microtasks + (entry,),
            active_line=active_line,
            seq=state.seq + 1,
        )

    # MAIN never appears inside an instruction list; treat as a no-op instruction.
    return replace(state, stack=stack, active_line=active_line)


def transition(state: EngineState, event: Event) -> EngineState:
    if isinstance(event, Step):
        return step(state)
    if isinstance(event, Tick):
        return advance_timers(state, event.elapsed_ms)
    raise TypeError(f"Unknown event: {event!r}")


def replay(state: EngineState, events: Iterable[Event]) -> EngineState:
    for event in events:
        state = transition(state, event)
    return state


def run_until_finished(
        state: EngineState,
        *,
        tick_ms: int = 100,
        steps_per_tick: int = 1,
        max_rounds: int = 100_000,
) -> EngineState:
    """
    Deterministic driver: `steps_per_tick` steps, then one tick, until finished.

    `max_rounds` bounds the loop; the state reached so far is returned when it runs out.
    """
    steps_per_tick = max(1, int(steps_per_tick))
    for _ in range(max(0, int(max_rounds))):
        if state.finished:
            break
        for _ in range(steps_per_tick):
            state = step(state)
        state = advance_timers(state, tick_ms)
    return state


def _task_view(task: Task) -> dict[str, Any]:
    return {"id": task.id, "content": task.content, "line": task.line}


def snapshot(state: EngineState) -> dict[str, Any]:
    """JSON-ready view of the state for renderers."""
    return {
        "call_stack": [
            {
                "id": f.id,
                "name": f.name,
                "kind": f.kind.value,
                "cursor": f.cursor,
                "length": len(f.instructions),
                "current": f.current.content if f.current is not None else "executing...",
                "highlight_line": f.highlight_line,
            }
            for f in state.stack
        ],
        "web_apis": [
            {
                "id": p.id,
                "content": p.content,
                "delay": p.task.delay or 0,
                "created_at": p.created_at,
                "remaining_ms": p.remaining,
            }
            for p in state.pending
        ],
        "microtask_queue": [_task_view(t) for t in state.microtasks],
        "macrotask_queue": [_task_view(t) for t in state.macrotasks],
        "output": list(state.output),
        "finished": state.finished,
        "active_line": state.active_line,
        "clock_ms": state.clock_ms,
    }
