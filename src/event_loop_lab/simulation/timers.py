# src/event_loop_lab/simulation/timers.py

from __future__ import annotations

import logging
from dataclasses import replace

from .models import EngineState, PendingTimer, Task

logger = logging.getLogger(__name__)

TIMEOUT_CALLBACK = "Timeout Callback"


def promoted_entry(timer: PendingTimer) -> Task:
    """Macrotask queue entry for an expired timer; keeps id, body and line."""
    task = timer.task
    content = "setImmediate" if task.content == "setImmediate" else TIMEOUT_CALLBACK
    return replace(task, content=content)


def advance_timers(state: EngineState, elapsed_ms: int) -> EngineState:
    """
    One tick of the timer advancer.

    For every pending timer, in registration order:
    - remaining <= 0 -> move it to the macrotask queue,
    - otherwise      -> decrement remaining by `elapsed_ms`.

    This is the only way entries leave the pending set.
    """
    elapsed = max(0, int(elapsed_ms))
    clock = state.clock_ms + elapsed

    if not state.pending:
        return replace(state, clock_ms=clock)

    still_pending: list[PendingTimer] = []
    promoted: list[Task] = []

    for timer in state.pending:
        if timer.remaining <= 0:
            promoted.append(promoted_entry(timer))
        else:
            still_pending.append(replace(timer, remaining=timer.remaining - elapsed))

    if promoted:
        logger.debug("Promoted %d timer(s) to macrotask queue: %s", len(promoted), [t.id for t in promoted])

    return replace(
        state,
        pending=tuple(still_pending),
        macrotasks=state.macrotasks + tuple(promoted),
        clock_ms=clock,
    )
