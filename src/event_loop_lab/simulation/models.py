# src/event_loop_lab/simulation/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class TaskKind(StrEnum):
    """
    Kind of a parsed instruction.

    Notes:
    - TIMER covers both setTimeout and setImmediate; they differ only by display label.
    - MAIN is used for the synthetic frame wrapping the top-level script.
    """

    LOG = "log"
    TIMER = "timer"
    MICROTASK = "microtask"
    MAIN = "main"


@dataclass(slots=True, frozen=True)
class Task:
    id: str
    kind: TaskKind
    content: str

    delay: int | None = None
    children: tuple[Task, ...] | None = None
    line: int | None = None


@dataclass(slots=True, frozen=True)
class Frame:
    """
    One call-stack entry.

    `instructions` references the body tuple of some Task (or the top-level tree).
    It is never copied; advancing the cursor produces a new Frame over the same tuple.
    """

    id: str
    name: str
    kind: TaskKind
    instructions: tuple[Task, ...]
    cursor: int = 0
    highlight_line: int | None = None

    @property
    def exhausted(self) -> bool:
        return self.cursor >= len(self.instructions)

    @property
    def current(self) -> Task | None:
        if self.exhausted:
            return None
        return self.instructions[self.cursor]


@dataclass(slots=True, frozen=True)
class PendingTimer:
    task: Task
    created_at: int
    remaining: int

    @property
    def id(self) -> str:
        return self.task.id

    @property
    def content(self) -> str:
        return self.task.content


@dataclass(slots=True, frozen=True)
class EngineState:
    program: tuple[Task, ...] = ()
    stack: tuple[Frame, ...] = ()
    pending: tuple[PendingTimer, ...] = ()
    microtasks: tuple[Task, ...] = ()
    macrotasks: tuple[Task, ...] = ()
    output: tuple[str, ...] = ()
    finished: bool = False
    active_line: int | None = None

    # Virtual clock (advanced by ticks only) and the id counter for microtask entries.
    clock_ms: int = 0
    seq: int = 0

    @property
    def idle(self) -> bool:
        """Nothing runnable right now; only pending timers may still arrive."""
        return not self.stack and not self.microtasks and not self.macrotasks


@dataclass(slots=True, frozen=True)
class Step:
    pass


@dataclass(slots=True, frozen=True)
class Tick:
    elapsed_ms: int = field(default=100)


Event = Step | Tick
