# src/event_loop_lab/simulation/prediction.py

from __future__ import annotations

import random
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field

from .models import Task, TaskKind


def extract_logs(tasks: Iterable[Task]) -> list[str]:
    """All console.log contents of the tree, depth-first in source order."""
    logs: list[str] = []
    pending: list[Iterator[Task]] = [iter(tasks)]
    while pending:
        for task in pending[-1]:
            if task.kind == TaskKind.LOG:
                logs.append(task.content)
            if task.children:
                pending.append(iter(task.children))
                break
        else:
            pending.pop()
    return logs


@dataclass(slots=True, frozen=True)
class PredictionVerdict:
    correct: bool
    marks: list[bool]


@dataclass(slots=True)
class PredictionGame:
    """
    "Guess the output order" game.

    The learner reorders a shuffled list of the script's log messages; once the run is
    finished the list is compared, as a whole, against the actual output.
    """

    items: list[str] = field(default_factory=list)

    @classmethod
    def from_tasks(cls, tasks: Iterable[Task], rng: random.Random | None = None) -> PredictionGame:
        items = extract_logs(tasks)
        (rng or random.Random()).shuffle(items)
        return cls(items=items)

    def move(self, src: int, dst: int) -> bool:
        """Move one item from `src` to `dst`. Returns False for out-of-range indexes."""
        n = len(self.items)
        if not (0 <= src < n and 0 <= dst < n):
            return False
        item = self.items.pop(src)
        self.items.insert(dst, item)
        return True

    def verdict(self, output: Sequence[str]) -> PredictionVerdict:
        marks = [i < len(output) and output[i] == item for i, item in enumerate(self.items)]
        return PredictionVerdict(correct=list(self.items) == list(output), marks=marks)
