# src/event_loop_lab/core/state.py

from __future__ import annotations

import random
from dataclasses import dataclass, field

from ..simulation.prediction import PredictionGame
from ..simulation.runner import Simulator
from ..simulation.samples import INITIAL_FEATURES, Complexity


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: object

    simulator: Simulator
    rng: random.Random

    complexity: Complexity = Complexity.SIMPLE
    features: dict[str, bool] = field(default_factory=lambda: dict(INITIAL_FEATURES))
    prediction: PredictionGame = field(default_factory=PredictionGame)

    @property
    def source(self) -> str:
        return self.simulator.source


def reset_session(state: AppState, source: str | None = None, *, autoplay: bool = False) -> None:
    """Re-parse the script, rebuild the engine state and reshuffle the prediction."""
    sim = state.simulator
    sim.reset(source, autoplay=autoplay)
    state.prediction = PredictionGame.from_tasks(sim.program, rng=state.rng)
