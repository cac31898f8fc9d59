# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from event_loop_lab.cli.bootstrap import create_initial_state
from event_loop_lab.core.state import AppState
from event_loop_lab.simulation.samples import INITIAL_FEATURES


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="event-loop-lab-test",
        # Paths (tmp per test run)
        data_dir=tmp_path,
        script_path=tmp_path / "script.js",
        snapshot_path=tmp_path / "snapshot.json",
        save_script=True,
        # Simulation
        tick_interval_ms=100,
        step_interval_ms=1000,
        autoplay=False,
        # Generator / prediction
        complexity="simple",
        features=dict(INITIAL_FEATURES),
        prediction_seed=7,
    )


@pytest.fixture()
def state(settings: SimpleNamespace) -> AppState:
    """AppState wired from the generated default sample (no saved script in tmp_path)."""
    return create_initial_state(settings=settings)
