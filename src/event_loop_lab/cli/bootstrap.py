# src/event_loop_lab/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the Simulator and the prediction game into AppState,
- persists the edited script and state snapshots (optional, best-effort).
"""

from __future__ import annotations

import json
import logging
import os
import random
from pathlib import Path

from ..config import get_settings
from ..core.state import AppState, reset_session
from ..simulation.runner import Simulator
from ..simulation.samples import Complexity, generate_code, normalize_features

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.script_path.parent.mkdir(parents=True, exist_ok=True)
    settings.snapshot_path.parent.mkdir(parents=True, exist_ok=True)


def _atomic_write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(text, "utf-8")
    os.replace(tmp, path)


def create_initial_state(*, settings=None, source: str | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Script selection: explicit `source`, else the saved script (if any), else a generated sample.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    try:
        complexity = Complexity(str(getattr(settings, "complexity", "simple")).lower())
    except ValueError:
        complexity = Complexity.SIMPLE
    features = normalize_features(getattr(settings, "features", None))

    if source is None:
        source = load_script(getattr(settings, "script_path", None))
    if source is None:
        source = generate_code(complexity, features)

    sim = Simulator(
        source,
        tick_ms=getattr(settings, "tick_interval_ms", 100),
        step_interval_ms=getattr(settings, "step_interval_ms", 1000),
    )
    state = AppState(
        settings=settings,
        simulator=sim,
        rng=random.Random(getattr(settings, "prediction_seed", None)),
        complexity=complexity,
        features=features,
    )
    reset_session(state, autoplay=bool(getattr(settings, "autoplay", False)))
    return state


def load_script(raw_path) -> str | None:
    if not raw_path:
        return None
    path = Path(raw_path)
    if not path.exists():
        return None
    try:
        text = path.read_text("utf-8")
        logger.info("Loaded script: %d lines from %s", len(text.splitlines()), path)
        return text
    except Exception:
        logger.exception("Failed to load script from %s", path)
        return None


def save_script(state: AppState, raw_path=None) -> Path | None:
    if raw_path is None:
        if not getattr(state.settings, "save_script", False):
            return None
        raw_path = getattr(state.settings, "script_path", None)
    if not raw_path:
        return None
    path = Path(raw_path)
    try:
        _atomic_write(path, state.source)
        logger.info("Saved script to %s", path)
        return path
    except Exception:
        logger.exception("Failed to save script to %s", path)
        return None


def save_snapshot(state: AppState, raw_path=None) -> Path | None:
    raw_path = raw_path or getattr(state.settings, "snapshot_path", None)
    if not raw_path:
        return None
    path = Path(raw_path)
    try:
        snap = state.simulator.snapshot()
        _atomic_write(path, json.dumps(snap, ensure_ascii=False, indent=2))
        logger.info("Saved snapshot to %s", path)
        return path
    except Exception:
        logger.exception("Failed to save snapshot to %s", path)
        return None
