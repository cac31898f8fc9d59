# src/event_loop_lab/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Nothing required at import time; every value has a default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

ENV_PREFIX = "ELAB"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


# A local .env never overrides variables already set in the environment.
load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    parts = [p.strip() for p in raw.replace(",", " ").split() if p.strip()]
    return parts


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


DEFAULT_FEATURES = ["log", "timeout", "promise"]


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Front-end ----
    console_enabled: bool
    autoplay: bool

    # ---- Simulation cadence ----
    tick_interval_ms: int
    step_interval_ms: int

    # ---- Sample generator / prediction ----
    complexity: str
    features: Dict[str, bool]
    prediction_seed: Optional[int]

    # ---- Local data paths (ignored by git) ----
    save_script: bool
    data_dir: Path
    script_path: Path
    snapshot_path: Path

    @staticmethod
    def from_env() -> "Settings":
        # Imported lazily: config must stay importable without the simulation package.
        from .simulation.samples import FEATURE_KEYS

        app_name = _env(_k("APP_NAME"), "event-loop-lab") or "event-loop-lab"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)
        autoplay = _env_bool(_k("AUTOPLAY"), False)

        tick_interval_ms = max(1, _env_int(_k("TICK_INTERVAL_MS"), 100))
        step_interval_ms = _env_int(_k("STEP_INTERVAL_MS"), 1000)

        complexity = _env(_k("COMPLEXITY"), "simple").strip().lower() or "simple"
        enabled = {f.lower() for f in _env_list(_k("FEATURES"), DEFAULT_FEATURES)}
        features = {key: key.lower() in enabled for key in FEATURE_KEYS}
        prediction_seed = _env_optional_int(_k("PREDICTION_SEED"))

        save_script = _env_bool(_k("SAVE_SCRIPT"), True)
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/event-loop-lab"))
        script_path = _env_path(_k("SCRIPT_PATH"), data_dir / "script.js")
        snapshot_path = _env_path(_k("SNAPSHOT_PATH"), data_dir / "snapshot.json")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            autoplay=autoplay,
            tick_interval_ms=tick_interval_ms,
            step_interval_ms=step_interval_ms,
            complexity=complexity,
            features=features,
            prediction_seed=prediction_seed,
            save_script=save_script,
            data_dir=data_dir,
            script_path=script_path,
            snapshot_path=snapshot_path,
        )


SETTINGS = Settings.from_env()

# ---- Optional local overrides (never committed) ----
# Prefer .env; use config_local.py only for a few explicit overrides.
try:
    import config_local as _config_local  # type: ignore
except ImportError:
    _config_local = None

if _config_local is not None:
    if hasattr(_config_local, "CONSOLE_ENABLED"):
        object.__setattr__(SETTINGS, "console_enabled", bool(_config_local.CONSOLE_ENABLED))  # type: ignore[misc]
    if hasattr(_config_local, "AUTOPLAY"):
        object.__setattr__(SETTINGS, "autoplay", bool(_config_local.AUTOPLAY))  # type: ignore[misc]
    if hasattr(_config_local, "STEP_INTERVAL_MS"):
        object.__setattr__(SETTINGS, "step_interval_ms", int(_config_local.STEP_INTERVAL_MS))  # type: ignore[misc]


def get_settings() -> Settings:
    return SETTINGS
