# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Use:
- .env (local, gitignored)
- config_local.py (local safe overrides, gitignored)

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "ELAB_APP_NAME": "App display name (default: event-loop-lab).",
    "ELAB_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Front-end
    "ELAB_CONSOLE_ENABLED": "Run the interactive console (true/false). false => headless auto-run.",
    "ELAB_AUTOPLAY": "Start in auto-run mode (true/false, default: false).",
    # Simulation cadence
    "ELAB_TICK_INTERVAL_MS": "Timer advancer tick in ms (default: 100).",
    "ELAB_STEP_INTERVAL_MS": "Auto-run step interval in ms, clamped to 100..2000 (default: 1000).",
    # Sample generator / prediction
    "ELAB_COMPLEXITY": "Generated sample shape: simple | complex (default: simple).",
    "ELAB_FEATURES": (
        "Comma/space separated generator features "
        "(log timeout promise microtask nextTick setImmediate; default: log timeout promise)."
    ),
    "ELAB_PREDICTION_SEED": "Optional integer seed for the prediction shuffle.",
    # Paths (gitignored)
    "ELAB_SAVE_SCRIPT": "Save the current script on exit (true/false, default: true).",
    "ELAB_DATA_DIR": "Local data directory (default: .local/event-loop-lab).",
    "ELAB_SCRIPT_PATH": "Script file loaded at start and saved on exit (default: <data_dir>/script.js).",
    "ELAB_SNAPSHOT_PATH": "Default target of /json (default: <data_dir>/snapshot.json).",
}
