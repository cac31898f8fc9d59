# config_local.example.py
#
# Copy to config_local.py (gitignored) for local overrides.
# Only a few explicit names are honored; everything else belongs in .env.

CONSOLE_ENABLED = True
AUTOPLAY = False
STEP_INTERVAL_MS = 500
