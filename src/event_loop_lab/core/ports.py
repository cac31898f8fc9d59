# src/event_loop_lab/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the simulation.

The simulator publishes state snapshots to Protocols instead of concrete renderers.
This keeps front-ends swappable and makes testing easier.
"""

from typing import Any, Protocol

Snapshot = dict[str, Any]
# JSON-ready view produced by simulation.engine.snapshot().


class SnapshotSink(Protocol):
    """
    Renderer-side port: receives a snapshot after each applied change.

    `event` is "step", "tick" or "reset". The sink decides what (if anything) to show;
    it must not call back into the simulator.
    """

    def publish(self, event: str, snapshot: Snapshot) -> None: ...
