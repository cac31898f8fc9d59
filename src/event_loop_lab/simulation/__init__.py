"""
Simulation subsystem.

Components:
- models.py: immutable data structures (Task, Frame, PendingTimer, EngineState, events)
- parser.py: text -> Task tree
- engine.py: pure step transition + snapshots
- timers.py: tick-driven promotion of pending timers into the macrotask queue
- runner.py: lock-guarded state owner and async auto-run / tick drivers
- samples.py: sample script generator
- prediction.py: output prediction game
"""
