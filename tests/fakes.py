# tests/fakes.py

from __future__ import annotations

from dataclasses import dataclass, field

from event_loop_lab.core.ports import Snapshot, SnapshotSink


@dataclass(slots=True)
class PublishedSnapshot:
    event: str
    snapshot: Snapshot


@dataclass(slots=True)
class RecordingSink(SnapshotSink):
    """
    Fake SnapshotSink used by simulator tests.
    """

    published: list[PublishedSnapshot] = field(default_factory=list)

    def publish(self, event: str, snapshot: Snapshot) -> None:
        self.published.append(PublishedSnapshot(event=event, snapshot=snapshot))

    def events(self) -> list[str]:
        return [p.event for p in self.published]


class ExplodingSink:
    """Sink that always fails; the simulator must keep going."""

    def __init__(self) -> None:
        self.calls = 0

    def publish(self, event: str, snapshot: Snapshot) -> None:
        self.calls += 1
        raise RuntimeError("renderer crashed")
