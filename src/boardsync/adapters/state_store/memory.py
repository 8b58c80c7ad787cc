"""
In-memory State Store - Event log and snapshot store without persistence.

Used by tests and by callers that want to inspect what a run would record.
"""

from boardsync.core.ports.state_store import (
    Event,
    EventLogPort,
    Snapshot,
    SnapshotStorePort,
)


class MemoryEventLog(EventLogPort):
    """Event log kept in a list."""

    def __init__(self) -> None:
        self.events: list[Event] = []

    def append(self, event: Event) -> None:
        self.events.append(event)

    def read_all(self) -> list[Event]:
        return list(self.events)

    def of_type(self, event_type: str) -> list[Event]:
        return [event for event in self.events if event.type == event_type]


class MemorySnapshotStore(SnapshotStorePort):
    """Snapshot store kept in a list."""

    def __init__(self, initial: Snapshot | None = None) -> None:
        self.snapshots: list[Snapshot] = [initial] if initial else []

    def append(self, snapshot: Snapshot) -> None:
        self.snapshots.append(snapshot)

    def read_latest(self) -> Snapshot | None:
        return self.snapshots[-1] if self.snapshots else None
