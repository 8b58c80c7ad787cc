"""
State Store Adapters - Event log and snapshot persistence.
"""

from boardsync.adapters.state_store.jsonl import JsonlEventLog, JsonlSnapshotStore
from boardsync.adapters.state_store.memory import MemoryEventLog, MemorySnapshotStore


__all__ = [
    "JsonlEventLog",
    "JsonlSnapshotStore",
    "MemoryEventLog",
    "MemorySnapshotStore",
]
