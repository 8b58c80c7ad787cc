"""
JSONL State Store - File-backed event log and snapshot store.

Both stores append one JSON object per line. Files and their parent
directories are created on first write. Unparsable lines are skipped with a
warning so that one torn write never blocks the next run.
"""

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from boardsync.core.ports.state_store import (
    Event,
    EventLogPort,
    Snapshot,
    SnapshotStorePort,
)


def _append_line(path: Path, record: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        f.write(json.dumps(record, ensure_ascii=False) + "\n")


def _read_records(path: Path, logger: logging.Logger) -> Iterator[dict[str, Any]]:
    if not path.exists():
        return
    with open(path, encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning(f"Skipping unparsable line {line_number} in {path}: {e}")
                continue
            if isinstance(record, dict):
                yield record


class JsonlEventLog(EventLogPort):
    """Append-only event log in a JSONL file."""

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()
        self.logger = logging.getLogger("JsonlEventLog")

    def append(self, event: Event) -> None:
        _append_line(self.path, event.to_dict())
        self.logger.debug(f"Event {event.type}: {event.payload}")

    def read_all(self) -> list[Event]:
        return [Event.from_dict(record) for record in _read_records(self.path, self.logger)]


class JsonlSnapshotStore(SnapshotStorePort):
    """
    Snapshot log in a JSONL file.

    Every run appends a full snapshot; readers only care about the last
    parsable line.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()
        self.logger = logging.getLogger("JsonlSnapshotStore")

    def append(self, snapshot: Snapshot) -> None:
        _append_line(self.path, snapshot.to_dict())
        self.logger.debug(f"Wrote snapshot at {snapshot.ts}")

    def read_latest(self) -> Snapshot | None:
        latest: dict[str, Any] | None = None
        for record in _read_records(self.path, self.logger):
            latest = record
        return Snapshot.from_dict(latest) if latest is not None else None
