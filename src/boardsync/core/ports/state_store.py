"""
State Store Port - Append-only event log and latest-wins snapshot store.

The poller has no change feed of its own. Two logs give it one:
- The event log is an audit trail and a feed for downstream consumers
  (worktree lifecycle). It is never replayed to rebuild state.
- The snapshot log records what the last run observed. Only the newest
  record is ever read; it is the baseline for detecting local list moves.

Records are serialized with camelCase keys to stay readable by the other
tools that consume the same files.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def seconds_since(timestamp: str | None, now: datetime | None = None) -> float | None:
    """Age of an ISO-8601 timestamp in seconds; None when missing or unparsable."""
    if not timestamp:
        return None
    try:
        then = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return None
    if then.tzinfo is None:
        then = then.replace(tzinfo=timezone.utc)
    return ((now or datetime.now(timezone.utc)) - then).total_seconds()


# =============================================================================
# Records
# =============================================================================


@dataclass(frozen=True)
class Event:
    """One immutable event line."""

    ts: str
    type: str
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"ts": self.ts, "type": self.type, "payload": dict(self.payload)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Event:
        return cls(
            ts=str(data.get("ts", "")),
            type=str(data.get("type", "")),
            payload=dict(data.get("payload") or {}),
        )


@dataclass(frozen=True)
class CardSnapshot:
    """What the outbound pass observed for one card."""

    list_id: str
    labels: tuple[str, ...] = ()
    sync_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"listId": self.list_id, "labels": list(self.labels), "syncUrl": self.sync_url}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CardSnapshot:
        return cls(
            list_id=str(data.get("listId", "")),
            labels=tuple(data.get("labels") or ()),
            sync_url=data.get("syncUrl"),
        )


@dataclass(frozen=True)
class ProjectMetaSnapshot:
    """Cached ids of the project Status field."""

    project_id: str
    status_field_id: str
    status_options: dict[str, str]
    fetched_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "projectId": self.project_id,
            "statusFieldId": self.status_field_id,
            "statusOptions": dict(self.status_options),
            "fetchedAt": self.fetched_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectMetaSnapshot:
        return cls(
            project_id=str(data.get("projectId", "")),
            status_field_id=str(data.get("statusFieldId", "")),
            status_options=dict(data.get("statusOptions") or {}),
            fetched_at=str(data.get("fetchedAt", "")),
        )


@dataclass(frozen=True)
class ProjectSnapshot:
    """Incremental-fetch cursor and cached metadata for the GitHub project."""

    last_sync_at: str | None = None
    full_refresh_at: str | None = None
    items: dict[str, dict[str, str]] = field(default_factory=dict)
    meta: ProjectMetaSnapshot | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "lastSyncAt": self.last_sync_at,
            "fullRefreshAt": self.full_refresh_at,
            "items": {key: dict(value) for key, value in self.items.items()},
            "meta": self.meta.to_dict() if self.meta else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectSnapshot:
        meta = data.get("meta")
        return cls(
            last_sync_at=data.get("lastSyncAt"),
            full_refresh_at=data.get("fullRefreshAt"),
            items=dict(data.get("items") or {}),
            meta=ProjectMetaSnapshot.from_dict(meta) if meta else None,
        )


@dataclass(frozen=True)
class Snapshot:
    """
    The latest observation of the board (and project cursor).

    ``trello`` is None when no outbound pass has run yet, which is
    different from an empty board.
    """

    ts: str
    trello: dict[str, CardSnapshot] | None = None
    project: ProjectSnapshot | None = None
    worktrees: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "ts": self.ts,
            "trello": (
                {card_id: card.to_dict() for card_id, card in self.trello.items()}
                if self.trello is not None
                else None
            ),
            "project": self.project.to_dict() if self.project else None,
            "worktrees": self.worktrees,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Snapshot:
        trello = data.get("trello")
        project = data.get("project")
        return cls(
            ts=str(data.get("ts", "")),
            trello=(
                {card_id: CardSnapshot.from_dict(card) for card_id, card in trello.items()}
                if isinstance(trello, dict)
                else None
            ),
            project=ProjectSnapshot.from_dict(project) if isinstance(project, dict) else None,
            worktrees=data.get("worktrees"),
        )


# =============================================================================
# Ports
# =============================================================================


class EventLogPort(ABC):
    """Append-only event log."""

    @abstractmethod
    def append(self, event: Event) -> None:
        """Append one event."""
        ...

    @abstractmethod
    def read_all(self) -> list[Event]:
        """Read every parsable event, oldest first."""
        ...

    def write(self, event_type: str, payload: dict[str, Any], ts: str | None = None) -> Event:
        """Build and append an event in one call."""
        event = Event(ts=ts or utc_now_iso(), type=event_type, payload=payload)
        self.append(event)
        return event


class SnapshotStorePort(ABC):
    """Append-only snapshot log of which only the newest record matters."""

    @abstractmethod
    def append(self, snapshot: Snapshot) -> None:
        """Append a snapshot, making it the latest."""
        ...

    @abstractmethod
    def read_latest(self) -> Snapshot | None:
        """Return the newest snapshot, or None on first run."""
        ...
