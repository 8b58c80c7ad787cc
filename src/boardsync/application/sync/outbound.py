"""
Outbound Sync - Push local list moves back to the GitHub project.

The board has no change feed, so moves are detected by diffing each card's
list against the latest snapshot. Only project-sourced cards (primary label
plus an item id in the metadata block) are considered. A card whose list is
unchanged since the snapshot is never pushed again.

After all cards are processed a fresh snapshot is appended; it becomes the
baseline for the next run. A card whose push failed keeps its previous
entry so the move is retried next run.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from boardsync.core.constants import PROJECT_META_TTL_SECONDS
from boardsync.core.domain.entities import Card
from boardsync.core.domain.metadata import (
    SyncMetadata,
    format_sync_metadata,
    parse_sync_metadata,
    update_description_with_sync,
)
from boardsync.core.domain.policy import LabelName, list_to_gh_status_name
from boardsync.core.exceptions import AuthenticationError, StatusMappingError, TrackerError
from boardsync.core.ports.board import BoardPort
from boardsync.core.ports.code_host import CodeHostPort
from boardsync.core.ports.state_store import (
    CardSnapshot,
    EventLogPort,
    ProjectMetaSnapshot,
    ProjectSnapshot,
    Snapshot,
    SnapshotStorePort,
    seconds_since,
    utc_now_iso,
)

from .context import BoardContext
from .result import SyncResult


class OutboundSync:
    """Detects list moves since the last snapshot and pushes project status."""

    def __init__(
        self,
        board: BoardPort,
        code_host: CodeHostPort,
        context: BoardContext,
        event_log: EventLogPort,
        snapshot_store: SnapshotStorePort,
        project_owner: str,
        project_number: int,
        primary_label: str = LabelName.WORK,
        dry_run: bool = True,
    ):
        self.board = board
        self.code_host = code_host
        self.context = context
        self.event_log = event_log
        self.snapshot_store = snapshot_store
        self.project_owner = project_owner
        self.project_number = project_number
        self.primary_label = primary_label
        self.dry_run = dry_run
        self.logger = logging.getLogger("OutboundSync")

    def sync(self, result: SyncResult) -> Snapshot:
        """
        Push moved cards and record a new snapshot.

        Returns:
            The snapshot that was appended
        """
        previous = self.snapshot_store.read_latest()
        observed = previous.trello if previous and previous.trello else {}
        cards = self.board.get_cards(self.context.board_id)
        now = utc_now_iso()

        primary_label_id = self.context.require_label(self.primary_label).id
        review_label_id = self.context.label_id(LabelName.REVIEW)

        moved: list[tuple[Card, SyncMetadata]] = []
        for card in cards:
            if not card.has_label(primary_label_id):
                continue
            meta = parse_sync_metadata(card.desc)
            if not meta or not meta.item_id:
                continue
            seen = observed.get(card.id)
            if seen is not None and seen.list_id == card.list_id:
                continue
            moved.append((card, meta))

        cached_meta = previous.project.meta if previous and previous.project else None
        project_meta = cached_meta
        failed: set[str] = set()

        if moved:
            self.logger.info(f"{len(moved)} cards moved since the last snapshot")
            try:
                project_meta = self._project_meta(cached_meta, now)
            except AuthenticationError:
                raise
            except TrackerError as e:
                self.logger.error(f"Failed to load project status field: {e}")
                result.add_failed_operation(
                    "fetch_project_config",
                    f"{self.project_owner}/{self.project_number}",
                    str(e),
                )
                failed.update(card.id for card, _ in moved)
                moved = []

        for card, meta in moved:
            try:
                seen = observed.get(card.id)
                pushed = self._push(card, meta, seen, project_meta, review_label_id, now)
            except StatusMappingError as e:
                self.logger.error(str(e))
                result.add_failed_operation(
                    "push_status", meta.url or card.id, str(e), card_id=card.id, recoverable=False
                )
                failed.add(card.id)
                continue
            except AuthenticationError:
                raise
            except TrackerError as e:
                self.logger.error(f"Failed to push status for card {card.id}: {e}")
                result.add_failed_operation(
                    "push_status", meta.url or card.id, str(e), card_id=card.id
                )
                failed.add(card.id)
                continue
            if pushed:
                result.statuses_pushed += 1
            else:
                result.add_warning(f"Card {card.id} is not in a board list; status not pushed")

        snapshot = self._build_snapshot(previous, cards, observed, failed, project_meta, now)
        self.snapshot_store.append(snapshot)
        return snapshot

    def _project_meta(
        self, cached: ProjectMetaSnapshot | None, now: str
    ) -> ProjectMetaSnapshot:
        """Status field ids, from the snapshot while fresh, else from the project."""
        if cached is not None:
            age = seconds_since(cached.fetched_at)
            if age is not None and age < PROJECT_META_TTL_SECONDS:
                return cached

        config = self.code_host.fetch_project_config(self.project_owner, self.project_number)
        self.logger.debug(f"Fetched {len(config.status_options)} status options")
        return ProjectMetaSnapshot(
            project_id=config.project_id,
            status_field_id=config.status_field_id,
            status_options=dict(config.status_options),
            fetched_at=now,
        )

    def _push(
        self,
        card: Card,
        meta: SyncMetadata,
        seen: CardSnapshot | None,
        project_meta: ProjectMetaSnapshot,
        review_label_id: str | None,
        now: str,
    ) -> bool:
        """Push the status for the card's list. False when the list is not a board list."""
        list_name = self.context.list_name_for(card.list_id)
        if list_name is None:
            self.logger.debug(f"Card {card.id} is in an unknown list")
            return False
        from_list = self.context.list_name_for(seen.list_id) if seen else None

        status_name = list_to_gh_status_name(list_name, card.has_label(review_label_id))
        option_id = project_meta.status_options.get(status_name)
        if not option_id:
            raise StatusMappingError(status_name, card.id)

        self.logger.info(f"Pushing '{status_name}' for card {card.id} ({from_list} -> {list_name})")
        self.code_host.update_project_item_status(
            project_meta.project_id, meta.item_id, project_meta.status_field_id, option_id
        )

        desc = update_description_with_sync(
            card.desc, format_sync_metadata(replace(meta, last_trello_move=now))
        )
        self.board.update_card(card.id, desc=desc)
        card.desc = desc

        self.event_log.write(
            "github.project.status.updated",
            {"itemId": meta.item_id, "status": status_name, "cardId": card.id},
            ts=now,
        )
        if not self.dry_run:
            self.event_log.write(
                "trello.card.moved",
                {
                    "cardId": card.id,
                    "url": meta.url,
                    "itemId": meta.item_id,
                    "fromList": from_list,
                    "toList": list_name,
                    "labels": list(card.label_ids),
                },
                ts=now,
            )
        return True

    @staticmethod
    def _build_snapshot(
        previous: Snapshot | None,
        cards: list[Card],
        observed: dict[str, CardSnapshot],
        failed: set[str],
        project_meta: ProjectMetaSnapshot | None,
        now: str,
    ) -> Snapshot:
        trello: dict[str, CardSnapshot] = {}
        for card in cards:
            if card.id in failed:
                if card.id in observed:
                    trello[card.id] = observed[card.id]
                continue
            meta = parse_sync_metadata(card.desc)
            trello[card.id] = CardSnapshot(
                list_id=card.list_id,
                labels=tuple(card.label_ids),
                sync_url=meta.url if meta else None,
            )

        project = previous.project if previous else None
        if project_meta is not None:
            project = replace(project or ProjectSnapshot(), meta=project_meta)

        return Snapshot(
            ts=now,
            trello=trello,
            project=project,
            worktrees=previous.worktrees if previous else None,
        )
