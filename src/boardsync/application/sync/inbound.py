"""
Inbound Sync - Materialize work items as cards.

For each WorkItem the pass finds the tracking card (project item id first,
then url), and either creates it or brings its name, labels and metadata
block up to date. Existing cards are never moved between lists here; list
placement after creation belongs to the user and the other passes.

Description conflict rule: the metadata block stores the hash of the base
text the system last wrote. If the current base no longer matches it, a
human edited the description and their text is kept; name, labels and the
rest of the metadata are still refreshed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from boardsync.core.domain.entities import Card, WorkItem
from boardsync.core.domain.metadata import (
    SyncMetadata,
    content_hash,
    extract_description_base,
    format_sync_metadata,
    normalize_base,
    parse_sync_metadata,
    update_description_with_sync,
)
from boardsync.core.domain.policy import LabelName, ListName, work_status_to_list
from boardsync.core.exceptions import AuthenticationError, TrackerError
from boardsync.core.ports.board import BoardPort
from boardsync.core.ports.state_store import EventLogPort, utc_now_iso

from .cards import (
    CardIndex,
    build_base_description,
    build_card_title,
    extract_related_prs_section,
    merge_label_ids,
)
from .context import BoardContext
from .result import SyncResult


class InboundSync:
    """Creates and updates cards from normalized work items."""

    def __init__(
        self,
        board: BoardPort,
        context: BoardContext,
        event_log: EventLogPort,
        primary_label: str = LabelName.WORK,
    ):
        self.board = board
        self.context = context
        self.event_log = event_log
        self.primary_label = primary_label
        self.logger = logging.getLogger("InboundSync")

    def sync(self, items: Iterable[WorkItem], result: SyncResult) -> None:
        """
        Sync work items onto the board.

        Each item is processed in its own error boundary; a failing item is
        recorded in ``result`` and the remaining items still run.
        """
        items = list(items)
        if not items:
            return

        index = CardIndex(self.board.get_cards(self.context.board_id), fallback_urls=True)
        self.logger.debug(f"Syncing {len(items)} items against {len(index)} cards")

        for item in items:
            try:
                self._sync_item(item, index, result)
            except AuthenticationError:
                raise
            except TrackerError as e:
                self.logger.error(f"Failed to sync {item.url}: {e}")
                result.add_failed_operation("sync_card", item.url, str(e))

    def _sync_item(self, item: WorkItem, index: CardIndex, result: SyncResult) -> None:
        now = utc_now_iso()
        target_list = self.context.require_list(
            ListName.READY if item.is_review else work_status_to_list(item.status)
        )

        required_labels = [self.context.require_label(self.primary_label).id]
        if item.is_review:
            review_label_id = self.context.label_id(LabelName.REVIEW)
            if review_label_id:
                required_labels.append(review_label_id)

        name = build_card_title(item)
        desired_base = build_base_description(item)
        desired_hash = content_hash(desired_base)

        card = index.find(item)
        if card is None:
            desc = update_description_with_sync(
                desired_base, format_sync_metadata(self._metadata(item, now, desired_hash))
            )
            self.logger.info(f"Creating card for {item.url} in {target_list.name}")
            created = self.board.create_card(target_list.id, name, desc, required_labels)
            if created.id:
                index.add(created)
            self.event_log.write(
                "trello.card.created", {"url": item.url, "list": target_list.name}, ts=now
            )
            result.cards_created += 1
            return

        meta = parse_sync_metadata(card.desc)
        current_base = normalize_base(extract_description_base(card.desc))
        current_hash = content_hash(current_base)

        related_prs = extract_related_prs_section(current_base)
        if related_prs:
            desired_base = build_base_description(item, related_prs)
            desired_hash = content_hash(desired_base)

        base, base_hash = desired_base, desired_hash
        if meta and meta.content_hash and current_hash != meta.content_hash:
            # Stored hash stays as is so the edit keeps winning on later runs
            self.logger.debug(f"Keeping edited description of card {card.id}")
            base, base_hash = current_base, meta.content_hash

        label_ids = merge_label_ids(card.label_ids, required_labels)
        should_update = (
            card.name != name
            or not card.same_labels(label_ids)
            or (meta.status if meta else None) != item.status.value
            or (meta.url if meta else None) != item.url
            or (meta.item_id if meta else None) != item.project_item_id
            or (meta.content_hash if meta else None) != base_hash
        )
        if not should_update:
            return

        desc = update_description_with_sync(
            base, format_sync_metadata(self._metadata(item, now, base_hash, meta))
        )
        if not self._card_needs_update(card, name, desc, label_ids):
            return

        self.logger.info(f"Updating card {card.id} for {item.url}")
        self.board.update_card(card.id, name=name, desc=desc, label_ids=label_ids)
        self.event_log.write(
            "trello.card.updated",
            {"cardId": card.id, "url": item.url, "list": target_list.name},
            ts=now,
        )
        result.cards_updated += 1

    @staticmethod
    def _metadata(
        item: WorkItem,
        now: str,
        base_hash: str,
        previous: SyncMetadata | None = None,
    ) -> SyncMetadata:
        return SyncMetadata(
            source=item.source.value,
            item_id=item.project_item_id,
            url=item.url,
            status=item.status.value,
            last_seen=now,
            last_trello_move=previous.last_trello_move if previous else None,
            content_hash=base_hash,
        )

    @staticmethod
    def _card_needs_update(card: Card, name: str, desc: str, label_ids: list[str]) -> bool:
        return card.name != name or not card.same_labels(label_ids) or card.desc != desc
