"""
Closed-Item Sync - Move cards of closed issues and PRs to Done.

Runs once per closed item observed by the project fetch. A card already in
Done is left alone, so repeated runs that keep seeing the closed item are
no-ops.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace

from boardsync.core.constants import POSITION_TOP
from boardsync.core.domain.entities import WorkItem
from boardsync.core.domain.enums import WorkItemStatus
from boardsync.core.domain.metadata import (
    SyncMetadata,
    content_hash,
    extract_description_base,
    format_sync_metadata,
    parse_sync_metadata,
    update_description_with_sync,
)
from boardsync.core.domain.policy import ListName
from boardsync.core.exceptions import AuthenticationError, TrackerError
from boardsync.core.ports.board import BoardPort
from boardsync.core.ports.state_store import EventLogPort, utc_now_iso

from .cards import CardIndex
from .context import BoardContext
from .result import SyncResult


class ClosedItemSync:
    """Moves cards whose external item closed to the top of Done."""

    def __init__(self, board: BoardPort, context: BoardContext, event_log: EventLogPort):
        self.board = board
        self.context = context
        self.event_log = event_log
        self.logger = logging.getLogger("ClosedItemSync")

    def sync(self, items: Iterable[WorkItem], result: SyncResult) -> None:
        items = list(items)
        if not items:
            return

        done_list = self.context.require_list(ListName.DONE)
        index = CardIndex(self.board.get_cards(self.context.board_id))

        for item in items:
            card = index.find(item)
            if card is None or card.list_id == done_list.id:
                continue

            now = utc_now_iso()
            meta = parse_sync_metadata(card.desc)
            base = extract_description_base(card.desc)
            meta = meta or SyncMetadata(source=item.source.value)
            metadata = replace(
                meta,
                source=meta.source or item.source.value,
                item_id=meta.item_id or item.project_item_id,
                url=meta.url or item.url,
                status=WorkItemStatus.DONE.value,
                last_seen=now,
                content_hash=meta.content_hash or content_hash(base),
            )
            desc = update_description_with_sync(base, format_sync_metadata(metadata))

            self.logger.info(f"Moving closed item to {ListName.DONE}: {item.url}")
            try:
                self.board.update_card(
                    card.id, list_id=done_list.id, desc=desc, pos=POSITION_TOP
                )
            except AuthenticationError:
                raise
            except TrackerError as e:
                self.logger.error(f"Failed to move card {card.id}: {e}")
                result.add_failed_operation("close_card", item.url, str(e), card_id=card.id)
                continue

            card.list_id = done_list.id
            card.desc = desc
            self.event_log.write(
                "trello.card.done.closed", {"cardId": card.id, "url": item.url}, ts=now
            )
            result.cards_closed += 1
