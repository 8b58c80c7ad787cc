"""
Review-Lifecycle Reconciler - Close out review cards the user approved.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace

from boardsync.core.constants import REVIEW_APPROVED, SOURCE_REVIEW
from boardsync.core.domain.entities import Card
from boardsync.core.domain.metadata import (
    SyncMetadata,
    content_hash,
    extract_description_base,
    format_sync_metadata,
    parse_sync_metadata,
    update_description_with_sync,
)
from boardsync.core.domain.policy import LabelName, ListName
from boardsync.core.exceptions import AuthenticationError, TrackerError
from boardsync.core.ports.board import BoardPort
from boardsync.core.ports.state_store import EventLogPort, utc_now_iso

from .cache import PullRequestCache
from .context import BoardContext
from .result import SyncResult


PR_URL_PATTERN = re.compile(r"https://[^\s]+/pull/\d+")


def review_url_for(card: Card, meta: SyncMetadata | None) -> str | None:
    """The PR a review card tracks: metadata url if it is a PR, else the first PR url."""
    if meta and meta.url and "/pull/" in meta.url:
        return meta.url
    match = PR_URL_PATTERN.search(card.desc or "")
    return match.group(0) if match else None


class ReviewLifecycleReconciler:
    """
    Moves review-labeled cards to Done once the current user approved the PR.

    Any other review outcome leaves the card where it is.
    """

    def __init__(
        self,
        board: BoardPort,
        context: BoardContext,
        pr_cache: PullRequestCache,
        event_log: EventLogPort,
        current_user: str,
    ):
        self.board = board
        self.context = context
        self.pr_cache = pr_cache
        self.event_log = event_log
        self.current_user = current_user
        self.logger = logging.getLogger("ReviewLifecycleReconciler")

    def reconcile(self, result: SyncResult) -> None:
        review_label_id = self.context.require_label(LabelName.REVIEW).id
        done_list = self.context.require_list(ListName.DONE)

        for card in self.board.get_cards(self.context.board_id):
            if not card.has_label(review_label_id) or card.list_id == done_list.id:
                continue
            meta = parse_sync_metadata(card.desc)
            url = review_url_for(card, meta)
            if not url:
                continue

            try:
                if not self.pr_cache.has_approved_review(url, self.current_user):
                    continue
                self._close(card, meta, url, done_list.id)
            except AuthenticationError:
                raise
            except TrackerError as e:
                self.logger.error(f"Failed to reconcile review card {card.id}: {e}")
                result.add_failed_operation("reconcile_review", url, str(e), card_id=card.id)
                continue
            result.reviews_done += 1

    def _close(self, card: Card, meta: SyncMetadata | None, url: str, done_list_id: str) -> None:
        now = utc_now_iso()
        base = extract_description_base(card.desc)
        meta = meta or SyncMetadata(source=SOURCE_REVIEW)
        metadata = replace(
            meta,
            source=meta.source or SOURCE_REVIEW,
            url=meta.url or url,
            status=REVIEW_APPROVED,
            last_seen=now,
            content_hash=meta.content_hash or content_hash(base),
        )
        desc = update_description_with_sync(base, format_sync_metadata(metadata))

        from_list = self.context.list_name_for(card.list_id)
        self.logger.info(f"Moving approved review card {card.id} to {ListName.DONE}")
        self.board.update_card(card.id, list_id=done_list_id, desc=desc)

        payload = {"cardId": card.id, "url": url, "fromList": from_list, "toList": ListName.DONE}
        self.event_log.write("trello.review.done", payload, ts=now)
        self.event_log.write(
            "trello.card.moved",
            {
                **payload,
                "itemId": meta.item_id,
                "labels": list(card.label_ids),
                "name": card.name,
            },
            ts=now,
        )
        card.list_id = done_list_id
        card.desc = desc
