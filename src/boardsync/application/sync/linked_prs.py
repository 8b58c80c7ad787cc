"""
Linked-PR Sync - Attribute pull requests to the issue cards they close.

A PR body with a closing reference (``fixes #42``, ``closes
https://host/org/repo/issues/42``) links the PR to the issue's card:

1. The PR url is listed under a ``Related PRs:`` section of the card.
2. The newest linked PR decides whether the card should leave Waiting.

Decision table, first match wins:

    merged                                   -> Done
    authored by someone else                 -> no move
    any CHANGES_REQUESTED review             -> Ready
    any APPROVED review                      -> Ready
    pending review requests                  -> Waiting
    latest real review APPROVED + MERGEABLE  -> Ready
    otherwise                                -> no move

Cards are only ever moved out of Waiting; a card the status sync put in
Doing or Done is never pulled back by PR activity.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import replace

from boardsync.core.constants import (
    MERGEABLE,
    POSITION_TOP,
    RELATED_PRS_HEADER,
    REVIEW_APPROVED,
    REVIEW_CHANGES_REQUESTED,
    SOURCE_PROJECT,
)
from boardsync.core.domain.entities import Card, PullRequestDetails
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
from .cards import CardIndex, merge_label_ids
from .context import BoardContext
from .result import SyncResult


CLOSING_REFERENCE = re.compile(r"(fixes|closes|resolves)\s+#(\d+)", re.IGNORECASE)
CLOSING_URL = re.compile(
    r"(fixes|closes|resolves)\s+https://([^/\s]+)/([^/\s]+)/([^/\s]+)/issues/(\d+)",
    re.IGNORECASE,
)


def parse_repo_from_pr_url(host: str, url: str) -> tuple[str, str] | None:
    """Return ``(owner, repo)`` of a PR url on the given host."""
    match = re.match(rf"https://{re.escape(host)}/([^/]+)/([^/]+)/pull/\d+", url)
    if not match:
        return None
    return match.group(1), match.group(2)


def parse_closing_issue_urls(host: str, body: str | None, pr_url: str) -> list[str]:
    """
    Issue urls a PR body closes, in order of appearance.

    ``#N`` references resolve against the PR's own repository. Full urls
    are only accepted on the same host.
    """
    if not body:
        return []

    urls: list[str] = []
    repo = parse_repo_from_pr_url(host, pr_url)
    if repo:
        owner, name = repo
        for match in CLOSING_REFERENCE.finditer(body):
            urls.append(f"https://{host}/{owner}/{name}/issues/{match.group(2)}")

    for match in CLOSING_URL.finditer(body):
        _, url_host, owner, name, number = match.groups()
        if url_host != host:
            continue
        urls.append(f"https://{url_host}/{owner}/{name}/issues/{number}")
    return urls


def ensure_related_pr_section(base: str, pr_url: str) -> str:
    """Add a PR url under the Related PRs header unless the base already mentions it."""
    if pr_url in base:
        return base
    if RELATED_PRS_HEADER in base:
        return f"{base}\n- {pr_url}"
    return f"{base}\n\n{RELATED_PRS_HEADER}\n- {pr_url}".strip()


def select_newest_pr(prs: Iterable[PullRequestDetails]) -> PullRequestDetails:
    """Most recently updated PR; the first one wins a tie."""
    return max(prs, key=lambda pr: pr.updated_datetime)


def desired_list_for_pr(pr: PullRequestDetails, current_user: str) -> str | None:
    """Target list for an issue card given its newest linked PR, None for no move."""
    if pr.merged:
        return ListName.DONE
    if pr.author != current_user:
        return None
    if pr.has_review_state(REVIEW_CHANGES_REQUESTED):
        return ListName.READY
    if pr.has_review_state(REVIEW_APPROVED):
        return ListName.READY
    if pr.review_requests:
        return ListName.WAITING
    if pr.latest_review_state() == REVIEW_APPROVED and pr.mergeable == MERGEABLE:
        return ListName.READY
    return None


class LinkedPrSync:
    """Links PRs to issue cards and advances the cards out of Waiting."""

    def __init__(
        self,
        board: BoardPort,
        context: BoardContext,
        pr_cache: PullRequestCache,
        event_log: EventLogPort,
        host: str,
        current_user: str,
    ):
        self.board = board
        self.context = context
        self.pr_cache = pr_cache
        self.event_log = event_log
        self.host = host
        self.current_user = current_user
        self.logger = logging.getLogger("LinkedPrSync")

    def sync(self, pr_urls: Iterable[str], result: SyncResult) -> set[str]:
        """
        Process candidate PR urls.

        Returns:
            The PR urls attributed to an issue card. The caller leaves these
            out of the review-request cards.
        """
        urls = list(dict.fromkeys(pr_urls))
        if not urls:
            return set()

        index = CardIndex(self.board.get_cards(self.context.board_id))
        attributed: set[str] = set()
        linked: dict[str, tuple[Card, list[PullRequestDetails]]] = {}

        for url in urls:
            try:
                details = self.pr_cache.get(url)
            except AuthenticationError:
                raise
            except TrackerError as e:
                self.logger.error(f"Failed to fetch {url}: {e}")
                result.add_failed_operation("fetch_pr", url, str(e))
                continue

            pr_url = details.url or url
            issue_url = next(
                (
                    candidate
                    for candidate in parse_closing_issue_urls(self.host, details.body, pr_url)
                    if index.find_by_url(candidate) is not None
                ),
                None,
            )
            if issue_url is None:
                continue

            card = index.find_by_url(issue_url)
            attributed.add(url)
            linked.setdefault(issue_url, (card, []))[1].append(details)
            result.linked_prs += 1
            self.logger.debug(f"{pr_url} closes {issue_url}")

            try:
                self._link(card, issue_url, pr_url)
            except AuthenticationError:
                raise
            except TrackerError as e:
                self.logger.error(f"Failed to link {pr_url} on card {card.id}: {e}")
                result.add_failed_operation("link_pr", issue_url, str(e), card_id=card.id)

        for issue_url, (card, prs) in linked.items():
            try:
                self._advance(card, prs, result)
            except AuthenticationError:
                raise
            except TrackerError as e:
                self.logger.error(f"Failed to move card {card.id}: {e}")
                result.add_failed_operation("move_linked_card", issue_url, str(e), card_id=card.id)

        return attributed

    def _link(self, card: Card, issue_url: str, pr_url: str) -> None:
        base = extract_description_base(card.desc)
        updated = ensure_related_pr_section(base, pr_url)
        if updated == base:
            return

        meta = parse_sync_metadata(card.desc)
        stored_hash = meta.content_hash if meta else None
        # An edited description stays marked as edited
        if stored_hash and stored_hash != content_hash(base):
            new_hash = stored_hash
        else:
            new_hash = content_hash(updated)

        desc = update_description_with_sync(
            updated,
            format_sync_metadata(self._metadata(meta, issue_url, new_hash)),
        )
        self.logger.info(f"Linking {pr_url} on card {card.id}")
        self.board.update_card(card.id, desc=desc)
        card.desc = desc

    def _advance(self, card: Card, prs: list[PullRequestDetails], result: SyncResult) -> None:
        newest = select_newest_pr(prs)
        desired = desired_list_for_pr(newest, self.current_user)
        if desired is None:
            return

        waiting = self.context.require_list(ListName.WAITING)
        if card.list_id != waiting.id:
            return
        target = self.context.require_list(desired)
        if target.id == card.list_id:
            return

        label_ids = None
        if desired == ListName.WAITING:
            label_ids = merge_label_ids(
                card.label_ids, [self.context.require_label(LabelName.REVIEW).id]
            )

        meta = parse_sync_metadata(card.desc)
        base = extract_description_base(card.desc)
        stored_hash = (meta.content_hash if meta else None) or content_hash(base)
        desc = update_description_with_sync(
            base,
            format_sync_metadata(self._metadata(meta, None, stored_hash)),
        )

        now = utc_now_iso()
        self.logger.info(f"Moving linked issue card {card.id} to {desired}")
        self.board.update_card(
            card.id,
            list_id=target.id,
            desc=desc,
            pos=POSITION_TOP if desired == ListName.READY else None,
            label_ids=label_ids,
        )
        card.list_id = target.id
        card.desc = desc
        if label_ids is not None:
            card.label_ids = label_ids

        self.event_log.write(
            "trello.card.moved.linked-pr",
            {"cardId": card.id, "list": desired, "pr": newest.url},
            ts=now,
        )
        result.linked_cards_moved += 1

    @staticmethod
    def _metadata(meta: SyncMetadata | None, url: str | None, base_hash: str) -> SyncMetadata:
        if meta is None:
            meta = SyncMetadata(source=SOURCE_PROJECT)
        return replace(
            meta,
            source=meta.source or SOURCE_PROJECT,
            url=meta.url or url,
            last_seen=utc_now_iso(),
            content_hash=base_hash,
        )
