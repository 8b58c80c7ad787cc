"""
Card helpers shared by the sync passes.

- CardIndex: find the card tracking a work item
- Card titles and base descriptions rendered from a WorkItem
- The Related PRs section appended by the linked-PR pass
- Label merging
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from boardsync.core.constants import RELATED_PRS_HEADER, UNKNOWN_REPO
from boardsync.core.domain.entities import Card, WorkItem
from boardsync.core.domain.metadata import normalize_base, parse_sync_metadata


URL_PATTERN = re.compile(r"https://\S+")
ITEM_NUMBER_PATTERN = re.compile(r"/(issues|pull)/(\d+)")


def extract_url_from_desc(desc: str | None) -> str | None:
    """First https url in a description."""
    match = URL_PATTERN.search(desc or "")
    return match.group(0) if match else None


def extract_number_from_url(url: str) -> int | None:
    """Issue or PR number from an ``/issues/N`` or ``/pull/N`` url."""
    match = ITEM_NUMBER_PATTERN.search(url)
    return int(match.group(2)) if match else None


def build_card_title(item: WorkItem) -> str:
    """
    Render the card title.

    ``REVIEW: <repo> <title>`` for review requests,
    ``WORK: <repo> #<n> <title>`` otherwise (``#<n>`` omitted when the url
    carries no number).
    """
    repo = item.repo or UNKNOWN_REPO
    if item.is_review:
        return f"REVIEW: {repo} {item.title}"
    number = extract_number_from_url(item.url)
    if number:
        return f"WORK: {repo} #{number} {item.title}"
    return f"WORK: {repo} {item.title}"


def build_base_description(item: WorkItem, related_prs: str | None = None) -> str:
    """
    The base text the system would write for an item: url, then body.

    ``related_prs`` is a ``Related PRs:`` section to keep at the end.
    """
    base = f"{item.url}\n\n{item.body}" if item.body else item.url
    if related_prs and related_prs not in base:
        base = f"{base.rstrip()}\n\n{related_prs}"
    return normalize_base(base)


def extract_related_prs_section(base: str) -> str | None:
    """The ``Related PRs:`` header and everything after it, if present."""
    position = base.rfind(RELATED_PRS_HEADER)
    if position == -1:
        return None
    return base[position:].strip()


def merge_label_ids(current: Iterable[str], required: Iterable[str]) -> list[str]:
    """Union of label ids; existing labels are kept and come first."""
    return list(dict.fromkeys([*current, *required]))


class CardIndex:
    """
    Lookup of board cards by tracked url and project item id.

    Both keys come from the metadata block. With ``fallback_urls`` a card
    without metadata is also found by the first url in its description,
    so a card created by hand for an issue is adopted instead of duplicated.
    """

    def __init__(self, cards: Iterable[Card], fallback_urls: bool = False):
        self.cards: list[Card] = list(cards)
        self.by_url: dict[str, Card] = {}
        self.by_item_id: dict[str, Card] = {}
        self._fallback_urls = fallback_urls
        for card in self.cards:
            self._register(card)

    def _register(self, card: Card) -> None:
        meta = parse_sync_metadata(card.desc)
        if meta and meta.url:
            self.by_url[meta.url] = card
        if meta and meta.item_id:
            self.by_item_id[meta.item_id] = card
        if self._fallback_urls:
            fallback = extract_url_from_desc(card.desc)
            if fallback and fallback not in self.by_url:
                self.by_url[fallback] = card

    def add(self, card: Card) -> None:
        """Index a card created during this run."""
        self.cards.append(card)
        self._register(card)

    def find(self, item: WorkItem) -> Card | None:
        """Project items are matched by item id first, then url."""
        if item.project_item_id:
            card = self.by_item_id.get(item.project_item_id)
            if card is not None:
                return card
        return self.by_url.get(item.url)

    def find_by_url(self, url: str) -> Card | None:
        return self.by_url.get(url)

    def __len__(self) -> int:
        return len(self.cards)
