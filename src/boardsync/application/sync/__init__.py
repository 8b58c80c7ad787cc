"""
Sync Module - Reconciliation between the board and the code host.
"""

from .cache import PullRequestCache
from .cards import CardIndex, build_base_description, build_card_title
from .closed_items import ClosedItemSync
from .context import BoardContext, load_board_context
from .inbound import InboundSync
from .linked_prs import (
    LinkedPrSync,
    desired_list_for_pr,
    ensure_related_pr_section,
    parse_closing_issue_urls,
)
from .normalize import normalize_project_item, normalize_review_request, split_closed_items
from .orchestrator import SyncOrchestrator
from .outbound import OutboundSync
from .result import FailedOperation, SyncResult
from .review_lifecycle import ReviewLifecycleReconciler


__all__ = [
    "BoardContext",
    "CardIndex",
    "ClosedItemSync",
    "FailedOperation",
    "InboundSync",
    "LinkedPrSync",
    "OutboundSync",
    "PullRequestCache",
    "ReviewLifecycleReconciler",
    "SyncOrchestrator",
    "SyncResult",
    "build_base_description",
    "build_card_title",
    "desired_list_for_pr",
    "ensure_related_pr_section",
    "load_board_context",
    "normalize_project_item",
    "normalize_review_request",
    "parse_closing_issue_urls",
    "split_closed_items",
]
