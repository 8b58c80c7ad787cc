"""
Domain Entities - Work items, board objects and pull request records.

Board-side objects (Card, BoardList, BoardLabel) mirror what the Trello API
returns. Code-host records (ProjectItem, ReviewRequest, PullRequestDetails)
mirror what GitHub returns. WorkItem is the canonical, source-agnostic shape
both code-host records are normalized into before they become cards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .enums import WorkItemSource, WorkItemStatus, WorkItemType


# =============================================================================
# Work Items
# =============================================================================


@dataclass(frozen=True)
class WorkItem:
    """
    Canonical representation of an external unit of work.

    ``url`` is stable for the lifetime of the external item and is the only
    key that is safe to join on across runs and across sources.
    """

    id: str
    source: WorkItemSource
    type: WorkItemType
    title: str
    url: str
    status: WorkItemStatus
    repo: str | None = None
    body: str | None = None
    project_item_id: str | None = None

    @property
    def is_review(self) -> bool:
        return self.type is WorkItemType.REVIEW


# =============================================================================
# Board Objects
# =============================================================================


@dataclass(frozen=True)
class BoardList:
    """A named lane on the board."""

    id: str
    name: str


@dataclass(frozen=True)
class BoardLabel:
    """A board label. Trello allows unnamed (color-only) labels."""

    id: str
    name: str
    color: str | None = None


@dataclass
class Card:
    """
    A board card.

    ``desc`` holds user prose plus at most one embedded sync metadata block.
    """

    id: str
    name: str
    desc: str = ""
    list_id: str = ""
    label_ids: list[str] = field(default_factory=list)
    url: str | None = None
    short_url: str | None = None

    def has_label(self, label_id: str | None) -> bool:
        return bool(label_id) and label_id in self.label_ids

    def same_labels(self, label_ids: list[str]) -> bool:
        """Compare label sets, ignoring order and duplicates."""
        return sorted(set(self.label_ids)) == sorted(set(label_ids))


# =============================================================================
# Code Host Records
# =============================================================================


@dataclass(frozen=True)
class ProjectItemContent:
    """The issue or pull request a project item points at."""

    title: str
    url: str
    body: str | None = None
    repository: str | None = None
    state: str | None = None
    type: str | None = None


@dataclass(frozen=True)
class ProjectItem:
    """An item on a GitHub project board."""

    id: str
    title: str
    status: str | None = None
    assignees: tuple[str, ...] = ()
    content: ProjectItemContent | None = None
    updated_at: str | None = None

    @property
    def is_closed(self) -> bool:
        """Anything other than an OPEN issue or PR counts as closed."""
        state = self.content.state if self.content else None
        return bool(state) and state != "OPEN"


@dataclass(frozen=True)
class ReviewRequest:
    """An open pull request the current user has been asked to review."""

    title: str
    url: str
    body: str | None = None
    repo: str | None = None


@dataclass(frozen=True)
class Review:
    """A submitted pull request review."""

    author: str
    state: str
    submitted_at: str | None = None

    @property
    def submitted_datetime(self) -> datetime:
        return _parse_timestamp(self.submitted_at)


@dataclass(frozen=True)
class PullRequestDetails:
    """Everything the linked-PR and review passes need to know about a PR."""

    url: str
    title: str = ""
    body: str | None = None
    author: str | None = None
    updated_at: str | None = None
    mergeable: str | None = None
    merged: bool = False
    state: str | None = None
    review_requests: tuple[str, ...] = ()
    reviews: tuple[Review, ...] = ()

    def has_review_state(self, state: str) -> bool:
        return any(review.state == state for review in self.reviews)

    def approved_by(self, user: str) -> bool:
        return any(
            review.author == user and review.state == "APPROVED" for review in self.reviews
        )

    def latest_review_state(self) -> str | None:
        """State of the newest review that is more than a comment."""
        ordered = sorted(self.reviews, key=lambda r: r.submitted_datetime, reverse=True)
        for review in ordered:
            if review.state and review.state != "COMMENTED":
                return review.state
        return None

    @property
    def updated_datetime(self) -> datetime:
        return _parse_timestamp(self.updated_at)


@dataclass(frozen=True)
class ProjectConfig:
    """Ids needed to write the single-select Status field of a project."""

    project_id: str
    status_field_id: str
    status_options: dict[str, str] = field(default_factory=dict)


def _parse_timestamp(value: str | None) -> datetime:
    """Parse an ISO-8601 timestamp; missing or invalid values sort first."""
    if not value:
        return datetime.min
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return datetime.min
    # Compare everything as naive UTC
    offset = parsed.utcoffset()
    naive = parsed.replace(tzinfo=None)
    return naive - offset if offset else naive
