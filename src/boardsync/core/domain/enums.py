"""
Domain enums - Work item status, source and type.
"""

from __future__ import annotations

from enum import Enum


class WorkItemStatus(Enum):
    """Canonical status of a work item, independent of any tracker vocabulary."""

    DESIGN = "design"
    READY = "ready"
    NEXT = "next"
    IN_PROGRESS = "in_progress"
    IN_REVIEW = "in_review"
    BLOCKED = "blocked"
    DONE = "done"

    @classmethod
    def from_string(cls, value: str | None) -> WorkItemStatus:
        """
        Parse a canonical status value.

        Accepts the stored form (``in_progress``) as well as spaced or
        dashed variants. Unknown values fall back to DESIGN, the triage
        bucket.
        """
        if not value:
            return cls.DESIGN
        normalized = value.strip().lower().replace("-", "_").replace(" ", "_")
        for status in cls:
            if status.value == normalized:
                return status
        return cls.DESIGN


class WorkItemSource(Enum):
    """Where a work item came from. Values are the metadata ``source`` strings."""

    PROJECT_ITEM = "ghe-project"
    REVIEW_REQUEST = "ghe-review"


class WorkItemType(Enum):
    """Kind of external unit of work."""

    ISSUE = "issue"
    PR = "pr"
    REVIEW = "review"
    TASK = "task"

    @classmethod
    def from_content_type(cls, typename: str | None) -> WorkItemType:
        """Map a GitHub content ``__typename`` to a work item type."""
        if typename == "PullRequest":
            return cls.PR
        return cls.ISSUE
