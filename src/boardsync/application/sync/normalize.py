"""
Work-Item Normalizer - Code-host records -> canonical WorkItems.
"""

from __future__ import annotations

from collections.abc import Iterable

from boardsync.core.domain.entities import ProjectItem, ReviewRequest, WorkItem
from boardsync.core.domain.enums import WorkItemSource, WorkItemStatus, WorkItemType
from boardsync.core.domain.policy import gh_status_to_work_status


def normalize_project_item(item: ProjectItem) -> WorkItem | None:
    """
    Normalize a project item.

    Returns None for items without content url or title (e.g. draft issues
    or redacted content).
    """
    content = item.content
    url = content.url if content else None
    title = (content.title if content else None) or item.title
    if not url or not title:
        return None

    return WorkItem(
        id=item.id,
        source=WorkItemSource.PROJECT_ITEM,
        type=WorkItemType.from_content_type(content.type if content else None),
        title=title,
        url=url,
        repo=content.repository if content else None,
        status=gh_status_to_work_status(item.status),
        body=content.body if content else None,
        project_item_id=item.id,
    )


def normalize_review_request(item: ReviewRequest) -> WorkItem:
    """Normalize a review request. The PR url doubles as the item id."""
    return WorkItem(
        id=item.url,
        source=WorkItemSource.REVIEW_REQUEST,
        type=WorkItemType.REVIEW,
        title=item.title,
        url=item.url,
        repo=item.repo,
        status=WorkItemStatus.READY,
        body=item.body,
    )


def split_closed_items(
    project_items: Iterable[ProjectItem],
) -> tuple[list[WorkItem], list[WorkItem]]:
    """
    Normalize project items and partition them by content state.

    Returns:
        ``(open_items, closed_items)``; anything whose content state is set
        and not OPEN counts as closed
    """
    open_items: list[WorkItem] = []
    closed_items: list[WorkItem] = []
    for project_item in project_items:
        item = normalize_project_item(project_item)
        if item is None:
            continue
        if project_item.is_closed:
            closed_items.append(item)
        else:
            open_items.append(item)
    return open_items, closed_items
