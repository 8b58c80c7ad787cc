"""
Domain - Entities, enums, the metadata codec and the status policy.
"""

from .entities import (
    BoardLabel,
    BoardList,
    Card,
    ProjectConfig,
    ProjectItem,
    ProjectItemContent,
    PullRequestDetails,
    Review,
    ReviewRequest,
    WorkItem,
)
from .enums import WorkItemSource, WorkItemStatus, WorkItemType
from .metadata import (
    SyncMetadata,
    content_hash,
    extract_description_base,
    format_sync_metadata,
    normalize_base,
    parse_sync_metadata,
    update_description_with_sync,
)
from .policy import (
    LIST_ALIASES,
    GhStatus,
    LabelName,
    ListName,
    canonical_list_name,
    gh_status_to_list,
    gh_status_to_work_status,
    list_to_gh_status_name,
    required_labels,
    work_status_to_list,
)


__all__ = [
    "LIST_ALIASES",
    "BoardLabel",
    "BoardList",
    "Card",
    "GhStatus",
    "LabelName",
    "ListName",
    "ProjectConfig",
    "ProjectItem",
    "ProjectItemContent",
    "PullRequestDetails",
    "Review",
    "ReviewRequest",
    "SyncMetadata",
    "WorkItem",
    "WorkItemSource",
    "WorkItemStatus",
    "WorkItemType",
    "canonical_list_name",
    "content_hash",
    "extract_description_base",
    "format_sync_metadata",
    "gh_status_to_list",
    "gh_status_to_work_status",
    "list_to_gh_status_name",
    "normalize_base",
    "parse_sync_metadata",
    "required_labels",
    "update_description_with_sync",
    "work_status_to_list",
]
