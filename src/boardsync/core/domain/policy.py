"""
Policy Mapper - Status vocabularies and board list names.

Pure, total functions between three vocabularies:
- GitHub project status option names ("🏗 In progress")
- Canonical work item statuses (WorkItemStatus.IN_PROGRESS)
- Board list names ("Doing")

Unknown values never raise: inbound mappings fall back to the Triage list
(or the DESIGN status), outbound mappings fall back to "📋 Ready".
"""

from __future__ import annotations

from types import MappingProxyType

from .enums import WorkItemStatus


class ListName:
    """Canonical names of the board lists."""

    INBOX = "Inbox"
    TRIAGE = "Triage"
    READY = "Ready"
    DOING = "Doing"
    WAITING = "Waiting"
    DONE = "Done"

    ALL: tuple[str, ...] = (INBOX, TRIAGE, READY, DOING, WAITING, DONE)


class LabelName:
    """Names of the board labels the sync relies on."""

    WORK = "work"
    REVIEW = "review"

    # Additional labels provisioned on a new board
    PERSONAL: tuple[str, ...] = ("household", "journal", "dotfiles")


class GhStatus:
    """Option names of the GitHub project Status field."""

    DESIGN = "🔍 Design, Research and Investigation"
    READY = "📋 Ready"
    NEXT = "🔖 Next up"
    IN_PROGRESS = "🏗 In progress"
    IN_REVIEW = "👀 In review"
    BLOCKED = "🚫 Blocked"
    DONE = "✅ Done"


# Cosmetic renames of a list that must still resolve to the canonical name
LIST_ALIASES = MappingProxyType(
    {
        "Done (This Week)": ListName.DONE,
        "✅ Done": ListName.DONE,
    }
)

_GH_STATUS_TO_WORK_STATUS = MappingProxyType(
    {
        GhStatus.DESIGN: WorkItemStatus.DESIGN,
        GhStatus.READY: WorkItemStatus.READY,
        GhStatus.NEXT: WorkItemStatus.NEXT,
        GhStatus.IN_PROGRESS: WorkItemStatus.IN_PROGRESS,
        GhStatus.IN_REVIEW: WorkItemStatus.IN_REVIEW,
        GhStatus.BLOCKED: WorkItemStatus.BLOCKED,
        GhStatus.DONE: WorkItemStatus.DONE,
    }
)

_WORK_STATUS_TO_LIST = MappingProxyType(
    {
        WorkItemStatus.DESIGN: ListName.TRIAGE,
        WorkItemStatus.READY: ListName.READY,
        WorkItemStatus.NEXT: ListName.READY,
        WorkItemStatus.IN_PROGRESS: ListName.DOING,
        WorkItemStatus.IN_REVIEW: ListName.WAITING,
        WorkItemStatus.BLOCKED: ListName.WAITING,
        WorkItemStatus.DONE: ListName.DONE,
    }
)


def required_labels(primary_label: str = LabelName.WORK) -> tuple[str, ...]:
    """Labels every board must carry, primary source label first."""
    return (primary_label, LabelName.REVIEW, *LabelName.PERSONAL)


def canonical_list_name(name: str) -> str:
    """Resolve a list name through the alias table."""
    return LIST_ALIASES.get(name, name)


def gh_status_to_work_status(status: str | None) -> WorkItemStatus:
    """Project status option name -> canonical status (unknown -> DESIGN)."""
    if status is None:
        return WorkItemStatus.DESIGN
    return _GH_STATUS_TO_WORK_STATUS.get(status, WorkItemStatus.DESIGN)


def gh_status_to_list(status: str | None) -> str:
    """Project status option name -> list name (unknown -> Triage)."""
    if status is None or status not in _GH_STATUS_TO_WORK_STATUS:
        return ListName.TRIAGE
    return _WORK_STATUS_TO_LIST[_GH_STATUS_TO_WORK_STATUS[status]]


def work_status_to_list(status: WorkItemStatus | str | None) -> str:
    """Canonical status (enum or stored string) -> list name (unknown -> Triage)."""
    if status is None:
        return ListName.TRIAGE
    if isinstance(status, str):
        status = WorkItemStatus.from_string(status)
    return _WORK_STATUS_TO_LIST.get(status, ListName.TRIAGE)


def list_to_gh_status_name(list_name: str, is_review: bool) -> str:
    """
    List name -> project status option name.

    "Waiting" is ambiguous between a blocked item and one in review; the
    review label on the card decides.
    """
    normalized = canonical_list_name(list_name)
    if normalized == ListName.READY:
        return GhStatus.READY
    if normalized == ListName.DOING:
        return GhStatus.IN_PROGRESS
    if normalized == ListName.WAITING:
        return GhStatus.IN_REVIEW if is_review else GhStatus.BLOCKED
    if normalized == ListName.DONE:
        return GhStatus.DONE
    return GhStatus.READY
