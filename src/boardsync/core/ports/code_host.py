"""
Code Host Port - Abstract interface for the issue/PR host and its projects.

Implementations:
- GitHubAdapter: GitHub / GitHub Enterprise (REST + GraphQL)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from boardsync.core.domain.entities import (
    ProjectConfig,
    ProjectItem,
    PullRequestDetails,
    ReviewRequest,
)


@dataclass
class ProjectItemsPage:
    """
    Result of fetching project items.

    Attributes:
        items: Items assigned to the user (updated since the cursor)
        max_updated_at: Newest ``updatedAt`` seen, the next incremental cursor
    """

    items: list[ProjectItem] = field(default_factory=list)
    max_updated_at: str | None = None


class CodeHostPort(ABC):
    """
    Abstract interface for the code host.

    Covers three collaborator APIs: project item queries, pull request and
    review queries, and the single-select project status update.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the code host name (e.g., 'GitHub')."""
        ...

    @property
    @abstractmethod
    def host(self) -> str:
        """Web host the item urls live on (e.g., 'github.com')."""
        ...

    # -------------------------------------------------------------------------
    # Projects
    # -------------------------------------------------------------------------

    @abstractmethod
    def fetch_assigned_project_items(
        self,
        owner: str,
        number: int,
        assignee: str,
        last_sync_at: str | None = None,
        full_refresh: bool = True,
    ) -> ProjectItemsPage:
        """
        Fetch project items assigned to a user.

        Args:
            owner: Organization owning the project
            number: Project number
            assignee: Login the items must be assigned to
            last_sync_at: Only return items updated after this timestamp
            full_refresh: Ignore ``last_sync_at`` and return everything
        """
        ...

    @abstractmethod
    def fetch_project_config(self, owner: str, number: int) -> ProjectConfig:
        """Fetch the project id, Status field id and its option ids."""
        ...

    @abstractmethod
    def update_project_item_status(
        self,
        project_id: str,
        item_id: str,
        status_field_id: str,
        status_option_id: str,
    ) -> None:
        """Set the Status single-select field of a project item."""
        ...

    # -------------------------------------------------------------------------
    # Pull Requests
    # -------------------------------------------------------------------------

    @abstractmethod
    def fetch_review_requests(self, user: str) -> list[ReviewRequest]:
        """Fetch open, non-draft PRs where the user is a requested reviewer."""
        ...

    @abstractmethod
    def fetch_authored_open_prs(self, user: str, limit: int = 50) -> list[str]:
        """Fetch urls of open PRs authored by the user."""
        ...

    @abstractmethod
    def fetch_pr_details(self, url: str) -> PullRequestDetails:
        """Fetch author, merge state, review requests, reviews and body of a PR."""
        ...
