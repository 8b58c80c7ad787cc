"""
GitHub Adapter - Implements CodeHostPort for GitHub and GitHub Enterprise.

Key mappings:
- ProjectItem -> ProjectV2 item (Status single-select value, Issue/PR content)
- ReviewRequest -> open, non-draft PR where the user is a requested reviewer
- PullRequestDetails -> PR author, merge state, review requests and reviews
"""

import logging
import re
from typing import Any

from boardsync.core.constants import PROJECT_STATUS_FIELD
from boardsync.core.domain.entities import (
    ProjectConfig,
    ProjectItem,
    ProjectItemContent,
    PullRequestDetails,
    Review,
    ReviewRequest,
)
from boardsync.core.exceptions import TrackerError
from boardsync.core.ports.code_host import CodeHostPort, ProjectItemsPage
from boardsync.core.ports.config_provider import GitHubConfig

from .client import GitHubApiClient


def extract_repo_slug(host: str, url: str) -> str | None:
    """Return ``owner/repo`` from a pull request url on the given host."""
    match = re.search(rf"https://{re.escape(host)}/([^/]+/[^/]+)/pull/\d+", url)
    return match.group(1) if match else None


class GitHubAdapter(CodeHostPort):
    """
    GitHub implementation of the CodeHostPort.

    Reads go through GraphQL; the only write is the project Status mutation,
    which the client skips in dry-run mode.
    """

    def __init__(
        self,
        config: GitHubConfig,
        dry_run: bool = True,
        client: GitHubApiClient | None = None,
    ):
        """
        Initialize the GitHub adapter.

        Args:
            config: GitHub configuration
            dry_run: If True, don't make changes
            client: Optional pre-built API client
        """
        self.config = config
        self._dry_run = dry_run
        self.logger = logging.getLogger("GitHubAdapter")

        self._client = client or GitHubApiClient(
            token=config.token,
            api_url=config.api_url,
            graphql_url=config.graphql_url,
            dry_run=dry_run,
        )

    # -------------------------------------------------------------------------
    # CodeHostPort Implementation - Properties
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str:
        return "GitHub"

    @property
    def host(self) -> str:
        return self.config.host

    def get_current_user(self) -> dict[str, Any]:
        """The authenticated user; doubles as a credentials check."""
        return self._client.get_current_user()

    # -------------------------------------------------------------------------
    # CodeHostPort Implementation - Projects
    # -------------------------------------------------------------------------

    def fetch_assigned_project_items(
        self,
        owner: str,
        number: int,
        assignee: str,
        last_sync_at: str | None = None,
        full_refresh: bool = True,
    ) -> ProjectItemsPage:
        incremental = bool(last_sync_at) and not full_refresh
        result = ProjectItemsPage()
        cursor: str | None = None

        while True:
            project = self._client.get_project_items_page(owner, number, after=cursor)
            connection = project.get("items") or {}
            nodes = [node for node in connection.get("nodes") or [] if node]
            if not nodes:
                break

            page_is_stale = incremental
            for node in nodes:
                updated_at = node.get("updatedAt") or ""
                if updated_at and (
                    result.max_updated_at is None or updated_at > result.max_updated_at
                ):
                    result.max_updated_at = updated_at
                if last_sync_at and updated_at > last_sync_at:
                    page_is_stale = False

                item = self._parse_project_item(node)
                if assignee not in item.assignees:
                    continue
                if incremental and updated_at <= last_sync_at:
                    continue
                result.items.append(item)

            # A page with nothing newer than the cursor ends the scan
            if page_is_stale:
                self.logger.debug(f"Stopping at stale page after cursor {cursor}")
                break

            page_info = connection.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                break
            cursor = page_info.get("endCursor")

        self.logger.info(
            f"Fetched {len(result.items)} project items assigned to {assignee} "
            f"({'incremental' if incremental else 'full'})"
        )
        return result

    def fetch_project_config(self, owner: str, number: int) -> ProjectConfig:
        project = self._client.get_project_status_field(owner, number, PROJECT_STATUS_FIELD)
        status_field = project.get("field")
        if not status_field or not status_field.get("options"):
            raise TrackerError(
                f"Project {PROJECT_STATUS_FIELD} field not found",
                issue_key=f"{owner}/{number}",
            )

        return ProjectConfig(
            project_id=project.get("id", ""),
            status_field_id=status_field.get("id", ""),
            status_options={
                option["name"]: option["id"] for option in status_field.get("options", [])
            },
        )

    def update_project_item_status(
        self,
        project_id: str,
        item_id: str,
        status_field_id: str,
        status_option_id: str,
    ) -> None:
        self._client.update_project_item_field(
            project_id, item_id, status_field_id, status_option_id
        )
        if not self._dry_run:
            self.logger.debug(f"Set status option {status_option_id} on item {item_id}")

    # -------------------------------------------------------------------------
    # CodeHostPort Implementation - Pull Requests
    # -------------------------------------------------------------------------

    def fetch_review_requests(self, user: str) -> list[ReviewRequest]:
        nodes = self._client.search_pull_requests(
            f"is:open draft:false review-requested:{user}", limit=100
        )
        return [
            ReviewRequest(
                title=node.get("title") or "",
                url=node["url"],
                body=node.get("body"),
                repo=extract_repo_slug(self.host, node["url"])
                or (node.get("repository") or {}).get("nameWithOwner"),
            )
            for node in nodes
        ]

    def fetch_authored_open_prs(self, user: str, limit: int = 50) -> list[str]:
        nodes = self._client.search_pull_requests(f"is:open author:{user}", limit=limit)
        return [node["url"] for node in nodes]

    def fetch_pr_details(self, url: str) -> PullRequestDetails:
        return self._parse_pull_request(self._client.get_pull_request(url))

    # -------------------------------------------------------------------------
    # Parsing
    # -------------------------------------------------------------------------

    @staticmethod
    def _parse_project_item(node: dict[str, Any]) -> ProjectItem:
        content_data = node.get("content")
        content = None
        assignees: tuple[str, ...] = ()
        if content_data:
            assignees = tuple(
                assignee["login"]
                for assignee in (content_data.get("assignees") or {}).get("nodes") or []
                if assignee and assignee.get("login")
            )
            content = ProjectItemContent(
                title=content_data.get("title") or "",
                url=content_data.get("url") or "",
                body=content_data.get("body"),
                repository=(content_data.get("repository") or {}).get("nameWithOwner"),
                state=content_data.get("state"),
                type=content_data.get("__typename"),
            )

        status = None
        for value in (node.get("fieldValues") or {}).get("nodes") or []:
            if value and (value.get("field") or {}).get("name") == PROJECT_STATUS_FIELD:
                status = value.get("name")
                break

        return ProjectItem(
            id=node.get("id", ""),
            title=content.title if content else "",
            status=status,
            assignees=assignees,
            content=content,
            updated_at=node.get("updatedAt"),
        )

    @staticmethod
    def _parse_pull_request(data: dict[str, Any]) -> PullRequestDetails:
        review_requests: list[str] = []
        for request in (data.get("reviewRequests") or {}).get("nodes") or []:
            login = ((request or {}).get("requestedReviewer") or {}).get("login")
            if login:
                review_requests.append(login)

        reviews = tuple(
            Review(
                author=(review.get("author") or {}).get("login") or "",
                state=review.get("state") or "",
                submitted_at=review.get("submittedAt"),
            )
            for review in (data.get("reviews") or {}).get("nodes") or []
            if review
        )
        return PullRequestDetails(
            url=data.get("url", ""),
            title=data.get("title") or "",
            body=data.get("body"),
            author=(data.get("author") or {}).get("login"),
            updated_at=data.get("updatedAt"),
            mergeable=data.get("mergeable"),
            merged=bool(data.get("mergedAt")) or data.get("state") == "MERGED",
            state=data.get("state"),
            review_requests=tuple(review_requests),
            reviews=reviews,
        )

    # -------------------------------------------------------------------------
    # Resource Cleanup
    # -------------------------------------------------------------------------

    def close(self) -> None:
        self._client.close()
