"""
GitHub API Client - Low-level HTTP client for the GitHub REST and GraphQL APIs.

This handles the raw HTTP communication with GitHub or GitHub Enterprise.
The GitHubAdapter uses this to implement the CodeHostPort.

GitHub API documentation:
- REST: https://docs.github.com/en/rest
- GraphQL: https://docs.github.com/en/graphql
"""

import logging
from typing import Any

import requests
from requests.adapters import HTTPAdapter

from boardsync.core.exceptions import (
    AccessDeniedError,
    AuthenticationError,
    NotFoundError,
    RateLimitError,
    TrackerError,
    TransientError,
)


# -----------------------------------------------------------------------------
# GraphQL documents
# -----------------------------------------------------------------------------

PROJECT_ITEMS_QUERY = """
query($owner: String!, $number: Int!, $after: String) {
  organization(login: $owner) {
    projectV2(number: $number) {
      id
      items(first: 100, after: $after) {
        nodes {
          id
          updatedAt
          fieldValues(first: 20) {
            nodes {
              ... on ProjectV2ItemFieldSingleSelectValue {
                field {
                  ... on ProjectV2SingleSelectField { name }
                }
                name
              }
            }
          }
          content {
            __typename
            ... on Issue {
              title url body state
              repository { nameWithOwner }
              assignees(first: 20) { nodes { login } }
            }
            ... on PullRequest {
              title url body state
              repository { nameWithOwner }
              assignees(first: 20) { nodes { login } }
            }
          }
        }
        pageInfo { hasNextPage endCursor }
      }
    }
  }
}
"""

PROJECT_STATUS_FIELD_QUERY = """
query($owner: String!, $number: Int!, $field: String!) {
  organization(login: $owner) {
    projectV2(number: $number) {
      id
      field(name: $field) {
        ... on ProjectV2SingleSelectField { id name options { id name } }
      }
    }
  }
}
"""

UPDATE_ITEM_STATUS_MUTATION = """
mutation($projectId: ID!, $itemId: ID!, $fieldId: ID!, $optionId: String!) {
  updateProjectV2ItemFieldValue(
    input: {
      projectId: $projectId
      itemId: $itemId
      fieldId: $fieldId
      value: { singleSelectOptionId: $optionId }
    }
  ) {
    projectV2Item { id }
  }
}
"""

PULL_REQUEST_QUERY = """
query($url: URI!) {
  resource(url: $url) {
    ... on PullRequest {
      url
      title
      body
      updatedAt
      mergeable
      mergedAt
      state
      author { login }
      reviewRequests(first: 50) {
        nodes { requestedReviewer { ... on User { login } } }
      }
      reviews(first: 100) {
        nodes { author { login } state submittedAt }
      }
    }
  }
}
"""

SEARCH_PULL_REQUESTS_QUERY = """
query($query: String!, $first: Int!) {
  search(query: $query, type: ISSUE, first: $first) {
    nodes {
      ... on PullRequest { title url body updatedAt repository { nameWithOwner } }
    }
  }
}
"""


class GitHubApiClient:
    """
    Low-level GitHub API client.

    Handles authentication, request/response and error mapping for both
    the REST API and the GraphQL endpoint.

    Features:
    - Token authentication
    - GitHub Enterprise support via configurable API urls
    - Typed exceptions per HTTP status and GraphQL error type
    - Connection pooling
    - Dry-run mode for mutations

    Requests are not retried: a failed call surfaces to the caller, which
    skips the item and lets the next scheduled run converge.
    """

    DEFAULT_TIMEOUT = 30.0
    DEFAULT_POOL_CONNECTIONS = 10
    DEFAULT_POOL_MAXSIZE = 10

    def __init__(
        self,
        token: str,
        api_url: str = "https://api.github.com",
        graphql_url: str = "https://api.github.com/graphql",
        dry_run: bool = True,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Initialize the GitHub client.

        Args:
            token: Personal access token
            api_url: REST base url (``https://<host>/api/v3`` for Enterprise)
            graphql_url: GraphQL endpoint (``https://<host>/api/graphql`` for Enterprise)
            dry_run: If True, don't execute mutations
            timeout: Request timeout in seconds
        """
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.graphql_url = graphql_url
        self.dry_run = dry_run
        self.timeout = timeout
        self.logger = logging.getLogger("GitHubApiClient")

        self.headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {token}",
            "X-GitHub-Api-Version": "2022-11-28",
        }

        self._session = requests.Session()
        self._session.headers.update(self.headers)

        adapter = HTTPAdapter(
            pool_connections=self.DEFAULT_POOL_CONNECTIONS,
            pool_maxsize=self.DEFAULT_POOL_MAXSIZE,
        )
        self._session.mount("https://", adapter)
        self._session.mount("http://", adapter)

        # Cache
        self._current_user: dict[str, Any] | None = None

    # -------------------------------------------------------------------------
    # Core Request Methods
    # -------------------------------------------------------------------------

    def request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """
        Make an authenticated request to the GitHub API.

        Args:
            method: HTTP method
            endpoint: API endpoint (e.g., 'user') or absolute url
            **kwargs: Additional arguments for requests

        Returns:
            Decoded JSON response

        Raises:
            TrackerError: On API errors
        """
        if endpoint.startswith("http"):
            url = endpoint
        else:
            url = f"{self.api_url}/{endpoint.lstrip('/')}"

        kwargs.setdefault("timeout", self.timeout)

        try:
            response = self._session.request(method, url, **kwargs)
        except requests.exceptions.Timeout as e:
            raise TransientError(f"GitHub request timed out: {endpoint}", endpoint, cause=e)
        except requests.exceptions.ConnectionError as e:
            raise TransientError(f"GitHub connection failed: {endpoint}", endpoint, cause=e)

        return self._handle_response(response, endpoint)

    def get(self, endpoint: str, **kwargs: Any) -> Any:
        """Perform a GET request."""
        return self.request("GET", endpoint, **kwargs)

    def graphql(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
        mutation: bool = False,
    ) -> dict[str, Any]:
        """
        Execute a GraphQL document.

        Args:
            query: GraphQL query or mutation
            variables: Variables for the document
            mutation: True for writes; skipped in dry-run mode

        Returns:
            The ``data`` member of the response

        Raises:
            TrackerError: On HTTP errors or when the response carries ``errors``
        """
        if mutation and self.dry_run:
            self.logger.info(f"[DRY-RUN] Would execute GraphQL mutation with {variables}")
            return {}

        result = self.request(
            "POST",
            self.graphql_url,
            json={"query": query, "variables": variables or {}},
        )
        if not isinstance(result, dict):
            raise TrackerError("Unexpected GraphQL response", issue_key=self.graphql_url)

        errors = result.get("errors")
        if errors:
            messages = "; ".join(str(error.get("message", error)) for error in errors)
            if any(error.get("type") == "NOT_FOUND" for error in errors):
                raise NotFoundError(f"GraphQL: {messages}", issue_key=self.graphql_url)
            if any(error.get("type") == "RATE_LIMITED" for error in errors):
                raise RateLimitError(f"GraphQL: {messages}", issue_key=self.graphql_url)
            raise TrackerError(f"GraphQL error: {messages}", issue_key=self.graphql_url)

        data = result.get("data")
        return data if isinstance(data, dict) else {}

    # -------------------------------------------------------------------------
    # Response Handling
    # -------------------------------------------------------------------------

    def _handle_response(self, response: requests.Response, endpoint: str) -> Any:
        """Handle API response and convert errors to typed exceptions."""
        status = response.status_code

        if 200 <= status < 300:
            if not response.text:
                return {}
            try:
                return response.json()
            except ValueError:
                return {}

        if status == 401:
            raise AuthenticationError("GitHub authentication failed. Check your token.")

        if status == 403:
            if response.headers.get("X-RateLimit-Remaining") == "0":
                reset = response.headers.get("X-RateLimit-Reset")
                raise RateLimitError(
                    f"GitHub rate limit exceeded for {endpoint}",
                    retry_after=float(reset) if reset else None,
                    issue_key=endpoint,
                )
            raise AccessDeniedError(
                f"Permission denied for {endpoint}. Check token scopes.", issue_key=endpoint
            )

        if status == 404:
            raise NotFoundError(f"Not found: {endpoint}", issue_key=endpoint)

        if status == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                f"GitHub rate limit exceeded for {endpoint}",
                retry_after=float(retry_after) if retry_after else None,
                issue_key=endpoint,
            )

        if status >= 500:
            raise TransientError(f"GitHub server error {status} for {endpoint}", endpoint)

        body = response.text[:500] if response.text else ""
        raise TrackerError(f"GitHub API error {status}: {body}", issue_key=endpoint)

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    def get_current_user(self) -> dict[str, Any]:
        """Get the authenticated user."""
        if self._current_user is None:
            result = self.get("user")
            self._current_user = result if isinstance(result, dict) else {}
        return self._current_user

    # -------------------------------------------------------------------------
    # Projects
    # -------------------------------------------------------------------------

    def get_project_items_page(
        self, owner: str, number: int, after: str | None = None
    ) -> dict[str, Any]:
        """
        Fetch one page of project items.

        Returns:
            The ``projectV2`` object (``id`` and ``items``)

        Raises:
            NotFoundError: If the project does not exist
        """
        data = self.graphql(
            PROJECT_ITEMS_QUERY, {"owner": owner, "number": number, "after": after}
        )
        project = (data.get("organization") or {}).get("projectV2")
        if not project:
            raise NotFoundError(
                f"Project {owner}#{number} not found", issue_key=f"{owner}/{number}"
            )
        return project

    def get_project_status_field(
        self, owner: str, number: int, field_name: str = "Status"
    ) -> dict[str, Any]:
        """Fetch the project id and a single-select field with its options."""
        data = self.graphql(
            PROJECT_STATUS_FIELD_QUERY,
            {"owner": owner, "number": number, "field": field_name},
        )
        project = (data.get("organization") or {}).get("projectV2")
        if not project:
            raise NotFoundError(
                f"Project {owner}#{number} not found", issue_key=f"{owner}/{number}"
            )
        return project

    def update_project_item_field(
        self,
        project_id: str,
        item_id: str,
        field_id: str,
        option_id: str,
    ) -> dict[str, Any]:
        """Set a single-select field value on a project item. Respects dry_run mode."""
        return self.graphql(
            UPDATE_ITEM_STATUS_MUTATION,
            {
                "projectId": project_id,
                "itemId": item_id,
                "fieldId": field_id,
                "optionId": option_id,
            },
            mutation=True,
        )

    # -------------------------------------------------------------------------
    # Pull Requests
    # -------------------------------------------------------------------------

    def get_pull_request(self, url: str) -> dict[str, Any]:
        """
        Fetch a pull request by its web url.

        Raises:
            NotFoundError: If the url does not resolve to a pull request
        """
        data = self.graphql(PULL_REQUEST_QUERY, {"url": url})
        resource = data.get("resource")
        if not resource:
            raise NotFoundError(f"Pull request not found: {url}", issue_key=url)
        return resource

    def search_pull_requests(self, query: str, limit: int = 100) -> list[dict[str, Any]]:
        """
        Search pull requests.

        Args:
            query: GitHub search syntax (``is:pr`` is added)
            limit: Maximum results (GitHub caps a page at 100)
        """
        data = self.graphql(
            SEARCH_PULL_REQUESTS_QUERY,
            {"query": f"is:pr {query}", "first": min(limit, 100)},
        )
        nodes = (data.get("search") or {}).get("nodes") or []
        return [node for node in nodes if node and node.get("url")]

    # -------------------------------------------------------------------------
    # Resource Cleanup
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Close the client and release connection pool resources."""
        self._session.close()
        self.logger.debug("Closed HTTP session")

    def __enter__(self) -> "GitHubApiClient":
        """Context manager entry."""
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: Exception | None,
        exc_tb: Any,
    ) -> None:
        """Context manager exit."""
        self.close()
