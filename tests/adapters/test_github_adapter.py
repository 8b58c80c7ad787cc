"""
Tests for GitHubApiClient and GitHubAdapter.

Tests the client with mocked HTTP responses and the adapter with a mocked
client returning GraphQL-shaped data.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from boardsync.adapters.github import GitHubAdapter, GitHubApiClient, extract_repo_slug
from boardsync.core.exceptions import (
    AccessDeniedError,
    AuthenticationError,
    NotFoundError,
    RateLimitError,
    TrackerError,
    TransientError,
)
from boardsync.core.ports.config_provider import GitHubConfig


HOST = "github.example.com"


@pytest.fixture
def mock_session():
    """Create a mock requests session."""
    with patch("boardsync.adapters.github.client.requests.Session") as mock:
        session_instance = MagicMock()
        mock.return_value = session_instance
        yield session_instance


@pytest.fixture
def github_client(mock_session):
    """Create GitHubApiClient with mocked session."""
    return GitHubApiClient(
        token="ghp_test",
        api_url=f"https://{HOST}/api/v3",
        graphql_url=f"https://{HOST}/api/graphql",
        dry_run=False,
    )


def _response(status=200, json_data=None, headers=None, text="{}"):
    response = MagicMock()
    response.status_code = status
    response.json.return_value = json_data
    response.headers = headers or {}
    response.text = text
    return response


# =============================================================================
# Configuration
# =============================================================================


class TestGitHubConfig:
    """Tests for Enterprise-aware API urls."""

    def test_github_com_urls(self):
        config = GitHubConfig(token="t")
        assert config.api_url == "https://api.github.com"
        assert config.graphql_url == "https://api.github.com/graphql"

    def test_enterprise_urls(self):
        config = GitHubConfig(token="t", host=HOST)
        assert config.api_url == f"https://{HOST}/api/v3"
        assert config.graphql_url == f"https://{HOST}/api/graphql"


# =============================================================================
# Client
# =============================================================================


class TestGitHubApiClient:
    """Tests for REST and GraphQL requests."""

    def test_current_user_is_cached(self, github_client, mock_session):
        mock_session.request.return_value = _response(json_data={"login": "octocat"})

        assert github_client.get_current_user() == {"login": "octocat"}
        assert github_client.get_current_user() == {"login": "octocat"}
        assert mock_session.request.call_count == 1
        assert mock_session.request.call_args.args[1] == f"https://{HOST}/api/v3/user"

    def test_graphql_posts_query_and_returns_data(self, github_client, mock_session):
        mock_session.request.return_value = _response(json_data={"data": {"viewer": {}}})

        data = github_client.graphql("query { viewer { login } }", {"a": 1})

        assert data == {"viewer": {}}
        method, url = mock_session.request.call_args.args
        assert method == "POST"
        assert url == f"https://{HOST}/api/graphql"
        assert mock_session.request.call_args.kwargs["json"]["variables"] == {"a": 1}

    def test_graphql_errors_raise(self, github_client, mock_session):
        mock_session.request.return_value = _response(
            json_data={"errors": [{"message": "Field 'x' doesn't exist"}]}
        )

        with pytest.raises(TrackerError, match="Field 'x'"):
            github_client.graphql("query { x }")

    def test_graphql_not_found_type(self, github_client, mock_session):
        mock_session.request.return_value = _response(
            json_data={"errors": [{"type": "NOT_FOUND", "message": "nope"}]}
        )

        with pytest.raises(NotFoundError):
            github_client.graphql("query { x }")

    def test_graphql_rate_limited_type(self, github_client, mock_session):
        mock_session.request.return_value = _response(
            json_data={"errors": [{"type": "RATE_LIMITED", "message": "slow down"}]}
        )

        with pytest.raises(RateLimitError):
            github_client.graphql("query { x }")

    def test_dry_run_skips_mutations_only(self, mock_session):
        client = GitHubApiClient(token="t", dry_run=True)
        mock_session.request.return_value = _response(json_data={"data": {"ok": True}})

        assert client.update_project_item_field("p", "i", "f", "o") == {}
        assert mock_session.request.call_count == 0
        assert client.graphql("query { ok }") == {"ok": True}

    def test_missing_project_is_not_found(self, github_client, mock_session):
        mock_session.request.return_value = _response(
            json_data={"data": {"organization": {"projectV2": None}}}
        )

        with pytest.raises(NotFoundError):
            github_client.get_project_items_page("org", 7)

    def test_missing_pull_request_is_not_found(self, github_client, mock_session):
        mock_session.request.return_value = _response(json_data={"data": {"resource": None}})

        with pytest.raises(NotFoundError):
            github_client.get_pull_request(f"https://{HOST}/org/repo/pull/1")

    def test_search_adds_is_pr_and_drops_empty_nodes(self, github_client, mock_session):
        mock_session.request.return_value = _response(
            json_data={"data": {"search": {"nodes": [{}, {"url": "u1"}, None]}}}
        )

        nodes = github_client.search_pull_requests("review-requested:octocat", limit=500)

        assert nodes == [{"url": "u1"}]
        variables = mock_session.request.call_args.kwargs["json"]["variables"]
        assert variables == {"query": "is:pr review-requested:octocat", "first": 100}

    @pytest.mark.parametrize(
        "status,headers,error",
        [
            (401, {}, AuthenticationError),
            (403, {}, AccessDeniedError),
            (403, {"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "99"}, RateLimitError),
            (404, {}, NotFoundError),
            (429, {"Retry-After": "3"}, RateLimitError),
            (502, {}, TransientError),
            (422, {}, TrackerError),
        ],
    )
    def test_status_mapping(self, github_client, mock_session, status, headers, error):
        mock_session.request.return_value = _response(status=status, headers=headers)

        with pytest.raises(error):
            github_client.get("user")

    def test_connection_error_is_transient(self, github_client, mock_session):
        mock_session.request.side_effect = requests.exceptions.ConnectionError("down")

        with pytest.raises(TransientError):
            github_client.get("user")


# =============================================================================
# Adapter
# =============================================================================


def _item_node(
    item_id,
    updated_at,
    assignees=("octocat",),
    status="🏗 In progress",
    state="OPEN",
    number=1,
):
    return {
        "id": item_id,
        "updatedAt": updated_at,
        "fieldValues": {
            "nodes": [
                {},
                {"field": {"name": "Priority"}, "name": "P1"},
                {"field": {"name": "Status"}, "name": status},
            ]
        },
        "content": {
            "__typename": "Issue",
            "title": f"Issue {number}",
            "url": f"https://{HOST}/org/repo/issues/{number}",
            "body": "Body",
            "state": state,
            "repository": {"nameWithOwner": "org/repo"},
            "assignees": {"nodes": [{"login": login} for login in assignees]},
        },
    }


def _page(nodes, has_next=False, cursor=None):
    return {
        "id": "project-1",
        "items": {"nodes": nodes, "pageInfo": {"hasNextPage": has_next, "endCursor": cursor}},
    }


@pytest.fixture
def client():
    return MagicMock(spec=GitHubApiClient)


@pytest.fixture
def adapter(client):
    return GitHubAdapter(GitHubConfig(token="t", host=HOST, user="octocat"), client=client)


class TestGitHubAdapterProjects:
    """Tests for project item fetching and the status field."""

    def test_full_fetch_filters_assignee_and_follows_pages(self, adapter, client):
        client.get_project_items_page.side_effect = [
            _page([_item_node("A", "2024-01-01T00:00:00Z", number=1)], True, "c1"),
            _page(
                [
                    _item_node("B", "2024-01-03T00:00:00Z", assignees=("other",), number=2),
                    _item_node("C", "2024-01-02T00:00:00Z", number=3),
                ]
            ),
        ]

        page = adapter.fetch_assigned_project_items("org", 7, "octocat")

        assert [item.id for item in page.items] == ["A", "C"]
        assert page.max_updated_at == "2024-01-03T00:00:00Z"
        assert client.get_project_items_page.call_args_list[1].kwargs == {"after": "c1"}

    def test_parses_status_and_content(self, adapter, client):
        client.get_project_items_page.return_value = _page(
            [_item_node("A", "2024-01-01T00:00:00Z", state="CLOSED", number=42)]
        )

        [item] = adapter.fetch_assigned_project_items("org", 7, "octocat").items

        assert item.status == "🏗 In progress"
        assert item.content.url == f"https://{HOST}/org/repo/issues/42"
        assert item.content.repository == "org/repo"
        assert item.content.type == "Issue"
        assert item.is_closed
        assert item.assignees == ("octocat",)

    def test_incremental_skips_old_items_and_stops_at_stale_page(self, adapter, client):
        client.get_project_items_page.side_effect = [
            _page(
                [
                    _item_node("A", "2024-01-05T00:00:00Z"),
                    _item_node("B", "2024-01-01T00:00:00Z"),
                ],
                True,
                "c1",
            ),
            _page([_item_node("C", "2024-01-01T00:00:00Z")], True, "c2"),
            _page([_item_node("D", "2024-01-06T00:00:00Z")]),
        ]

        page = adapter.fetch_assigned_project_items(
            "org", 7, "octocat", last_sync_at="2024-01-02T00:00:00Z", full_refresh=False
        )

        assert [item.id for item in page.items] == ["A"]
        assert client.get_project_items_page.call_count == 2

    def test_empty_project(self, adapter, client):
        client.get_project_items_page.return_value = _page([])

        page = adapter.fetch_assigned_project_items("org", 7, "octocat")

        assert page.items == []
        assert page.max_updated_at is None

    def test_project_config(self, adapter, client):
        client.get_project_status_field.return_value = {
            "id": "project-1",
            "field": {
                "id": "field-1",
                "options": [{"id": "o1", "name": "📋 Ready"}, {"id": "o2", "name": "✅ Done"}],
            },
        }

        config = adapter.fetch_project_config("org", 7)

        assert config.project_id == "project-1"
        assert config.status_field_id == "field-1"
        assert config.status_options == {"📋 Ready": "o1", "✅ Done": "o2"}

    def test_project_without_status_field(self, adapter, client):
        client.get_project_status_field.return_value = {"id": "project-1", "field": None}

        with pytest.raises(TrackerError):
            adapter.fetch_project_config("org", 7)

    def test_update_status_delegates(self, adapter, client):
        adapter.update_project_item_status("p", "i", "f", "o")
        client.update_project_item_field.assert_called_once_with("p", "i", "f", "o")


class TestGitHubAdapterPullRequests:
    """Tests for review requests and PR details."""

    def test_review_requests(self, adapter, client):
        client.search_pull_requests.return_value = [
            {"title": "Add x", "url": f"https://{HOST}/org/repo/pull/7", "body": None},
        ]

        [request] = adapter.fetch_review_requests("octocat")

        assert request.repo == "org/repo"
        assert request.title == "Add x"
        query = client.search_pull_requests.call_args.args[0]
        assert "review-requested:octocat" in query
        assert "draft:false" in query

    def test_authored_prs(self, adapter, client):
        client.search_pull_requests.return_value = [{"url": "u1"}, {"url": "u2"}]

        assert adapter.fetch_authored_open_prs("octocat", limit=10) == ["u1", "u2"]
        client.search_pull_requests.assert_called_once_with("is:open author:octocat", limit=10)

    def test_pr_details(self, adapter, client):
        client.get_pull_request.return_value = {
            "url": f"https://{HOST}/org/repo/pull/7",
            "title": "Add x",
            "body": "Fixes #42",
            "author": {"login": "octocat"},
            "updatedAt": "2024-05-02T00:00:00Z",
            "mergeable": "MERGEABLE",
            "mergedAt": None,
            "state": "OPEN",
            "reviewRequests": {
                "nodes": [{"requestedReviewer": {"login": "r1"}}, {"requestedReviewer": {}}]
            },
            "reviews": {
                "nodes": [
                    {"author": {"login": "r2"}, "state": "APPROVED", "submittedAt": "t"},
                    None,
                ]
            },
        }

        pr = adapter.fetch_pr_details(f"https://{HOST}/org/repo/pull/7")

        assert pr.author == "octocat"
        assert pr.review_requests == ("r1",)
        assert pr.approved_by("r2")
        assert pr.mergeable == "MERGEABLE"
        assert not pr.merged

    def test_merged_pr(self, adapter, client):
        client.get_pull_request.return_value = {"url": "u", "mergedAt": "2024-05-02T00:00:00Z"}

        assert adapter.fetch_pr_details("u").merged

    def test_extract_repo_slug(self):
        assert extract_repo_slug(HOST, f"https://{HOST}/org/repo/pull/7") == "org/repo"
        assert extract_repo_slug(HOST, "https://github.com/org/repo/pull/7") is None
