"""
Tests for TrelloApiClient and TrelloAdapter.

Tests the REST client with a mocked requests session and the adapter with
a mocked client.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from boardsync.adapters.trello import TrelloAdapter, TrelloApiClient
from boardsync.core.domain.entities import Card
from boardsync.core.exceptions import (
    AccessDeniedError,
    AuthenticationError,
    NotFoundError,
    RateLimitError,
    TrackerError,
    TransientError,
)
from boardsync.core.ports.config_provider import TrelloConfig


@pytest.fixture
def mock_session():
    """Create a mock requests session."""
    with patch("boardsync.adapters.trello.client.requests.Session") as mock:
        session_instance = MagicMock()
        mock.return_value = session_instance
        yield session_instance


@pytest.fixture
def trello_client(mock_session):
    """Create TrelloApiClient with mocked session."""
    return TrelloApiClient(api_key="key", api_token="token", board_id="board-1", dry_run=False)


def _response(status=200, json_data=None, headers=None, text="x"):
    response = MagicMock()
    response.status_code = status
    response.json.return_value = json_data
    response.headers = headers or {}
    response.text = text
    return response


# =============================================================================
# Client - Requests
# =============================================================================


class TestTrelloApiClientRequests:
    """Tests for request building."""

    def test_auth_params_and_dropped_nones(self, trello_client, mock_session):
        mock_session.request.return_value = _response(json_data=[])

        trello_client.get("boards/board-1/lists", {"fields": "name", "filter": None})

        method, url = mock_session.request.call_args.args
        params = mock_session.request.call_args.kwargs["params"]
        assert method == "GET"
        assert url == "https://api.trello.com/1/boards/board-1/lists"
        assert params == {"key": "key", "token": "token", "fields": "name"}

    def test_get_board_cards_uses_default_board(self, trello_client, mock_session):
        mock_session.request.return_value = _response(json_data=[{"id": "c1"}])

        assert trello_client.get_board_cards() == [{"id": "c1"}]
        assert "boards/board-1/cards" in mock_session.request.call_args.args[1]

    def test_non_list_response_is_empty(self, trello_client, mock_session):
        mock_session.request.return_value = _response(json_data={"unexpected": True})
        assert trello_client.get_board_lists() == []

    def test_update_card_joins_labels_and_drops_nones(self, trello_client, mock_session):
        mock_session.request.return_value = _response(json_data={"id": "c1"})

        trello_client.update_card("c1", desc="d", idLabels=["a", "b"], idList=None, pos="top")

        params = mock_session.request.call_args.kwargs["params"]
        assert params["idLabels"] == "a,b"
        assert params["pos"] == "top"
        assert "idList" not in params
        assert mock_session.request.call_args.args[0] == "PUT"

    def test_dry_run_skips_writes(self, mock_session):
        client = TrelloApiClient(api_key="key", api_token="token", dry_run=True)

        assert client.create_card("name", "list-1") == {}
        assert client.update_card("c1", desc="d") == {}
        mock_session.request.assert_not_called()

    def test_dry_run_still_reads(self, mock_session):
        client = TrelloApiClient(api_key="key", api_token="token", board_id="b", dry_run=True)
        mock_session.request.return_value = _response(json_data=[{"id": "l1", "name": "Doing"}])

        assert client.get_board_lists() == [{"id": "l1", "name": "Doing"}]


# =============================================================================
# Client - Error Mapping
# =============================================================================


class TestTrelloApiClientErrors:
    """Tests for HTTP status -> exception mapping."""

    @pytest.mark.parametrize(
        "status,error",
        [
            (401, AuthenticationError),
            (403, AccessDeniedError),
            (404, NotFoundError),
            (500, TransientError),
            (503, TransientError),
            (400, TrackerError),
        ],
    )
    def test_status_mapping(self, trello_client, mock_session, status, error):
        mock_session.request.return_value = _response(status=status)

        with pytest.raises(error):
            trello_client.get("cards/c1")

    def test_rate_limit_retry_after(self, trello_client, mock_session):
        mock_session.request.return_value = _response(status=429, headers={"Retry-After": "7"})

        with pytest.raises(RateLimitError) as exc_info:
            trello_client.get("cards/c1")

        assert exc_info.value.retry_after == 7.0

    def test_timeout_is_transient(self, trello_client, mock_session):
        mock_session.request.side_effect = requests.exceptions.Timeout("slow")

        with pytest.raises(TransientError) as exc_info:
            trello_client.get("cards/c1")

        assert isinstance(exc_info.value.cause, requests.exceptions.Timeout)

    def test_connection_error_is_transient(self, trello_client, mock_session):
        mock_session.request.side_effect = requests.exceptions.ConnectionError("down")

        with pytest.raises(TransientError):
            trello_client.get("cards/c1")

    def test_invalid_json_is_empty(self, trello_client, mock_session):
        response = _response()
        response.json.side_effect = ValueError("not json")
        mock_session.request.return_value = response

        assert trello_client.get("cards/c1") == {}


# =============================================================================
# Adapter
# =============================================================================


@pytest.fixture
def mock_client():
    return MagicMock(spec=TrelloApiClient)


@pytest.fixture
def config():
    return TrelloConfig(api_key="key", api_token="token", board_id="board-1")


class TestTrelloAdapter:
    """Tests for TrelloAdapter parsing and dry-run behavior."""

    def test_parses_cards(self, config, mock_client):
        mock_client.get_board_cards.return_value = [
            {
                "id": "c1",
                "name": "WORK: x",
                "desc": None,
                "idList": "l1",
                "idLabels": ["a"],
                "shortUrl": "https://trello.com/c/abc",
            }
        ]
        adapter = TrelloAdapter(config, dry_run=False, client=mock_client)

        [card] = adapter.get_cards("board-1")

        assert card == Card(
            id="c1",
            name="WORK: x",
            desc="",
            list_id="l1",
            label_ids=["a"],
            short_url="https://trello.com/c/abc",
        )

    def test_parses_unnamed_labels(self, config, mock_client):
        mock_client.get_board_labels.return_value = [{"id": "b1", "name": None, "color": "red"}]
        adapter = TrelloAdapter(config, client=mock_client)

        [label] = adapter.get_labels("board-1")

        assert label.name == ""
        assert label.color == "red"

    def test_update_card_maps_field_names(self, config, mock_client):
        mock_client.update_card.return_value = {"id": "c1", "idList": "l2"}
        adapter = TrelloAdapter(config, dry_run=False, client=mock_client)

        card = adapter.update_card("c1", desc="d", list_id="l2", label_ids=["a"], pos="top")

        mock_client.update_card.assert_called_once_with(
            "c1", name=None, desc="d", idList="l2", idLabels=["a"], pos="top"
        )
        assert card.list_id == "l2"

    def test_create_card(self, config, mock_client):
        mock_client.create_card.return_value = {"id": "c9", "name": "n", "idList": "l1"}
        adapter = TrelloAdapter(config, dry_run=False, client=mock_client)

        card = adapter.create_card("l1", "n", "d", ["a"])

        assert card.id == "c9"
        mock_client.create_card.assert_called_once_with(
            name="n", list_id="l1", desc="d", label_ids=["a"]
        )

    def test_dry_run_writes_nothing(self, config, mock_client):
        adapter = TrelloAdapter(config, dry_run=True, client=mock_client)

        card = adapter.create_card("l1", "n", "d", ["a"])
        created_list = adapter.create_list("board-1", "Doing")
        label = adapter.create_label("board-1", "work")

        assert card.id == ""
        assert card.list_id == "l1"
        assert created_list.name == "Doing"
        assert label.name == "work"
        assert adapter.update_card("c1", desc="d") is None
        mock_client.create_card.assert_not_called()
        mock_client.create_list.assert_not_called()
        mock_client.create_label.assert_not_called()
        mock_client.update_card.assert_not_called()

    def test_close_closes_client(self, config, mock_client):
        TrelloAdapter(config, client=mock_client).close()
        mock_client.close.assert_called_once()
