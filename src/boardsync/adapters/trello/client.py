"""
Trello API Client - Low-level HTTP client for the Trello REST API.

This handles the raw HTTP communication with Trello.
The TrelloAdapter uses this to implement the BoardPort.

Trello REST API documentation:
https://developer.atlassian.com/cloud/trello/rest/
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


class TrelloApiClient:
    """
    Low-level Trello REST API client.

    Handles authentication, request/response and error mapping.

    Features:
    - API key + token authentication (query parameters)
    - Typed exceptions per HTTP status
    - Connection pooling
    - Dry-run mode for write operations

    Requests are not retried: a failed call surfaces to the caller, which
    skips the item and lets the next scheduled run converge.
    """

    BASE_URL = "https://api.trello.com/1"

    # Connection pool settings
    DEFAULT_POOL_CONNECTIONS = 10
    DEFAULT_POOL_MAXSIZE = 10
    DEFAULT_TIMEOUT = 30.0

    CARD_FIELDS = "name,desc,idLabels,idList,shortUrl,url"

    def __init__(
        self,
        api_key: str,
        api_token: str,
        board_id: str = "",
        dry_run: bool = True,
        timeout: float = DEFAULT_TIMEOUT,
        base_url: str = BASE_URL,
    ):
        """
        Initialize the Trello client.

        Args:
            api_key: Trello API key
            api_token: Trello API token
            board_id: Default board id
            dry_run: If True, don't make write operations
            timeout: Request timeout in seconds
            base_url: API base url (overridable for tests)
        """
        self.api_key = api_key
        self.api_token = api_token
        self.board_id = board_id
        self.dry_run = dry_run
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")
        self.logger = logging.getLogger("TrelloApiClient")

        self._session = requests.Session()
        self._session.headers.update({"Accept": "application/json"})

        adapter = HTTPAdapter(
            pool_connections=self.DEFAULT_POOL_CONNECTIONS,
            pool_maxsize=self.DEFAULT_POOL_MAXSIZE,
        )
        self._session.mount("https://", adapter)
        self._session.mount("http://", adapter)

    @property
    def auth_params(self) -> dict[str, str]:
        """Query parameters authenticating every request."""
        return {"key": self.api_key, "token": self.api_token}

    # -------------------------------------------------------------------------
    # Core Request Methods
    # -------------------------------------------------------------------------

    def request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """
        Make an authenticated request to the Trello API.

        Args:
            method: HTTP method
            endpoint: API endpoint (e.g., 'boards/abc/lists')
            params: Query parameters; None values are dropped

        Returns:
            Decoded JSON response

        Raises:
            TrackerError: On API errors
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        query = dict(self.auth_params)
        for key, value in (params or {}).items():
            if value is not None:
                query[key] = value

        try:
            response = self._session.request(method, url, params=query, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise TransientError(f"Trello request timed out: {endpoint}", endpoint, cause=e)
        except requests.exceptions.ConnectionError as e:
            raise TransientError(f"Trello connection failed: {endpoint}", endpoint, cause=e)

        return self._handle_response(response, endpoint)

    def get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        """Perform a GET request."""
        return self.request("GET", endpoint, params)

    def post(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        """Perform a POST request. Respects dry_run mode."""
        if self.dry_run:
            self.logger.info(f"[DRY-RUN] Would POST to {endpoint}")
            return {}
        return self.request("POST", endpoint, params)

    def put(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        """Perform a PUT request. Respects dry_run mode."""
        if self.dry_run:
            self.logger.info(f"[DRY-RUN] Would PUT to {endpoint}")
            return {}
        return self.request("PUT", endpoint, params)

    # -------------------------------------------------------------------------
    # Response Handling
    # -------------------------------------------------------------------------

    def _handle_response(self, response: requests.Response, endpoint: str) -> Any:
        """Handle API response and convert errors to typed exceptions."""
        status = response.status_code

        if 200 <= status < 300:
            try:
                return response.json()
            except ValueError:
                return {}

        if status == 401:
            raise AuthenticationError("Trello authentication failed. Check key and token.")

        if status == 403:
            raise AccessDeniedError(f"Permission denied for {endpoint}", issue_key=endpoint)

        if status == 404:
            raise NotFoundError(f"Not found: {endpoint}", issue_key=endpoint)

        if status == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                f"Trello rate limit exceeded for {endpoint}",
                retry_after=float(retry_after) if retry_after else None,
                issue_key=endpoint,
            )

        if status >= 500:
            raise TransientError(f"Trello server error {status} for {endpoint}", endpoint)

        body = response.text[:500] if response.text else ""
        raise TrackerError(f"Trello API error {status}: {body}", issue_key=endpoint)

    # -------------------------------------------------------------------------
    # Boards
    # -------------------------------------------------------------------------

    def get_board_lists(self, board_id: str | None = None) -> list[dict[str, Any]]:
        """Get the open lists of a board."""
        result = self.get(f"boards/{board_id or self.board_id}/lists", {"fields": "name"})
        return result if isinstance(result, list) else []

    def get_board_labels(self, board_id: str | None = None) -> list[dict[str, Any]]:
        """Get the labels of a board."""
        result = self.get(f"boards/{board_id or self.board_id}/labels", {"fields": "name,color"})
        return result if isinstance(result, list) else []

    def get_board_cards(self, board_id: str | None = None) -> list[dict[str, Any]]:
        """Get the open cards of a board."""
        result = self.get(
            f"boards/{board_id or self.board_id}/cards", {"fields": self.CARD_FIELDS}
        )
        return result if isinstance(result, list) else []

    # -------------------------------------------------------------------------
    # Lists & Labels
    # -------------------------------------------------------------------------

    def create_list(self, name: str, board_id: str | None = None) -> dict[str, Any]:
        """Create a list on a board."""
        result = self.post("lists", {"name": name, "idBoard": board_id or self.board_id})
        return result if isinstance(result, dict) else {}

    def create_label(
        self, name: str, color: str = "blue", board_id: str | None = None
    ) -> dict[str, Any]:
        """Create a label on a board."""
        result = self.post(
            "labels", {"name": name, "color": color, "idBoard": board_id or self.board_id}
        )
        return result if isinstance(result, dict) else {}

    # -------------------------------------------------------------------------
    # Cards
    # -------------------------------------------------------------------------

    def create_card(
        self,
        name: str,
        list_id: str,
        desc: str = "",
        label_ids: list[str] | None = None,
    ) -> dict[str, Any]:
        """Create a card in a list."""
        params: dict[str, Any] = {"idList": list_id, "name": name, "desc": desc}
        if label_ids:
            params["idLabels"] = ",".join(label_ids)
        result = self.post("cards", params)
        return result if isinstance(result, dict) else {}

    def update_card(self, card_id: str, **fields: Any) -> dict[str, Any]:
        """
        Update a card.

        Args:
            card_id: Card id
            **fields: Trello card fields (name, desc, idList, idLabels, pos);
                None values are not sent
        """
        params = {key: value for key, value in fields.items() if value is not None}
        if isinstance(params.get("idLabels"), (list, tuple)):
            params["idLabels"] = ",".join(params["idLabels"])
        result = self.put(f"cards/{card_id}", params)
        return result if isinstance(result, dict) else {}

    # -------------------------------------------------------------------------
    # Resource Cleanup
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Close the client and release connection pool resources."""
        self._session.close()
        self.logger.debug("Closed HTTP session")

    def __enter__(self) -> "TrelloApiClient":
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
