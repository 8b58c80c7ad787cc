"""
Exceptions - Centralized exception hierarchy for boardsync.

Hierarchy:
- BoardSyncError: Base for everything raised by boardsync
  - TrackerError: Errors talking to Trello or GitHub
    - AuthenticationError
    - ResourceNotFoundError
    - AccessDeniedError
    - RateLimitError
    - TransientError
  - ConfigError: Configuration problems (fatal for a run)
    - ConfigFileError
    - MissingConfigError
  - BoardContextError: Board is missing a required list or label
    - MissingListError
    - MissingLabelError
  - StatusMappingError: A board list has no matching project status option

Configuration, board-context and status-mapping errors are operator
errors and abort the operation they occur in. Tracker errors are
per-item failures: passes catch them at the item boundary.
"""

from __future__ import annotations


__all__ = [
    "AccessDeniedError",
    "AuthenticationError",
    "BoardContextError",
    "BoardSyncError",
    "ConfigError",
    "ConfigFileError",
    "MissingConfigError",
    "MissingLabelError",
    "MissingListError",
    "NotFoundError",
    "RateLimitError",
    "ResourceNotFoundError",
    "StatusMappingError",
    "TrackerError",
    "TransientError",
]


# =============================================================================
# Base
# =============================================================================


class BoardSyncError(Exception):
    """Base exception for all boardsync errors."""

    def __init__(self, message: str, cause: Exception | None = None):
        self.message = message
        self.cause = cause
        super().__init__(message)

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message} (caused by {type(self.cause).__name__}: {self.cause})"
        return self.message


# =============================================================================
# Tracker Errors
# =============================================================================


class TrackerError(BoardSyncError):
    """
    Error returned by an external tracker API (Trello or GitHub).

    Attributes:
        issue_key: The resource being operated on (endpoint, card id or url)
    """

    def __init__(
        self,
        message: str,
        issue_key: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause)
        self.issue_key = issue_key


class AuthenticationError(TrackerError):
    """Credentials were rejected (HTTP 401)."""


class ResourceNotFoundError(TrackerError):
    """The requested resource does not exist (HTTP 404)."""


class AccessDeniedError(TrackerError):
    """Credentials lack permission for the resource (HTTP 403)."""


class RateLimitError(TrackerError):
    """The API rate limit was exceeded (HTTP 429)."""

    def __init__(
        self,
        message: str,
        retry_after: float | None = None,
        issue_key: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, issue_key, cause)
        self.retry_after = retry_after


class TransientError(TrackerError):
    """Server-side failure (5xx, connection reset, timeout)."""


# Aliases used by the adapters
NotFoundError = ResourceNotFoundError


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigError(BoardSyncError):
    """Invalid or incomplete configuration."""

    def __init__(
        self,
        message: str,
        config_path: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause)
        self.config_path = config_path

    def __str__(self) -> str:
        base = super().__str__()
        if self.config_path:
            return f"{base} [{self.config_path}]"
        return base


class ConfigFileError(ConfigError):
    """A config file could not be read or parsed."""


class MissingConfigError(ConfigError):
    """A required configuration value is absent."""

    def __init__(
        self,
        message: str,
        missing_key: str | None = None,
        env_var: str | None = None,
        config_path: str | None = None,
    ):
        super().__init__(message, config_path)
        self.missing_key = missing_key
        self.env_var = env_var


# =============================================================================
# Board / Mapping Errors
# =============================================================================


class BoardContextError(BoardSyncError):
    """The board does not have the lists and labels sync relies on."""


class MissingListError(BoardContextError):
    """A required list is missing and creation is not allowed."""

    def __init__(self, list_name: str):
        super().__init__(f"Missing Trello list: {list_name}")
        self.list_name = list_name


class MissingLabelError(BoardContextError):
    """A required label is missing and creation is not allowed."""

    def __init__(self, label_name: str):
        super().__init__(f"Missing Trello label: {label_name}")
        self.label_name = label_name


class StatusMappingError(BoardSyncError):
    """No project status option exists for the status a list maps to."""

    def __init__(self, status_name: str, card_id: str | None = None):
        super().__init__(f"Missing status option for {status_name}")
        self.status_name = status_name
        self.card_id = card_id
