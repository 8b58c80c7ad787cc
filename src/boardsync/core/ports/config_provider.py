"""
Configuration Provider Port - Abstract interface for configuration.

Implementations:
- EnvironmentConfigProvider: Load from env vars, .env and an optional config file
- FileConfigProvider: Load from a YAML/TOML config file
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from boardsync.core.constants import (
    DEFAULT_EVENTS_FILE,
    DEFAULT_SNAPSHOTS_FILE,
    DEFAULT_STATE_DIR,
)
from boardsync.core.domain.policy import LabelName


@dataclass
class TrelloConfig:
    """Configuration for the Trello board."""

    api_key: str
    api_token: str
    board_id: str


@dataclass
class GitHubConfig:
    """Configuration for the GitHub (Enterprise) host and project."""

    token: str
    host: str = "github.com"
    user: str = ""
    project_owner: str = ""
    project_number: int = 0

    @property
    def api_url(self) -> str:
        """REST base url for the host."""
        if self.host == "github.com":
            return "https://api.github.com"
        return f"https://{self.host}/api/v3"

    @property
    def graphql_url(self) -> str:
        """GraphQL endpoint for the host."""
        if self.host == "github.com":
            return "https://api.github.com/graphql"
        return f"https://{self.host}/api/graphql"


@dataclass
class SyncConfig:
    """Configuration for sync runs."""

    dry_run: bool = False
    verbose: bool = False

    # Ignore the incremental project cursor for this run
    full_refresh: bool = False

    # Label marking cards whose status is driven by the GitHub project
    primary_label: str = LabelName.WORK

    # State store
    state_dir: str = DEFAULT_STATE_DIR
    events_file: str = DEFAULT_EVENTS_FILE
    snapshots_file: str = DEFAULT_SNAPSHOTS_FILE

    @property
    def events_path(self) -> Path:
        return Path(self.state_dir).expanduser() / self.events_file

    @property
    def snapshots_path(self) -> Path:
        return Path(self.state_dir).expanduser() / self.snapshots_file


@dataclass
class AppConfig:
    """Complete application configuration."""

    trello: TrelloConfig
    github: GitHubConfig
    sync: SyncConfig

    def validate(self) -> list[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not self.trello.board_id:
            errors.append("Missing Trello board id (TRELLO_BOARD_ID)")
        if not self.trello.api_key:
            errors.append("Missing Trello API key (TRELLO_API_KEY)")
        if not self.trello.api_token:
            errors.append("Missing Trello token (TRELLO_TOKEN)")
        if not self.github.host:
            errors.append("Missing GitHub host (GH_HOST)")
        if not self.github.token:
            errors.append("Missing GitHub token (GITHUB_TOKEN)")
        if not self.github.user:
            errors.append("Missing GitHub user (GH_USER)")

        return errors


class ConfigProviderPort(ABC):
    """
    Abstract interface for configuration providers.

    Configuration can come from various sources:
    - Environment variables
    - .env files
    - YAML/TOML config files
    - Command line arguments
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the provider name."""
        ...

    @abstractmethod
    def load(self) -> AppConfig:
        """
        Load configuration from source.

        Returns:
            Complete application configuration
        """
        ...

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a specific configuration value.

        Args:
            key: Configuration key (dot notation supported)
            default: Default value if not found
        """
        ...

    @abstractmethod
    def validate(self) -> list[str]:
        """
        Validate loaded configuration.

        Returns:
            List of validation errors
        """
        ...
