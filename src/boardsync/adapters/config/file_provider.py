"""
File Configuration Provider - Load configuration from YAML or TOML files.

Supported files (searched in the working directory, then the user config
directory):
- .boardsync.yaml / .boardsync.yml
- .boardsync.toml
- pyproject.toml with a [tool.boardsync] table
- ~/.config/boardsync/config.yaml

Example .boardsync.yaml:

    trello:
      api_key: abc
      api_token: def
      board_id: 5f1c0ffee

    github:
      host: github.example.com
      user: octocat
      project_owner: example-org
      project_number: 7

    sync:
      primary_label: work
      state_dir: ~/.boardsync/state
"""

import logging
import tomllib
from pathlib import Path
from typing import Any

import yaml

from boardsync.core.constants import (
    DEFAULT_EVENTS_FILE,
    DEFAULT_SNAPSHOTS_FILE,
    DEFAULT_STATE_DIR,
)
from boardsync.core.domain.policy import LabelName
from boardsync.core.exceptions import ConfigError, ConfigFileError, MissingConfigError
from boardsync.core.ports.config_provider import (
    AppConfig,
    ConfigProviderPort,
    GitHubConfig,
    SyncConfig,
    TrelloConfig,
)


CONFIG_FILENAMES = (
    ".boardsync.yaml",
    ".boardsync.yml",
    ".boardsync.toml",
    "pyproject.toml",
)

USER_CONFIG_PATH = Path("~/.config/boardsync/config.yaml")

SECTIONS = ("trello", "github", "sync")

# Alternate spellings accepted in config files
KEY_ALIASES = {
    "trello.token": "trello.api_token",
    "trello.key": "trello.api_key",
    "github.number": "github.project_number",
    "github.owner": "github.project_owner",
}

# Short CLI override names
CLI_OVERRIDE_KEYS = {
    "dry_run": "sync.dry_run",
    "verbose": "sync.verbose",
    "full_refresh": "sync.full_refresh",
    "primary_label": "sync.primary_label",
    "state_dir": "sync.state_dir",
    "board_id": "trello.board_id",
    "gh_host": "github.host",
    "gh_user": "github.user",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}


def to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUE_VALUES


def to_int(value: Any, key: str) -> int:
    if value in (None, ""):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid integer for {key}: {value!r}", cause=e)


def flatten_config(data: dict[str, Any]) -> dict[str, Any]:
    """Flatten ``{section: {key: value}}`` into ``{"section.key": value}``."""
    flat: dict[str, Any] = {}
    for section in SECTIONS:
        values = data.get(section)
        if not isinstance(values, dict):
            continue
        for key, value in values.items():
            dotted = f"{section}.{key}"
            flat[KEY_ALIASES.get(dotted, dotted)] = value
    return flat


def normalize_overrides(overrides: dict[str, Any] | None) -> dict[str, Any]:
    """Map CLI override names to dotted keys, dropping unset values."""
    normalized: dict[str, Any] = {}
    for key, value in (overrides or {}).items():
        if value is None:
            continue
        normalized[CLI_OVERRIDE_KEYS.get(key, key)] = value
    return normalized


def build_app_config(values: dict[str, Any], config_path: str | None = None) -> AppConfig:
    """
    Build an AppConfig from flat dotted values.

    Raises:
        MissingConfigError: If the board id or the GitHub host is absent
    """
    board_id = str(values.get("trello.board_id") or "")
    if not board_id:
        raise MissingConfigError(
            "Missing required Trello board id",
            missing_key="trello.board_id",
            env_var="TRELLO_BOARD_ID",
            config_path=config_path,
        )

    host = str(values.get("github.host") or "")
    if not host:
        raise MissingConfigError(
            "Missing required GitHub host",
            missing_key="github.host",
            env_var="GH_HOST",
            config_path=config_path,
        )

    return AppConfig(
        trello=TrelloConfig(
            api_key=str(values.get("trello.api_key") or ""),
            api_token=str(values.get("trello.api_token") or ""),
            board_id=board_id,
        ),
        github=GitHubConfig(
            token=str(values.get("github.token") or ""),
            host=host,
            user=str(values.get("github.user") or ""),
            project_owner=str(values.get("github.project_owner") or ""),
            project_number=to_int(values.get("github.project_number"), "github.project_number"),
        ),
        sync=SyncConfig(
            dry_run=to_bool(values.get("sync.dry_run")),
            verbose=to_bool(values.get("sync.verbose")),
            full_refresh=to_bool(values.get("sync.full_refresh")),
            primary_label=str(values.get("sync.primary_label") or LabelName.WORK),
            state_dir=str(values.get("sync.state_dir") or DEFAULT_STATE_DIR),
            events_file=str(values.get("sync.events_file") or DEFAULT_EVENTS_FILE),
            snapshots_file=str(values.get("sync.snapshots_file") or DEFAULT_SNAPSHOTS_FILE),
        ),
    )


def describe_missing(values: dict[str, Any]) -> list[str]:
    """List actionable messages for required values that are absent."""
    required = (
        ("trello.board_id", "TRELLO_BOARD_ID"),
        ("trello.api_key", "TRELLO_API_KEY"),
        ("trello.api_token", "TRELLO_TOKEN"),
        ("github.host", "GH_HOST"),
        ("github.token", "GITHUB_TOKEN"),
        ("github.user", "GH_USER"),
    )
    return [
        f"Missing {key}: set it in the config file or the {env_var} environment variable"
        for key, env_var in required
        if not values.get(key)
    ]


class FileConfigProvider(ConfigProviderPort):
    """Configuration provider that reads a YAML or TOML file."""

    def __init__(
        self,
        config_path: str | Path | None = None,
        cli_overrides: dict[str, Any] | None = None,
    ):
        """
        Initialize the provider.

        Args:
            config_path: Explicit config file; auto-detected when None
            cli_overrides: Values that take precedence over the file
        """
        self._explicit_path = Path(config_path).expanduser() if config_path else None
        self._overrides = normalize_overrides(cli_overrides)
        self._values: dict[str, Any] | None = None
        self.logger = logging.getLogger("FileConfigProvider")

    @property
    def name(self) -> str:
        path = self.config_file_path
        return f"File ({path.name})" if path else "File"

    @property
    def config_file_path(self) -> Path | None:
        """The file that is (or would be) read."""
        if self._explicit_path:
            return self._explicit_path
        return self._detect_config_file()

    def _detect_config_file(self) -> Path | None:
        cwd = Path.cwd()
        for filename in CONFIG_FILENAMES:
            candidate = cwd / filename
            if not candidate.is_file():
                continue
            if filename == "pyproject.toml" and not self._has_tool_section(candidate):
                continue
            return candidate

        user_config = USER_CONFIG_PATH.expanduser()
        if user_config.is_file():
            return user_config
        return None

    @staticmethod
    def _has_tool_section(path: Path) -> bool:
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError):
            return False
        return isinstance(data.get("tool", {}).get("boardsync"), dict)

    def read_file(self) -> dict[str, Any]:
        """
        Read and parse the config file into a nested dict.

        Raises:
            ConfigFileError: If the file is missing (when explicit) or invalid
        """
        path = self.config_file_path
        if path is None:
            return {}
        if not path.is_file():
            raise ConfigFileError("Config file not found", config_path=str(path))

        try:
            if path.suffix == ".toml":
                with open(path, "rb") as f:
                    data = tomllib.load(f)
                if path.name == "pyproject.toml":
                    data = data.get("tool", {}).get("boardsync", {})
            else:
                with open(path, encoding="utf-8") as f:
                    data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigFileError("Invalid YAML syntax", config_path=str(path), cause=e)
        except tomllib.TOMLDecodeError as e:
            raise ConfigFileError("Invalid TOML syntax", config_path=str(path), cause=e)
        except OSError as e:
            raise ConfigFileError("Cannot read config file", config_path=str(path), cause=e)

        if not isinstance(data, dict):
            raise ConfigFileError("Config file must contain a mapping", config_path=str(path))

        self.logger.debug(f"Loaded config file {path}")
        return data

    def values(self) -> dict[str, Any]:
        """Flat dotted values with CLI overrides applied."""
        if self._values is None:
            self._values = flatten_config(self.read_file())
        return {**self._values, **self._overrides}

    def load(self) -> AppConfig:
        path = self.config_file_path
        return build_app_config(self.values(), str(path) if path else None)

    def get(self, key: str, default: Any = None) -> Any:
        return self.values().get(key, default)

    def validate(self) -> list[str]:
        try:
            values = self.values()
        except ConfigError as e:
            return [str(e)]
        return describe_missing(values)
