"""
Environment Configuration Provider - Layered configuration loading.

Precedence, lowest to highest:
1. Config file (YAML / TOML, see FileConfigProvider)
2. .env file in the working directory (never overrides real env vars)
3. Process environment
4. CLI overrides
"""

import logging
import os
from pathlib import Path
from typing import Any

from dotenv import dotenv_values

from boardsync.core.exceptions import ConfigError
from boardsync.core.ports.config_provider import AppConfig, ConfigProviderPort

from .file_provider import (
    FileConfigProvider,
    build_app_config,
    describe_missing,
    normalize_overrides,
)


# Later entries win when several variables map to the same key
ENV_VARS: tuple[tuple[str, str], ...] = (
    ("TRELLO_API_KEY", "trello.api_key"),
    ("TRELLO_TOKEN", "trello.api_token"),
    ("TRELLO_BOARD_ID", "trello.board_id"),
    ("GH_TOKEN", "github.token"),
    ("GITHUB_TOKEN", "github.token"),
    ("GH_HOST", "github.host"),
    ("GH_USER", "github.user"),
    ("GH_PROJECT_OWNER", "github.project_owner"),
    ("GH_PROJECT_NUMBER", "github.project_number"),
    ("BOARDSYNC_STATE_DIR", "sync.state_dir"),
    ("BOARDSYNC_PRIMARY_LABEL", "sync.primary_label"),
    ("BOARDSYNC_DRY_RUN", "sync.dry_run"),
    ("BOARDSYNC_VERBOSE", "sync.verbose"),
)


def _map_env(env: dict[str, str | None]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for env_var, key in ENV_VARS:
        value = env.get(env_var)
        if value:
            values[key] = value
    return values


class EnvironmentConfigProvider(ConfigProviderPort):
    """Configuration provider combining a config file, .env, env vars and CLI flags."""

    def __init__(
        self,
        config_file: str | Path | None = None,
        env_file: str | Path = ".env",
        cli_overrides: dict[str, Any] | None = None,
    ):
        """
        Initialize the provider.

        Args:
            config_file: Explicit config file; auto-detected when None
            env_file: Dotenv file, relative to the working directory
            cli_overrides: Values that take precedence over everything else
        """
        self._file_provider = FileConfigProvider(config_path=config_file)
        self._env_file = Path(env_file)
        self._overrides = normalize_overrides(cli_overrides)
        self.logger = logging.getLogger("EnvironmentConfigProvider")

    @property
    def name(self) -> str:
        path = self._file_provider.config_file_path
        return f"Environment + {path.name}" if path else "Environment"

    def _dotenv_values(self) -> dict[str, Any]:
        if not self._env_file.is_file():
            return {}
        raw = dotenv_values(self._env_file)
        self.logger.debug(f"Loaded {len(raw)} values from {self._env_file}")
        # Real environment variables always win over the dotenv file
        return _map_env({key: value for key, value in raw.items() if key not in os.environ})

    def values(self) -> dict[str, Any]:
        """Flat dotted values merged across all layers."""
        values: dict[str, Any] = {}
        values.update(self._file_provider.values())
        values.update(self._dotenv_values())
        values.update(_map_env(dict(os.environ)))
        values.update(self._overrides)
        return values

    def load(self) -> AppConfig:
        path = self._file_provider.config_file_path
        return build_app_config(self.values(), str(path) if path else None)

    def get(self, key: str, default: Any = None) -> Any:
        return self.values().get(key, default)

    def validate(self) -> list[str]:
        try:
            values = self.values()
        except ConfigError as e:
            return [str(e)]
        return describe_missing(values)
