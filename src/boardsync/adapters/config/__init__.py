"""
Configuration Adapters - Load AppConfig from files, .env and the environment.
"""

from boardsync.adapters.config.environment import EnvironmentConfigProvider
from boardsync.adapters.config.file_provider import FileConfigProvider


__all__ = ["EnvironmentConfigProvider", "FileConfigProvider"]
