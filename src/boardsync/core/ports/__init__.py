"""
Ports - Abstract interfaces for external dependencies.

Ports define the contracts that adapters must implement.
This enables dependency inversion and easy testing.
"""

from .board import BoardPort
from .code_host import CodeHostPort, ProjectItemsPage
from .config_provider import (
    AppConfig,
    ConfigProviderPort,
    GitHubConfig,
    SyncConfig,
    TrelloConfig,
)
from .state_store import (
    CardSnapshot,
    Event,
    EventLogPort,
    ProjectMetaSnapshot,
    ProjectSnapshot,
    Snapshot,
    SnapshotStorePort,
    seconds_since,
    utc_now_iso,
)


__all__ = [
    "AppConfig",
    "BoardPort",
    "CardSnapshot",
    "CodeHostPort",
    "ConfigProviderPort",
    "Event",
    "EventLogPort",
    "GitHubConfig",
    "ProjectItemsPage",
    "ProjectMetaSnapshot",
    "ProjectSnapshot",
    "Snapshot",
    "SnapshotStorePort",
    "SyncConfig",
    "TrelloConfig",
    "seconds_since",
    "utc_now_iso",
]
