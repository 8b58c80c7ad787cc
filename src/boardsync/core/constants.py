"""
Constants - Application-wide names and defaults.
"""

# Sentinels delimiting the sync metadata block inside a card description
SYNC_BLOCK_START = "[wf-sync]"
SYNC_BLOCK_END = "[/wf-sync]"

# Metadata source values as written into card descriptions
SOURCE_PROJECT = "ghe-project"
SOURCE_REVIEW = "ghe-review"

# Name of the single-select field on the GitHub project
PROJECT_STATUS_FIELD = "Status"

# Section header used when linking PRs into an issue card
RELATED_PRS_HEADER = "Related PRs:"

# Placeholder used in card titles when an item has no repository
UNKNOWN_REPO = "unknown"

# Full project refresh / status-field metadata are considered stale after this
FULL_REFRESH_INTERVAL_SECONDS = 24 * 60 * 60
PROJECT_META_TTL_SECONDS = 24 * 60 * 60

# State store defaults
DEFAULT_STATE_DIR = "~/.boardsync/state"
DEFAULT_EVENTS_FILE = "wo-events.jsonl"
DEFAULT_SNAPSHOTS_FILE = "wf-snapshots.jsonl"

# Trello card position used when surfacing a card
POSITION_TOP = "top"

# Review states reported by GitHub
REVIEW_APPROVED = "APPROVED"
REVIEW_CHANGES_REQUESTED = "CHANGES_REQUESTED"
REVIEW_COMMENTED = "COMMENTED"
MERGEABLE = "MERGEABLE"
