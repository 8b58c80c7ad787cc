"""
Sync Metadata Codec - Machine state embedded in a card description.

The Trello card API only exposes one free-text field, so the sync state of
a card lives inside its description in a sentinel-delimited block:

    Some user prose.

    [wf-sync]
    source=ghe-project
    item_id=PVTI_abc
    url=https://github.example.com/org/repo/issues/42
    status=in_progress
    last_seen=2024-05-01T10:00:00.000Z
    content_hash=5f1d...
    [/wf-sync]

Everything outside the block is user-owned ("base" text). The block is
advisory state, not a tamper-proof record.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

from boardsync.core.constants import SYNC_BLOCK_END, SYNC_BLOCK_START


# Serialization order of the block, attribute name -> key
_FIELD_KEYS: tuple[tuple[str, str], ...] = (
    ("source", "source"),
    ("item_id", "item_id"),
    ("issue_id", "issue_id"),
    ("pr_id", "pr_id"),
    ("url", "url"),
    ("status", "status"),
    ("last_seen", "last_seen"),
    ("last_trello_move", "last_trello_move"),
    ("content_hash", "content_hash"),
)
_KEY_TO_FIELD = {key: attr for attr, key in _FIELD_KEYS}


@dataclass(frozen=True)
class SyncMetadata:
    """Decoded contents of a sync metadata block."""

    source: str = ""
    item_id: str | None = None
    issue_id: str | None = None
    pr_id: str | None = None
    url: str | None = None
    status: str | None = None
    last_seen: str | None = None
    last_trello_move: str | None = None
    content_hash: str | None = None


def _block_bounds(desc: str) -> tuple[int, int] | None:
    # The block is always appended last; prose above it may quote either sentinel
    start = desc.rfind(SYNC_BLOCK_START)
    if start == -1:
        return None
    end = desc.find(SYNC_BLOCK_END, start)
    if end == -1:
        return None
    return start, end


def parse_sync_metadata(desc: str | None) -> SyncMetadata | None:
    """
    Parse the metadata block out of a card description.

    Returns None when the description carries no (well-formed) block.
    Unknown keys are ignored so older versions can read newer blocks.
    """
    if not desc:
        return None
    bounds = _block_bounds(desc)
    if bounds is None:
        return None
    start, end = bounds

    block = desc[start + len(SYNC_BLOCK_START) : end].strip()
    values: dict[str, str] = {}
    for line in block.split("\n"):
        key, sep, value = line.partition("=")
        key = key.strip()
        if not key or not sep:
            continue
        attr = _KEY_TO_FIELD.get(key)
        if attr is not None:
            values[attr] = value.strip()

    return SyncMetadata(**values)


def format_sync_metadata(metadata: SyncMetadata) -> str:
    """Render a metadata block. Empty fields are omitted; ``source`` is always written."""
    lines = [f"source={metadata.source}"]
    for attr, key in _FIELD_KEYS[1:]:
        value = getattr(metadata, attr)
        if value:
            lines.append(f"{key}={value}")
    body = "\n".join(lines)
    return f"{SYNC_BLOCK_START}\n{body}\n{SYNC_BLOCK_END}"


def extract_description_base(desc: str | None) -> str:
    """Return the user-owned part of a description (block removed, trimmed)."""
    if not desc:
        return ""
    bounds = _block_bounds(desc)
    if bounds is None:
        return desc.strip()
    start, end = bounds
    before = desc[:start].strip()
    after = desc[end + len(SYNC_BLOCK_END) :].strip()
    return f"{before}\n{after}".strip()


def update_description_with_sync(desc: str, sync_block: str) -> str:
    """
    Replace (or add) the metadata block of a description.

    The base text is kept, followed by a blank line and the new block.
    """
    base = extract_description_base(desc)
    if not base:
        return f"{sync_block}\n"
    return f"{base}\n\n{sync_block}\n"


def normalize_base(value: str) -> str:
    """Normalize line endings and surrounding whitespace before hashing."""
    return value.replace("\r\n", "\n").strip()


def content_hash(value: str) -> str:
    """SHA-256 hex digest of normalized base text."""
    return hashlib.sha256(normalize_base(value).encode("utf-8")).hexdigest()
