"""
Trello Adapter - Integration with Trello boards.

This module provides the TrelloAdapter and its low-level API client.
"""

from boardsync.adapters.trello.adapter import TrelloAdapter
from boardsync.adapters.trello.client import TrelloApiClient


__all__ = ["TrelloAdapter", "TrelloApiClient"]
