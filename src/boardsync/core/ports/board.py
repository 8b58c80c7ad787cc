"""
Board Port - Abstract interface for the Kanban board (labeled-card CRUD).

Implementations:
- TrelloAdapter: Trello REST API
"""

from abc import ABC, abstractmethod

from boardsync.core.domain.entities import BoardLabel, BoardList, Card


class BoardPort(ABC):
    """
    Abstract interface for a Kanban board.

    The sync passes only ever create and update; nothing in the core
    deletes or archives lists, labels or cards.
    """

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the board provider name (e.g., 'Trello')."""
        ...

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_lists(self, board_id: str) -> list[BoardList]:
        """Fetch all open lists of a board."""
        ...

    @abstractmethod
    def get_labels(self, board_id: str) -> list[BoardLabel]:
        """Fetch all labels of a board."""
        ...

    @abstractmethod
    def get_cards(self, board_id: str) -> list[Card]:
        """Fetch all open cards of a board."""
        ...

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    @abstractmethod
    def create_list(self, board_id: str, name: str) -> BoardList:
        """Create a list on a board."""
        ...

    @abstractmethod
    def create_label(self, board_id: str, name: str, color: str = "blue") -> BoardLabel:
        """Create a label on a board."""
        ...

    @abstractmethod
    def create_card(
        self,
        list_id: str,
        name: str,
        desc: str = "",
        label_ids: list[str] | None = None,
    ) -> Card:
        """Create a card in a list."""
        ...

    @abstractmethod
    def update_card(
        self,
        card_id: str,
        name: str | None = None,
        desc: str | None = None,
        list_id: str | None = None,
        label_ids: list[str] | None = None,
        pos: str | None = None,
    ) -> Card | None:
        """
        Update a card. Only the arguments that are not None are sent.

        Returns:
            The updated card, or None when nothing was written (dry-run)
        """
        ...
