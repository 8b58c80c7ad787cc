"""
Trello Adapter - Implements BoardPort for Trello.

Maps the generic BoardPort interface to Trello's board model.

Key mappings:
- BoardList -> Trello list
- BoardLabel -> Trello label
- Card -> Trello card (desc carries the sync metadata block)
"""

import logging
from typing import Any

from boardsync.core.domain.entities import BoardLabel, BoardList, Card
from boardsync.core.ports.board import BoardPort
from boardsync.core.ports.config_provider import TrelloConfig

from .client import TrelloApiClient


class TrelloAdapter(BoardPort):
    """
    Trello implementation of the BoardPort.

    Translates between domain entities and Trello's REST API.
    """

    def __init__(
        self,
        config: TrelloConfig,
        dry_run: bool = True,
        client: TrelloApiClient | None = None,
    ):
        """
        Initialize the Trello adapter.

        Args:
            config: Trello configuration
            dry_run: If True, don't make changes
            client: Optional pre-built API client
        """
        self.config = config
        self._dry_run = dry_run
        self.logger = logging.getLogger("TrelloAdapter")

        self._client = client or TrelloApiClient(
            api_key=config.api_key,
            api_token=config.api_token,
            board_id=config.board_id,
            dry_run=dry_run,
        )

    # -------------------------------------------------------------------------
    # BoardPort Implementation - Properties
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str:
        return "Trello"

    # -------------------------------------------------------------------------
    # BoardPort Implementation - Read Operations
    # -------------------------------------------------------------------------

    def get_lists(self, board_id: str) -> list[BoardList]:
        return [self._parse_list(data) for data in self._client.get_board_lists(board_id)]

    def get_labels(self, board_id: str) -> list[BoardLabel]:
        return [self._parse_label(data) for data in self._client.get_board_labels(board_id)]

    def get_cards(self, board_id: str) -> list[Card]:
        return [self._parse_card(data) for data in self._client.get_board_cards(board_id)]

    # -------------------------------------------------------------------------
    # BoardPort Implementation - Write Operations
    # -------------------------------------------------------------------------

    def create_list(self, board_id: str, name: str) -> BoardList:
        if self._dry_run:
            self.logger.info(f"[DRY-RUN] Would create list '{name}'")
            return BoardList(id=f"dry-run:list:{name}", name=name)

        data = self._client.create_list(name, board_id=board_id)
        self.logger.info(f"Created list '{name}'")
        return self._parse_list(data)

    def create_label(self, board_id: str, name: str, color: str = "blue") -> BoardLabel:
        if self._dry_run:
            self.logger.info(f"[DRY-RUN] Would create label '{name}'")
            return BoardLabel(id=f"dry-run:label:{name}", name=name, color=color)

        data = self._client.create_label(name, color=color, board_id=board_id)
        self.logger.info(f"Created label '{name}'")
        return self._parse_label(data)

    def create_card(
        self,
        list_id: str,
        name: str,
        desc: str = "",
        label_ids: list[str] | None = None,
    ) -> Card:
        if self._dry_run:
            self.logger.info(f"[DRY-RUN] Would create card '{name[:50]}'")
            return Card(
                id="", name=name, desc=desc, list_id=list_id, label_ids=list(label_ids or [])
            )

        data = self._client.create_card(name=name, list_id=list_id, desc=desc, label_ids=label_ids)
        card = self._parse_card(data)
        self.logger.debug(f"Created card {card.id}: {name}")
        return card

    def update_card(
        self,
        card_id: str,
        name: str | None = None,
        desc: str | None = None,
        list_id: str | None = None,
        label_ids: list[str] | None = None,
        pos: str | None = None,
    ) -> Card | None:
        if self._dry_run:
            self.logger.info(f"[DRY-RUN] Would update card {card_id}")
            return None

        data = self._client.update_card(
            card_id,
            name=name,
            desc=desc,
            idList=list_id,
            idLabels=label_ids,
            pos=pos,
        )
        self.logger.debug(f"Updated card {card_id}")
        return self._parse_card(data) if data else None

    # -------------------------------------------------------------------------
    # Parsing
    # -------------------------------------------------------------------------

    @staticmethod
    def _parse_list(data: dict[str, Any]) -> BoardList:
        return BoardList(id=str(data.get("id", "")), name=str(data.get("name", "")))

    @staticmethod
    def _parse_label(data: dict[str, Any]) -> BoardLabel:
        return BoardLabel(
            id=str(data.get("id", "")),
            name=data.get("name") or "",
            color=data.get("color"),
        )

    @staticmethod
    def _parse_card(data: dict[str, Any]) -> Card:
        return Card(
            id=str(data.get("id", "")),
            name=data.get("name") or "",
            desc=data.get("desc") or "",
            list_id=data.get("idList") or "",
            label_ids=list(data.get("idLabels") or []),
            url=data.get("url"),
            short_url=data.get("shortUrl"),
        )

    # -------------------------------------------------------------------------
    # Resource Cleanup
    # -------------------------------------------------------------------------

    def close(self) -> None:
        self._client.close()
