"""
Board Context - Lists and labels of the board, indexed by name.

Every sync pass resolves list and label names through a BoardContext that
is loaded once per run.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from boardsync.core.domain.entities import BoardLabel, BoardList
from boardsync.core.domain.policy import LabelName, ListName, canonical_list_name, required_labels
from boardsync.core.exceptions import MissingLabelError, MissingListError
from boardsync.core.ports.board import BoardPort


logger = logging.getLogger("BoardContext")


@dataclass(frozen=True)
class BoardContext:
    """
    Immutable view of a board's lists and labels.

    ``list_by_name`` is keyed by canonical (alias-resolved) list name.
    ``label_by_name`` only holds named labels.
    """

    board_id: str
    lists: tuple[BoardList, ...]
    labels: tuple[BoardLabel, ...]
    list_by_name: Mapping[str, BoardList]
    label_by_name: Mapping[str, BoardLabel]

    def list_id(self, name: str) -> str | None:
        board_list = self.list_by_name.get(name)
        return board_list.id if board_list else None

    def label_id(self, name: str) -> str | None:
        label = self.label_by_name.get(name)
        return label.id if label else None

    def list_name_for(self, list_id: str | None) -> str | None:
        """Canonical name of the list with the given id, None if unknown."""
        for board_list in self.lists:
            if board_list.id == list_id:
                return canonical_list_name(board_list.name)
        return None

    def require_list(self, name: str) -> BoardList:
        board_list = self.list_by_name.get(name)
        if board_list is None:
            raise MissingListError(name)
        return board_list

    def require_label(self, name: str) -> BoardLabel:
        label = self.label_by_name.get(name)
        if label is None:
            raise MissingLabelError(name)
        return label


def load_board_context(
    board: BoardPort,
    board_id: str,
    allow_create: bool = False,
    primary_label: str = LabelName.WORK,
) -> BoardContext:
    """
    Fetch lists and labels and make sure the required ones exist.

    Existing lists and labels are never renamed or deleted.

    Args:
        board: Board port
        board_id: Board to load
        allow_create: Create missing lists/labels instead of failing
        primary_label: Name of the project-sourced work label

    Raises:
        MissingListError: If a required list is missing and creation is not allowed
        MissingLabelError: If a required label is missing and creation is not allowed
    """
    lists = list(board.get_lists(board_id))
    labels = list(board.get_labels(board_id))

    list_by_name: dict[str, BoardList] = {}
    for board_list in lists:
        list_by_name[canonical_list_name(board_list.name)] = board_list

    label_by_name: dict[str, BoardLabel] = {}
    for label in labels:
        if label.name:
            label_by_name[label.name] = label

    for name in ListName.ALL:
        if name in list_by_name:
            continue
        if not allow_create:
            raise MissingListError(name)
        created = board.create_list(board_id, name)
        logger.info(f"Created missing list '{name}'")
        list_by_name[name] = created
        lists.append(created)

    for name in required_labels(primary_label):
        if name in label_by_name:
            continue
        if not allow_create:
            raise MissingLabelError(name)
        created_label = board.create_label(board_id, name)
        logger.info(f"Created missing label '{name}'")
        label_by_name[name] = created_label
        labels.append(created_label)

    return BoardContext(
        board_id=board_id,
        lists=tuple(lists),
        labels=tuple(labels),
        list_by_name=MappingProxyType(list_by_name),
        label_by_name=MappingProxyType(label_by_name),
    )
