"""
Shared pytest fixtures for the boardsync test suite.

Fixture Categories:
- Fakes: in-memory board and code host implementing the ports
- Domain: sample work items and project items
- State: in-memory event log and snapshot store
- Configuration: AppConfig
"""

from __future__ import annotations

from dataclasses import replace
from itertools import count

import pytest

from boardsync.adapters.state_store import MemoryEventLog, MemorySnapshotStore
from boardsync.application.sync import SyncResult, load_board_context
from boardsync.core.domain.entities import (
    BoardLabel,
    BoardList,
    Card,
    ProjectConfig,
    ProjectItem,
    ProjectItemContent,
    PullRequestDetails,
    ReviewRequest,
)
from boardsync.core.domain.policy import GhStatus, LabelName, ListName
from boardsync.core.exceptions import NotFoundError
from boardsync.core.ports.board import BoardPort
from boardsync.core.ports.code_host import CodeHostPort, ProjectItemsPage
from boardsync.core.ports.config_provider import (
    AppConfig,
    GitHubConfig,
    SyncConfig,
    TrelloConfig,
)


HOST = "github.example.com"
USER = "octocat"
BOARD_ID = "board-1"


# =============================================================================
# Fakes
# =============================================================================


class FakeBoard(BoardPort):
    """
    In-memory board.

    Reads return copies, like an API would, so a pass only sees its own
    writes through the port. Every write is recorded in ``calls``.
    """

    def __init__(self, lists=None, labels=None):
        self._ids = count(1)
        self.lists: list[BoardList] = list(lists or [])
        self.labels: list[BoardLabel] = list(labels or [])
        self.cards: dict[str, Card] = {}
        self.calls: list[tuple[str, dict]] = []
        self.fail_updates: dict[str, Exception] = {}

    @property
    def name(self) -> str:
        return "Fake"

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    # Reads

    def get_lists(self, board_id):
        return list(self.lists)

    def get_labels(self, board_id):
        return list(self.labels)

    def get_cards(self, board_id):
        return [replace(card, label_ids=list(card.label_ids)) for card in self.cards.values()]

    # Writes

    def create_list(self, board_id, name):
        board_list = BoardList(id=self._next_id("list"), name=name)
        self.lists.append(board_list)
        self.calls.append(("create_list", {"name": name}))
        return board_list

    def create_label(self, board_id, name, color="blue"):
        label = BoardLabel(id=self._next_id("label"), name=name, color=color)
        self.labels.append(label)
        self.calls.append(("create_label", {"name": name}))
        return label

    def create_card(self, list_id, name, desc="", label_ids=None):
        card = Card(
            id=self._next_id("card"),
            name=name,
            desc=desc,
            list_id=list_id,
            label_ids=list(label_ids or []),
        )
        self.cards[card.id] = card
        self.calls.append(("create_card", {"list_id": list_id, "name": name}))
        return replace(card, label_ids=list(card.label_ids))

    def update_card(self, card_id, name=None, desc=None, list_id=None, label_ids=None, pos=None):
        if card_id in self.fail_updates:
            raise self.fail_updates[card_id]
        self.calls.append(
            (
                "update_card",
                {
                    "card_id": card_id,
                    "name": name,
                    "desc": desc,
                    "list_id": list_id,
                    "label_ids": label_ids,
                    "pos": pos,
                },
            )
        )
        card = self.cards[card_id]
        if name is not None:
            card.name = name
        if desc is not None:
            card.desc = desc
        if list_id is not None:
            card.list_id = list_id
        if label_ids is not None:
            card.label_ids = list(label_ids)
        return replace(card, label_ids=list(card.label_ids))

    # Helpers

    def add_card(self, name, list_name, desc="", labels=()):
        """Put a card on the board without recording a call."""
        card = Card(
            id=self._next_id("card"),
            name=name,
            desc=desc,
            list_id=self.list_id(list_name),
            label_ids=[self.label_id(label) for label in labels],
        )
        self.cards[card.id] = card
        return card

    def list_id(self, name):
        return next(board_list.id for board_list in self.lists if board_list.name == name)

    def label_id(self, name):
        return next(label.id for label in self.labels if label.name == name)

    def cards_in(self, list_name):
        list_id = self.list_id(list_name)
        return [card for card in self.cards.values() if card.list_id == list_id]

    def writes(self, kind=None):
        return [call for call in self.calls if kind is None or call[0] == kind]


class FakeCodeHost(CodeHostPort):
    """In-memory code host with configurable project items and pull requests."""

    def __init__(self, host=HOST):
        self._host = host
        self.project_items: list[ProjectItem] = []
        self.max_updated_at: str | None = None
        self.review_requests: list[ReviewRequest] = []
        self.authored: list[str] = []
        self.pull_requests: dict[str, PullRequestDetails] = {}
        self.status_options: dict[str, str] = {
            GhStatus.READY: "opt-ready",
            GhStatus.IN_PROGRESS: "opt-progress",
            GhStatus.IN_REVIEW: "opt-review",
            GhStatus.BLOCKED: "opt-blocked",
            GhStatus.DONE: "opt-done",
        }
        self.fetch_calls: list[dict] = []
        self.config_calls = 0
        self.pr_calls: list[str] = []
        self.status_updates: list[tuple[str, str, str, str]] = []

    @property
    def name(self):
        return "FakeHub"

    @property
    def host(self):
        return self._host

    def fetch_assigned_project_items(
        self, owner, number, assignee, last_sync_at=None, full_refresh=True
    ):
        self.fetch_calls.append({"last_sync_at": last_sync_at, "full_refresh": full_refresh})
        return ProjectItemsPage(
            items=list(self.project_items), max_updated_at=self.max_updated_at
        )

    def fetch_project_config(self, owner, number):
        self.config_calls += 1
        return ProjectConfig(
            project_id="project-1",
            status_field_id="field-status",
            status_options=dict(self.status_options),
        )

    def update_project_item_status(self, project_id, item_id, status_field_id, status_option_id):
        self.status_updates.append((project_id, item_id, status_field_id, status_option_id))

    def fetch_review_requests(self, user):
        return list(self.review_requests)

    def fetch_authored_open_prs(self, user, limit=50):
        return list(self.authored)

    def fetch_pr_details(self, url):
        self.pr_calls.append(url)
        if url not in self.pull_requests:
            raise NotFoundError(f"Pull request not found: {url}", issue_key=url)
        return self.pull_requests[url]


# =============================================================================
# Builders
# =============================================================================


def make_project_item(
    number=42,
    title="Fix login",
    status=GhStatus.IN_PROGRESS,
    state="OPEN",
    body=None,
    item_id=None,
    assignees=(USER,),
    updated_at="2024-05-01T10:00:00Z",
    repo="org/repo",
):
    """A project item pointing at an issue on the test host."""
    return ProjectItem(
        id=item_id or f"PVTI_{number}",
        title=title,
        status=status,
        assignees=tuple(assignees),
        content=ProjectItemContent(
            title=title,
            url=f"https://{HOST}/{repo}/issues/{number}",
            body=body,
            repository=repo,
            state=state,
            type="Issue",
        ),
        updated_at=updated_at,
    )


def make_pr(number=7, repo="org/repo", **kwargs):
    """Pull request details on the test host."""
    kwargs.setdefault("author", USER)
    kwargs.setdefault("updated_at", "2024-05-02T10:00:00Z")
    return PullRequestDetails(url=f"https://{HOST}/{repo}/pull/{number}", **kwargs)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def board() -> FakeBoard:
    """A board with every required list and label."""
    fake = FakeBoard()
    for name in ListName.ALL:
        fake.create_list(BOARD_ID, name)
    for name in (LabelName.WORK, LabelName.REVIEW, *LabelName.PERSONAL):
        fake.create_label(BOARD_ID, name)
    fake.calls.clear()
    return fake


@pytest.fixture
def code_host() -> FakeCodeHost:
    return FakeCodeHost()


@pytest.fixture
def context(board):
    return load_board_context(board, BOARD_ID)


@pytest.fixture
def event_log() -> MemoryEventLog:
    return MemoryEventLog()


@pytest.fixture
def snapshot_store() -> MemorySnapshotStore:
    return MemorySnapshotStore()


@pytest.fixture
def result() -> SyncResult:
    return SyncResult(dry_run=False)


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    """A complete configuration with state under tmp_path."""
    return AppConfig(
        trello=TrelloConfig(api_key="key", api_token="token", board_id=BOARD_ID),
        github=GitHubConfig(
            token="ghp_test",
            host=HOST,
            user=USER,
            project_owner="org",
            project_number=7,
        ),
        sync=SyncConfig(dry_run=False, state_dir=str(tmp_path / "state")),
    )
