"""
Sync Orchestrator - Coordinates one polling run.

This is the main entry point for sync operations.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import replace

from boardsync.core.constants import FULL_REFRESH_INTERVAL_SECONDS
from boardsync.core.exceptions import AuthenticationError, MissingConfigError, TrackerError
from boardsync.core.ports.board import BoardPort
from boardsync.core.ports.code_host import CodeHostPort
from boardsync.core.ports.config_provider import AppConfig
from boardsync.core.ports.state_store import (
    EventLogPort,
    ProjectSnapshot,
    Snapshot,
    SnapshotStorePort,
    seconds_since,
    utc_now_iso,
)

from .cache import PullRequestCache
from .closed_items import ClosedItemSync
from .context import BoardContext, load_board_context
from .inbound import InboundSync
from .linked_prs import LinkedPrSync
from .normalize import normalize_review_request, split_closed_items
from .outbound import OutboundSync
from .result import SyncResult
from .review_lifecycle import ReviewLifecycleReconciler


class SyncOrchestrator:
    """
    Orchestrates a run between the board and the code host.

    Passes, in order:
    1. work-items: project items -> closed items to Done, open items to cards
    2. review-requests: linked PRs, then cards for the remaining review requests
    3. outbound: list moves -> project status
    4. reviews: approved review cards -> Done

    A failing pass is recorded in the result and the next pass still runs.
    Authentication and configuration errors abort the run.
    """

    PASSES: tuple[str, ...] = ("work-items", "review-requests", "outbound", "reviews")

    def __init__(
        self,
        board: BoardPort,
        code_host: CodeHostPort,
        event_log: EventLogPort,
        snapshot_store: SnapshotStorePort,
        config: AppConfig,
    ):
        """
        Initialize the orchestrator.

        Args:
            board: Board port
            code_host: Code host port
            event_log: Event log for the run
            snapshot_store: Snapshot store for the run
            config: Application configuration
        """
        self.board = board
        self.code_host = code_host
        self.event_log = event_log
        self.snapshot_store = snapshot_store
        self.config = config
        self.logger = logging.getLogger("SyncOrchestrator")

        self._context: BoardContext | None = None
        self._pr_cache = PullRequestCache(code_host)

    # -------------------------------------------------------------------------
    # Main Entry Points
    # -------------------------------------------------------------------------

    def run(self, passes: Iterable[str] | None = None) -> SyncResult:
        """
        Run the selected passes (all by default) in their fixed order.

        Args:
            passes: Names from ``PASSES`` to run

        Returns:
            SyncResult with per-pass counters and failures
        """
        selected = set(passes) if passes else set(self.PASSES)
        unknown = selected - set(self.PASSES)
        if unknown:
            raise ValueError(f"Unknown sync pass: {', '.join(sorted(unknown))}")
        if selected & {"work-items", "outbound"}:
            self._require_project()

        result = SyncResult(
            dry_run=self.config.sync.dry_run, full_refresh=self.config.sync.full_refresh
        )
        self._context = None
        self._pr_cache = PullRequestCache(self.code_host)

        handlers: dict[str, Callable[[SyncResult], None]] = {
            "work-items": self.sync_work_items,
            "review-requests": self.sync_review_requests,
            "outbound": self.sync_outbound,
            "reviews": self.reconcile_reviews,
        }
        for name in self.PASSES:
            if name not in selected:
                continue
            self.logger.info(f"Running {name} pass")
            try:
                handlers[name](result)
            except AuthenticationError:
                raise
            except TrackerError as e:
                self.logger.error(f"{name} pass failed: {e}")
                result.add_error(f"{name}: {e}")
            result.passes_run.append(name)

        return result

    def setup_board(self) -> BoardContext:
        """Create the required lists and labels on the configured board."""
        self._context = load_board_context(
            self.board,
            self.config.trello.board_id,
            allow_create=True,
            primary_label=self.config.sync.primary_label,
        )
        return self._context

    @property
    def context(self) -> BoardContext:
        """Board context, loaded once per run."""
        if self._context is None:
            self._context = load_board_context(
                self.board,
                self.config.trello.board_id,
                allow_create=False,
                primary_label=self.config.sync.primary_label,
            )
        return self._context

    # -------------------------------------------------------------------------
    # Passes
    # -------------------------------------------------------------------------

    def sync_work_items(self, result: SyncResult) -> None:
        """Fetch assigned project items and materialize them as cards."""
        github = self.config.github
        snapshot = self.snapshot_store.read_latest()
        previous = snapshot.project if snapshot and snapshot.project else ProjectSnapshot()
        now = utc_now_iso()

        age = seconds_since(previous.full_refresh_at)
        full_refresh = (
            self.config.sync.full_refresh or age is None or age > FULL_REFRESH_INTERVAL_SECONDS
        )
        last_sync_at = None if full_refresh else previous.last_sync_at

        page = self.code_host.fetch_assigned_project_items(
            github.project_owner,
            github.project_number,
            github.user,
            last_sync_at=last_sync_at,
            full_refresh=full_refresh,
        )
        result.full_refresh = full_refresh
        result.items_fetched = len(page.items)

        open_items, closed_items = split_closed_items(page.items)
        failures_before = len(result.failed_operations)
        ClosedItemSync(self.board, self.context, self.event_log).sync(closed_items, result)
        InboundSync(
            self.board, self.context, self.event_log, self.config.sync.primary_label
        ).sync(open_items, result)

        items = {} if full_refresh else dict(previous.items)
        for item in page.items:
            if item.updated_at:
                items[item.id] = {"updatedAt": item.updated_at}

        cursor = page.max_updated_at or now
        if len(result.failed_operations) > failures_before:
            # Failed items must show up in the next incremental fetch
            cursor = previous.last_sync_at if not full_refresh else None

        project = replace(
            previous,
            last_sync_at=cursor,
            full_refresh_at=now if full_refresh else previous.full_refresh_at,
            items=items,
        )
        self.snapshot_store.append(
            Snapshot(
                ts=now,
                trello=snapshot.trello if snapshot else None,
                project=project,
                worktrees=snapshot.worktrees if snapshot else None,
            )
        )

    def sync_review_requests(self, result: SyncResult) -> None:
        """Link PRs to issue cards, then card-ify the remaining review requests."""
        user = self.config.github.user
        requests = self.code_host.fetch_review_requests(user)
        result.review_requests_fetched = len(requests)
        authored = self.code_host.fetch_authored_open_prs(user)

        linked = LinkedPrSync(
            self.board,
            self.context,
            self._pr_cache,
            self.event_log,
            host=self.code_host.host,
            current_user=user,
        )
        attributed = linked.sync([*authored, *(request.url for request in requests)], result)

        items = [
            normalize_review_request(request)
            for request in requests
            if request.url not in attributed
        ]
        InboundSync(
            self.board, self.context, self.event_log, self.config.sync.primary_label
        ).sync(items, result)

    def sync_outbound(self, result: SyncResult) -> None:
        """Push list moves to the project and record a new snapshot."""
        OutboundSync(
            self.board,
            self.code_host,
            self.context,
            self.event_log,
            self.snapshot_store,
            project_owner=self.config.github.project_owner,
            project_number=self.config.github.project_number,
            primary_label=self.config.sync.primary_label,
            dry_run=self.config.sync.dry_run,
        ).sync(result)

    def reconcile_reviews(self, result: SyncResult) -> None:
        """Move review cards the user approved to Done."""
        ReviewLifecycleReconciler(
            self.board,
            self.context,
            self._pr_cache,
            self.event_log,
            current_user=self.config.github.user,
        ).reconcile(result)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _require_project(self) -> None:
        github = self.config.github
        if not github.project_owner:
            raise MissingConfigError(
                "Missing GitHub project owner (GH_PROJECT_OWNER)",
                missing_key="github.project_owner",
                env_var="GH_PROJECT_OWNER",
            )
        if not github.project_number:
            raise MissingConfigError(
                "Missing GitHub project number (GH_PROJECT_NUMBER)",
                missing_key="github.project_number",
                env_var="GH_PROJECT_NUMBER",
            )
