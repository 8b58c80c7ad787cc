"""
Sync Result - Counters and failures collected over one run.
"""

from __future__ import annotations

from dataclasses import dataclass, field


MAX_LISTED_FAILURES = 10
MAX_LISTED_WARNINGS = 5


@dataclass
class FailedOperation:
    """One item a pass gave up on, kept for the run summary."""

    operation: str  # e.g., "sync_card", "push_status"
    item_key: str  # Url of the external item, or the card id
    error: str
    card_id: str = ""
    recoverable: bool = True  # False for misconfiguration (e.g. unmapped status)

    def __str__(self) -> str:
        if self.card_id and self.card_id != self.item_key:
            return f"[{self.operation}] {self.item_key} (card {self.card_id}): {self.error}"
        return f"[{self.operation}] {self.item_key}: {self.error}"


def _listed(lines: list[str], title: str, entries: list, limit: int) -> None:
    if not entries:
        return
    lines.extend(["", f"{title}:"])
    lines.extend(f"  • {entry}" for entry in entries[:limit])
    hidden = len(entries) - limit
    if hidden > 0:
        lines.append(f"  ... and {hidden} more")


@dataclass
class SyncResult:
    """
    Result of a sync run.

    Every pass adds to the same result. A failure on one item is recorded
    here and never stops the remaining items or passes.

    Attributes:
        success: False as soon as any error or failed operation is recorded.
        dry_run: Whether writes were only logged.
        full_refresh: Whether project items were fetched without the cursor.
        items_fetched: Project items returned by the code host.
        review_requests_fetched: Review requests returned by the code host.
        cards_created: Cards created by the inbound pass.
        cards_updated: Cards updated by the inbound pass.
        cards_closed: Cards moved to Done because their item closed.
        linked_prs: PRs attributed to an issue card.
        linked_cards_moved: Issue cards moved because of a linked PR.
        statuses_pushed: Project status updates made by the outbound pass.
        reviews_done: Review cards moved to Done after approval.
        passes_run: Names of the passes that ran, in order.
        failed_operations: Items a pass gave up on.
        errors: Messages for failed operations and failed passes.
        warnings: Messages that do not fail the run.
    """

    success: bool = True
    dry_run: bool = True
    full_refresh: bool = False

    # Fetch counts
    items_fetched: int = 0
    review_requests_fetched: int = 0

    # Write counts
    cards_created: int = 0
    cards_updated: int = 0
    cards_closed: int = 0
    linked_prs: int = 0
    linked_cards_moved: int = 0
    statuses_pushed: int = 0
    reviews_done: int = 0

    # Details
    passes_run: list[str] = field(default_factory=list)
    failed_operations: list[FailedOperation] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, error: str) -> None:
        """Record a run-level error (e.g. a whole pass failed)."""
        self.errors.append(error)
        self.success = False

    def add_failed_operation(
        self,
        operation: str,
        item_key: str,
        error: str,
        card_id: str = "",
        recoverable: bool = True,
    ) -> None:
        """
        Record an item-level failure.

        Args:
            operation: Name of the step that failed, e.g. "close_card".
            item_key: Url of the external item, or the card id.
            error: Error message.
            card_id: Card involved, when there is one.
            recoverable: False when rerunning cannot help without a config change.
        """
        failed = FailedOperation(operation, item_key, error, card_id, recoverable)
        self.failed_operations.append(failed)
        self.add_error(str(failed))

    def add_warning(self, warning: str) -> None:
        self.warnings.append(warning)

    @property
    def changes_made(self) -> int:
        """Number of writes performed (or previewed in dry-run)."""
        return (
            self.cards_created
            + self.cards_updated
            + self.cards_closed
            + self.linked_cards_moved
            + self.statuses_pushed
            + self.reviews_done
        )

    @property
    def partial_success(self) -> bool:
        """Some writes went through and some items failed."""
        return self.changes_made > 0 and bool(self.failed_operations)

    @property
    def total_operations(self) -> int:
        return self.changes_made + len(self.failed_operations)

    @property
    def success_rate(self) -> float:
        """Share of operations (0.0 to 1.0) that did not fail; 1.0 for an idle run."""
        if not self.total_operations:
            return 1.0
        return self.changes_made / self.total_operations

    def summary(self) -> str:
        """Multi-line report of the run for the console."""
        lines: list[str] = []
        if self.dry_run:
            lines.append("DRY RUN - No changes made")

        failures = len(self.failed_operations)
        if self.success:
            lines.append("✓ Sync completed successfully")
        elif self.partial_success:
            lines.append(f"⚠ Sync completed with errors ({failures} failures)")
        else:
            lines.append(f"✗ Sync failed ({len(self.errors)} errors)")

        refresh = "full" if self.full_refresh else "incremental"
        lines += [
            f"  Project items fetched ({refresh}): {self.items_fetched}",
            f"  Review requests fetched: {self.review_requests_fetched}",
            f"  Cards created: {self.cards_created}",
            f"  Cards updated: {self.cards_updated}",
            f"  Closed items moved to Done: {self.cards_closed}",
            f"  Linked PRs: {self.linked_prs} ({self.linked_cards_moved} cards moved)",
            f"  Statuses pushed: {self.statuses_pushed}",
            f"  Reviews done: {self.reviews_done}",
        ]

        _listed(lines, "Failed operations", self.failed_operations, MAX_LISTED_FAILURES)
        _listed(lines, "Warnings", self.warnings, MAX_LISTED_WARNINGS)
        return "\n".join(lines)
