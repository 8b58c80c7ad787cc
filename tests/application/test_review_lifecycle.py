"""
Tests for closing out review cards after approval.
"""

import pytest

from boardsync.application.sync import (
    InboundSync,
    PullRequestCache,
    ReviewLifecycleReconciler,
    normalize_review_request,
)
from boardsync.application.sync.review_lifecycle import review_url_for
from boardsync.core.domain.entities import Card, Review, ReviewRequest
from boardsync.core.domain.metadata import SyncMetadata, parse_sync_metadata
from boardsync.core.domain.policy import LabelName, ListName
from boardsync.core.exceptions import AuthenticationError, TransientError

from conftest import HOST, USER, make_pr


PR_URL = f"https://{HOST}/org/repo/pull/7"


@pytest.fixture
def reconciler(board, context, code_host, event_log):
    return ReviewLifecycleReconciler(
        board, context, PullRequestCache(code_host), event_log, current_user=USER
    )


@pytest.fixture
def review_card(board, context, event_log, result):
    item = normalize_review_request(ReviewRequest(title="Add x", url=PR_URL, repo="org/repo"))
    InboundSync(board, context, event_log).sync([item], result)
    [card] = board.cards.values()
    board.calls.clear()
    return card


class TestReviewUrlFor:
    """Tests for review_url_for."""

    def test_prefers_metadata_url(self):
        card = Card(id="c", name="n", desc="https://h/o/r/pull/1")
        meta = SyncMetadata(source="ghe-review", url=PR_URL)
        assert review_url_for(card, meta) == PR_URL

    def test_falls_back_to_first_pr_url(self):
        card = Card(id="c", name="n", desc="see https://h/o/r/issues/3 and https://h/o/r/pull/1")
        assert review_url_for(card, None) == "https://h/o/r/pull/1"
        assert review_url_for(Card(id="c", name="n", desc="nothing"), None) is None


class TestReviewLifecycleReconciler:
    """Approved reviews go to Done; anything else stays put."""

    def test_approved_review_moves_to_done(
        self, reconciler, board, review_card, code_host, event_log, result
    ):
        code_host.pull_requests[PR_URL] = make_pr(
            author="someone", reviews=(Review(author=USER, state="APPROVED"),)
        )

        reconciler.reconcile(result)

        assert review_card.list_id == board.list_id(ListName.DONE)
        assert parse_sync_metadata(review_card.desc).status == "APPROVED"
        assert result.reviews_done == 1
        [done] = event_log.of_type("trello.review.done")
        assert done.payload == {
            "cardId": review_card.id,
            "url": PR_URL,
            "fromList": ListName.READY,
            "toList": ListName.DONE,
        }
        [moved] = event_log.of_type("trello.card.moved")
        assert moved.payload["name"] == review_card.name
        assert board.label_id(LabelName.REVIEW) in moved.payload["labels"]

    def test_second_run_is_a_no_op(self, reconciler, board, review_card, code_host, result):
        code_host.pull_requests[PR_URL] = make_pr(
            reviews=(Review(author=USER, state="APPROVED"),)
        )
        reconciler.reconcile(result)
        board.calls.clear()

        reconciler.reconcile(result)

        assert board.writes() == []
        assert result.reviews_done == 1

    @pytest.mark.parametrize("state", ["CHANGES_REQUESTED", "COMMENTED"])
    def test_other_outcomes_leave_card(
        self, reconciler, board, review_card, code_host, result, state
    ):
        code_host.pull_requests[PR_URL] = make_pr(reviews=(Review(author=USER, state=state),))

        reconciler.reconcile(result)

        assert review_card.list_id == board.list_id(ListName.READY)
        assert board.writes() == []

    def test_approval_by_someone_else_is_ignored(
        self, reconciler, board, review_card, code_host, result
    ):
        code_host.pull_requests[PR_URL] = make_pr(
            reviews=(Review(author="someone", state="APPROVED"),)
        )

        reconciler.reconcile(result)

        assert result.reviews_done == 0

    def test_cards_without_review_label_are_skipped(self, reconciler, board, code_host, result):
        board.add_card("work", ListName.DOING, desc=PR_URL, labels=[LabelName.WORK])

        reconciler.reconcile(result)

        assert code_host.pr_calls == []

    def test_fetch_failure_is_recorded(self, reconciler, review_card, code_host, result):
        reconciler.reconcile(result)

        [failed] = result.failed_operations
        assert failed.operation == "reconcile_review"
        assert failed.card_id == review_card.id

    def test_update_failure_is_recorded(
        self, reconciler, board, review_card, code_host, event_log, result
    ):
        code_host.pull_requests[PR_URL] = make_pr(
            reviews=(Review(author=USER, state="APPROVED"),)
        )
        board.fail_updates[review_card.id] = TransientError("502")

        reconciler.reconcile(result)

        assert result.reviews_done == 0
        assert event_log.of_type("trello.review.done") == []

    def test_authentication_error_propagates(self, reconciler, board, review_card, result):
        board.fail_updates[review_card.id] = AuthenticationError("401")
        reconciler.pr_cache.code_host.pull_requests[PR_URL] = make_pr(
            reviews=(Review(author=USER, state="APPROVED"),)
        )

        with pytest.raises(AuthenticationError):
            reconciler.reconcile(result)
