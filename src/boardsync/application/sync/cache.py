"""
Pull Request Cache - Run-scoped memo of PR details.

The linked-PR pass and the review reconciler can ask about the same PR in
one run. A fresh cache is created per run so nothing stale survives into
the next one.
"""

from __future__ import annotations

import logging

from boardsync.core.domain.entities import PullRequestDetails
from boardsync.core.ports.code_host import CodeHostPort


class PullRequestCache:
    """Memoizes ``CodeHostPort.fetch_pr_details`` by url."""

    def __init__(self, code_host: CodeHostPort):
        self.code_host = code_host
        self.logger = logging.getLogger("PullRequestCache")
        self._details: dict[str, PullRequestDetails] = {}

    def get(self, url: str) -> PullRequestDetails:
        details = self._details.get(url)
        if details is None:
            details = self.code_host.fetch_pr_details(url)
            self._details[url] = details
        else:
            self.logger.debug(f"Cache hit for {url}")
        return details

    def has_approved_review(self, url: str, user: str) -> bool:
        """Check whether the user has an APPROVED review on a PR."""
        return self.get(url).approved_by(user)

    def __contains__(self, url: object) -> bool:
        return url in self._details

    def __len__(self) -> int:
        return len(self._details)
