"""
GitHub Adapter - Integration with GitHub projects and pull requests.

This module provides the GitHubAdapter and its low-level API client.
"""

from boardsync.adapters.github.adapter import GitHubAdapter, extract_repo_slug
from boardsync.adapters.github.client import GitHubApiClient


__all__ = ["GitHubAdapter", "GitHubApiClient", "extract_repo_slug"]
