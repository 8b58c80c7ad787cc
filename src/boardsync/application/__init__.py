"""
Application Layer - Use cases and orchestration.

This layer contains:
- sync/: The sync passes and the orchestrator that runs them
"""

from .sync import FailedOperation, SyncOrchestrator, SyncResult


__all__ = ["FailedOperation", "SyncOrchestrator", "SyncResult"]
