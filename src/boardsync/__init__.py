"""
boardsync - Keep a personal Trello board in sync with a GitHub project and review queue.

Architecture:
- core/: Domain entities, metadata codec, status policy and ports
- adapters/: Trello, GitHub, state store and configuration implementations
- application/: Sync passes and run orchestration
- cli/: Command line interface
"""

__version__ = "1.0.0"
