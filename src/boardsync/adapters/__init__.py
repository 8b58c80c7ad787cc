"""
Adapters - Concrete implementations of the core ports.

- trello/: BoardPort for Trello
- github/: CodeHostPort for GitHub and GitHub Enterprise
- state_store/: JSONL and in-memory event log / snapshot store
- config/: Configuration providers
"""
