"""
Exit Codes - Process exit status of the boardsync command.
"""

from __future__ import annotations

from enum import IntEnum

from boardsync.core.exceptions import (
    AuthenticationError,
    BoardContextError,
    ConfigError,
    StatusMappingError,
    TrackerError,
)


class ExitCode(IntEnum):
    """
    Exit codes returned by the CLI.

    0 and 1 are what a scheduler cares about; the others tell an operator
    what to fix.
    """

    SUCCESS = 0
    ERROR = 1  # Run finished with failed operations, or an unexpected error
    CONFIG_ERROR = 2  # Missing or invalid configuration
    AUTH_ERROR = 3  # Trello or GitHub rejected the credentials
    CONNECTION_ERROR = 4  # An API could not be reached
    BOARD_ERROR = 5  # Required lists or labels missing on the board
    SIGINT = 130

    @classmethod
    def from_exception(cls, exc: BaseException) -> ExitCode:
        """Map an exception that aborted the run to an exit code."""
        if isinstance(exc, KeyboardInterrupt):
            return cls.SIGINT
        if isinstance(exc, (ConfigError, StatusMappingError)):
            return cls.CONFIG_ERROR
        if isinstance(exc, AuthenticationError):
            return cls.AUTH_ERROR
        if isinstance(exc, BoardContextError):
            return cls.BOARD_ERROR
        if isinstance(exc, TrackerError):
            return cls.CONNECTION_ERROR
        return cls.ERROR
