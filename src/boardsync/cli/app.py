"""
CLI App - Main entry point for the boardsync command line tool.
"""

import argparse
import logging
import sys
from pathlib import Path

from boardsync.adapters.config import EnvironmentConfigProvider
from boardsync.adapters.github import GitHubAdapter
from boardsync.adapters.state_store import (
    JsonlEventLog,
    JsonlSnapshotStore,
    MemoryEventLog,
    MemorySnapshotStore,
)
from boardsync.adapters.trello import TrelloAdapter
from boardsync.application import SyncOrchestrator
from boardsync.core.exceptions import BoardSyncError
from boardsync.core.ports.config_provider import AppConfig
from boardsync.core.ports.state_store import EventLogPort, SnapshotStorePort

from .exit_codes import ExitCode
from .logging import setup_logging
from .output import Console


def create_parser() -> argparse.ArgumentParser:
    """
    Create the command-line argument parser for boardsync.

    Boolean flags default to None so that an unset flag never overrides a
    value from the config file or the environment.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog="boardsync",
        description="Keep a Trello board in sync with a GitHub project and review queue",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Provision the lists and labels on a new board
  boardsync --init-board

  # Preview a full run without writing anything
  boardsync --dry-run --verbose

  # Re-read the whole project instead of the incremental cursor
  boardsync --full-refresh

  # Only push local list moves back to the project
  boardsync --sync-only outbound
        """,
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Log the writes a run would make without making them",
    )
    parser.add_argument(
        "--full-refresh",
        action="store_true",
        default=None,
        help="Fetch every assigned project item, ignoring the last sync cursor",
    )
    parser.add_argument(
        "--init-board",
        action="store_true",
        help="Create missing lists and labels on the board and exit",
    )
    parser.add_argument(
        "--sync-only",
        action="append",
        choices=list(SyncOrchestrator.PASSES),
        metavar="PASS",
        help=f"Run only this pass (repeatable): {', '.join(SyncOrchestrator.PASSES)}",
    )

    # Configuration
    parser.add_argument("--config", "-c", type=str, metavar="PATH", help="Config file path")
    parser.add_argument("--board-id", type=str, help="Trello board id (TRELLO_BOARD_ID)")
    parser.add_argument("--gh-host", type=str, help="GitHub host (GH_HOST)")
    parser.add_argument("--gh-user", type=str, help="GitHub login (GH_USER)")
    parser.add_argument(
        "--primary-label", type=str, help="Label of project-sourced cards (default: work)"
    )
    parser.add_argument("--state-dir", type=str, metavar="PATH", help="Event/snapshot directory")

    # Output
    parser.add_argument(
        "--verbose", "-v", action="store_true", default=None, help="Enable debug logging"
    )
    parser.add_argument(
        "--quiet", "-q", action="store_true", help="Only print errors and a one-line summary"
    )
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument(
        "--log-format",
        type=str,
        choices=["text", "json"],
        default="text",
        help="Log format: text (default) or json for structured log aggregation",
    )
    parser.add_argument(
        "--log-file", type=str, metavar="PATH", help="Write logs to file (in addition to stderr)"
    )

    return parser


def create_state_stores(config: AppConfig) -> tuple[EventLogPort, SnapshotStorePort]:
    """
    Build the event log and snapshot store for a run.

    A dry run records into memory, seeded with the latest persisted
    snapshot, so it never moves the baseline of the next real run.
    """
    events = JsonlEventLog(config.sync.events_path)
    snapshots = JsonlSnapshotStore(config.sync.snapshots_path)
    if config.sync.dry_run:
        return MemoryEventLog(), MemorySnapshotStore(initial=snapshots.read_latest())
    return events, snapshots


def run_sync(args: argparse.Namespace) -> int:
    """
    Run the sync (or board setup) with the parsed arguments.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code.
    """
    log_level = logging.DEBUG if args.verbose else logging.INFO
    setup_logging(level=log_level, log_format=args.log_format, log_file=args.log_file)
    logger = logging.getLogger("boardsync")

    console = Console(
        color=not args.no_color,
        quiet=args.quiet,
        json_mode=args.json,
    )

    config_provider = EnvironmentConfigProvider(
        config_file=Path(args.config) if args.config else None,
        cli_overrides=vars(args),
    )
    errors = config_provider.validate()
    if errors:
        console.config_errors(errors)
        console.aborted()
        return ExitCode.CONFIG_ERROR

    try:
        config = config_provider.load()
    except BoardSyncError as e:
        console.error(str(e))
        console.aborted()
        return ExitCode.from_exception(e)
    logger.debug(f"Configuration loaded from {config_provider.name}")

    console.header("boardsync")
    if config.sync.dry_run:
        console.dry_run_banner()

    board = TrelloAdapter(config.trello, dry_run=config.sync.dry_run)
    code_host = GitHubAdapter(config.github, dry_run=config.sync.dry_run)
    try:
        user = code_host.get_current_user()
        console.success(f"Connected to {config.github.host} as {user.get('login', '?')}")

        event_log, snapshot_store = create_state_stores(config)
        orchestrator = SyncOrchestrator(board, code_host, event_log, snapshot_store, config)

        if args.init_board:
            context = orchestrator.setup_board()
            console.success(
                f"Board {context.board_id} has {len(context.lists)} lists "
                f"and {len(context.labels)} labels"
            )
            return ExitCode.SUCCESS

        result = orchestrator.run(args.sync_only)
    except BoardSyncError as e:
        logger.debug("Run aborted", exc_info=True)
        console.error(str(e))
        console.aborted()
        return ExitCode.from_exception(e)
    finally:
        board.close()
        code_host.close()

    console.sync_result(result)
    return ExitCode.SUCCESS if result.success else ExitCode.ERROR


def main() -> int:
    """
    Main entry point for the boardsync CLI.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    args = parser.parse_args()

    try:
        return run_sync(args)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return ExitCode.SIGINT
    except Exception as e:
        logging.getLogger("boardsync").exception(f"Unexpected error: {e}")
        return ExitCode.ERROR


def run() -> None:
    """
    Entry point for the console script.

    Calls main() and exits with its return code.
    """
    sys.exit(main())


if __name__ == "__main__":
    run()
