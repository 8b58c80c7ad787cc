"""
Output - What the boardsync command prints to the terminal.

Logs and errors go to stderr; the run header and the final result go to
stdout.
"""

import json
import sys

from boardsync.application.sync import SyncResult


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"

    BG_YELLOW = "\033[43m"


class Symbols:
    """Unicode symbols for terminal output."""

    CHECK = "✓"
    CROSS = "✗"
    ARROW = "→"
    DOT = "•"
    GEAR = "⚙"
    RULE = "─"


class Console:
    """
    Prints the run header, errors and the sync result.

    Quiet mode keeps errors and a one-line summary; JSON mode prints a
    single JSON document and collects errors into it.
    """

    def __init__(
        self,
        color: bool = True,
        quiet: bool = False,
        json_mode: bool = False,
    ):
        """
        Args:
            color: Use ANSI colors (only when stdout is a terminal).
            quiet: Print only errors and the final summary line.
            json_mode: Print the result as JSON.
        """
        self.json_mode = json_mode
        self.quiet = quiet or json_mode
        self.color = color and not json_mode and sys.stdout.isatty()
        self._collected_errors: list[str] = []

    def _paint(self, text: str, *codes: str) -> str:
        return f"{''.join(codes)}{text}{Colors.RESET}" if self.color else text

    def print(self, text: str = "") -> None:
        if not self.quiet:
            print(text)

    def header(self, text: str) -> None:
        width = max(len(text) + 4, 50)
        rule = self._paint(Symbols.RULE * width, Colors.CYAN) if self.color else "-" * width
        for line in ("", rule, self._paint(f"  {text}", Colors.BOLD, Colors.CYAN), rule, ""):
            self.print(line)

    def section(self, text: str) -> None:
        self.print()
        self.print(self._paint(f"{Symbols.ARROW} {text}", Colors.BOLD, Colors.BLUE))

    def success(self, text: str) -> None:
        self.print(self._paint(f"  {Symbols.CHECK} {text}", Colors.GREEN))

    def error(self, text: str) -> None:
        """Errors are always shown: on stderr, or inside the JSON result."""
        if self.json_mode:
            self._collected_errors.append(text)
            return
        print(self._paint(f"  {Symbols.CROSS} {text}", Colors.RED), file=sys.stderr)

    def config_errors(self, errors: list[str]) -> None:
        if self.json_mode:
            self._collected_errors.extend(errors)
            return
        lines = [
            self._paint(f"  {Symbols.CROSS} Configuration errors:", Colors.RED, Colors.BOLD),
            *(self._paint(f"    {Symbols.DOT} {error}", Colors.RED) for error in errors),
            "",
            "  Values are read from .boardsync.yaml, .env and the environment.",
        ]
        print("\n".join(lines), file=sys.stderr)

    def aborted(self) -> None:
        """
        Finish a run that stopped before producing a result.

        In JSON mode this prints the collected errors as the run document;
        otherwise they were already written to stderr.
        """
        if not self.json_mode:
            return
        document = {"success": False, "errors": self._collected_errors}
        print(json.dumps(document, indent=2, ensure_ascii=False))

    def dry_run_banner(self) -> None:
        text = f"  {Symbols.GEAR} DRY-RUN MODE - Nothing will be written to Trello or GitHub"
        self.print()
        if self.color:
            self.print(f"{Colors.BG_YELLOW}{Colors.BOLD}{text}{Colors.RESET}")
        else:
            self.print(f"*** {text} ***")
        self.print()

    def sync_result(self, result: SyncResult) -> None:
        """Print the result as JSON, as one key=value line (quiet) or as the full summary."""
        if self.json_mode:
            print(json.dumps(self._result_document(result), indent=2, ensure_ascii=False))
        elif self.quiet:
            self._print_summary_line(result)
        else:
            self.section("Sync Complete")
            self.print()
            for line in result.summary().splitlines():
                self.print(line)

    def _result_document(self, result: SyncResult) -> dict:
        document = {
            "success": result.success,
            "dry_run": result.dry_run,
            "full_refresh": result.full_refresh,
            "passes": result.passes_run,
            "stats": {
                "items_fetched": result.items_fetched,
                "review_requests_fetched": result.review_requests_fetched,
                "cards_created": result.cards_created,
                "cards_updated": result.cards_updated,
                "cards_closed": result.cards_closed,
                "linked_prs": result.linked_prs,
                "linked_cards_moved": result.linked_cards_moved,
                "statuses_pushed": result.statuses_pushed,
                "reviews_done": result.reviews_done,
            },
            "errors": [*result.errors, *self._collected_errors],
            "warnings": result.warnings,
        }
        if result.failed_operations:
            document["failed_operations"] = [
                {
                    "operation": failed.operation,
                    "item_key": failed.item_key,
                    "error": failed.error,
                    "card_id": failed.card_id,
                    "recoverable": failed.recoverable,
                }
                for failed in result.failed_operations
            ]
        return document

    @staticmethod
    def _print_summary_line(result: SyncResult) -> None:
        fields = {
            "status": "OK" if result.success else "FAILED",
            "mode": "dry-run" if result.dry_run else "executed",
            "created": result.cards_created,
            "updated": result.cards_updated,
            "closed": result.cards_closed,
            "pushed": result.statuses_pushed,
            "reviews_done": result.reviews_done,
        }
        if result.errors:
            fields["errors"] = len(result.errors)
        print(" ".join(f"{key}={value}" for key, value in fields.items()))
        for error in result.errors:
            print(f"ERROR: {error}", file=sys.stderr)
