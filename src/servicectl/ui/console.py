"""Console output formatting utilities for servicectl."""

from __future__ import annotations

import sys
from typing import Iterable, Optional


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug

    def print_task_start(self, name: str) -> None:
        """Print task start message."""
        print(f"\nTASK: {name}")

    def print_step(self, task: str, name: str) -> None:
        """Print step start message."""
        print(f"[{task}] ▶ {name}")

    def print_output(self, text: str) -> None:
        """Echo captured command output."""
        text = text.rstrip("\n")
        if text:
            print(text)

    def print_diagnostics(self, text: str) -> None:
        """Echo a command's captured stderr to stderr."""
        text = text.rstrip("\n")
        if text:
            print(text, file=sys.stderr)

    def print_warning(self, task: str, name: str, reason: str) -> None:
        """Print a best-effort failure that was tolerated."""
        first_line = reason.split("\n")[0] if reason else "Unknown error"
        print(f"[{task}] ⚠ {name} failed (ignored): {first_line}", file=sys.stderr)
        if self.debug and first_line != reason:
            print(reason, file=sys.stderr)

    def print_help(self, entries: Iterable[tuple[str, str]]) -> None:
        """Print the task listing."""
        print("Available routines:")
        for name, description in entries:
            print(f"  {name:<20} {description}")

    def print_plan(self, task: str, names: list[str]) -> None:
        """Print the resolved task order without running it."""
        print(f"PLAN for {task}:")
        for idx, name in enumerate(names, start=1):
            print(f"  {idx}. {name}")

    def print_results(self, results: dict[str, str]) -> None:
        """Print final results summary."""
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        for task, status in results.items():
            status_display = status.upper() if status != "ok" else "SUCCESS"
            print(f"  {task}: {status_display}")

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
