# dispatch.py
from __future__ import annotations

from .dag import TaskGraph
from .runner import CommandRunner, summarize
from .tasks import HELP_TASK
from .ui.console import Console, get_console


class Dispatcher:
    """Maps a caller-supplied task name onto the graph and runs it."""

    def __init__(self, graph: TaskGraph, runner: CommandRunner, console: Console | None = None):
        self.graph = graph
        self.runner = runner
        self.console = console or get_console()

    def _unrecognized(self, name: str) -> str:
        self.console.print_error(
            f"Unrecognized routine: '{name}'",
            "Showing the available routines instead.",
        )
        return HELP_TASK

    def target(self, name: str) -> str:
        """Registered names map to themselves; anything else falls back to help."""
        return name if name in self.graph else self._unrecognized(name)

    def dispatch(self, name: str, *, dry_run: bool = False) -> int:
        target = self.target(name)

        if dry_run:
            self.console.print_plan(target, self.graph.plan(target))
            return 0

        results = self.runner.run_sequence(self.graph.resolve(target))
        if target != HELP_TASK:
            self.console.print_results(results)
        return 1 if summarize(results) else 0
