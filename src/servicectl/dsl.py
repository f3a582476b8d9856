# dsl.py
from __future__ import annotations

from typing import Any, Callable

from .model import Command


# ---------------------------------------------------------------------
# Command helpers
# ---------------------------------------------------------------------

def sh(name: str, cmd: str, *, best_effort: bool = False, interactive: bool = False) -> Command:
    """Create a bash command."""
    return Command(name=name, run=cmd, best_effort=best_effort, interactive=interactive)


def call(name: str, fn: Callable[..., Any], *args: Any, best_effort: bool = False) -> Command:
    """
    Create a command that calls back into Python.

    Example:
        call("Run service", controller.run_service, cfg)
    """
    if args:
        def action() -> Any:
            return fn(*args)
    else:
        action = fn
    return Command(name=name, action=action, best_effort=best_effort)
