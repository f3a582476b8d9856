# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional


@dataclass(frozen=True)
class Command:
    """A single command inside a task: a bash string or a Python callable."""
    name: str
    run: str | None = None
    action: Optional[Callable[[], object]] = None
    best_effort: bool = False
    interactive: bool = False

    def __post_init__(self) -> None:
        if (self.run is None) == (self.action is None):
            raise ValueError(f"command {self.name!r} needs exactly one of run/action")


@dataclass(frozen=True)
class CommandGroup:
    """The commands contributed by one registration of a task."""
    task: str
    commands: tuple[Command, ...]


@dataclass
class Task:
    """
    A named unit of work: prerequisites + accumulated command groups.

    Registering the same name again appends a group (rule accumulation),
    it never replaces what is already there.
    """
    name: str
    prerequisites: list[str] = field(default_factory=list)
    groups: list[CommandGroup] = field(default_factory=list)

    # phony tasks have no on-disk artifact and are always eligible
    phony: bool = True
    artifact: Path | None = None

    description: str | None = None
    internal: bool = False

    def is_current(self) -> bool:
        """True when a non-phony task's artifact already exists."""
        if self.phony or self.artifact is None:
            return False
        return Path(self.artifact).exists()
