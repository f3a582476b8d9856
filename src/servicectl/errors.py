# errors.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


class ServiceCtlError(Exception):
    """Base class for every error servicectl reports to the user."""


class ConfigError(ServiceCtlError):
    """Invalid configuration (bad port, missing env template, bad override...)."""


TOOL_HINTS = {
    "docker": "Install Docker and ensure the daemon is running.",
    "git": "Install Git or fix PATH.",
}


@dataclass
class EngineUnavailable(ServiceCtlError):
    executable: str
    hint: str = ""

    def __str__(self) -> str:
        msg = f"{self.executable} is not available"
        if self.hint:
            msg += f"\nHint: {self.hint}"
        return msg


# ----------------------------------------------------------------------
# Configuration-time errors
# ----------------------------------------------------------------------

@dataclass
class UnknownTask(ServiceCtlError):
    name: str
    known: List[str] = field(default_factory=list)
    needed_by: Optional[str] = None

    def __str__(self) -> str:
        if self.needed_by:
            return f"Task '{self.needed_by}' needs unknown task '{self.name}'"
        return f"Unknown task '{self.name}'. Known tasks: {self.known}"


@dataclass
class CyclicDependency(ServiceCtlError):
    cycle: List[str]

    def __str__(self) -> str:
        return "Cyclic task dependency: " + " -> ".join(self.cycle)


# ----------------------------------------------------------------------
# Runtime errors
# ----------------------------------------------------------------------

@dataclass
class CommandFailed(ServiceCtlError):
    cmd: str
    exit_code: int
    stderr: str = ""

    def __str__(self) -> str:
        msg = f"command failed (exit={self.exit_code}): {self.cmd}"
        if self.stderr.strip():
            msg += "\n" + self.stderr.strip()
        return msg


@dataclass
class BuildFailed(CommandFailed):
    image: str = ""

    def __str__(self) -> str:
        return f"build of image '{self.image}' failed\n" + super().__str__()
