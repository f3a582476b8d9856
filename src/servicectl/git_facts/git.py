# git.py
# Small, focused wrapper around the Git CLI.
# The rest of the codebase never calls subprocess("git ...") directly.

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Optional

from ..errors import CommandFailed, EngineUnavailable, TOOL_HINTS


def _git(args: list[str], cwd: Optional[str | Path] = None, git: str = "git") -> str:
    """
    Execute a git command and return its stdout as a clean string.

    Args:
        args: List of git arguments (e.g. ["config", "--get", "user.email"])
        cwd: Optional working directory in which to run the git command.
        git: Git executable to invoke.

    Returns:
        Stdout from the git command with surrounding whitespace removed.
    """
    # Raises CalledProcessError on non-zero exit; callers decide what that means.
    out = subprocess.check_output(
        [git, *args],
        cwd=cwd,
        text=True,
        stderr=subprocess.PIPE,
    )
    return out.strip()


def author_email(cwd: Optional[str | Path] = None, git: str = "git") -> Optional[str]:
    """
    Return the configured `user.email`, or None if git has none.

    Used as the author of committed service images.
    """
    try:
        email = _git(["config", "--get", "user.email"], cwd=cwd, git=git)
    except (subprocess.CalledProcessError, FileNotFoundError):
        return None
    return email or None


def has_submodules(root: str | Path) -> bool:
    return (Path(root) / ".gitmodules").is_file()


def update_submodules(root: str | Path, git: str = "git") -> bool:
    """
    Initialize nested repositories when the project declares any.

    Returns:
        True if an update ran, False if there is no .gitmodules.
    """
    if not has_submodules(root):
        return False
    args = ["submodule", "update", "--init", "--recursive"]
    try:
        _git(args, cwd=root, git=git)
    except FileNotFoundError:
        raise EngineUnavailable(executable=git, hint=TOOL_HINTS["git"]) from None
    except subprocess.CalledProcessError as e:
        raise CommandFailed(
            cmd=" ".join([git, *args]),
            exit_code=e.returncode,
            stderr=e.stderr or "",
        ) from e
    return True
