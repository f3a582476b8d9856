# runner.py
from __future__ import annotations

import os
import runpy
import subprocess
import sys
import termios
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, TextIO

from .config import ServiceConfig
from .dag import TaskGraph
from .errors import CommandFailed, ConfigError
from .model import Command, CommandGroup
from .ui.console import Console, get_console


SHELL = "/bin/bash"
DEFAULT_TASKS_FILE = "servicectl_tasks.py"


# ----------------------------------------------------------------------
# Terminal handling for interactive commands
# ----------------------------------------------------------------------

@contextmanager
def attached_terminal(stream: TextIO) -> Iterator[None]:
    """
    Hand the caller's terminal to a child process.

    Pending output is flushed first and the tty attributes are restored on
    exit, whether the child succeeded or not.
    """
    sys.stdout.flush()
    sys.stderr.flush()

    saved = None
    fd = None
    if stream.isatty():
        fd = stream.fileno()
        saved = termios.tcgetattr(fd)
    try:
        yield
    finally:
        if saved is not None:
            termios.tcsetattr(fd, termios.TCSADRAIN, saved)


# ----------------------------------------------------------------------
# Runner
# ----------------------------------------------------------------------

class CommandRunner:
    """
    Executes resolved command groups in order.

    A fail-fast command failure propagates and aborts the whole sequence;
    a best-effort failure is reported as a warning and execution continues.
    """

    def __init__(
        self,
        cfg: ServiceConfig,
        console: Console | None = None,
        *,
        stdin: TextIO | None = None,
    ):
        self.cfg = cfg
        self.console = console or get_console()
        self.stdin = stdin if stdin is not None else sys.stdin

    def _env(self) -> Dict[str, str]:
        env = os.environ.copy()
        env.update(self.cfg.as_env())
        return env

    def _run_shell(self, command: Command) -> None:
        proc = subprocess.run(
            command.run,
            shell=True,
            executable=SHELL,
            cwd=str(self.cfg.root_dir),
            env=self._env(),
            text=True,
            capture_output=True,
        )
        self.console.print_output(proc.stdout)
        if proc.returncode == 0:
            # curl -v and friends report on stderr even when they succeed
            self.console.print_diagnostics(proc.stderr or "")
        else:
            raise CommandFailed(
                cmd=command.run,
                exit_code=proc.returncode,
                stderr=(proc.stderr or "")[-4000:],
            )

    def _run_interactive(self, command: Command) -> None:
        with attached_terminal(self.stdin):
            proc = subprocess.run(
                command.run,
                shell=True,
                executable=SHELL,
                cwd=str(self.cfg.root_dir),
                env=self._env(),
            )
        if proc.returncode != 0:
            raise CommandFailed(cmd=command.run, exit_code=proc.returncode)

    def _run_command(self, task: str, command: Command) -> bool:
        """Returns False when a best-effort command failed."""
        self.console.print_step(task, command.name)
        try:
            if command.action is not None:
                command.action()
            elif command.interactive:
                self._run_interactive(command)
            else:
                self._run_shell(command)
        except CommandFailed as e:
            if not command.best_effort:
                raise
            self.console.print_warning(task, command.name, str(e))
            return False
        return True

    def run(self, group: CommandGroup) -> bool:
        """Run one group. Returns False if any best-effort command failed."""
        clean = True
        for command in group.commands:
            clean = self._run_command(group.task, command) and clean
        return clean

    def run_sequence(self, groups: Iterable[CommandGroup]) -> Dict[str, str]:
        """
        Run groups in order and return {task: status}.

        status is one of: "ok", "ok(warnings)", "failed", "skipped".
        """
        groups = list(groups)
        results: Dict[str, str] = {}
        failed = False

        for group in groups:
            if failed:
                results.setdefault(group.task, "skipped")
                continue

            if group.task not in results:
                self.console.print_task_start(group.task)
            try:
                clean = self.run(group)
            except CommandFailed as e:
                results[group.task] = "failed"
                self.console.print_error(f"Task '{group.task}' failed", str(e))
                failed = True
                continue

            previous = results.get(group.task, "ok")
            results[group.task] = "ok" if clean and previous == "ok" else "ok(warnings)"

        return results


# ----------------------------------------------------------------------
# Task extensions (local file)
# ----------------------------------------------------------------------

def find_tasks_file(root: Path, tasks_file: str | Path | None = None) -> Optional[Path]:
    """
    Locate the extension file.

    An explicit path must exist; the default `servicectl_tasks.py` under
    root is optional.
    """
    if tasks_file is not None:
        path = Path(tasks_file).expanduser()
        if not path.is_absolute():
            path = root / path
        if not path.exists():
            raise ConfigError(f"Tasks file not found: {path}")
        return path.resolve()

    default = root / DEFAULT_TASKS_FILE
    return default if default.is_file() else None


def load_tasks_file(path: str | Path, graph: TaskGraph, cfg: ServiceConfig) -> TaskGraph:
    """
    Execute a python tasks file and let it extend the graph.

    The file must define:
      - register(graph, cfg) -> None
    """
    tasks_path = Path(path).expanduser().resolve()
    if tasks_path.suffix != ".py":
        raise ConfigError(f"Tasks file must be a .py file, got: {tasks_path.name}")

    module_name = f"servicectl_tasks_{tasks_path.stem}"
    globals_dict = runpy.run_path(str(tasks_path), run_name=module_name)

    register = globals_dict.get("register")
    if not callable(register):
        raise ConfigError(f"{tasks_path.name} must define register(graph, cfg)")

    register(graph, cfg)
    return graph


def summarize(results: Dict[str, str]) -> List[str]:
    return [name for name, status in results.items() if status == "failed"]
