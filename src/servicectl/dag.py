# dag.py
from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .errors import CyclicDependency, UnknownTask
from .model import Command, CommandGroup, Task


class TaskGraph:
    """
    Registry of named tasks and their prerequisites.

    Requires (checked lazily by resolve/validate):
      - task names are unique
      - every prerequisite names a registered task
      - the prerequisite relation is acyclic
    """

    def __init__(self) -> None:
        self._tasks: Dict[str, Task] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def get(self, name: str) -> Optional[Task]:
        return self._tasks.get(name)

    def names(self) -> List[str]:
        return sorted(self._tasks)

    def register(
        self,
        name: str,
        prerequisites: Iterable[str] = (),
        commands: Optional[Sequence[Command]] = None,
        *,
        phony: bool = True,
        description: str | None = None,
        internal: bool = False,
        artifact: str | Path | None = None,
    ) -> Task:
        """Create the task if needed and append one command group to it."""
        task = self._tasks.get(name)
        if task is None:
            task = Task(name=name, phony=phony, internal=internal)
            self._tasks[name] = task
        elif task.phony != phony:
            raise ValueError(f"Task '{name}' re-registered with phony={phony}, was phony={task.phony}")

        for prereq in prerequisites:
            if prereq not in task.prerequisites:
                task.prerequisites.append(prereq)

        if commands:
            task.groups.append(CommandGroup(task=name, commands=tuple(commands)))

        if description and not task.description:
            task.description = description
        if artifact is not None:
            task.artifact = Path(artifact)

        return task

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _expand(self, name: str) -> List[Task]:
        """Depth-first expansion, prerequisites in declaration order, each task once."""
        if name not in self._tasks:
            raise UnknownTask(name=name, known=self.names())

        ordered: List[Task] = []
        done: set[str] = set()
        path: List[str] = []

        def visit(current: str) -> None:
            if current in done:
                return
            if current in path:
                raise CyclicDependency(cycle=path[path.index(current):] + [current])

            task = self._tasks.get(current)
            if task is None:
                raise UnknownTask(name=current, known=self.names(), needed_by=path[-1])

            path.append(current)
            for prereq in task.prerequisites:
                visit(prereq)
            path.pop()

            done.add(current)
            ordered.append(task)

        visit(name)
        return ordered

    def resolve(self, name: str) -> List[CommandGroup]:
        groups: List[CommandGroup] = []
        for task in self._expand(name):
            if task.is_current():
                continue
            groups.extend(task.groups)
        return groups

    def plan(self, name: str) -> List[str]:
        return [task.name for task in self._expand(name)]

    def validate(self) -> None:
        for name in self.names():
            self._expand(name)

    def describe(self) -> List[Tuple[str, str]]:
        return [
            (name, self._tasks[name].description or "")
            for name in self.names()
            if not self._tasks[name].internal
        ]
