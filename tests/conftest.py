from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from servicectl.config import resolve_config
from servicectl.engine.docker import DockerEngine
from servicectl.errors import CommandFailed
from servicectl.lifecycle import ContainerLifecycleController
from servicectl.ui.console import Console


class FakeEngine(DockerEngine):
    """In-memory container/image table standing in for the docker CLI."""

    def __init__(self, build_exit_code: int = 0):
        super().__init__("docker")
        self.containers: Dict[str, dict] = {}
        self.images: Dict[str, dict] = {}
        self.calls: List[tuple] = []
        self.build_exit_code = build_exit_code
        self.fail: set[str] = set()
        self._next_id = 0

    def _docker(self, args, *, check=True):
        raise AssertionError(f"FakeEngine must not shell out: {args}")

    def _record(self, op: str, *args) -> None:
        self.calls.append((op, *args))
        if op in self.fail:
            raise CommandFailed(cmd=f"docker {op}", exit_code=1, stderr=f"{op} failed")

    def ops(self) -> List[str]:
        return [c[0] for c in self.calls]

    def container_status(self, name: str) -> Optional[str]:
        container = self.containers.get(name)
        return container["status"] if container else None

    def image_exists(self, image: str) -> bool:
        return image in self.images

    def logs(self, name: str, tail: int = 10) -> str:
        self._record("logs", name)
        if name not in self.containers:
            raise CommandFailed(cmd="docker logs", exit_code=1, stderr="No such container")
        return "log line\n"

    def ps(self, name_filter: str, fmt: str = "") -> str:
        self._record("ps", name_filter)
        return "\n".join(n for n in self.containers if name_filter in n)

    def stats(self, name: str) -> str:
        self._record("stats", name)
        return "CPU 0%\n"

    def run(self, image, command, *, name, detach=False, check=True, **kwargs):
        self._record("run", name, image)
        if name in self.containers:
            raise CommandFailed(cmd="docker run", exit_code=125, stderr=f"name {name} already in use")
        if not detach and image not in self.images:
            # building from a base image
            code = self.build_exit_code
        elif image not in self.images:
            raise CommandFailed(cmd="docker run", exit_code=125, stderr=f"Unable to find image {image}")
        else:
            code = 0
        self._next_id += 1
        self.containers[name] = {
            "id": self._next_id,
            "image": image,
            "status": "running" if detach else "exited",
            "kwargs": kwargs,
            "command": list(command),
        }
        proc = subprocess.CompletedProcess(args=["docker", "run"], returncode=code, stdout="", stderr="")
        if code != 0:
            proc.stderr = "build error"
            if check:
                raise CommandFailed(cmd="docker run", exit_code=code, stderr="build error")
        return proc

    def start(self, name: str) -> None:
        self._record("start", name)
        if name not in self.containers:
            raise CommandFailed(cmd="docker start", exit_code=1, stderr="No such container")
        if self.containers[name]["status"] == "paused":
            raise CommandFailed(cmd="docker start", exit_code=1, stderr="cannot start a paused container, try unpause instead")
        self.containers[name]["status"] = "running"

    def stop(self, name: str) -> None:
        self._record("stop", name)
        if name not in self.containers:
            raise CommandFailed(cmd="docker stop", exit_code=1, stderr="No such container")
        self.containers[name]["status"] = "exited"

    def unpause(self, name: str) -> None:
        self._record("unpause", name)
        if self.container_status(name) != "paused":
            raise CommandFailed(cmd="docker unpause", exit_code=1, stderr=f"container {name} is not paused")
        self.containers[name]["status"] = "running"

    def exec(self, name, command) -> str:
        self._record("exec", name, tuple(command))
        if self.container_status(name) != "running":
            raise CommandFailed(cmd="docker exec", exit_code=1, stderr="container is not running")
        return ""

    def commit(self, container, image, *, author=None, changes=()) -> None:
        self._record("commit", container, image)
        self.images[image] = {"from": container, "author": author, "changes": list(changes)}

    def remove_containers(self, *names: str) -> None:
        self._record("rm", *names)
        missing = [n for n in names if n not in self.containers]
        for name in names:
            self.containers.pop(name, None)
        if missing:
            raise CommandFailed(cmd="docker container rm", exit_code=1, stderr=f"No such container: {missing}")

    def remove_image(self, image: str) -> None:
        self._record("rmi", image)
        if image not in self.images:
            raise CommandFailed(cmd="docker image rm", exit_code=1, stderr="No such image")
        del self.images[image]


@pytest.fixture
def project(tmp_path: Path) -> Path:
    (tmp_path / "src" / "web").mkdir(parents=True)
    (tmp_path / ".env").write_text("SERVICE=web\nPORT=8080\nDEBUG=1\n", encoding="utf-8")
    return tmp_path


@pytest.fixture
def cfg(project: Path):
    return resolve_config(project, environ={})


@pytest.fixture
def console() -> Console:
    return Console(debug=False)


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def controller(engine: FakeEngine, console: Console) -> ContainerLifecycleController:
    return ContainerLifecycleController(engine, console, author=lambda: "dev@example.com")
