# lifecycle.py
from __future__ import annotations

import shlex
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

from .config import ServiceConfig
from .engine.docker import DockerEngine
from .errors import BuildFailed, CommandFailed
from .ui.console import Console, get_console

# Logical lifecycle (derived from the engine on every call, never stored):
#
#   ABSENT --build--> IMAGE_READY --run--> RUNNING <--stop/run--> STOPPED
#   RUNNING|STOPPED --clean--> IMAGE_READY --veryclean--> ABSENT
#
# Every operation tries the cheap path first (nothing to do, start the
# existing container) before creating anything, so repeating one is safe.


class ContainerState(str, Enum):
    ABSENT = "absent"
    IMAGE_READY = "image_ready"
    RUNNING = "running"
    STOPPED = "stopped"


TEARDOWN_SCOPES = ("clean", "veryclean")


@dataclass(frozen=True)
class StatusReport:
    state: ContainerState
    logs: str
    processes: str
    stats: str


class ContainerLifecycleController:
    def __init__(
        self,
        engine: DockerEngine,
        console: Console | None = None,
        *,
        author: Optional[Callable[[], Optional[str]]] = None,
    ):
        self.engine = engine
        self.console = console or get_console()
        self.author = author or (lambda: None)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _best_effort(self, what: str, fn: Callable[..., Any], *args: Any) -> bool:
        try:
            fn(*args)
        except CommandFailed as e:
            self.console.print_warning("engine", what, str(e))
            return False
        return True

    @staticmethod
    def _env_file(cfg: ServiceConfig) -> Optional[Path]:
        # an absent env file falls back to built-in defaults
        return cfg.env_file if cfg.env_file.is_file() else None

    @staticmethod
    def _mount(cfg: ServiceConfig) -> str:
        return f"{cfg.service_dir}:/{cfg.service}"

    def state(self, cfg: ServiceConfig) -> ContainerState:
        status = self.engine.container_status(cfg.service)
        if status in ("running", "restarting"):
            return ContainerState.RUNNING
        if status is not None:
            return ContainerState.STOPPED
        if self.engine.image_exists(cfg.image_id):
            return ContainerState.IMAGE_READY
        return ContainerState.ABSENT

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def build_image(self, cfg: ServiceConfig) -> None:
        """Build the service image inside an ephemeral container and commit it."""
        if self.engine.container_status(cfg.build_container) is not None:
            self._best_effort(
                f"remove stale build container {cfg.build_container}",
                self.engine.remove_containers,
                cfg.build_container,
            )
        if self.engine.image_exists(cfg.image_id):
            self._best_effort(f"remove stale image {cfg.image_id}", self.engine.remove_image, cfg.image_id)

        proc = self.engine.run(
            cfg.base_image,
            ["bash", "-c", cfg.build_cmd],
            name=cfg.build_container,
            workdir=f"/{cfg.service}",
            volumes=[self._mount(cfg)],
            env_file=self._env_file(cfg),
            check=False,
        )
        self.console.print_output(proc.stdout)
        if proc.returncode != 0:
            # the failed build container is left for inspection; the next build removes it
            raise BuildFailed(
                cmd=cfg.build_cmd,
                exit_code=proc.returncode,
                stderr=(proc.stderr or "")[-4000:],
                image=cfg.image_id,
            )

        self.engine.commit(
            cfg.build_container,
            cfg.image_id,
            author=self.author(),
            changes=[f"CMD {cfg.run_cmd}"],
        )
        self.engine.remove_containers(cfg.build_container)
        self.console.print_info(f"Image ready: {cfg.image_id}")

    def run_service(self, cfg: ServiceConfig) -> None:
        """Converge the service container to running."""
        status = self.engine.container_status(cfg.service)
        if status in ("running", "restarting"):
            self.console.print_info(f"{cfg.service} is already running")
            return
        if status == "paused":
            self.engine.unpause(cfg.service)
            self.console.print_info(f"{cfg.service} resumed")
            return
        if status is not None:
            self.engine.start(cfg.service)
            self.console.print_info(f"{cfg.service} started")
            return

        self.engine.run(
            cfg.image_id,
            shlex.split(cfg.run_cmd),
            name=cfg.service,
            hostname=cfg.service,
            publish=[f"{cfg.port}:{cfg.port}"],
            workdir=f"/{cfg.service}",
            volumes=[self._mount(cfg)],
            env_file=self._env_file(cfg),
            health_cmd=f"curl {cfg.service_url} || exit 1",
            detach=True,
        )
        self.console.print_info(f"{cfg.service} running on {cfg.service_url}")

    def stop_service(self, cfg: ServiceConfig) -> None:
        status = self.engine.container_status(cfg.service)
        if status is None:
            self.console.print_info(f"{cfg.service} is not present, nothing to stop")
            return
        if status == "running":
            self._best_effort(
                "in-container shutdown hook",
                self.engine.exec,
                cfg.service,
                ["bash", "-c", cfg.finish_cmd],
            )
        self._best_effort(f"stop {cfg.service}", self.engine.stop, cfg.service)

    def status(self, cfg: ServiceConfig) -> StatusReport:
        """Read-only snapshot: log tail, process listing, resource usage."""
        present = self.engine.container_status(cfg.service) is not None

        logs = ""
        usage = ""
        if present:
            try:
                logs = self.engine.logs(cfg.service, tail=10)
            except CommandFailed as e:
                self.console.print_warning("status", "logs", str(e))
            try:
                usage = self.engine.stats(cfg.service)
            except CommandFailed as e:
                self.console.print_warning("status", "stats", str(e))

        report = StatusReport(
            state=self.state(cfg),
            logs=logs,
            processes=self.engine.ps(cfg.service),
            stats=usage,
        )
        self.console.print_info(f"State: {report.state.value}")
        self.console.print_output(report.logs)
        self.console.print_info("")
        self.console.print_output(report.processes)
        self.console.print_info("")
        self.console.print_output(report.stats)
        return report

    def remove_image(self, cfg: ServiceConfig) -> None:
        if self.engine.image_exists(cfg.image_id):
            self._best_effort(f"remove image {cfg.image_id}", self.engine.remove_image, cfg.image_id)

    def teardown(self, cfg: ServiceConfig, scope: str = "clean") -> None:
        if scope not in TEARDOWN_SCOPES:
            raise ValueError(f"Unknown teardown scope {scope!r}, expected one of {TEARDOWN_SCOPES}")

        if scope == "veryclean":
            self.stop_service(cfg)

        names = [
            name
            for name in dict.fromkeys([cfg.build_container, cfg.service])
            if self.engine.container_status(name) is not None
        ]
        if names:
            self._best_effort(f"remove containers {names}", self.engine.remove_containers, *names)

        if scope == "veryclean":
            self.remove_image(cfg)
