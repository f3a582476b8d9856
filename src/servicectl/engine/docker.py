# engine/docker.py
from __future__ import annotations

import shlex
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

from ..errors import CommandFailed, EngineUnavailable, TOOL_HINTS


PS_FORMAT = "table {{.ID}}\t{{.Names}}\t{{.Ports}}\t{{.Networks}}\t{{.State}}\t{{.Status}}\t{{.Command}}"


class DockerEngine:
    """
    Thin wrapper around the docker CLI.

    Every method maps to one docker invocation. Methods raise CommandFailed
    on a non-zero exit unless they are queries (container_status,
    image_exists) whose failure simply means "not there".
    """

    def __init__(self, executable: str = "docker"):
        self.executable = executable

    # ------------------------------------------------------------------
    # Execution primitive
    # ------------------------------------------------------------------

    def _docker(self, args: Sequence[str], *, check: bool = True) -> subprocess.CompletedProcess:
        cmd = [self.executable, *args]
        try:
            proc = subprocess.run(
                cmd,
                shell=False,
                text=True,
                capture_output=True,
            )
        except FileNotFoundError:
            raise EngineUnavailable(
                executable=self.executable,
                hint=TOOL_HINTS.get("docker", ""),
            ) from None

        if check and proc.returncode != 0:
            raise CommandFailed(
                cmd=shlex.join(cmd),
                exit_code=proc.returncode,
                stderr=(proc.stderr or "")[-4000:],
            )
        return proc

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def container_status(self, name: str) -> Optional[str]:
        """Engine status string ("running", "exited", ...) or None if absent."""
        proc = self._docker(
            ["container", "inspect", "--format", "{{.State.Status}}", name],
            check=False,
        )
        if proc.returncode != 0:
            return None
        return proc.stdout.strip() or None

    def image_exists(self, image: str) -> bool:
        proc = self._docker(["image", "inspect", "--format", "{{.Id}}", image], check=False)
        return proc.returncode == 0

    def logs(self, name: str, tail: int = 10) -> str:
        proc = self._docker(["logs", "--tail", str(tail), name])
        # docker logs replays the container's stderr on our stderr
        return proc.stdout + proc.stderr

    def ps(self, name_filter: str, fmt: str = PS_FORMAT) -> str:
        return self._docker(["ps", "--filter", f"name={name_filter}", "--format", fmt, "--all"]).stdout

    def stats(self, name: str) -> str:
        return self._docker(["stats", "--no-stream", name]).stdout

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(
        self,
        image: str,
        command: Sequence[str],
        *,
        name: str,
        hostname: str | None = None,
        workdir: str | None = None,
        volumes: Sequence[str] = (),
        env_file: Path | None = None,
        publish: Sequence[str] = (),
        health_cmd: str | None = None,
        detach: bool = False,
        check: bool = True,
    ) -> subprocess.CompletedProcess:
        """Create and start a container (docker run)."""
        args: List[str] = ["run", "--name", name]
        if hostname:
            args.extend(["--hostname", hostname])
        for port in publish:
            args.extend(["--publish", port])
        if workdir:
            args.extend(["--workdir", workdir])
        for vol in volumes:
            args.extend(["--volume", vol])
        if env_file is not None:
            args.extend(["--env-file", str(env_file)])
        if health_cmd:
            args.extend(["--health-cmd", health_cmd])
        if detach:
            args.append("--detach")
        args.append(image)
        args.extend(command)
        return self._docker(args, check=check)

    def start(self, name: str) -> None:
        self._docker(["start", name])

    def stop(self, name: str) -> None:
        self._docker(["stop", name])

    def unpause(self, name: str) -> None:
        self._docker(["unpause", name])

    def exec_command(
        self,
        name: str,
        command: Sequence[str],
        *,
        env_file: Path | None = None,
        interactive: bool = False,
    ) -> List[str]:
        """Build a docker exec argv (interactive ones are handed to the runner)."""
        cmd = [self.executable, "exec"]
        if env_file is not None:
            cmd.extend(["--env-file", str(env_file)])
        if interactive:
            cmd.extend(["--interactive", "--tty"])
        cmd.append(name)
        cmd.extend(command)
        return cmd

    def exec(self, name: str, command: Sequence[str]) -> str:
        return self._docker(self.exec_command(name, command)[1:]).stdout

    def commit(
        self,
        container: str,
        image: str,
        *,
        author: str | None = None,
        changes: Sequence[str] = (),
    ) -> None:
        args: List[str] = ["commit"]
        if author:
            args.extend(["--author", author])
        for change in changes:
            args.extend(["--change", change])
        args.extend([container, image])
        self._docker(args)

    def remove_containers(self, *names: str) -> None:
        if names:
            self._docker(["container", "rm", "--force", *names])

    def remove_image(self, image: str) -> None:
        self._docker(["image", "rm", image])
