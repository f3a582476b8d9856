# tasks.py
# Built-in development routines for one containerized service.
from __future__ import annotations

import shlex
import shutil
import webbrowser
from pathlib import Path

from .config import ServiceConfig, seed_env_file
from .dag import TaskGraph
from .dsl import call, sh
from .errors import CommandFailed
from .git_facts.git import update_submodules
from .lifecycle import ContainerLifecycleController
from .ui.console import Console, get_console

HELP_TASK = "help"


def remove_ephemeral_archives(cfg: ServiceConfig) -> None:
    """rm -fr on every configured ephemeral archive, relative to the root."""
    for entry in cfg.ephemeral_archives:
        path = Path(entry)
        if not path.is_absolute():
            path = cfg.root_dir / path
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path, ignore_errors=True)
        else:
            path.unlink(missing_ok=True)


def open_in_browser(cfg: ServiceConfig) -> None:
    if not webbrowser.open(cfg.service_url):
        raise CommandFailed(cmd=f"open {cfg.service_url}", exit_code=1, stderr="no browser available")


def register_builtin_tasks(
    graph: TaskGraph,
    cfg: ServiceConfig,
    controller: ContainerLifecycleController,
    console: Console | None = None,
) -> TaskGraph:
    console = console or get_console()
    engine = controller.engine

    graph.register(
        HELP_TASK,
        commands=[call("List routines", lambda: console.print_help(graph.describe()))],
        description="Show this help",
    )
    graph.register(
        "init",
        ["veryclean"],
        [
            call("Seed environment file", seed_env_file, cfg),
            call("Update submodules", update_submodules, cfg.root_dir, cfg.git),
        ],
        description="Configure development environment",
    )
    graph.register("up", ["build", "execute"], description="Build and execute service")
    graph.register(
        "build",
        ["clean"],
        [call("Build image", controller.build_image, cfg)],
        description="Build service running environment",
    )
    graph.register("execute", ["setup", "run"], description="Setup and run service")
    graph.register("setup", ["finish", "clean"], description="Prepare to run service")
    graph.register(
        "run",
        commands=[call("Run service", controller.run_service, cfg)],
        description="Launch application locally",
    )

    env_file = cfg.env_file if cfg.env_file.is_file() else None
    graph.register(
        "bash",
        commands=[
            sh(
                "Attach terminal",
                shlex.join(engine.exec_command(cfg.service, ["bash"], env_file=env_file, interactive=True)),
                interactive=True,
            )
        ],
        description="Connect to service terminal",
    )
    graph.register(
        "finish",
        commands=[call("Stop service", controller.stop_service, cfg)],
        description="Stop service execution",
    )
    graph.register(
        "status",
        commands=[call("Service status", controller.status, cfg)],
        description="Present service running status",
    )
    graph.register(
        "ping",
        commands=[sh("Ping service", f"curl -v {shlex.quote(cfg.service_url)}")],
        description="Verify service reachability",
    )
    graph.register(
        "open",
        commands=[call("Browse service", open_in_browser, cfg)],
        description="Browse service",
    )

    # clean accumulates two groups: local archives, then engine containers
    graph.register(
        "clean",
        commands=[call("Remove ephemeral archives", remove_ephemeral_archives, cfg, best_effort=True)],
        description="Delete project ephemeral archives",
    )
    graph.register(
        "clean",
        commands=[call("Remove containers", controller.teardown, cfg, "clean")],
    )
    graph.register(
        "veryclean",
        ["finish", "clean"],
        [call("Remove image", controller.remove_image, cfg, best_effort=True)],
        description="Delete all generated files",
    )
    return graph
