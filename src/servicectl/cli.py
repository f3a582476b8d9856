# cli.py
from __future__ import annotations

import os
import sys
from functools import partial
from pathlib import Path

import click

from servicectl.config import parse_overrides, resolve_config
from servicectl.dag import TaskGraph
from servicectl.dispatch import Dispatcher
from servicectl.engine.docker import DockerEngine
from servicectl.errors import ConfigError, CyclicDependency, ServiceCtlError, UnknownTask
from servicectl.git_facts.git import author_email
from servicectl.lifecycle import ContainerLifecycleController
from servicectl.runner import CommandRunner, find_tasks_file, load_tasks_file
from servicectl.tasks import HELP_TASK, register_builtin_tasks
from servicectl.ui.console import Console, get_console, set_console


def build_graph(cfg, controller, console, tasks_file=None) -> TaskGraph:
    """Built-in routines plus whatever the project's tasks file adds."""
    graph = register_builtin_tasks(TaskGraph(), cfg, controller, console)

    path = find_tasks_file(cfg.root_dir, tasks_file)
    if path is not None:
        console.print_debug(f"Loading tasks from {path}")
        load_tasks_file(path, graph, cfg)

    graph.validate()
    return graph


@click.command(context_settings={"ignore_unknown_options": True})
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.option(
    "--root",
    default=".",
    show_default=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Project root (holds the env file and servicectl_tasks.py)",
)
@click.option(
    "--tasks-file",
    default=None,
    help="Extra tasks file (defaults to servicectl_tasks.py under the root if present)",
)
@click.option("--dry-run", is_flag=True, default=False, help="Print the resolved task order without running it")
@click.argument("task", required=False, default=HELP_TASK)
@click.argument("overrides", nargs=-1)
def cli(debug, root, tasks_file, dry_run, task, overrides):
    """Build, run and tear down one containerized service.

    Usage: servicectl TASK [KEY=value ...]
    """
    console = Console(debug=debug)
    set_console(console)

    try:
        cfg = resolve_config(root, parse_overrides(overrides), environ=os.environ)
        engine = DockerEngine(cfg.docker)
        controller = ContainerLifecycleController(
            engine,
            console,
            author=partial(author_email, cfg.root_dir, cfg.git),
        )
        graph = build_graph(cfg, controller, console, tasks_file)
    except (ConfigError, UnknownTask, CyclicDependency) as e:
        console.print_error("Invalid configuration", str(e))
        sys.exit(2)

    dispatcher = Dispatcher(graph, CommandRunner(cfg, console), console)
    try:
        code = dispatcher.dispatch(task, dry_run=dry_run)
    except KeyboardInterrupt:
        get_console().print_info("\nInterrupted by user")
        sys.exit(130)
    except ServiceCtlError as e:
        console.print_exception(e)
        sys.exit(1)

    sys.exit(code)


if __name__ == "__main__":
    cli()
