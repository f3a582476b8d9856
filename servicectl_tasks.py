# servicectl_tasks.py
# Project-specific routines layered on top of the built-in ones.
from __future__ import annotations

import shlex

from servicectl.dsl import sh


def register(graph, cfg):
    # Run the service's own test suite inside the running container.
    graph.register(
        "test",
        ["run"],
        [
            sh(
                "Run pytest in container",
                shlex.join([cfg.docker, "exec", cfg.service, "bash", "-c", "pytest -q"]),
            )
        ],
        description="Verify application's behavior requirements completeness",
    )

    # Accumulates onto the built-in clean routine.
    graph.register(
        "clean",
        commands=[sh("Drop pytest cache", "rm -rf .pytest_cache", best_effort=True)],
    )
