from .config import ServiceConfig, resolve_config
from .dag import TaskGraph
from .dispatch import Dispatcher
from .dsl import call, sh
from .lifecycle import ContainerLifecycleController, ContainerState
from .model import Command, CommandGroup, Task
from .runner import CommandRunner

__all__ = [
    "ServiceConfig",
    "resolve_config",
    "TaskGraph",
    "Dispatcher",
    "call",
    "sh",
    "ContainerLifecycleController",
    "ContainerState",
    "Command",
    "CommandGroup",
    "Task",
    "CommandRunner",
]
