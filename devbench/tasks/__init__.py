"""Benchmark tasks and the task catalog."""

from devbench.tasks.base import FIXTURE_FILES, Task, load_task_input
from devbench.tasks.catalog import DeclarativeTask, TaskCatalog

__all__ = ["FIXTURE_FILES", "DeclarativeTask", "Task", "TaskCatalog", "load_task_input"]
