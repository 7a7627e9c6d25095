"""Executors: the uniform ``execute(request) -> result`` layer."""

from devbench.executor.api import ApiExecutor
from devbench.executor.base import Executor, ExecutorIdentity
from devbench.executor.cli import CliExecutor
from devbench.executor.factory import api_executor_for, build_executors, cli_executor_for
from devbench.executor.process import (
    ProcessResult,
    ProcessTimeoutError,
    prompt_file,
    run_process,
    terminate_process,
)
from devbench.executor.project import ProjectExecutor

__all__ = [
    "ApiExecutor",
    "CliExecutor",
    "Executor",
    "ExecutorIdentity",
    "ProcessResult",
    "ProcessTimeoutError",
    "ProjectExecutor",
    "api_executor_for",
    "build_executors",
    "cli_executor_for",
    "prompt_file",
    "run_process",
    "terminate_process",
]
