"""Expansion of the run matrix into combinations."""

from __future__ import annotations

from dataclasses import dataclass

from devbench.core.results import Language
from devbench.executor.base import Executor
from devbench.tasks.base import Task


@dataclass(frozen=True)
class Combination:
    """One (task, executor, language, run) unit of work."""

    task: Task
    executor: Executor
    language: Language
    run_number: int

    @property
    def label(self) -> str:
        """Short description for log lines."""
        return (
            f"{self.task.id} | {self.executor.identity.display_name} | "
            f"{self.language.value} | run {self.run_number}"
        )


def build_combinations(
    tasks: list[Task],
    executors: list[Executor],
    languages: list[Language],
    runs_per_combo: int,
) -> list[Combination]:
    """Cross product in a deterministic order.

    Tasks (given order) x executors (given order) x languages the task
    supports (given order) x runs 1..N.
    """
    combinations: list[Combination] = []
    for task in tasks:
        for executor in executors:
            for language in (lang for lang in languages if task.supports(lang)):
                for run in range(1, runs_per_combo + 1):
                    combinations.append(Combination(task, executor, language, run))
    return combinations
