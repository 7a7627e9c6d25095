"""Declarative tasks and the immutable task catalog.

Tasks are defined as YAML (config/tasks/*.yaml) and paired with the handler
for their evaluation type. The catalog is built once at startup and passed
explicitly to whatever needs it.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from pathlib import Path
from types import MappingProxyType

from devbench.config.models import ConfigurationError, TaskDefinition
from devbench.core.results import EvaluationContext, EvaluationResult, Language, TaskInput
from devbench.evaluation.strategies import STRATEGIES, EvaluationServices
from devbench.tasks.base import Task


class _PromptValues(dict[str, str]):
    """format_map() values; unknown placeholders render as empty strings."""

    def __missing__(self, key: str) -> str:
        return ""


class DeclarativeTask(Task):
    """A Task backed by a TaskDefinition and the shared evaluation services."""

    def __init__(self, definition: TaskDefinition, services: EvaluationServices) -> None:
        """Bind a definition to its evaluation strategy.

        Args:
            definition: Validated task definition.
            services: Code runner, e2e runner, judge and fixtures location.

        """
        self.definition = definition
        self.services = services
        self.strategy = STRATEGIES[definition.evaluation_type]

        self.id = definition.id
        self.name = definition.name
        self.supported_languages = tuple(definition.supported_languages)
        self.evaluation_type = definition.evaluation_type
        self.max_turns = definition.max_turns
        self.system_prompt = definition.system_prompt

    def build_prompt(self, task_input: TaskInput) -> str:
        """Fill the prompt template from the task input."""
        values = _PromptValues(
            language=task_input.language.value,
            framework=self.definition.frameworks.get(task_input.language, ""),
            fixture_code=task_input.fixture_code,
            additional_context=task_input.additional_context or "",
        )
        return self.definition.prompt_template.format_map(values)

    async def evaluate(
        self,
        response: str,
        task_input: TaskInput,
        context: EvaluationContext | None = None,
    ) -> EvaluationResult:
        """Delegate to the strategy for this task's evaluation type."""
        return await self.strategy.evaluate(
            self.definition,
            response,
            task_input,
            context or EvaluationContext(),
            self.services,
        )

    def template_project(self, fixtures_dir: Path) -> Path | None:
        """Template project for e2e tasks."""
        if self.definition.e2e is None:
            return None
        return fixtures_dir / self.definition.e2e.base_project


class TaskCatalog:
    """Immutable, ordered collection of tasks."""

    def __init__(self, tasks: Iterable[Task]) -> None:
        """Build the catalog.

        Raises:
            ConfigurationError: If two tasks share an id.

        """
        ordered: dict[str, Task] = {}
        for task in tasks:
            if task.id in ordered:
                raise ConfigurationError(f"Duplicate task id: {task.id}")
            ordered[task.id] = task
        self._tasks = MappingProxyType(ordered)

    @classmethod
    def from_definitions(
        cls, definitions: Iterable[TaskDefinition], services: EvaluationServices
    ) -> TaskCatalog:
        """Create DeclarativeTasks for every definition."""
        return cls(DeclarativeTask(d, services) for d in definitions)

    def get(self, task_id: str) -> Task | None:
        """Look up a task by id."""
        return self._tasks.get(task_id)

    def resolve(self, ids: list[str]) -> list[Task]:
        """Select tasks by id in catalog order; ``"all"`` selects everything.

        Raises:
            ConfigurationError: If an id is unknown.

        """
        if "all" in ids:
            return list(self._tasks.values())
        unknown = [i for i in ids if i not in self._tasks]
        if unknown:
            raise ConfigurationError(
                f"Unknown task(s): {', '.join(unknown)}. Run 'devbench list-tasks' to see them."
            )
        wanted = set(ids)
        return [task for task_id, task in self._tasks.items() if task_id in wanted]

    def supporting(self, language: Language) -> list[Task]:
        """Tasks that can run in ``language``."""
        return [t for t in self._tasks.values() if t.supports(language)]

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks.values())

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks
