"""Task contract and fixture loading.

A task knows how to phrase its prompt and how to judge a response. The
orchestrator only ever talks to tasks through this interface.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from devbench.core.results import (
    EvaluationContext,
    EvaluationResult,
    EvaluationType,
    Language,
    TaskInput,
)

logger = logging.getLogger(__name__)

# Starter file read from fixtures/<language>/<task>/
FIXTURE_FILES: dict[Language, str] = {
    Language.NODEJS: "fixture.js",
    Language.JAVA: "Fixture.java",
    Language.DOTNET: "Fixture.cs",
}
CONTEXT_FILE = "context.txt"


class Task(ABC):
    """A benchmark task.

    Attributes:
        id: Unique identifier (e.g. ``j01``).
        name: Human-readable name.
        supported_languages: Languages the task can run in.
        evaluation_type: Strategy used to score responses.
        max_turns: Upper bound on retry turns for one combination.
        system_prompt: Optional system instruction.

    """

    id: str
    name: str
    supported_languages: tuple[Language, ...]
    evaluation_type: EvaluationType
    max_turns: int = 1
    system_prompt: str | None = None

    @abstractmethod
    def build_prompt(self, task_input: TaskInput) -> str:
        """Build the user prompt; identical for API and CLI executors."""
        ...

    @abstractmethod
    async def evaluate(
        self,
        response: str,
        task_input: TaskInput,
        context: EvaluationContext | None = None,
    ) -> EvaluationResult:
        """Score a response.

        Args:
            response: Textual answer from the executor.
            task_input: Input the prompt was built from.
            context: Turn number and project directory, when relevant.

        Returns:
            EvaluationResult for this turn.

        """
        ...

    def template_project(self, fixtures_dir: Path) -> Path | None:
        """Template project copied into a workspace before turn 1, if any."""
        return None

    def supports(self, language: Language) -> bool:
        """Whether the task can run in ``language``."""
        return language in self.supported_languages

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.id})"


def load_task_input(fixtures_dir: Path, language: Language, task_id: str) -> TaskInput:
    """Read the fixture starter file and optional context for one execution.

    Missing files are not errors: some tasks have no starter code or context.
    """
    task_dir = fixtures_dir / language.value / task_id
    fixture_path = task_dir / FIXTURE_FILES[language]
    context_path = task_dir / CONTEXT_FILE

    fixture_code = ""
    if fixture_path.is_file():
        fixture_code = fixture_path.read_text(encoding="utf-8")
    else:
        logger.debug(f"No fixture file at {fixture_path}")

    additional_context = None
    if context_path.is_file():
        additional_context = context_path.read_text(encoding="utf-8")

    return TaskInput(
        language=language,
        fixture_code=fixture_code,
        additional_context=additional_context,
    )
