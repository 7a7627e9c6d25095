"""Error boundary between tasks and the orchestrator."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from devbench.core.results import EvaluationContext, EvaluationResult, TaskInput

if TYPE_CHECKING:
    from devbench.tasks.base import Task

logger = logging.getLogger(__name__)


class Evaluator:
    """Run ``task.evaluate()`` and turn any exception into a zero-score result."""

    async def evaluate(
        self,
        task: Task,
        response: str,
        task_input: TaskInput,
        context: EvaluationContext | None = None,
    ) -> EvaluationResult:
        """Evaluate one response.

        Args:
            task: Task owning the evaluation logic.
            response: Executor output.
            task_input: Input the prompt was built from.
            context: Turn number and project directory.

        Returns:
            The task's result, or ``passed=False, score=0`` with
            ``error_message`` set when evaluation raised.

        """
        try:
            return await task.evaluate(response, task_input, context)
        except Exception as e:
            logger.warning(f"Evaluation of {task.id} failed: {e}")
            return EvaluationResult(
                passed=False,
                score=0.0,
                notes="",
                error_message=f"Evaluation error: {e}",
            )
