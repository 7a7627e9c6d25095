"""Evaluation strategies, one per EvaluationType.

The mapping from evaluation type to handler is closed: a task declares its
type and STRATEGIES supplies the handler. Handlers receive the task
definition, the response and the shared EvaluationServices.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from devbench.config.models import ConfigurationError, TaskDefinition
from devbench.core.results import (
    EvaluationContext,
    EvaluationResult,
    EvaluationType,
    TaskInput,
)
from devbench.evaluation.code_runner import CodeRunner
from devbench.evaluation.e2e_runner import E2ERunner, E2ESetupError
from devbench.evaluation.e2e_scoring import score_for_turn
from devbench.evaluation.rubric import JudgeError, RubricJudge

logger = logging.getLogger(__name__)

PASS_SCORE = 5.0


@dataclass
class EvaluationServices:
    """Shared collaborators injected into every strategy."""

    code_runner: CodeRunner
    e2e_runner: E2ERunner
    fixtures_dir: Path
    judge: RubricJudge | None = None


class EvaluationStrategy(ABC):
    """Scores a response for one evaluation type."""

    @abstractmethod
    async def evaluate(
        self,
        definition: TaskDefinition,
        response: str,
        task_input: TaskInput,
        context: EvaluationContext,
        services: EvaluationServices,
    ) -> EvaluationResult:
        """Score ``response`` for ``definition``."""
        ...


class TestExecutionStrategy(EvaluationStrategy):
    """Run the candidate against the fixture's test suite."""

    __test__ = False

    async def evaluate(
        self,
        definition: TaskDefinition,
        response: str,
        task_input: TaskInput,
        context: EvaluationContext,
        services: EvaluationServices,
    ) -> EvaluationResult:
        """Pass when every test passes; failures score the suite's fail_score."""
        suite = definition.tests
        if suite is None:
            raise ConfigurationError(f"Task {definition.id} has no tests section")
        test_dir = (
            services.fixtures_dir / task_input.language.value / definition.id / suite.directory
        )
        result = await services.code_runner.run_tests(
            response,
            task_input.language,
            test_dir,
            suite.implementation_files[task_input.language],
        )
        return EvaluationResult(
            passed=result.passed,
            score=PASS_SCORE if result.passed else suite.fail_score,
            notes=result.output or result.error_message or "",
        )


class RubricStrategy(EvaluationStrategy):
    """Score the response with the LLM judge."""

    async def evaluate(
        self,
        definition: TaskDefinition,
        response: str,
        task_input: TaskInput,
        context: EvaluationContext,
        services: EvaluationServices,
    ) -> EvaluationResult:
        """Normalized judge score; pass when the raw total meets the threshold."""
        rubric = definition.rubric
        if rubric is None:
            raise ConfigurationError(f"Task {definition.id} has no rubric section")
        if services.judge is None:
            raise JudgeError("No rubric judge is configured")
        result = await services.judge.score(definition.id, definition.name, response, rubric)
        return EvaluationResult(
            passed=result.total >= rubric.pass_threshold,
            score=result.normalized_score,
            notes=result.summary,
        )


class HybridStrategy(EvaluationStrategy):
    """Tests and rubric together; both must pass."""

    def __init__(self) -> None:
        """Compose the test-execution and rubric strategies."""
        self.tests = TestExecutionStrategy()
        self.rubric = RubricStrategy()

    async def evaluate(
        self,
        definition: TaskDefinition,
        response: str,
        task_input: TaskInput,
        context: EvaluationContext,
        services: EvaluationServices,
    ) -> EvaluationResult:
        """Mean of both scores; notes from both halves."""
        tests = await self.tests.evaluate(definition, response, task_input, context, services)
        rubric = await self.rubric.evaluate(definition, response, task_input, context, services)
        return EvaluationResult(
            passed=tests.passed and rubric.passed,
            score=round((tests.score + rubric.score) / 2, 1),
            notes=f"tests: {tests.notes}\nrubric: {rubric.notes}",
        )


class E2EStrategy(EvaluationStrategy):
    """Build, serve and browser-test the project the agent edited."""

    async def evaluate(
        self,
        definition: TaskDefinition,
        response: str,
        task_input: TaskInput,
        context: EvaluationContext,
        services: EvaluationServices,
    ) -> EvaluationResult:
        """Turn-capped score from the browser test counts."""
        spec = definition.e2e
        if spec is None:
            raise ConfigurationError(f"Task {definition.id} has no e2e section")
        if context.project_dir is None:
            raise E2ESetupError("No project directory was produced for e2e evaluation")

        test_spec = context.project_dir / spec.test_spec
        result = await services.e2e_runner.run_e2e(context.project_dir, str(test_spec))
        score = score_for_turn(context.turn, result.total_tests, result.passed_tests)
        if result.passed:
            notes = result.output or "All e2e tests passed"
        else:
            notes = result.error_message or result.output or (
                f"{result.passed_tests}/{result.total_tests} tests passed"
            )
        return EvaluationResult(passed=result.passed, score=float(score), notes=notes)


STRATEGIES: dict[EvaluationType, EvaluationStrategy] = {
    EvaluationType.TEST_EXECUTION: TestExecutionStrategy(),
    EvaluationType.RUBRIC: RubricStrategy(),
    EvaluationType.HYBRID: HybridStrategy(),
    EvaluationType.E2E: E2EStrategy(),
}
