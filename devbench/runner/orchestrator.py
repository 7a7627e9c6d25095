"""Benchmark orchestrator.

Expands the run matrix, dispatches combinations under per-provider limits,
drives the retry-with-feedback loop and streams every finished result to the
sink.

Per combination:

    load input -> build prompt -> [prepare workspace]
    -> turn loop (execute -> evaluate -> stop on pass | build retry prompt)
    -> cost from totals -> BenchmarkResult -> sink
    -> [cleanup workspace]

Any exception inside a combination becomes a failed BenchmarkResult with
zeroed metrics; other combinations keep running.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from pathlib import Path

from devbench.adapters.base import AdapterValidationError
from devbench.config.models import ConfigurationError, RunConfig
from devbench.config.pricing import calculate_cost, format_cost_usd
from devbench.core.rate_limit import call_with_rate_limit_retry
from devbench.core.results import (
    BenchmarkResult,
    EvaluationContext,
    EvaluationResult,
    EvaluationType,
    ExecutionRequest,
)
from devbench.evaluation.evaluator import Evaluator
from devbench.executor.base import Executor
from devbench.metrics.tokens import TurnTotals
from devbench.reporting.sink import ResultSink
from devbench.runner.combinations import Combination, build_combinations
from devbench.runner.scheduler import ProviderScheduler
from devbench.tasks.base import Task, load_task_input

logger = logging.getLogger(__name__)

RETRY_PROMPT_TEMPLATE = """{original_prompt}

---
Your previous attempt (turn {turn}) did not pass evaluation.

PREVIOUS RESPONSE:
{previous_response}

EVALUATION FEEDBACK:
Score: {score}/5
{feedback}

Fix the problems above and provide a complete, corrected answer."""


def build_retry_prompt(
    original_prompt: str,
    previous_response: str,
    evaluation: EvaluationResult,
    turn: int,
) -> str:
    """Prompt for the next turn: the task, the failed answer and the feedback."""
    feedback = [f"Notes: {evaluation.notes or '(none)'}"]
    if evaluation.error_message:
        feedback.append(f"Error: {evaluation.error_message}")
    return RETRY_PROMPT_TEMPLATE.format(
        original_prompt=original_prompt,
        turn=turn,
        previous_response=previous_response,
        score=evaluation.score,
        feedback="\n".join(feedback),
    )


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class BenchmarkRunner:
    """Run every combination of tasks, executors, languages and runs."""

    def __init__(
        self,
        executors: list[Executor],
        sink: ResultSink,
        evaluator: Evaluator | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the runner.

        Args:
            executors: Executors in reporting order (API models, then agents).
            sink: Receives each result as soon as it is ready.
            evaluator: Evaluation error boundary.
            sleep: Backoff sleep (injectable for tests).

        """
        self.executors = executors
        self.sink = sink
        self.evaluator = evaluator or Evaluator()
        self.sleep = sleep

    async def run(self, tasks: list[Task], config: RunConfig) -> list[BenchmarkResult]:
        """Run the whole matrix.

        Args:
            tasks: Tasks in catalog order.
            config: Run configuration.

        Returns:
            One BenchmarkResult per combination, in completion order. Empty
            for a dry run.

        """
        combinations = build_combinations(
            tasks, self.executors, config.languages, config.runs_per_combo
        )
        logger.info(
            f"Planned {len(combinations)} combinations: {len(tasks)} tasks x "
            f"{len(self.executors)} executors x {len(config.languages)} languages x "
            f"{config.runs_per_combo} runs"
        )

        if config.dry_run:
            for combination in combinations:
                logger.info(f"  [dry-run] {combination.label}")
            return []

        self.sink.set_total(len(combinations))
        scheduler = ProviderScheduler(config.max_concurrent)
        results: list[BenchmarkResult] = []

        async def dispatch(combination: Combination) -> None:
            async with scheduler.acquire(combination.executor.provider):
                result = await self.run_combination(combination, config)
            results.append(result)
            await self.sink.emit(result)

        await asyncio.gather(*(dispatch(c) for c in combinations))

        for provider, stats in scheduler.stats().items():
            logger.debug(f"{provider}: {stats.completed} done, peak {stats.peak_in_flight} in flight")
        return results

    async def run_combination(
        self, combination: Combination, config: RunConfig
    ) -> BenchmarkResult:
        """Run all turns of one combination; never raises for ordinary errors."""
        task = combination.task
        executor = combination.executor
        timestamp = _now()
        raw_prompt = ""
        workspace: Path | None = None

        logger.debug(f"Starting {combination.label}")
        try:
            task_input = load_task_input(config.fixtures_dir, combination.language, task.id)
            original_prompt = task.build_prompt(task_input)
            raw_prompt = original_prompt

            if task.evaluation_type == EvaluationType.E2E:
                workspace = self._prepare_workspace(task, executor, config.fixtures_dir)

            totals = TurnTotals()
            score_history: list[float] = []
            prompt = original_prompt
            response = ""
            evaluation: EvaluationResult | None = None
            passed_on_turn = 0

            for turn in range(1, task.max_turns + 1):
                request = ExecutionRequest(
                    prompt=prompt,
                    system_prompt=task.system_prompt,
                    max_tokens=config.max_output_tokens,
                    temperature=config.temperature,
                    workspace=workspace,
                )
                raw_prompt = prompt
                execution = await call_with_rate_limit_retry(
                    functools.partial(executor.execute, request),
                    max_attempts=config.rate_limit_attempts,
                    base_delay=config.rate_limit_base_delay,
                    sleep=self.sleep,
                )
                totals.add(execution)
                response = execution.content

                context = EvaluationContext(
                    turn=turn, project_dir=execution.project_dir or workspace
                )
                evaluation = await self.evaluator.evaluate(task, response, task_input, context)
                score_history.append(evaluation.score)

                if evaluation.passed:
                    passed_on_turn = turn
                    break
                if turn < task.max_turns:
                    logger.debug(
                        f"{combination.label}: turn {turn} failed "
                        f"(score {evaluation.score}); retrying with feedback"
                    )
                    prompt = build_retry_prompt(original_prompt, response, evaluation, turn)

            if evaluation is None:
                raise ConfigurationError(f"Task {task.id} allows no turns")
            identity = executor.identity
            cost = calculate_cost(totals.input_tokens, totals.output_tokens, identity.pricing)
            result = BenchmarkResult(
                timestamp=timestamp,
                task_id=task.id,
                task_name=task.name,
                language=combination.language,
                run_number=combination.run_number,
                execution_mode=identity.execution_mode,
                provider=identity.provider,
                model_id=identity.model_id,
                model_display_name=identity.display_name,
                input_tokens=totals.input_tokens,
                output_tokens=totals.output_tokens,
                total_tokens=totals.total_tokens,
                cost_usd=cost,
                tokens_source=totals.tokens_source,
                latency_ms=totals.latency_ms,
                turns=totals.turns,
                passed=evaluation.passed,
                quality_score=evaluation.score,
                quality_notes=evaluation.notes,
                error_message=evaluation.error_message,
                passed_on_turn=passed_on_turn,
                score_history=tuple(score_history),
                raw_prompt=raw_prompt,
                raw_response=response,
            )
            logger.debug(
                f"Finished {combination.label}: passed={result.passed} "
                f"turns={result.turns} cost={format_cost_usd(cost, identity.estimated_pricing)}"
            )
            return result
        except Exception as e:
            logger.warning(f"{combination.label} failed: {e}")
            return self._failure_result(combination, timestamp, raw_prompt, str(e) or repr(e))
        finally:
            if workspace is not None:
                executor.cleanup_workspace(workspace)

    def _prepare_workspace(self, task: Task, executor: Executor, fixtures_dir: Path) -> Path:
        template = task.template_project(fixtures_dir)
        if template is None:
            raise AdapterValidationError(f"Task {task.id} has no template project")
        if not executor.supports_workspace:
            raise AdapterValidationError(
                f"{executor.identity.display_name} cannot run e2e task {task.id}: "
                "no agentic mode"
            )
        return executor.prepare_workspace(template)

    def _failure_result(
        self,
        combination: Combination,
        timestamp: str,
        raw_prompt: str,
        error_message: str,
    ) -> BenchmarkResult:
        identity = combination.executor.identity
        return BenchmarkResult(
            timestamp=timestamp,
            task_id=combination.task.id,
            task_name=combination.task.name,
            language=combination.language,
            run_number=combination.run_number,
            execution_mode=identity.execution_mode,
            provider=identity.provider,
            model_id=identity.model_id,
            model_display_name=identity.display_name,
            passed=False,
            quality_score=0.0,
            error_message=error_message,
            raw_prompt=raw_prompt,
        )
