"""Scripted tasks and executors for orchestrator tests."""

import asyncio
import shutil
import tempfile
from pathlib import Path

from devbench.config.models import PricingConfig
from devbench.core.results import (
    EvaluationContext,
    EvaluationResult,
    EvaluationType,
    ExecutionMode,
    ExecutionRequest,
    ExecutionResult,
    Language,
    TaskInput,
    TokensSource,
)
from devbench.executor.base import Executor, ExecutorIdentity
from devbench.tasks.base import Task


class ScriptedTask(Task):
    """Task that passes on a fixed turn (0 means never)."""

    def __init__(
        self,
        task_id: str,
        pass_on_turn: int = 1,
        max_turns: int = 1,
        evaluation_type: EvaluationType = EvaluationType.TEST_EXECUTION,
        languages: tuple[Language, ...] = (Language.NODEJS,),
        template: Path | None = None,
    ) -> None:
        self.id = task_id
        self.name = f"Task {task_id}"
        self.supported_languages = languages
        self.evaluation_type = evaluation_type
        self.max_turns = max_turns
        self.pass_on_turn = pass_on_turn
        self.template = template
        self.contexts: list[EvaluationContext] = []

    def build_prompt(self, task_input: TaskInput) -> str:
        return f"Solve {self.id} in {task_input.language.value}"

    async def evaluate(
        self,
        response: str,
        task_input: TaskInput,
        context: EvaluationContext | None = None,
    ) -> EvaluationResult:
        context = context or EvaluationContext()
        self.contexts.append(context)
        if context.turn == self.pass_on_turn:
            return EvaluationResult(passed=True, score=5.0, notes="ok")
        return EvaluationResult(passed=False, score=1.0, notes=f"wrong on turn {context.turn}")

    def template_project(self, fixtures_dir: Path) -> Path | None:
        return self.template


class ProviderProbe:
    """Counts simultaneous execute() calls per provider across executors."""

    def __init__(self) -> None:
        self.current: dict[str, int] = {}
        self.peak: dict[str, int] = {}

    def enter(self, provider: str) -> None:
        self.current[provider] = self.current.get(provider, 0) + 1
        self.peak[provider] = max(self.peak.get(provider, 0), self.current[provider])

    def leave(self, provider: str) -> None:
        self.current[provider] -= 1


class FakeExecutor(Executor):
    """Executor returning canned responses.

    ``failures`` are raised, in order, by the first calls.
    """

    def __init__(
        self,
        executor_id: str,
        provider: str,
        failures: list[BaseException] | None = None,
        delay: float = 0.0,
        estimated: bool = False,
        probe: ProviderProbe | None = None,
    ) -> None:
        super().__init__(
            ExecutorIdentity(
                id=executor_id,
                provider=provider,
                display_name=executor_id.title(),
                model_id=f"{executor_id}-model",
                execution_mode=ExecutionMode.API,
                pricing=PricingConfig(input_per_million=1.0, output_per_million=2.0),
            )
        )
        self.failures = list(failures or [])
        self.delay = delay
        self.estimated = estimated
        self.probe = probe or ProviderProbe()
        self.requests: list[ExecutionRequest] = []

    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        self.requests.append(request)
        if self.failures:
            raise self.failures.pop(0)
        self.probe.enter(self.provider)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.probe.leave(self.provider)
        return ExecutionResult(
            content=f"answer {len(self.requests)}",
            input_tokens=100,
            output_tokens=50,
            latency_ms=10,
            tokens_source=TokensSource.ESTIMATED if self.estimated else TokensSource.EXACT,
            execution_mode=ExecutionMode.API,
            model_id=self.identity.model_id,
            provider=self.identity.provider,
            display_name=self.identity.display_name,
        )


class WorkspaceExecutor(FakeExecutor):
    """Fake executor that copies a template into a temp workspace."""

    supports_workspace = True

    def __init__(self, *args: object, **kwargs: object) -> None:
        super().__init__(*args, **kwargs)
        self.workspaces: list[Path] = []
        self.cleaned: list[Path] = []

    def prepare_workspace(self, template: Path) -> Path:
        workspace = Path(tempfile.mkdtemp(prefix="devbench-test-"))
        shutil.copytree(template, workspace, dirs_exist_ok=True)
        self.workspaces.append(workspace)
        return workspace

    def cleanup_workspace(self, workspace: Path) -> None:
        self.cleaned.append(workspace)
        shutil.rmtree(workspace, ignore_errors=True)



class ThrowingJudgeTask(ScriptedTask):
    """Task whose evaluation raises on every call."""

    async def evaluate(
        self,
        response: str,
        task_input: TaskInput,
        context: EvaluationContext | None = None,
    ) -> EvaluationResult:
        raise RuntimeError("judge unavailable")
