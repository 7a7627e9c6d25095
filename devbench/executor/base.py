"""Executor abstraction.

An executor turns one ExecutionRequest into one ExecutionResult. Hosted
models, spawned CLI agents and in-project agent runs all implement the same
``execute`` coroutine so the orchestrator never branches on how a model is
reached.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from devbench.adapters.base import AdapterValidationError
from devbench.config.models import PricingConfig
from devbench.core.results import ExecutionMode, ExecutionRequest, ExecutionResult, TokensSource


@dataclass(frozen=True)
class ExecutorIdentity:
    """Who produced a response, as recorded on every BenchmarkResult.

    Attributes:
        id: Configuration id (models.yaml / agents.yaml).
        provider: Provider identity; concurrency is capped per provider.
        display_name: Human-readable name.
        model_id: Provider model identifier or agent model id.
        execution_mode: API or CLI.
        pricing: Per-million token prices used for cost.
        estimated_pricing: True when pricing is a guess (CLI subscriptions).

    """

    id: str
    provider: str
    display_name: str
    model_id: str
    execution_mode: ExecutionMode
    pricing: PricingConfig
    estimated_pricing: bool = False


class Executor(ABC):
    """Uniform interface over every way of reaching a model."""

    supports_workspace: bool = False

    def __init__(self, identity: ExecutorIdentity) -> None:
        """Initialize with the identity stamped on results."""
        self.identity = identity

    @property
    def provider(self) -> str:
        """Provider key used by the scheduler."""
        return self.identity.provider

    @abstractmethod
    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        """Produce a response for one turn.

        Raises:
            RateLimitError: If the backend reported a rate limit.
            ProcessTimeoutError: If a spawned process exceeded its deadline.
            AdapterError: For any other backend failure.

        """
        ...

    def prepare_workspace(self, template: Path) -> Path:
        """Create an isolated project directory from ``template``."""
        raise AdapterValidationError(
            f"{self.identity.display_name} cannot work inside a project directory"
        )

    def cleanup_workspace(self, workspace: Path) -> None:  # noqa: B027
        """Remove a directory returned by prepare_workspace()."""

    def _result(
        self,
        content: str,
        input_tokens: int,
        output_tokens: int,
        latency_ms: int,
        estimated: bool,
        project_dir: Path | None = None,
    ) -> ExecutionResult:
        return ExecutionResult(
            content=content,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            latency_ms=latency_ms,
            tokens_source=TokensSource.ESTIMATED if estimated else TokensSource.EXACT,
            execution_mode=self.identity.execution_mode,
            model_id=self.identity.model_id,
            provider=self.identity.provider,
            display_name=self.identity.display_name,
            project_dir=project_dir,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.identity.id})"
