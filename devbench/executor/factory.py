"""Build executors from resolved configuration entries."""

from __future__ import annotations

from devbench.adapters.registry import build_cli_agent, build_model_adapter
from devbench.config.models import AgentEntry, ModelEntry
from devbench.core.results import ExecutionMode
from devbench.executor.api import ApiExecutor
from devbench.executor.base import Executor, ExecutorIdentity
from devbench.executor.cli import CliExecutor
from devbench.executor.project import ProjectExecutor


def api_executor_for(entry: ModelEntry) -> ApiExecutor:
    """Create an ApiExecutor for a models.yaml entry."""
    adapter = build_model_adapter(entry)
    identity = ExecutorIdentity(
        id=entry.id,
        provider=adapter.provider,
        display_name=entry.display_name,
        model_id=entry.model_id,
        execution_mode=ExecutionMode.API,
        pricing=entry.pricing,
    )
    return ApiExecutor(identity, adapter)


def cli_executor_for(entry: AgentEntry) -> CliExecutor:
    """Create a CLI executor for an agents.yaml entry.

    Agents with an agentic mode get a ProjectExecutor so they can also run
    e2e tasks.
    """
    agent = build_cli_agent(entry)
    identity = ExecutorIdentity(
        id=entry.id,
        provider=agent.provider,
        display_name=agent.display_name,
        model_id=agent.model_id,
        execution_mode=ExecutionMode.CLI,
        pricing=entry.estimated_pricing,
        estimated_pricing=True,
    )
    if agent.SUPPORTS_AGENTIC_MODE:
        return ProjectExecutor(identity, agent)
    return CliExecutor(identity, agent)


def build_executors(models: list[ModelEntry], agents: list[AgentEntry]) -> list[Executor]:
    """API executors first, then CLI executors, each in configuration order."""
    executors: list[Executor] = [api_executor_for(m) for m in models]
    executors.extend(cli_executor_for(a) for a in agents)
    return executors
