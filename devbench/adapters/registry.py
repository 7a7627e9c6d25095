"""Construction of adapters and CLI agents from configuration entries."""

from __future__ import annotations

import os

from devbench.adapters.anthropic_api import AnthropicAdapter, AnthropicVertexAdapter
from devbench.adapters.base import ModelAdapter
from devbench.adapters.base_cli import CliAgent
from devbench.adapters.claude_code import ClaudeCodeAgent
from devbench.adapters.gemini_cli import GeminiCliAgent
from devbench.adapters.google_api import GoogleAdapter
from devbench.adapters.openai_api import OpenAIAdapter, OpenAIResponsesAdapter
from devbench.adapters.openai_codex import OpenAICodexAgent
from devbench.config.models import AgentEntry, ConfigurationError, JudgeConfig, ModelEntry

AGENT_CLASSES: dict[str, type[CliAgent]] = {
    ClaudeCodeAgent.AGENT_ID: ClaudeCodeAgent,
    GeminiCliAgent.AGENT_ID: GeminiCliAgent,
    OpenAICodexAgent.AGENT_ID: OpenAICodexAgent,
}

LOCAL_SERVER_API_KEY = "EMPTY"


def _api_key(entry: ModelEntry) -> str | None:
    if entry.api_key_env is None:
        return None
    value = os.environ.get(entry.api_key_env)
    if not value:
        raise ConfigurationError(
            f"Model '{entry.id}' requires environment variable {entry.api_key_env}"
        )
    return value


def _require_env(entry: ModelEntry, api_key: str | None, variable: str) -> None:
    if api_key is None and not os.environ.get(variable):
        raise ConfigurationError(f"Model '{entry.id}' requires environment variable {variable}")


def build_model_adapter(entry: ModelEntry) -> ModelAdapter:
    """Create the provider adapter for a models.yaml entry.

    Raises:
        ConfigurationError: If a required API key variable is unset, an
            openai-compatible entry has no base_url, or an anthropic-vertex
            entry has no project.

    """
    api_key = _api_key(entry)
    if entry.provider == "anthropic":
        return AnthropicAdapter(entry.model_id, entry.display_name, api_key=api_key)
    if entry.provider == "anthropic-vertex":
        project_id = entry.project_id or os.environ.get("ANTHROPIC_VERTEX_PROJECT_ID")
        if not project_id:
            raise ConfigurationError(
                f"Model '{entry.id}' requires project_id or ANTHROPIC_VERTEX_PROJECT_ID"
            )
        return AnthropicVertexAdapter(
            entry.model_id, entry.display_name, project_id=project_id, region=entry.region
        )
    if entry.provider == "google":
        _require_env(entry, api_key, "GOOGLE_API_KEY")
        return GoogleAdapter(entry.model_id, entry.display_name, api_key=api_key)
    if entry.provider == "openai-responses":
        _require_env(entry, api_key, "OPENAI_API_KEY")
        return OpenAIResponsesAdapter(entry.model_id, entry.display_name, api_key=api_key)
    if entry.provider == "openai-compatible":
        if not entry.base_url:
            raise ConfigurationError(f"Model '{entry.id}' is openai-compatible but has no base_url")
        # Local servers accept any key
        api_key = api_key or LOCAL_SERVER_API_KEY
    else:
        _require_env(entry, api_key, "OPENAI_API_KEY")
    return OpenAIAdapter(
        entry.model_id,
        entry.display_name,
        api_key=api_key,
        base_url=entry.base_url,
    )


def build_cli_agent(entry: AgentEntry) -> CliAgent:
    """Create the CLI agent for an agents.yaml entry."""
    agent_cls = AGENT_CLASSES.get(entry.id)
    if agent_cls is None:
        raise ConfigurationError(f"Unknown agent: {entry.id}")
    return agent_cls(
        binary=entry.binary,
        display_name=entry.display_name,
        provider=entry.provider,
        timeout_seconds=entry.timeout_seconds,
        agentic_timeout_seconds=entry.agentic_timeout_seconds,
        env=entry.env,
    )


def build_judge_adapter(judge: JudgeConfig) -> ModelAdapter:
    """Create the adapter used by the rubric judge."""
    name = f"judge:{judge.model_id}"
    if judge.provider == "anthropic":
        return AnthropicAdapter(judge.model_id, name)
    if judge.provider == "anthropic-vertex":
        return AnthropicVertexAdapter(
            judge.model_id, name, project_id=judge.project_id, region=judge.region
        )
    if judge.provider == "google":
        return GoogleAdapter(judge.model_id, name)
    if judge.provider == "openai-responses":
        return OpenAIResponsesAdapter(judge.model_id, name)
    return OpenAIAdapter(judge.model_id, name, base_url=judge.base_url)
