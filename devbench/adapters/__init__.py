"""Provider adapters and CLI agents.

Hosted models are reached through ModelAdapter subclasses; local agents are
described by CliAgent subclasses and spawned by the CLI executors.
"""

from devbench.adapters.anthropic_api import AnthropicAdapter, AnthropicVertexAdapter
from devbench.adapters.base import (
    AdapterError,
    AdapterTimeoutError,
    AdapterValidationError,
    CompletionResponse,
    ModelAdapter,
)
from devbench.adapters.base_cli import CliAgent, TokenUsage
from devbench.adapters.claude_code import ClaudeCodeAgent
from devbench.adapters.gemini_cli import GeminiCliAgent
from devbench.adapters.google_api import GoogleAdapter
from devbench.adapters.openai_api import OpenAIAdapter, OpenAIResponsesAdapter
from devbench.adapters.openai_codex import OpenAICodexAgent
from devbench.adapters.registry import (
    AGENT_CLASSES,
    build_cli_agent,
    build_judge_adapter,
    build_model_adapter,
)

__all__ = [
    "AGENT_CLASSES",
    "AdapterError",
    "AdapterTimeoutError",
    "AdapterValidationError",
    "AnthropicAdapter",
    "AnthropicVertexAdapter",
    "ClaudeCodeAgent",
    "CliAgent",
    "CompletionResponse",
    "GeminiCliAgent",
    "GoogleAdapter",
    "ModelAdapter",
    "OpenAIAdapter",
    "OpenAIResponsesAdapter",
    "OpenAICodexAgent",
    "TokenUsage",
    "build_cli_agent",
    "build_judge_adapter",
    "build_model_adapter",
]
