"""Tests for adapter and agent construction."""

from unittest.mock import patch

import pytest

from devbench.adapters.anthropic_api import AnthropicAdapter, AnthropicVertexAdapter
from devbench.adapters.gemini_cli import GeminiCliAgent
from devbench.adapters.google_api import GoogleAdapter
from devbench.adapters.openai_api import OpenAIAdapter, OpenAIResponsesAdapter
from devbench.adapters.registry import (
    LOCAL_SERVER_API_KEY,
    build_cli_agent,
    build_judge_adapter,
    build_model_adapter,
)
from devbench.config.models import AgentEntry, ConfigurationError, JudgeConfig, ModelEntry


def model_entry(**overrides: object) -> ModelEntry:
    """Build a ModelEntry."""
    data: dict[str, object] = {
        "id": "m",
        "provider": "anthropic",
        "display_name": "Model",
        "model_id": "claude-sonnet-4-5-20250929",
    }
    data.update(overrides)
    return ModelEntry.model_validate(data)


class TestBuildModelAdapter:
    """Tests for build_model_adapter."""

    def test_anthropic(self) -> None:
        """Test anthropic entries get the Anthropic adapter."""
        with patch("devbench.adapters.anthropic_api.anthropic.AsyncAnthropic"):
            adapter = build_model_adapter(model_entry())
        assert isinstance(adapter, AnthropicAdapter)
        assert adapter.display_name == "Model"

    def test_openai(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test openai entries get the OpenAI adapter."""
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        with patch("devbench.adapters.openai_api.openai.AsyncOpenAI"):
            adapter = build_model_adapter(model_entry(provider="openai", model_id="gpt-4o"))
        assert isinstance(adapter, OpenAIAdapter)
        assert adapter.provider == "openai"

    def test_openai_without_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a missing OpenAI key is a configuration error."""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
            build_model_adapter(model_entry(provider="openai", model_id="gpt-4o"))

    def test_compatible_requires_base_url(self) -> None:
        """Test openai-compatible entries need base_url."""
        with pytest.raises(ConfigurationError, match="base_url"):
            build_model_adapter(model_entry(provider="openai-compatible", model_id="qwen"))

    def test_compatible_uses_placeholder_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test local servers work without a key."""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        entry = model_entry(
            provider="openai-compatible", model_id="qwen", base_url="http://localhost:11434/v1"
        )
        with patch("devbench.adapters.openai_api.openai.AsyncOpenAI") as client_cls:
            adapter = build_model_adapter(entry)
        assert adapter.provider == "openai-compatible"
        assert client_cls.call_args.kwargs["api_key"] == LOCAL_SERVER_API_KEY
        assert client_cls.call_args.kwargs["base_url"] == "http://localhost:11434/v1"

    def test_api_key_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test api_key_env must be set when configured."""
        monkeypatch.delenv("MY_KEY", raising=False)
        with pytest.raises(ConfigurationError, match="MY_KEY"):
            build_model_adapter(model_entry(api_key_env="MY_KEY"))

        monkeypatch.setenv("MY_KEY", "secret")
        with patch("devbench.adapters.anthropic_api.anthropic.AsyncAnthropic") as client_cls:
            build_model_adapter(model_entry(api_key_env="MY_KEY"))
        assert client_cls.call_args.kwargs["api_key"] == "secret"

    def test_google(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test google entries get the Gemini adapter."""
        monkeypatch.setenv("GOOGLE_API_KEY", "g-test")
        with patch("devbench.adapters.google_api.genai.Client") as client_cls:
            adapter = build_model_adapter(model_entry(provider="google", model_id="gemini-2.5-pro"))
        assert isinstance(adapter, GoogleAdapter)
        assert adapter.provider == "google"
        assert client_cls.call_args.kwargs["api_key"] == "g-test"

    def test_google_without_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a missing Google key is a configuration error."""
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        with pytest.raises(ConfigurationError, match="GOOGLE_API_KEY"):
            build_model_adapter(model_entry(provider="google", model_id="gemini-2.5-pro"))

    def test_openai_responses(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test openai-responses entries get the Responses adapter."""
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        with patch("devbench.adapters.openai_api.openai.AsyncOpenAI"):
            adapter = build_model_adapter(
                model_entry(provider="openai-responses", model_id="o4-mini")
            )
        assert isinstance(adapter, OpenAIResponsesAdapter)
        assert adapter.provider == "openai-responses"

    def test_anthropic_vertex(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test Vertex entries pass project and region through."""
        monkeypatch.delenv("ANTHROPIC_VERTEX_PROJECT_ID", raising=False)
        entry = model_entry(provider="anthropic-vertex", project_id="bench", region="us-east5")
        with patch("devbench.adapters.anthropic_api.anthropic.AsyncAnthropicVertex") as client_cls:
            adapter = build_model_adapter(entry)
        assert isinstance(adapter, AnthropicVertexAdapter)
        assert adapter.model_id == "claude-sonnet-4-5@20250929"
        assert client_cls.call_args.kwargs == {"project_id": "bench", "region": "us-east5"}

    def test_anthropic_vertex_requires_project(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test Vertex entries need a project."""
        monkeypatch.delenv("ANTHROPIC_VERTEX_PROJECT_ID", raising=False)
        with pytest.raises(ConfigurationError, match="project_id"):
            build_model_adapter(model_entry(provider="anthropic-vertex"))


class TestBuildCliAgent:
    """Tests for build_cli_agent."""

    def test_builds_configured_agent(self) -> None:
        """Test entry fields flow into the agent."""
        entry = AgentEntry(
            id="gemini-cli",
            display_name="Gemini",
            provider="cli-google",
            binary="gemini-nightly",
            timeout_seconds=30,
            agentic_timeout_seconds=900,
            env={"GEMINI_SANDBOX": "false"},
        )
        agent = build_cli_agent(entry)
        assert isinstance(agent, GeminiCliAgent)
        assert agent.binary == "gemini-nightly"
        assert agent.timeout_seconds == 30
        assert agent.agentic_timeout_seconds == 900
        assert agent.env == {"GEMINI_SANDBOX": "false"}


class TestBuildJudgeAdapter:
    """Tests for build_judge_adapter."""

    def test_default_judge(self) -> None:
        """Test the default judge is an Anthropic model."""
        with patch("devbench.adapters.anthropic_api.anthropic.AsyncAnthropic"):
            adapter = build_judge_adapter(JudgeConfig())
        assert isinstance(adapter, AnthropicAdapter)
        assert adapter.model_id == "claude-haiku-4-5-20251001"
