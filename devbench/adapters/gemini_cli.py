"""Gemini CLI agent."""

from __future__ import annotations

from pathlib import Path

from devbench.adapters.base_cli import CliAgent, TokenUsage, parse_json_output
from devbench.core.results import ExecutionRequest


class GeminiCliAgent(CliAgent):
    """Agent for the ``gemini`` binary.

    Text runs use ``--prompt @file --json``; agentic runs use yolo approval so
    file edits proceed without confirmation.
    """

    AGENT_ID = "gemini-cli"
    CLI_EXECUTABLE = "gemini"
    PROVIDER = "cli-google"
    DISPLAY_NAME = "Gemini CLI"
    SUPPORTS_AGENTIC_MODE = True

    def build_args(self, prompt_file: Path, request: ExecutionRequest) -> list[str]:
        """Prompt from file with JSON output."""
        return ["--prompt", f"@{prompt_file}", "--json"]

    def build_agentic_args(self, prompt_file: Path, request: ExecutionRequest) -> list[str]:
        """Auto-approve tool calls and emit JSON."""
        return ["--approval-mode=yolo", "--output-format", "json", f"@{prompt_file}"]

    def extract_content(self, stdout: str) -> str:
        """Return the first candidate's text, or the ``response`` field."""
        data = parse_json_output(stdout)
        if data is None:
            return stdout
        try:
            return str(data["candidates"][0]["content"]["parts"][0]["text"])
        except (KeyError, IndexError, TypeError):
            pass
        response = data.get("response")
        return response if isinstance(response, str) else stdout

    def extract_usage(self, stdout: str, stderr: str) -> TokenUsage | None:
        """Read ``usageMetadata`` prompt/candidates token counts."""
        data = parse_json_output(stdout)
        if data is None:
            return None
        usage = data.get("usageMetadata")
        if not isinstance(usage, dict):
            return None
        return TokenUsage(
            int(usage.get("promptTokenCount", 0) or 0),
            int(usage.get("candidatesTokenCount", 0) or 0),
        )
