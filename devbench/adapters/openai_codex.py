"""OpenAI Codex CLI agent.

Codex does not expose usage metadata by default; when it prints none the
executor falls back to estimated token counts.
"""

from __future__ import annotations

import json
import re
from pathlib import Path

from devbench.adapters.base_cli import CliAgent, TokenUsage, parse_usage_from_text
from devbench.core.results import ExecutionRequest


class OpenAICodexAgent(CliAgent):
    """Agent for the ``codex`` binary."""

    AGENT_ID = "codex-cli"
    CLI_EXECUTABLE = "codex"
    PROVIDER = "cli-openai"
    DISPLAY_NAME = "Codex CLI (OpenAI)"

    def build_args(self, prompt_file: Path, request: ExecutionRequest) -> list[str]:
        """Quiet, fully automatic run reading the prompt file."""
        return ["--quiet", "--full-auto", f"@{prompt_file}"]

    def extract_content(self, stdout: str) -> str:
        """Codex answers in markdown; return it trimmed."""
        return stdout.strip()

    def extract_usage(self, stdout: str, stderr: str) -> TokenUsage | None:
        """Look for an embedded ``usage`` JSON object, then text patterns.

        Looks for patterns like:
        - JSON output: {"usage": {"prompt_tokens": N, "completion_tokens": M}}
        - Text: "Tokens: N input, M output"
        """
        combined = stdout + "\n" + stderr

        for match in re.finditer(r"\{[^{}]*\{[^{}]*\}[^{}]*\}|\{[^{}]+\}", combined):
            try:
                data = json.loads(match.group())
            except json.JSONDecodeError:
                continue
            usage = data.get("usage") if isinstance(data, dict) else None
            if isinstance(usage, dict):
                input_tokens = int(usage.get("prompt_tokens", usage.get("input_tokens", 0)) or 0)
                output_tokens = int(
                    usage.get("completion_tokens", usage.get("output_tokens", 0)) or 0
                )
                if input_tokens > 0 or output_tokens > 0:
                    return TokenUsage(input_tokens, output_tokens)

        return parse_usage_from_text(combined)
