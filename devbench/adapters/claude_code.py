"""Claude Code CLI agent.

Runs ``claude --print --output-format json`` so the answer and usage come
back as one JSON document.
"""

from __future__ import annotations

from pathlib import Path

from devbench.adapters.base_cli import CliAgent, TokenUsage, parse_json_output
from devbench.core.results import ExecutionRequest


class ClaudeCodeAgent(CliAgent):
    """Agent for the Claude Code CLI.

    Example:
        >>> agent = ClaudeCodeAgent()
        >>> agent.build_args(Path("/tmp/prompt.txt"), ExecutionRequest(prompt="hi"))
        ['--print', '--output-format', 'json', '--message', '@/tmp/prompt.txt']

    """

    AGENT_ID = "claude-code"
    CLI_EXECUTABLE = "claude"
    PROVIDER = "cli-anthropic"
    DISPLAY_NAME = "Claude Code (CLI)"

    def build_args(self, prompt_file: Path, request: ExecutionRequest) -> list[str]:
        """Non-interactive JSON run reading the prompt file."""
        return [
            "--print",  # non-interactive mode
            "--output-format",
            "json",  # structured output with usage metadata
            "--message",
            f"@{prompt_file}",
        ]

    def extract_content(self, stdout: str) -> str:
        """Return ``result`` (or ``content``) from the JSON document."""
        data = parse_json_output(stdout)
        if data is None:
            return stdout
        value = data.get("result", data.get("content"))
        return value if isinstance(value, str) else stdout

    def extract_usage(self, stdout: str, stderr: str) -> TokenUsage | None:
        """Read ``usage.input_tokens`` / ``usage.output_tokens``.

        Cache reads count as input, matching how Claude Code bills them.
        """
        data = parse_json_output(stdout)
        if data is None:
            return None
        usage = data.get("usage")
        if not isinstance(usage, dict):
            return None
        input_tokens = (
            int(usage.get("input_tokens", 0) or 0)
            + int(usage.get("cache_read_input_tokens", 0) or 0)
            + int(usage.get("cache_creation_input_tokens", 0) or 0)
        )
        return TokenUsage(input_tokens, int(usage.get("output_tokens", 0) or 0))
