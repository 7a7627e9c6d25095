"""Base class for command-line agents.

A CLI agent describes *how* a binary is invoked and how its output is read;
the executor owns spawning, deadlines and temp-file cleanup. Subclasses must
define:
- AGENT_ID / CLI_EXECUTABLE / PROVIDER: identity of the agent
- build_args(): arguments for a text-answer run
- extract_content(): the answer text within raw stdout
- extract_usage(): exact usage metadata, or None when the agent has none

Agents that can edit a project in place also set SUPPORTS_AGENTIC_MODE and
implement build_agentic_args().
"""

from __future__ import annotations

import json
import re
import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from devbench.adapters.base import AdapterValidationError
from devbench.core.results import ExecutionRequest


@dataclass(frozen=True)
class TokenUsage:
    """Usage metadata reported by a CLI agent."""

    input_tokens: int
    output_tokens: int


def parse_json_output(stdout: str) -> dict[str, Any] | None:
    """Parse stdout as a single JSON object, or None if it is not one."""
    try:
        data = json.loads(stdout.strip())
    except (json.JSONDecodeError, ValueError):
        return None
    return data if isinstance(data, dict) else None


class CliAgent(ABC):
    """Strategy for invoking one CLI agent binary.

    Example:
        >>> class MyAgent(CliAgent):
        ...     AGENT_ID = "my-agent"
        ...     CLI_EXECUTABLE = "mycli"
        ...     PROVIDER = "cli-example"
        ...
        ...     def build_args(self, prompt_file, request):
        ...         return ["--prompt-file", str(prompt_file)]
        ...
        ...     def extract_content(self, stdout):
        ...         return stdout.strip()
        ...
        ...     def extract_usage(self, stdout, stderr):
        ...         return None

    """

    AGENT_ID: str
    CLI_EXECUTABLE: str
    PROVIDER: str
    DISPLAY_NAME: str = ""
    SUPPORTS_AGENTIC_MODE: bool = False

    def __init__(
        self,
        binary: str | None = None,
        display_name: str | None = None,
        provider: str | None = None,
        timeout_seconds: float = 120.0,
        agentic_timeout_seconds: float = 300.0,
        env: dict[str, str] | None = None,
    ) -> None:
        """Initialize the agent.

        Args:
            binary: Executable override (defaults to CLI_EXECUTABLE).
            display_name: Human-readable name.
            provider: Provider identity used for concurrency limits.
            timeout_seconds: Deadline for a text-answer run.
            agentic_timeout_seconds: Deadline for an in-project agentic run.
            env: Extra environment variables for the process.

        """
        if timeout_seconds <= 0 or agentic_timeout_seconds <= 0:
            raise AdapterValidationError("Agent timeouts must be positive")
        self.binary = binary or self.CLI_EXECUTABLE
        self.display_name = display_name or self.DISPLAY_NAME or self.AGENT_ID
        self.provider = provider or self.PROVIDER
        self.timeout_seconds = timeout_seconds
        self.agentic_timeout_seconds = agentic_timeout_seconds
        self.env = dict(env or {})

    @property
    def model_id(self) -> str:
        """Identifier recorded as the model for this agent."""
        return f"{self.AGENT_ID}-agent"

    @abstractmethod
    def build_args(self, prompt_file: Path, request: ExecutionRequest) -> list[str]:
        """Build arguments for a text-answer run reading the prompt from ``prompt_file``."""
        ...

    def build_agentic_args(self, prompt_file: Path, request: ExecutionRequest) -> list[str]:
        """Build arguments for an in-project (file editing) run."""
        raise AdapterValidationError(f"Agent {self.AGENT_ID} does not support agentic mode")

    @abstractmethod
    def extract_content(self, stdout: str) -> str:
        """Strip banners/log noise from stdout and return the answer text."""
        ...

    @abstractmethod
    def extract_usage(self, stdout: str, stderr: str) -> TokenUsage | None:
        """Parse exact usage metadata, returning None when unavailable."""
        ...

    def is_available(self) -> bool:
        """Whether the agent binary is on PATH."""
        return shutil.which(self.binary) is not None

    def get_name(self) -> str:
        """Return agent name for logging."""
        return self.__class__.__name__


def parse_usage_from_text(combined: str) -> TokenUsage | None:
    """Fallback usage parsing for agents printing human-readable token counts.

    Recognizes:
    - "prompt_tokens: N" / "completion_tokens: M"
    - "input tokens: N" / "output tokens: M"
    - "N input, M output"
    """
    combined_match = re.search(
        r"(\d+)\s*(?:input|in)\s*[,/]\s*(\d+)\s*(?:output|out)",
        combined,
        re.IGNORECASE,
    )
    if combined_match:
        return TokenUsage(int(combined_match.group(1)), int(combined_match.group(2)))

    input_match = re.search(
        r"(?:prompt_tokens?|input\s+tokens?):?\s*(\d+)", combined, re.IGNORECASE
    )
    output_match = re.search(
        r"(?:completion_tokens?|output\s+tokens?):?\s*(\d+)", combined, re.IGNORECASE
    )
    if input_match or output_match:
        return TokenUsage(
            int(input_match.group(1)) if input_match else 0,
            int(output_match.group(1)) if output_match else 0,
        )

    return None
