"""Executor for local CLI agents.

Each turn writes the prompt to a unique temp file, spawns the agent binary
with a hard deadline and reads the answer back from stdout. Agents that do
not report usage get estimated token counts.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from devbench.adapters.base import AdapterError
from devbench.adapters.base_cli import CliAgent, parse_json_output
from devbench.core.rate_limit import RateLimitError, detect_rate_limit
from devbench.core.results import ExecutionRequest, ExecutionResult
from devbench.executor.base import Executor, ExecutorIdentity
from devbench.executor.process import ProcessResult, prompt_file, run_process
from devbench.metrics.tokens import estimate_tokens

logger = logging.getLogger(__name__)

STDERR_TAIL_CHARS = 500


class CliExecutor(Executor):
    """Spawn a CliAgent once per turn."""

    def __init__(self, identity: ExecutorIdentity, agent: CliAgent) -> None:
        """Initialize the executor.

        Args:
            identity: Identity stamped on results.
            agent: Agent describing the binary, arguments and output format.

        """
        super().__init__(identity)
        self.agent = agent

    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        """Run the agent in text-answer mode."""
        with prompt_file(request.prompt) as path:
            args = [self.agent.binary, *self.agent.build_args(path, request)]
            return await self._run(request, args, self.agent.timeout_seconds)

    async def _run(
        self,
        request: ExecutionRequest,
        args: list[str],
        timeout: float,
        cwd: Path | None = None,
    ) -> ExecutionResult:
        start = time.monotonic()
        proc = await run_process(args, timeout=timeout, cwd=cwd, env=self.agent.env)
        latency_ms = int((time.monotonic() - start) * 1000)

        self._raise_for_failure(proc)

        content = self.agent.extract_content(proc.stdout)
        usage = self.agent.extract_usage(proc.stdout, proc.stderr)
        if usage is None:
            input_tokens = estimate_tokens(request.prompt)
            output_tokens = estimate_tokens(content)
        else:
            input_tokens, output_tokens = usage.input_tokens, usage.output_tokens

        return self._result(
            content=content,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            latency_ms=latency_ms,
            estimated=usage is None,
            project_dir=cwd,
        )

    def _raise_for_failure(self, proc: ProcessResult) -> None:
        """Translate rate limits and empty failed runs into exceptions.

        A non-zero exit that still printed an answer is kept; the evaluator
        judges the answer.
        """
        data = parse_json_output(proc.stdout)
        reported_error = bool(data and data.get("is_error"))
        if proc.ok and not reported_error:
            return

        info = detect_rate_limit(proc.stdout, proc.stderr, source=self.agent.provider)
        if info is not None:
            raise RateLimitError(info)

        if not proc.ok and not proc.stdout.strip():
            tail = proc.stderr.strip()[-STDERR_TAIL_CHARS:]
            raise AdapterError(
                f"{self.agent.binary} exited with code {proc.exit_code}: {tail or 'no output'}"
            )
        logger.debug(f"{self.agent.get_name()} exited with code {proc.exit_code}; keeping output")
