"""Executor for hosted models reached through a provider SDK."""

from __future__ import annotations

import logging
import time

from devbench.adapters.base import ModelAdapter
from devbench.core.results import ExecutionRequest, ExecutionResult
from devbench.executor.base import Executor, ExecutorIdentity

logger = logging.getLogger(__name__)


class ApiExecutor(Executor):
    """Forward requests to a ModelAdapter; token counts are exact."""

    def __init__(self, identity: ExecutorIdentity, adapter: ModelAdapter) -> None:
        """Initialize the executor.

        Args:
            identity: Identity stamped on results.
            adapter: Provider adapter performing the call.

        """
        super().__init__(identity)
        self.adapter = adapter

    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        """Make one provider call and time it."""
        start = time.monotonic()
        response = await self.adapter.complete(
            system_prompt=request.system_prompt or "",
            user_prompt=request.prompt,
            max_tokens=request.max_tokens,
            temperature=request.temperature,
        )
        latency_ms = int((time.monotonic() - start) * 1000)
        logger.debug(
            f"{self.adapter.get_name()}: {response.input_tokens} in / "
            f"{response.output_tokens} out in {latency_ms}ms"
        )
        return self._result(
            content=response.content,
            input_tokens=response.input_tokens,
            output_tokens=response.output_tokens,
            latency_ms=latency_ms,
            estimated=False,
        )
