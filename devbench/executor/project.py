"""Executor that lets an agent edit a copy of a template project.

The orchestrator calls prepare_workspace() before the first turn, passes the
directory on every turn through ``ExecutionRequest.workspace`` and calls
cleanup_workspace() once the combination finishes, whatever the outcome.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path

from devbench.adapters.base import AdapterValidationError
from devbench.adapters.base_cli import CliAgent
from devbench.core.results import ExecutionRequest, ExecutionResult
from devbench.executor.base import ExecutorIdentity
from devbench.executor.cli import CliExecutor
from devbench.executor.process import prompt_file

logger = logging.getLogger(__name__)

WORKSPACE_PREFIX = "devbench-project-"


class ProjectExecutor(CliExecutor):
    """CLI executor for agents that support agentic (file editing) mode.

    Requests without a workspace fall back to a plain text-answer run, so one
    executor serves every task type.
    """

    supports_workspace = True

    def __init__(self, identity: ExecutorIdentity, agent: CliAgent) -> None:
        """Initialize the executor.

        Raises:
            AdapterValidationError: If the agent has no agentic mode.

        """
        if not agent.SUPPORTS_AGENTIC_MODE:
            raise AdapterValidationError(f"Agent {agent.AGENT_ID} does not support agentic mode")
        super().__init__(identity, agent)

    def prepare_workspace(self, template: Path) -> Path:
        """Copy ``template`` into a fresh temp directory and return it."""
        if not template.is_dir():
            raise AdapterValidationError(f"Template project not found: {template}")
        workspace = Path(tempfile.mkdtemp(prefix=WORKSPACE_PREFIX))
        shutil.copytree(template, workspace, symlinks=True, dirs_exist_ok=True)
        logger.debug(f"Copied {template} to {workspace}")
        return workspace

    def cleanup_workspace(self, workspace: Path) -> None:
        """Delete the workspace directory tree."""
        shutil.rmtree(workspace, ignore_errors=True)
        logger.debug(f"Removed workspace {workspace}")

    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        """Run the agent inside ``request.workspace`` when one is given."""
        if request.workspace is None:
            return await super().execute(request)

        with prompt_file(request.prompt) as path:
            args = [self.agent.binary, *self.agent.build_agentic_args(path, request)]
            return await self._run(
                request,
                args,
                self.agent.agentic_timeout_seconds,
                cwd=request.workspace,
            )
