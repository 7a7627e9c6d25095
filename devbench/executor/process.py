"""Subprocess execution with hard deadlines.

Every external command the harness runs (CLI agents, test runners, package
installs, builds, browser tests) goes through ``run_process``: one awaitable
that either returns a ProcessResult or raises ProcessTimeoutError after the
child has been killed.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import signal
import tempfile
import time
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from devbench.adapters.base import AdapterError, AdapterTimeoutError

logger = logging.getLogger(__name__)

PROMPT_FILE_PREFIX = "devbench-prompt-"


class ProcessTimeoutError(AdapterTimeoutError):
    """Raised when a subprocess exceeds its deadline (the process is killed)."""

    def __init__(self, command: str, timeout_seconds: float) -> None:
        """Initialize with the offending command and its deadline.

        Args:
            command: Executable that timed out.
            timeout_seconds: Deadline that was exceeded.

        """
        self.command = command
        self.timeout_seconds = timeout_seconds
        super().__init__(f"{command} timed out after {timeout_seconds:g}s")


@dataclass(frozen=True)
class ProcessResult:
    """Captured output of a finished subprocess."""

    stdout: str
    stderr: str
    exit_code: int
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        """Whether the process exited with status 0."""
        return self.exit_code == 0


def build_env(extra: dict[str, str] | None = None) -> dict[str, str]:
    """Inherit the parent environment and layer ``extra`` on top.

    ``CLAUDECODE`` is removed so nested Claude Code sessions are allowed.
    """
    env = os.environ.copy()
    env.update(extra or {})
    env.pop("CLAUDECODE", None)
    return env


@contextlib.contextmanager
def prompt_file(content: str) -> Iterator[Path]:
    """Write ``content`` to a unique temp file and remove it on exit.

    The file is deleted on every exit path, including timeouts and
    cancellation of the surrounding task.
    """
    fd, name = tempfile.mkstemp(prefix=PROMPT_FILE_PREFIX, suffix=".txt")
    path = Path(name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        yield path
    finally:
        path.unlink(missing_ok=True)


async def run_process(
    args: list[str],
    timeout: float,
    cwd: Path | str | None = None,
    env: dict[str, str] | None = None,
) -> ProcessResult:
    """Spawn ``args`` and wait for it with a hard deadline.

    Args:
        args: Executable followed by its arguments.
        timeout: Deadline in seconds.
        cwd: Working directory.
        env: Extra environment variables (merged over the parent environment).

    Returns:
        ProcessResult with decoded stdout/stderr and the exit code.

    Raises:
        ProcessTimeoutError: If the deadline passed; the child is killed first.
        AdapterError: If the executable could not be started.

    """
    command = args[0]
    logger.debug(f"Spawning {' '.join(args[:4])}{' ...' if len(args) > 4 else ''} (cwd={cwd})")
    start = time.monotonic()
    try:
        proc = await asyncio.create_subprocess_exec(
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd) if cwd is not None else None,
            env=build_env(env),
        )
    except FileNotFoundError:
        raise AdapterError(f"Command not found. Is '{command}' installed?") from None
    except OSError as e:
        raise AdapterError(f"Failed to execute {command}: {e}") from e

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"{command} exceeded {timeout:g}s deadline; killing pid {proc.pid}")
        await _kill(proc)
        raise ProcessTimeoutError(command, timeout) from None
    except asyncio.CancelledError:
        await _kill(proc)
        raise

    return ProcessResult(
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
        exit_code=proc.returncode if proc.returncode is not None else -1,
        duration_seconds=time.monotonic() - start,
    )


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        with contextlib.suppress(ProcessLookupError):
            proc.kill()
    await proc.wait()


async def start_process(
    args: list[str],
    cwd: Path | str | None = None,
    env: dict[str, str] | None = None,
) -> asyncio.subprocess.Process:
    """Start a long-running process (e.g. a server) with output discarded."""
    logger.debug(f"Starting {' '.join(args)} (cwd={cwd})")
    try:
        return await asyncio.create_subprocess_exec(
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
            cwd=str(cwd) if cwd is not None else None,
            env=build_env(env),
        )
    except OSError as e:
        raise AdapterError(f"Failed to start {args[0]}: {e}") from e


async def terminate_process(proc: asyncio.subprocess.Process, grace_seconds: float) -> None:
    """Send SIGTERM, wait ``grace_seconds``, then SIGKILL if still alive."""
    if proc.returncode is not None:
        return
    with contextlib.suppress(ProcessLookupError):
        proc.send_signal(signal.SIGTERM)
    try:
        await asyncio.wait_for(proc.wait(), timeout=grace_seconds)
    except asyncio.TimeoutError:
        logger.warning(f"pid {proc.pid} ignored SIGTERM for {grace_seconds:g}s; sending SIGKILL")
        await _kill(proc)
