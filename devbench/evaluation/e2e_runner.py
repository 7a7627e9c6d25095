"""Build, serve and browser-test a full-stack project.

Lifecycle for one run (linear, with unconditional teardown):

    install (backend, frontend) -> build (frontend, backend) -> free port
    -> start server -> health poll -> playwright -> parse -> teardown

Project layout expected under ``project_dir``::

    backend/    NestJS app, ``node dist/main.js`` serves API and static frontend
    frontend/   Vite app
    e2e/        Playwright config and specs
"""

from __future__ import annotations

import asyncio
import json
import logging
import socket
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx

from devbench.adapters.base import AdapterError
from devbench.executor.process import (
    ProcessResult,
    ProcessTimeoutError,
    run_process,
    start_process,
    terminate_process,
)

logger = logging.getLogger(__name__)

HEALTH_PATH = "/api/health"
HEALTH_POLL_INTERVAL_SECONDS = 0.5
HEALTH_REQUEST_TIMEOUT_SECONDS = 2.0
ERROR_DETAIL_CHARS = 1000


class E2ESetupError(Exception):
    """Raised for terminal lifecycle failures (install, build, server start)."""

    pass


@dataclass(frozen=True)
class E2ERunResult:
    """Outcome of one E2E lifecycle run."""

    passed: bool
    total_tests: int
    passed_tests: int
    failed_tests: int
    output: str
    error_message: str | None = None


def find_free_port(host: str = "127.0.0.1") -> int:
    """Bind to port 0 and return the port the OS assigned."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind((host, 0))
        return int(sock.getsockname()[1])


# -----------------------------------------------------------------------------
# Playwright report parsing
# -----------------------------------------------------------------------------


def _walk_suites(suites: list[dict[str, Any]], counts: dict[str, int], failures: list[str]) -> None:
    for suite in suites:
        for spec in suite.get("specs") or []:
            for test in spec.get("tests") or []:
                counts["total"] += 1
                results = test.get("results") or []
                last = results[-1] if results else {}
                if last.get("status") == "passed":
                    counts["passed"] += 1
                    continue
                counts["failed"] += 1
                error = (last.get("error") or {}).get("message") or "Unknown failure"
                title = test.get("title") or spec.get("title", "")
                failures.append(f"FAIL: {spec.get('title', '')} > {title}\n  {error}")
        _walk_suites(suite.get("suites") or [], counts, failures)


def parse_playwright_report(stdout: str, stderr: str, exit_code: int) -> E2ERunResult:
    """Parse ``--reporter=json`` output; on parse failure trust the exit code."""
    text = stdout.strip()
    if not text:
        return E2ERunResult(
            passed=False,
            total_tests=0,
            passed_tests=0,
            failed_tests=0,
            output=stderr or "No Playwright output",
            error_message=stderr or "Playwright produced no output",
        )

    try:
        report = json.loads(text)
        suites = report.get("suites") or []
        counts = {"total": 0, "passed": 0, "failed": 0}
        failures: list[str] = []
        _walk_suites(suites, counts, failures)
    except (json.JSONDecodeError, AttributeError, TypeError):
        ok = exit_code == 0
        return E2ERunResult(
            passed=ok,
            total_tests=0,
            passed_tests=1 if ok else 0,
            failed_tests=0 if ok else 1,
            output=stdout or stderr,
            error_message=f"Failed to parse Playwright JSON output: {stderr[:300]}",
        )

    return E2ERunResult(
        passed=counts["failed"] == 0 and counts["total"] > 0,
        total_tests=counts["total"],
        passed_tests=counts["passed"],
        failed_tests=counts["failed"],
        output="\n\n".join(failures) or "All tests passed",
    )


# -----------------------------------------------------------------------------
# Runner
# -----------------------------------------------------------------------------


def _detail(proc: ProcessResult) -> str:
    return (proc.stderr.strip() or proc.stdout.strip())[:ERROR_DETAIL_CHARS]


class E2ERunner:
    """Run the full build-serve-test lifecycle for one project directory."""

    def __init__(
        self,
        install_timeout: float = 120.0,
        build_timeout: float = 120.0,
        server_ready_timeout: float = 30.0,
        browser_test_timeout: float = 120.0,
        shutdown_grace: float = 5.0,
    ) -> None:
        """Initialize the runner with per-step deadlines (seconds)."""
        self.install_timeout = install_timeout
        self.build_timeout = build_timeout
        self.server_ready_timeout = server_ready_timeout
        self.browser_test_timeout = browser_test_timeout
        self.shutdown_grace = shutdown_grace

    async def run_e2e(self, project_dir: Path, test_spec: str) -> E2ERunResult:
        """Run the lifecycle; every failure is reported, never raised.

        Args:
            project_dir: Project root containing backend/, frontend/ and e2e/.
            test_spec: Playwright spec path (absolute, or relative to ``e2e/``).

        Returns:
            E2ERunResult with counts and failure details.

        """
        backend = project_dir / "backend"
        frontend = project_dir / "frontend"
        server: asyncio.subprocess.Process | None = None
        try:
            await self._install(backend)
            await self._install(frontend)
            await self._build(frontend, ["npx", "vite", "build"], "Frontend")
            await self._build(backend, ["npx", "nest", "build"], "Backend")

            port = find_free_port()
            base_url = f"http://127.0.0.1:{port}"
            server = await start_process(
                ["node", "dist/main.js"],
                cwd=backend,
                env={"PORT": str(port), "NODE_ENV": "production"},
            )
            await self._wait_for_server(base_url + HEALTH_PATH, server)

            proc = await run_process(
                ["npx", "playwright", "test", test_spec, "--reporter=json"],
                timeout=self.browser_test_timeout,
                cwd=project_dir / "e2e",
                env={"BASE_URL": base_url},
            )
            return parse_playwright_report(proc.stdout, proc.stderr, proc.exit_code)
        except E2ESetupError as e:
            logger.info(f"E2E lifecycle stopped in {project_dir}: {str(e).splitlines()[0]}")
            return E2ERunResult(False, 0, 0, 0, output="", error_message=str(e))
        except ProcessTimeoutError as e:
            return E2ERunResult(False, 0, 0, 0, output="", error_message=f"E2E step timeout: {e}")
        except AdapterError as e:
            return E2ERunResult(False, 0, 0, 0, output="", error_message=f"E2E runner error: {e}")
        finally:
            if server is not None:
                await terminate_process(server, self.shutdown_grace)

    async def _install(self, directory: Path) -> None:
        proc = await run_process(
            ["npm", "install", "--silent"],
            timeout=self.install_timeout,
            cwd=directory,
            env={"NODE_ENV": "development"},
        )
        if not proc.ok:
            raise E2ESetupError(f"Dependency install failed in {directory.name}:\n{_detail(proc)}")

    async def _build(self, directory: Path, args: list[str], label: str) -> None:
        proc = await run_process(args, timeout=self.build_timeout, cwd=directory)
        if not proc.ok:
            raise E2ESetupError(f"{label} build failed:\n{_detail(proc)}")

    async def _wait_for_server(self, url: str, server: asyncio.subprocess.Process) -> None:
        """Poll ``url`` until any HTTP response arrives."""
        deadline = time.monotonic() + self.server_ready_timeout
        async with httpx.AsyncClient(timeout=HEALTH_REQUEST_TIMEOUT_SECONDS) as client:
            while time.monotonic() < deadline:
                if server.returncode is not None:
                    raise E2ESetupError(f"Server exited with code {server.returncode} before ready")
                try:
                    await client.get(url)
                    return
                except httpx.HTTPError:
                    await asyncio.sleep(HEALTH_POLL_INTERVAL_SECONDS)
        raise E2ESetupError(f"Server did not start within {self.server_ready_timeout:g}s")
