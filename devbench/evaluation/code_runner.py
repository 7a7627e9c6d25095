"""Run a candidate implementation against a fixture's pre-existing test suite.

Flow for one run:
1. Extract the most relevant code block from the model response.
2. Write it to the filename the suite imports, inside the suite directory.
3. Run the runtime's native test command with a deadline.
4. Parse the runtime's result format into a SuiteSummary; when parsing
   fails, fall back to the exit code.
5. Delete the written file so the fixture stays pristine.

Runs against one suite directory are serialized, since the candidate file
is shared from the write until the delete.

One pure parser exists per result format:

    nodejs  jest --json          parse_jest_output(stdout)
    java    maven surefire XML   parse_surefire_reports(xml_documents)
    dotnet  dotnet test summary  parse_dotnet_output(stdout)
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
import xml.etree.ElementTree as ET
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from devbench.adapters.base import AdapterError
from devbench.core.results import Language
from devbench.executor.process import ProcessResult, ProcessTimeoutError, run_process

logger = logging.getLogger(__name__)

TIMEOUT_ERROR = "Test execution timeout"
FALLBACK_STDOUT_CHARS = 2000
FALLBACK_STDERR_CHARS = 500
SUREFIRE_REPORT_DIR = Path("target") / "surefire-reports"

# Fence tags accepted by extract_code_block ("" is an untagged fence)
KNOWN_FENCE_TAGS = frozenset(
    {
        "",
        "javascript",
        "js",
        "jsx",
        "mjs",
        "cjs",
        "typescript",
        "ts",
        "tsx",
        "java",
        "csharp",
        "cs",
        "c#",
        "html",
        "xml",
        "css",
        "json",
        "yaml",
        "yml",
        "sql",
    }
)

_FENCE_RE = re.compile(r"```([\w#+.-]*)[^\S\n]*\n(.*?)```", re.DOTALL)


@dataclass(frozen=True)
class SuiteSummary:
    """Normalized verdict of one test-suite run."""

    passed: bool
    total: int
    passed_count: int
    failed_count: int
    notes: str


@dataclass(frozen=True)
class CodeRunResult:
    """Outcome of CodeRunner.run_tests()."""

    passed: bool
    output: str
    error_message: str | None = None
    total: int = 0
    passed_count: int = 0
    failed_count: int = 0


def extract_code_block(response: str) -> str:
    """Return the first fenced block with a known tag, else the trimmed response."""
    for match in _FENCE_RE.finditer(response):
        if match.group(1).lower() in KNOWN_FENCE_TAGS:
            return match.group(2).strip()
    return response.strip()


# -----------------------------------------------------------------------------
# Parsers
# -----------------------------------------------------------------------------


def _summary(total: int, passed_count: int, failed_count: int, ok: bool) -> SuiteSummary:
    if ok:
        notes = f"All {passed_count} tests passed"
    else:
        notes = f"{failed_count}/{total} tests failed"
    return SuiteSummary(
        passed=ok,
        total=total,
        passed_count=passed_count,
        failed_count=failed_count,
        notes=notes,
    )


def parse_jest_output(stdout: str) -> SuiteSummary | None:
    """Parse ``jest --json`` output.

    The JSON document starts at the first ``{``; anything Jest prints before
    it (warnings, npx banners) is skipped.
    """
    start = stdout.find("{")
    if start == -1:
        return None
    try:
        data, _ = json.JSONDecoder().raw_decode(stdout[start:])
        failed = int(data["numFailedTests"])
        passed = int(data["numPassedTests"])
        total = int(data["numTotalTests"])
        success = data["success"] is True
    except (json.JSONDecodeError, KeyError, TypeError, ValueError):
        return None
    return _summary(total, passed, failed, success and failed == 0)


def parse_surefire_reports(documents: list[str]) -> SuiteSummary | None:
    """Aggregate ``tests``/``failures``/``errors`` over surefire XML reports."""
    if not documents:
        return None
    total = failures = errors = 0
    try:
        for document in documents:
            root = ET.fromstring(document)
            total += int(root.get("tests", "0"))
            failures += int(root.get("failures", "0"))
            errors += int(root.get("errors", "0"))
    except (ET.ParseError, ValueError):
        return None
    failed = failures + errors
    return _summary(total, total - failed, failed, failed == 0 and total > 0)


_DOTNET_TOTAL_RE = re.compile(r"Total(?: tests)?:\s*(\d+)", re.IGNORECASE)
_DOTNET_PASSED_RE = re.compile(r"Passed:\s*(\d+)", re.IGNORECASE)
_DOTNET_FAILED_RE = re.compile(r"Failed:\s*(\d+)", re.IGNORECASE)


def parse_dotnet_output(stdout: str) -> SuiteSummary | None:
    """Parse the ``dotnet test`` summary line.

    Accepts both ``Passed!  - Failed: 0, Passed: 3, Skipped: 0, Total: 3``
    (fields in any order) and ``Total tests: 3. Passed: 3. Failed: 0.``.
    """
    for line in stdout.splitlines():
        total = _DOTNET_TOTAL_RE.search(line)
        passed = _DOTNET_PASSED_RE.search(line)
        failed = _DOTNET_FAILED_RE.search(line)
        if total and passed and failed:
            total_n = int(total.group(1))
            failed_n = int(failed.group(1))
            return _summary(total_n, int(passed.group(1)), failed_n, failed_n == 0 and total_n > 0)

    # "Total tests" form may span lines
    total = _DOTNET_TOTAL_RE.search(stdout)
    passed = _DOTNET_PASSED_RE.search(stdout)
    failed = _DOTNET_FAILED_RE.search(stdout)
    if total and passed and failed:
        total_n = int(total.group(1))
        failed_n = int(failed.group(1))
        return _summary(total_n, int(passed.group(1)), failed_n, failed_n == 0 and total_n > 0)
    return None


def fallback_result(proc: ProcessResult) -> CodeRunResult:
    """Trust the exit code when the result format could not be parsed."""
    passed = proc.ok
    return CodeRunResult(
        passed=passed,
        output=proc.stdout[:FALLBACK_STDOUT_CHARS],
        error_message=None if passed else proc.stderr[:FALLBACK_STDERR_CHARS],
    )


# -----------------------------------------------------------------------------
# Runtimes
# -----------------------------------------------------------------------------


def _read_surefire_reports(test_dir: Path) -> list[str]:
    report_dir = test_dir / SUREFIRE_REPORT_DIR
    return [p.read_text(encoding="utf-8") for p in sorted(report_dir.glob("TEST-*.xml"))]


def _clear_surefire_reports(test_dir: Path) -> None:
    for report in (test_dir / SUREFIRE_REPORT_DIR).glob("TEST-*.xml"):
        report.unlink(missing_ok=True)


@dataclass(frozen=True)
class RuntimeProfile:
    """How to run and read one runtime's test suite."""

    command: tuple[str, ...]
    parse: Callable[[ProcessResult, Path], SuiteSummary | None]
    env: dict[str, str] = field(default_factory=dict)
    before_run: Callable[[Path], None] | None = None


RUNTIMES: dict[Language, RuntimeProfile] = {
    Language.NODEJS: RuntimeProfile(
        command=("npx", "jest", "--json", "--forceExit", "--testTimeout=30000"),
        parse=lambda proc, _dir: parse_jest_output(proc.stdout),
        env={"CI": "true"},
    ),
    Language.JAVA: RuntimeProfile(
        command=("mvn", "-q", "-B", "test"),
        parse=lambda _proc, test_dir: parse_surefire_reports(_read_surefire_reports(test_dir)),
        before_run=_clear_surefire_reports,
    ),
    Language.DOTNET: RuntimeProfile(
        command=("dotnet", "test", "--nologo"),
        parse=lambda proc, _dir: parse_dotnet_output(proc.stdout),
        env={"DOTNET_CLI_TELEMETRY_OPTOUT": "1", "DOTNET_NOLOGO": "1"},
    ),
}


class CodeRunner:
    """Run candidate code against fixture test suites."""

    def __init__(
        self,
        timeout_seconds: float = 60.0,
        runtimes: dict[Language, RuntimeProfile] | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            timeout_seconds: Deadline for one test command.
            runtimes: Runtime table override (tests).

        """
        self.timeout_seconds = timeout_seconds
        self.runtimes = runtimes or RUNTIMES
        self._suite_locks: dict[Path, asyncio.Lock] = {}

    def _suite_lock(self, test_dir: Path) -> asyncio.Lock:
        key = test_dir.resolve()
        if key not in self._suite_locks:
            self._suite_locks[key] = asyncio.Lock()
        return self._suite_locks[key]

    async def run_tests(
        self,
        response: str,
        language: Language,
        test_dir: Path,
        implementation_filename: str,
    ) -> CodeRunResult:
        """Write the candidate into ``test_dir`` and run the suite.

        Args:
            response: Raw model response (code is extracted from it).
            language: Runtime selecting the command and parser.
            test_dir: Suite directory with its dependency manifest.
            implementation_filename: Path the suite imports, relative to test_dir.

        Returns:
            CodeRunResult; infrastructure problems are reported through
            ``error_message`` rather than raised.

        """
        runtime = self.runtimes.get(language)
        if runtime is None:
            return CodeRunResult(
                passed=False, output="", error_message=f"Unsupported language: {language}"
            )
        if not test_dir.is_dir():
            return CodeRunResult(
                passed=False, output="", error_message=f"Test suite not found: {test_dir}"
            )

        async with self._suite_lock(test_dir):
            return await self._run_in_suite(
                response, language, runtime, test_dir, implementation_filename
            )

    async def _run_in_suite(
        self,
        response: str,
        language: Language,
        runtime: RuntimeProfile,
        test_dir: Path,
        implementation_filename: str,
    ) -> CodeRunResult:
        impl_path = test_dir / implementation_filename
        try:
            impl_path.parent.mkdir(parents=True, exist_ok=True)
            impl_path.write_text(extract_code_block(response), encoding="utf-8")
            if runtime.before_run is not None:
                runtime.before_run(test_dir)

            proc = await run_process(
                list(runtime.command),
                timeout=self.timeout_seconds,
                cwd=test_dir,
                env=runtime.env,
            )
            summary = runtime.parse(proc, test_dir)
        except ProcessTimeoutError:
            logger.warning(f"{language.value} tests in {test_dir} timed out")
            return CodeRunResult(passed=False, output="", error_message=TIMEOUT_ERROR)
        except (AdapterError, OSError) as e:
            return CodeRunResult(passed=False, output="", error_message=str(e))
        finally:
            impl_path.unlink(missing_ok=True)

        if summary is None:
            logger.debug(f"Unparseable {language.value} test output; using exit code")
            return fallback_result(proc)

        return CodeRunResult(
            passed=summary.passed,
            output=summary.notes,
            total=summary.total,
            passed_count=summary.passed_count,
            failed_count=summary.failed_count,
        )
