"""Tests for the code runner and its result parsers."""

import asyncio
import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from devbench.core.results import Language
from devbench.evaluation.code_runner import (
    TIMEOUT_ERROR,
    CodeRunner,
    extract_code_block,
    fallback_result,
    parse_dotnet_output,
    parse_jest_output,
    parse_surefire_reports,
)
from devbench.executor.process import ProcessResult, ProcessTimeoutError

RUN_PROCESS = "devbench.evaluation.code_runner.run_process"


class TestExtractCodeBlock:
    """Tests for extract_code_block."""

    def test_tagged_block(self) -> None:
        """Test the first known-tag block is returned."""
        response = "Here you go:\n```javascript\nmodule.exports = 1;\n```\nDone."
        assert extract_code_block(response) == "module.exports = 1;"

    def test_untagged_block(self) -> None:
        """Test untagged fences count."""
        assert extract_code_block("```\nclass A {}\n```") == "class A {}"

    def test_unknown_tag_skipped(self) -> None:
        """Test blocks with unknown tags are skipped."""
        response = "```bash\nnpm test\n```\n```java\nclass Users {}\n```"
        assert extract_code_block(response) == "class Users {}"

    def test_no_block(self) -> None:
        """Test a response without fences is used whole."""
        assert extract_code_block("  const x = 1;  \n") == "const x = 1;"


class TestParseJestOutput:
    """Tests for parse_jest_output."""

    def test_all_passed(self) -> None:
        """Test a green run."""
        stdout = json.dumps(
            {"success": True, "numFailedTests": 0, "numPassedTests": 4, "numTotalTests": 4}
        )
        summary = parse_jest_output(stdout)
        assert summary is not None
        assert summary.passed
        assert summary.notes == "All 4 tests passed"

    def test_failures_with_banner(self) -> None:
        """Test text before the JSON document is skipped."""
        stdout = "npx: installed 1 in 2s\n" + json.dumps(
            {"success": False, "numFailedTests": 1, "numPassedTests": 3, "numTotalTests": 4}
        )
        summary = parse_jest_output(stdout)
        assert summary is not None
        assert not summary.passed
        assert summary.failed_count == 1
        assert summary.notes == "1/4 tests failed"

    @pytest.mark.parametrize("stdout", ["", "no json here", '{"success": true}'])
    def test_unparseable(self, stdout: str) -> None:
        """Test missing fields yield None."""
        assert parse_jest_output(stdout) is None


class TestParseSurefireReports:
    """Tests for parse_surefire_reports."""

    def test_aggregates_reports(self) -> None:
        """Test counts are summed across report files."""
        documents = [
            '<testsuite name="A" tests="3" failures="0" errors="0"/>',
            '<testsuite name="B" tests="2" failures="1" errors="1"/>',
        ]
        summary = parse_surefire_reports(documents)
        assert summary is not None
        assert summary.total == 5
        assert summary.failed_count == 2
        assert summary.passed_count == 3
        assert not summary.passed

    def test_green(self) -> None:
        """Test a green report."""
        summary = parse_surefire_reports(['<testsuite tests="2" failures="0" errors="0"/>'])
        assert summary is not None and summary.passed

    def test_no_reports(self) -> None:
        """Test no documents yields None."""
        assert parse_surefire_reports([]) is None

    def test_invalid_xml(self) -> None:
        """Test malformed XML yields None."""
        assert parse_surefire_reports(["<testsuite"]) is None


class TestParseDotnetOutput:
    """Tests for parse_dotnet_output."""

    def test_summary_line(self) -> None:
        """Test the one-line summary form."""
        stdout = "Build succeeded.\nPassed!  - Failed:     0, Passed:     3, Skipped:     0, Total:     3\n"
        summary = parse_dotnet_output(stdout)
        assert summary is not None
        assert summary.passed
        assert summary.total == 3

    def test_failed_line(self) -> None:
        """Test a failing summary line."""
        stdout = "Failed!  - Failed:     2, Passed:     1, Skipped:     0, Total:     3"
        summary = parse_dotnet_output(stdout)
        assert summary is not None
        assert not summary.passed
        assert summary.failed_count == 2

    def test_multiline_form(self) -> None:
        """Test the older multi-line form."""
        stdout = "Total tests: 4\n     Passed: 4\n     Failed: 0\n"
        summary = parse_dotnet_output(stdout)
        assert summary is not None
        assert summary.passed

    def test_unparseable(self) -> None:
        """Test output without a summary yields None."""
        assert parse_dotnet_output("error CS1002: ; expected") is None


class TestFallbackResult:
    """Tests for fallback_result."""

    def test_exit_zero(self) -> None:
        """Test exit 0 passes."""
        result = fallback_result(ProcessResult("ok", "", 0))
        assert result.passed
        assert result.error_message is None

    def test_non_zero_truncates(self) -> None:
        """Test failure output is truncated."""
        result = fallback_result(ProcessResult("o" * 5000, "e" * 5000, 1))
        assert not result.passed
        assert len(result.output) == 2000
        assert result.error_message is not None and len(result.error_message) == 500


class TestCodeRunner:
    """Tests for CodeRunner.run_tests."""

    @pytest.fixture
    def suite_dir(self, tmp_path: Path) -> Path:
        """Suite directory with a manifest."""
        suite = tmp_path / "tests"
        suite.mkdir()
        (suite / "package.json").write_text("{}")
        return suite

    @pytest.mark.asyncio
    async def test_writes_and_removes_implementation(self, suite_dir: Path) -> None:
        """Test the candidate is written for the run and removed after."""
        written: list[str] = []

        async def fake_run(args: list[str], **kwargs: object) -> ProcessResult:
            written.append((suite_dir / "users.js").read_text())
            assert kwargs["cwd"] == suite_dir
            stdout = json.dumps(
                {"success": True, "numFailedTests": 0, "numPassedTests": 2, "numTotalTests": 2}
            )
            return ProcessResult(stdout, "", 0)

        with patch(RUN_PROCESS, fake_run):
            result = await CodeRunner().run_tests(
                "```js\nmodule.exports = {};\n```", Language.NODEJS, suite_dir, "users.js"
            )

        assert written == ["module.exports = {};"]
        assert not (suite_dir / "users.js").exists()
        assert result.passed
        assert result.total == 2
        assert result.output == "All 2 tests passed"

    @pytest.mark.asyncio
    async def test_timeout(self, suite_dir: Path) -> None:
        """Test a timeout reports the fixed message and cleans up."""
        with patch(RUN_PROCESS, AsyncMock(side_effect=ProcessTimeoutError("npx", 60))):
            result = await CodeRunner().run_tests("code", Language.NODEJS, suite_dir, "users.js")
        assert not result.passed
        assert result.error_message == TIMEOUT_ERROR
        assert not (suite_dir / "users.js").exists()

    @pytest.mark.asyncio
    async def test_fallback_on_unparseable(self, suite_dir: Path) -> None:
        """Test exit-code fallback when output cannot be parsed."""
        proc = ProcessResult("garbage", "boom", 1)
        with patch(RUN_PROCESS, AsyncMock(return_value=proc)):
            result = await CodeRunner().run_tests("code", Language.NODEJS, suite_dir, "users.js")
        assert not result.passed
        assert result.error_message == "boom"

    @pytest.mark.asyncio
    async def test_java_reads_surefire(self, tmp_path: Path) -> None:
        """Test Java results come from surefire reports, stale ones cleared."""
        suite = tmp_path / "tests"
        reports = suite / "target" / "surefire-reports"
        reports.mkdir(parents=True)
        (reports / "TEST-Stale.xml").write_text('<testsuite tests="9" failures="9" errors="0"/>')

        async def fake_run(args: list[str], **kwargs: object) -> ProcessResult:
            assert not (reports / "TEST-Stale.xml").exists()
            assert (suite / "src/main/java/Users.java").read_text() == "class Users {}"
            (reports / "TEST-UsersTest.xml").write_text(
                '<testsuite tests="3" failures="0" errors="0"/>'
            )
            return ProcessResult("", "", 0)

        with patch(RUN_PROCESS, fake_run):
            result = await CodeRunner().run_tests(
                "class Users {}", Language.JAVA, suite, "src/main/java/Users.java"
            )
        assert result.passed
        assert result.total == 3
        assert not (suite / "src/main/java/Users.java").exists()

    @pytest.mark.asyncio
    async def test_missing_suite(self, tmp_path: Path) -> None:
        """Test a missing suite directory is reported, not raised."""
        result = await CodeRunner().run_tests(
            "code", Language.NODEJS, tmp_path / "nope", "users.js"
        )
        assert not result.passed
        assert "Test suite not found" in (result.error_message or "")

    @pytest.mark.asyncio
    async def test_concurrent_runs_share_suite_sequentially(self, suite_dir: Path) -> None:
        """Test each concurrent run is graded against its own candidate file."""
        seen: list[str] = []

        async def fake_run(args: list[str], **kwargs: object) -> ProcessResult:
            impl = suite_dir / "impl.js"
            await asyncio.sleep(0.2)
            seen.append(impl.read_text() if impl.exists() else "MISSING")
            stdout = json.dumps(
                {"success": True, "numFailedTests": 0, "numPassedTests": 1, "numTotalTests": 1}
            )
            return ProcessResult(stdout, "", 0)

        async def run(answer: str, delay: float) -> None:
            await asyncio.sleep(delay)
            await runner.run_tests(answer, Language.NODEJS, suite_dir, "impl.js")

        runner = CodeRunner()
        with patch(RUN_PROCESS, fake_run):
            await asyncio.gather(run("ANSWER_A", 0), run("ANSWER_B", 0.05))

        assert seen == ["ANSWER_A", "ANSWER_B"]
        assert not (suite_dir / "impl.js").exists()
