"""Tests for result sinks and the summary table."""

import csv
import logging
from pathlib import Path

import pytest

from devbench.core.results import BenchmarkResult, ExecutionMode, Language, TokensSource
from devbench.reporting.sink import (
    CSV_COLUMNS,
    CsvResultSink,
    MemoryResultSink,
    result_to_row,
    status_label,
)
from devbench.reporting.summary import SUMMARY_COLUMNS, format_summary, summarize


def make_result(**overrides: object) -> BenchmarkResult:
    """Passing API result with sensible defaults."""
    fields: dict[str, object] = {
        "timestamp": "2026-01-01T00:00:00+00:00",
        "task_id": "j01",
        "task_name": "Users API",
        "language": Language.NODEJS,
        "run_number": 1,
        "execution_mode": ExecutionMode.API,
        "provider": "anthropic",
        "model_id": "claude-sonnet-4-5",
        "model_display_name": "Claude Sonnet",
        "input_tokens": 1000,
        "output_tokens": 500,
        "total_tokens": 1500,
        "cost_usd": 0.0105,
        "tokens_source": TokensSource.EXACT,
        "latency_ms": 1200,
        "turns": 1,
        "passed": True,
        "quality_score": 5.0,
        "passed_on_turn": 1,
        "score_history": (5.0,),
        "raw_prompt": "prompt",
        "raw_response": "response!",
    }
    fields.update(overrides)
    return BenchmarkResult(**fields)


def infra_failure(**overrides: object) -> BenchmarkResult:
    """Result for a combination that produced no answer."""
    fields: dict[str, object] = {
        "input_tokens": 0,
        "output_tokens": 0,
        "total_tokens": 0,
        "cost_usd": 0.0,
        "latency_ms": 0,
        "turns": 0,
        "passed": False,
        "quality_score": 0.0,
        "passed_on_turn": 0,
        "score_history": (),
        "error_message": "claude timed out after 120s",
    }
    fields.update(overrides)
    return make_result(**fields)


class TestResultToRow:
    """Tests for result_to_row and status_label."""

    def test_row_values(self) -> None:
        """Test formatting of every derived column."""
        row = result_to_row(make_result(score_history=(1.0, 3.5), passed_on_turn=2, turns=2))
        assert list(row) == CSV_COLUMNS
        assert row["language"] == "nodejs"
        assert row["execution_mode"] == "api"
        assert row["tokens_source"] == "exact"
        assert row["cost_usd"] == "0.010500"
        assert row["passed"] == "true"
        assert row["quality_score"] == "5.0"
        assert row["score_history"] == "1.0;3.5"
        assert row["error_message"] == ""
        assert row["raw_prompt_chars"] == 6
        assert row["raw_response_chars"] == 9

    def test_status_label(self) -> None:
        """Test ERROR takes precedence over PASS/FAIL."""
        assert status_label(make_result()) == "PASS"
        assert status_label(make_result(passed=False)) == "FAIL"
        assert status_label(infra_failure()) == "ERROR"


class TestCsvResultSink:
    """Tests for CsvResultSink."""

    def test_header_written_on_create(self, tmp_path: Path) -> None:
        """Test the file and header exist before any result."""
        sink = CsvResultSink(tmp_path / "out")
        assert sink.path.parent == tmp_path / "out"
        assert sink.path.name.startswith("benchmark_")
        assert sink.path.suffix == ".csv"
        with open(sink.path, newline="", encoding="utf-8") as handle:
            assert next(csv.reader(handle)) == CSV_COLUMNS

    @pytest.mark.asyncio
    async def test_rows_appended(self, tmp_path: Path) -> None:
        """Test each emit appends a readable row, quoting embedded newlines."""
        sink = CsvResultSink(tmp_path, filename="run.csv")
        sink.set_total(2)
        await sink.emit(make_result(quality_notes="line one\nline, two"))
        await sink.emit(infra_failure(run_number=2))

        with open(sink.path, newline="", encoding="utf-8") as handle:
            rows = list(csv.DictReader(handle))
        assert len(rows) == 2
        assert rows[0]["quality_notes"] == "line one\nline, two"
        assert rows[1]["run_number"] == "2"
        assert rows[1]["passed"] == "false"
        assert rows[1]["error_message"] == "claude timed out after 120s"
        assert sink.completed == 2
        assert sink.failed == 1

    @pytest.mark.asyncio
    async def test_progress_logged(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        """Test a progress line is logged per result."""
        sink = CsvResultSink(tmp_path, filename="run.csv")
        sink.set_total(4)
        with caplog.at_level(logging.INFO, logger="devbench.reporting.sink"):
            await sink.emit(make_result(tokens_source=TokensSource.ESTIMATED))
        assert "[PASS] j01 | Claude Sonnet | nodejs | run 1 | 1200ms" in caplog.text
        assert "(25%)" in caplog.text


class TestMemoryResultSink:
    """Tests for MemoryResultSink."""

    @pytest.mark.asyncio
    async def test_collects(self) -> None:
        """Test results are kept in emit order."""
        sink = MemoryResultSink()
        first, second = make_result(), make_result(run_number=2)
        await sink.emit(first)
        await sink.emit(second)
        assert sink.results == [first, second]


class TestSummarize:
    """Tests for summarize and format_summary."""

    def test_empty(self) -> None:
        """Test no results gives an empty frame and a placeholder table."""
        summary = summarize([])
        assert summary.empty
        assert list(summary.columns) == SUMMARY_COLUMNS
        assert format_summary(summary) == "No results."

    def test_groups_and_excludes_infra_failures(self) -> None:
        """Test per-executor stats ignore combinations with no answer."""
        results = [
            make_result(run_number=1, passed=True, quality_score=5.0, latency_ms=1000),
            make_result(run_number=2, passed=False, quality_score=1.0, latency_ms=3000),
            infra_failure(run_number=3),
            make_result(
                model_id="gemini-cli-agent",
                model_display_name="Gemini CLI",
                execution_mode=ExecutionMode.CLI,
                provider="cli-google",
                tokens_source=TokensSource.ESTIMATED,
            ),
        ]
        summary = summarize(results)

        assert list(summary["model_display_name"]) == ["Gemini CLI", "Claude Sonnet"]
        claude = summary.iloc[1]
        assert claude["runs"] == 3
        assert claude["infrastructure_failures"] == 1
        assert claude["pass_rate"] == pytest.approx(0.5)
        assert claude["avg_score"] == pytest.approx(3.0)
        assert claude["p50_latency_ms"] == pytest.approx(2000)
        assert not claude["estimated"]
        assert summary.iloc[0]["estimated"]

        table = format_summary(summary)
        assert "Gemini CLI" in table
        assert "50.0%" in table
        assert "~ = estimated" in table

    def test_all_infra_failures(self) -> None:
        """Test an executor with only failures reports zeros."""
        summary = summarize([infra_failure(), infra_failure(run_number=2)])
        row = summary.iloc[0]
        assert row["runs"] == 2
        assert row["infrastructure_failures"] == 2
        assert row["pass_rate"] == 0.0
