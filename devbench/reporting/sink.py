"""Result sinks.

The sink is the only state shared by concurrently running combinations;
appends are serialized with an asyncio.Lock so rows never interleave.
"""

from __future__ import annotations

import asyncio
import csv
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from devbench.config.pricing import format_cost_usd
from devbench.core.results import BenchmarkResult, TokensSource

logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    "timestamp",
    "task_id",
    "task_name",
    "language",
    "execution_mode",
    "provider",
    "model_id",
    "model_display_name",
    "run_number",
    "input_tokens",
    "output_tokens",
    "total_tokens",
    "tokens_source",
    "cost_usd",
    "latency_ms",
    "turns",
    "passed",
    "passed_on_turn",
    "quality_score",
    "score_history",
    "quality_notes",
    "error_message",
    "raw_prompt_chars",
    "raw_response_chars",
]


def result_to_row(result: BenchmarkResult) -> dict[str, Any]:
    """Flatten a result into CSV column values."""
    return {
        "timestamp": result.timestamp,
        "task_id": result.task_id,
        "task_name": result.task_name,
        "language": result.language.value,
        "execution_mode": result.execution_mode.value,
        "provider": result.provider,
        "model_id": result.model_id,
        "model_display_name": result.model_display_name,
        "run_number": result.run_number,
        "input_tokens": result.input_tokens,
        "output_tokens": result.output_tokens,
        "total_tokens": result.total_tokens,
        "tokens_source": result.tokens_source.value,
        "cost_usd": f"{result.cost_usd:.6f}",
        "latency_ms": result.latency_ms,
        "turns": result.turns,
        "passed": str(result.passed).lower(),
        "passed_on_turn": result.passed_on_turn,
        "quality_score": f"{result.quality_score:.1f}",
        "score_history": ";".join(f"{s:.1f}" for s in result.score_history),
        "quality_notes": result.quality_notes,
        "error_message": result.error_message or "",
        "raw_prompt_chars": len(result.raw_prompt),
        "raw_response_chars": len(result.raw_response),
    }


def status_label(result: BenchmarkResult) -> str:
    """ERROR for infrastructure/evaluation errors, else PASS or FAIL."""
    if result.error_message:
        return "ERROR"
    return "PASS" if result.passed else "FAIL"


class ResultSink(ABC):
    """Receives BenchmarkResults as combinations finish."""

    def __init__(self) -> None:
        """Initialize progress counters."""
        self.total = 0
        self.completed = 0
        self.failed = 0

    def set_total(self, total: int) -> None:
        """Number of combinations expected, for progress percentages."""
        self.total = total

    @abstractmethod
    async def emit(self, result: BenchmarkResult) -> None:
        """Record one finished combination."""
        ...

    def _log_progress(self, result: BenchmarkResult) -> None:
        self.completed += 1
        if not result.passed or result.error_message:
            self.failed += 1
        pct = f" ({round(self.completed / self.total * 100)}%)" if self.total else ""
        cost = format_cost_usd(
            result.cost_usd, estimated=result.tokens_source == TokensSource.ESTIMATED
        )
        logger.info(
            f"[{status_label(result)}] {result.task_id} | {result.model_display_name} | "
            f"{result.language.value} | run {result.run_number} | {result.latency_ms}ms | "
            f"{cost}{pct}"
        )


class MemoryResultSink(ResultSink):
    """Keep results in memory."""

    def __init__(self) -> None:
        """Initialize an empty sink."""
        super().__init__()
        self.results: list[BenchmarkResult] = []
        self._lock = asyncio.Lock()

    async def emit(self, result: BenchmarkResult) -> None:
        """Append the result."""
        async with self._lock:
            self.results.append(result)
            self._log_progress(result)


class CsvResultSink(ResultSink):
    """Append one CSV row per result, flushed immediately.

    Writes ``benchmark_<timestamp>.csv`` under ``output_dir``; the header is
    written when the sink is created.
    """

    def __init__(self, output_dir: Path, filename: str | None = None) -> None:
        """Create the output file and write the header.

        Args:
            output_dir: Directory for CSV files (created if missing).
            filename: Explicit file name (defaults to a UTC timestamped name).

        """
        super().__init__()
        output_dir.mkdir(parents=True, exist_ok=True)
        if filename is None:
            stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
            filename = f"benchmark_{stamp}.csv"
        self.path = output_dir / filename
        self._lock = asyncio.Lock()
        with open(self.path, "w", newline="", encoding="utf-8") as handle:
            csv.DictWriter(handle, fieldnames=CSV_COLUMNS).writeheader()

    async def emit(self, result: BenchmarkResult) -> None:
        """Append and flush one row."""
        async with self._lock:
            with open(self.path, "a", newline="", encoding="utf-8") as handle:
                csv.DictWriter(handle, fieldnames=CSV_COLUMNS).writerow(result_to_row(result))
            self._log_progress(result)
