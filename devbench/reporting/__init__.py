"""Result sinks and run summaries."""

from devbench.reporting.sink import (
    CSV_COLUMNS,
    CsvResultSink,
    MemoryResultSink,
    ResultSink,
    result_to_row,
)
from devbench.reporting.summary import build_results_df, format_summary, summarize

__all__ = [
    "CSV_COLUMNS",
    "CsvResultSink",
    "MemoryResultSink",
    "ResultSink",
    "build_results_df",
    "format_summary",
    "result_to_row",
    "summarize",
]
