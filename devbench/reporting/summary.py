"""Per-executor summary statistics.

Infrastructure failures (no answer produced at all) are excluded from the
quality statistics and counted separately.
"""

from __future__ import annotations

import pandas as pd

from devbench.core.results import BenchmarkResult, TokensSource

SUMMARY_COLUMNS = [
    "model_display_name",
    "execution_mode",
    "provider",
    "runs",
    "infrastructure_failures",
    "pass_rate",
    "avg_score",
    "avg_cost_usd",
    "avg_tokens",
    "p50_latency_ms",
    "estimated",
]


def build_results_df(results: list[BenchmarkResult]) -> pd.DataFrame:
    """Build a DataFrame with one row per combination."""
    rows = []
    for r in results:
        rows.append(
            {
                "task_id": r.task_id,
                "language": r.language.value,
                "run_number": r.run_number,
                "model_id": r.model_id,
                "model_display_name": r.model_display_name,
                "execution_mode": r.execution_mode.value,
                "provider": r.provider,
                "passed": r.passed,
                "quality_score": r.quality_score,
                "cost_usd": r.cost_usd,
                "total_tokens": r.total_tokens,
                "latency_ms": r.latency_ms,
                "turns": r.turns,
                "passed_on_turn": r.passed_on_turn,
                "estimated": r.tokens_source == TokensSource.ESTIMATED,
                "infrastructure_failure": r.is_infrastructure_failure,
            }
        )
    return pd.DataFrame(rows)


def summarize(results: list[BenchmarkResult]) -> pd.DataFrame:
    """Aggregate results per executor, sorted by pass rate (best first).

    Args:
        results: Results of one run.

    Returns:
        DataFrame with SUMMARY_COLUMNS; empty when there are no results.

    """
    df = build_results_df(results)
    if df.empty:
        return pd.DataFrame(columns=SUMMARY_COLUMNS)

    rows = []
    for (model_id, mode), group in df.groupby(["model_id", "execution_mode"], sort=False):
        scored = group[~group["infrastructure_failure"]]
        rows.append(
            {
                "model_display_name": group["model_display_name"].iloc[0],
                "execution_mode": mode,
                "provider": group["provider"].iloc[0],
                "runs": len(group),
                "infrastructure_failures": int(group["infrastructure_failure"].sum()),
                "pass_rate": float(scored["passed"].mean()) if len(scored) else 0.0,
                "avg_score": float(scored["quality_score"].mean()) if len(scored) else 0.0,
                "avg_cost_usd": float(scored["cost_usd"].mean()) if len(scored) else 0.0,
                "avg_tokens": float(scored["total_tokens"].mean()) if len(scored) else 0.0,
                "p50_latency_ms": float(scored["latency_ms"].median()) if len(scored) else 0.0,
                "estimated": bool(group["estimated"].any()),
            }
        )
    summary = pd.DataFrame(rows, columns=SUMMARY_COLUMNS)
    return summary.sort_values("pass_rate", ascending=False, kind="stable").reset_index(drop=True)


def format_summary(summary: pd.DataFrame) -> str:
    """Render the summary as a fixed-width table for the terminal."""
    if summary.empty:
        return "No results."
    header = (
        f"{'Model / Agent':<24} {'Mode':<5} {'Pass Rate':>9} {'Avg Score':>9} "
        f"{'Avg Cost':>10} {'Avg Tokens':>10} {'p50 ms':>8} {'Infra':>5}"
    )
    lines = [header, "-" * len(header)]
    for row in summary.itertuples(index=False):
        mark = "~" if row.estimated else ""
        lines.append(
            f"{str(row.model_display_name)[:24]:<24} {row.execution_mode:<5} "
            f"{row.pass_rate * 100:>8.1f}% {row.avg_score:>7.1f}/5 "
            f"{mark + f'${row.avg_cost_usd:.4f}':>10} {mark + f'{row.avg_tokens:,.0f}':>10} "
            f"{row.p50_latency_ms:>8,.0f} {row.infrastructure_failures:>5}"
        )
    if summary["estimated"].any():
        lines.append("~ = estimated (CLI mode, tokens not reported by the agent)")
    return "\n".join(lines)
