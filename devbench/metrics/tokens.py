"""Token estimation and per-combination accumulation.

CLI agents often do not report usage, so token counts fall back to a
character heuristic (~4 characters per token). TurnTotals accumulates token
and latency counters across the turns of one combination.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from devbench.core.results import ExecutionResult, TokensSource

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Estimate tokens as ``ceil(len(text) / 4)``."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


@dataclass
class TurnTotals:
    """Cumulative metrics over the turns of one combination.

    Counters only grow. A single estimated turn marks the totals estimated.
    """

    input_tokens: int = 0
    output_tokens: int = 0
    latency_ms: int = 0
    turns: int = 0
    estimated: bool = False

    def add(self, result: ExecutionResult) -> None:
        """Fold one turn's execution result into the totals."""
        self.input_tokens += result.input_tokens
        self.output_tokens += result.output_tokens
        self.latency_ms += result.latency_ms
        self.turns += 1
        if result.tokens_source == TokensSource.ESTIMATED:
            self.estimated = True

    @property
    def total_tokens(self) -> int:
        """Input plus output tokens."""
        return self.input_tokens + self.output_tokens

    @property
    def tokens_source(self) -> TokensSource:
        """Provenance of the accumulated counts."""
        return TokensSource.ESTIMATED if self.estimated else TokensSource.EXACT
