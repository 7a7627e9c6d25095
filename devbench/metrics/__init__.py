"""Token metrics for benchmark results."""

from devbench.metrics.tokens import TurnTotals, estimate_tokens

__all__ = ["TurnTotals", "estimate_tokens"]
