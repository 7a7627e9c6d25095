"""Tests for token estimation and turn totals."""

from devbench.core.results import ExecutionResult, TokensSource
from devbench.metrics.tokens import TurnTotals, estimate_tokens


class TestEstimateTokens:
    """Tests for estimate_tokens."""

    def test_empty(self) -> None:
        """Test empty text has no tokens."""
        assert estimate_tokens("") == 0

    def test_rounds_up(self) -> None:
        """Test ceil(len / 4)."""
        assert estimate_tokens("abc") == 1
        assert estimate_tokens("abcd") == 1
        assert estimate_tokens("abcde") == 2
        assert estimate_tokens("x" * 400) == 100


class TestTurnTotals:
    """Tests for TurnTotals."""

    def test_accumulates(self) -> None:
        """Test counters sum across turns."""
        totals = TurnTotals()
        totals.add(ExecutionResult(input_tokens=100, output_tokens=20, latency_ms=300))
        totals.add(ExecutionResult(input_tokens=150, output_tokens=30, latency_ms=200))
        assert totals.input_tokens == 250
        assert totals.output_tokens == 50
        assert totals.total_tokens == 300
        assert totals.latency_ms == 500
        assert totals.turns == 2
        assert totals.tokens_source == TokensSource.EXACT

    def test_one_estimated_turn_marks_all(self) -> None:
        """Test any estimated turn makes the totals estimated."""
        totals = TurnTotals()
        totals.add(ExecutionResult(input_tokens=1, tokens_source=TokensSource.EXACT))
        totals.add(ExecutionResult(input_tokens=1, tokens_source=TokensSource.ESTIMATED))
        totals.add(ExecutionResult(input_tokens=1, tokens_source=TokensSource.EXACT))
        assert totals.tokens_source == TokensSource.ESTIMATED
