"""Core types shared by every layer of the harness."""

from devbench.core.rate_limit import (
    RateLimitError,
    RateLimitInfo,
    call_with_rate_limit_retry,
    detect_rate_limit,
    is_rate_limit_error,
)
from devbench.core.results import (
    BenchmarkResult,
    EvaluationContext,
    EvaluationResult,
    EvaluationType,
    ExecutionMode,
    ExecutionRequest,
    ExecutionResult,
    Language,
    TaskInput,
    TokensSource,
)

__all__ = [
    "BenchmarkResult",
    "EvaluationContext",
    "EvaluationResult",
    "EvaluationType",
    "ExecutionMode",
    "ExecutionRequest",
    "ExecutionResult",
    "Language",
    "RateLimitError",
    "RateLimitInfo",
    "TaskInput",
    "TokensSource",
    "call_with_rate_limit_retry",
    "detect_rate_limit",
    "is_rate_limit_error",
]
