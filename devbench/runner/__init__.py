"""Orchestration: combination planning, per-provider scheduling and retry turns."""

from devbench.runner.combinations import Combination, build_combinations
from devbench.runner.orchestrator import BenchmarkRunner, build_retry_prompt
from devbench.runner.scheduler import ProviderScheduler, ProviderStats

__all__ = [
    "BenchmarkRunner",
    "Combination",
    "ProviderScheduler",
    "ProviderStats",
    "build_combinations",
    "build_retry_prompt",
]
