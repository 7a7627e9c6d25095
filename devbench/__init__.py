"""devbench - benchmark harness for LLM software-engineering tasks.

This package runs a battery of development tasks against hosted model APIs
and local CLI agents, scores every response and records one result per
task/executor/language/run combination.
"""

__version__ = "0.1.0"

__all__ = [
    "adapters",
    "cli",
    "config",
    "core",
    "evaluation",
    "executor",
    "metrics",
    "reporting",
    "runner",
    "tasks",
]
