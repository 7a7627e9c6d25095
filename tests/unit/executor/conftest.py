"""Shared fixtures for executor tests."""

import pytest

from devbench.config.models import PricingConfig
from devbench.core.results import ExecutionMode
from devbench.executor.base import ExecutorIdentity


@pytest.fixture
def cli_identity() -> ExecutorIdentity:
    """Identity for a CLI executor."""
    return ExecutorIdentity(
        id="gemini-cli",
        provider="cli-google",
        display_name="Gemini CLI",
        model_id="gemini-cli-agent",
        execution_mode=ExecutionMode.CLI,
        pricing=PricingConfig(input_per_million=1.0, output_per_million=2.0),
        estimated_pricing=True,
    )


@pytest.fixture
def api_identity() -> ExecutorIdentity:
    """Identity for an API executor."""
    return ExecutorIdentity(
        id="claude-sonnet",
        provider="anthropic",
        display_name="Claude Sonnet",
        model_id="claude-sonnet-4-5-20250929",
        execution_mode=ExecutionMode.API,
        pricing=PricingConfig(),
    )
