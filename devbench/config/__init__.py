"""Configuration loading system for devbench.

This module provides Pydantic models and a ConfigLoader for parsing the YAML
model, agent, defaults and task definitions.

Example:
    from devbench.config import ConfigLoader

    loader = ConfigLoader("config")
    models = loader.resolve_models(["all"])
    definitions = loader.load_tasks()
"""

from .models import (
    AgentEntry,
    ConfigurationError,
    DefaultsConfig,
    E2ESpec,
    JudgeConfig,
    ModelEntry,
    PricingConfig,
    RubricCriterion,
    RubricSpec,
    RunConfig,
    TaskDefinition,
    SuiteSpec,
    TimeoutsConfig,
)
from .loader import ConfigLoader
from .pricing import calculate_cost, format_cost_usd, get_model_pricing

__all__ = [
    # Loader
    "ConfigLoader",
    # Exceptions
    "ConfigurationError",
    # Executor entries
    "AgentEntry",
    "ModelEntry",
    "PricingConfig",
    # Defaults and run
    "DefaultsConfig",
    "JudgeConfig",
    "RunConfig",
    "TimeoutsConfig",
    # Tasks
    "E2ESpec",
    "RubricCriterion",
    "RubricSpec",
    "TaskDefinition",
    "SuiteSpec",
    # Pricing
    "calculate_cost",
    "format_cost_usd",
    "get_model_pricing",
]
