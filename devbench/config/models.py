"""Pydantic models for devbench configuration.

This module defines the schema for config/models.yaml (hosted API models),
config/agents.yaml (local CLI agents), config/defaults.yaml (run, judge and
timeout defaults) and the per-run RunConfig assembled by the CLI.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from devbench.core.results import EvaluationType, Language


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


# -----------------------------------------------------------------------------
# Task definitions
# -----------------------------------------------------------------------------


class RubricCriterion(BaseModel):
    """A single criterion scored by the rubric judge."""

    name: str
    max_points: int = Field(..., ge=1, le=10)
    description: str


class RubricSpec(BaseModel):
    """Rubric attached to a rubric or hybrid task."""

    criteria: list[RubricCriterion] = Field(..., min_length=1)
    pass_threshold: float = Field(default=3.0, ge=0.0, description="Points needed to pass")

    def max_total(self) -> int:
        """Sum of max points over all criteria."""
        return sum(c.max_points for c in self.criteria)


class SuiteSpec(BaseModel):
    """Location of the pre-existing test suite for a task."""

    implementation_files: dict[Language, str] = Field(
        ..., description="Filename the suite imports, per language (relative to the suite)"
    )
    directory: str = Field(default="tests", description="Suite directory inside the fixture")
    fail_score: float = Field(default=1.0, ge=0.0, le=5.0, description="Score when the suite fails")


class E2ESpec(BaseModel):
    """Template project and browser test spec for an e2e task."""

    base_project: str = Field(..., description="Template project, relative to fixtures dir")
    test_spec: str = Field(..., description="Browser test spec, relative to the project root")


class TaskDefinition(BaseModel):
    """Declarative benchmark task.

    Maps to config/tasks/<id>.yaml
    """

    id: str = Field(..., description="Unique task identifier (e.g., j01)")
    name: str
    description: str = ""
    supported_languages: list[Language] = Field(..., min_length=1)
    evaluation_type: EvaluationType
    max_turns: int = Field(default=1, ge=1, le=10)
    system_prompt: str | None = None
    prompt_template: str = Field(..., description="str.format template for the user prompt")
    frameworks: dict[Language, str] = Field(default_factory=dict)
    tests: SuiteSpec | None = None
    rubric: RubricSpec | None = None
    e2e: E2ESpec | None = None

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        """Validate task ID format."""
        if not v or not v.strip():
            raise ValueError("Task ID cannot be empty")
        return v.strip()

    @model_validator(mode="after")
    def validate_strategy_sections(self) -> TaskDefinition:
        """Each evaluation strategy requires its own section."""
        kind = self.evaluation_type
        if kind in (EvaluationType.TEST_EXECUTION, EvaluationType.HYBRID) and self.tests is None:
            raise ValueError(f"Task {self.id}: '{kind.value}' evaluation requires 'tests'")
        if kind in (EvaluationType.RUBRIC, EvaluationType.HYBRID) and self.rubric is None:
            raise ValueError(f"Task {self.id}: '{kind.value}' evaluation requires 'rubric'")
        if kind == EvaluationType.E2E and self.e2e is None:
            raise ValueError(f"Task {self.id}: 'e2e' evaluation requires 'e2e'")
        if self.tests is not None:
            missing = set(self.supported_languages) - set(self.tests.implementation_files)
            if missing:
                names = ", ".join(sorted(lang.value for lang in missing))
                raise ValueError(f"Task {self.id}: no implementation file for {names}")
        return self


# -----------------------------------------------------------------------------
# Executor entries
# -----------------------------------------------------------------------------


ApiProvider = Literal[
    "anthropic",
    "anthropic-vertex",
    "openai",
    "openai-responses",
    "openai-compatible",
    "google",
]


class PricingConfig(BaseModel):
    """Token pricing in USD per million tokens."""

    input_per_million: float = Field(default=3.0, ge=0.0)
    output_per_million: float = Field(default=15.0, ge=0.0)


class ModelEntry(BaseModel):
    """A hosted model reached through its provider API.

    Maps to one item of config/models.yaml
    """

    id: str = Field(..., description="Short identifier used on the command line")
    provider: ApiProvider
    display_name: str
    model_id: str = Field(..., description="Provider model identifier")
    pricing: PricingConfig = Field(default_factory=PricingConfig)
    base_url: str | None = Field(default=None, description="Endpoint for compatible servers")
    api_key_env: str | None = Field(default=None, description="Env var holding the API key")
    project_id: str | None = Field(default=None, description="Vertex project")
    region: str | None = Field(default=None, description="Vertex region")

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        """Validate model ID format."""
        if not v or not v.strip():
            raise ValueError("Model ID cannot be empty")
        return v.strip()


class AgentEntry(BaseModel):
    """A local CLI agent spawned as a subprocess.

    Maps to one item of config/agents.yaml
    """

    id: Literal["claude-code", "gemini-cli", "codex-cli"]
    display_name: str
    provider: str = Field(..., description="Provider identity used for concurrency limits")
    binary: str | None = Field(default=None, description="Override for the executable name")
    estimated_pricing: PricingConfig = Field(default_factory=PricingConfig)
    timeout_seconds: int = Field(default=120, ge=1, le=86400)
    agentic_timeout_seconds: int = Field(default=300, ge=1, le=86400)
    env: dict[str, str] = Field(default_factory=dict)


# -----------------------------------------------------------------------------
# Defaults
# -----------------------------------------------------------------------------


class JudgeConfig(BaseModel):
    """Rubric judge settings."""

    provider: ApiProvider = "anthropic"
    model_id: str = "claude-haiku-4-5-20251001"
    max_tokens: int = Field(default=1024, ge=1)
    response_char_limit: int = Field(default=8000, ge=100)
    base_url: str | None = None
    project_id: str | None = None
    region: str | None = None


class TimeoutsConfig(BaseModel):
    """Deadlines (seconds) for evaluation subprocesses."""

    test_seconds: int = Field(default=60, ge=1)
    install_seconds: int = Field(default=120, ge=1)
    build_seconds: int = Field(default=120, ge=1)
    server_ready_seconds: int = Field(default=30, ge=1)
    browser_test_seconds: int = Field(default=120, ge=1)
    shutdown_grace_seconds: float = Field(default=5.0, ge=0.0)


class DefaultsConfig(BaseModel):
    """Global defaults.

    Maps to config/defaults.yaml
    """

    runs_per_combo: int = Field(default=3, ge=1)
    max_concurrent: int = Field(default=3, ge=1)
    max_output_tokens: int = Field(default=4096, ge=1)
    temperature: float = Field(default=0.0, ge=0.0)
    rate_limit_attempts: int = Field(default=3, ge=1, le=10)
    rate_limit_base_delay: float = Field(default=1.0, ge=0.0)
    judge: JudgeConfig = Field(default_factory=JudgeConfig)
    timeouts: TimeoutsConfig = Field(default_factory=TimeoutsConfig)


# -----------------------------------------------------------------------------
# Run configuration
# -----------------------------------------------------------------------------


def _default_max_output_tokens() -> int:
    return int(os.environ.get("MAX_OUTPUT_TOKENS", "4096"))


class RunConfig(BaseModel):
    """Configuration for a single benchmark run."""

    tasks: list[str] = Field(default_factory=lambda: ["all"])
    languages: list[Language] = Field(default_factory=lambda: [Language.NODEJS])
    runs_per_combo: int = Field(default=3, ge=1, description="Runs per combination")
    max_concurrent: int = Field(default=3, ge=1, description="In-flight calls per provider")
    max_output_tokens: int = Field(default_factory=_default_max_output_tokens, ge=1)
    temperature: float = Field(default=0.0, ge=0.0)
    rate_limit_attempts: int = Field(default=3, ge=1, le=10)
    rate_limit_base_delay: float = Field(default=1.0, ge=0.0)
    output_dir: Path = Field(default=Path("results"))
    fixtures_dir: Path = Field(default=Path("fixtures"))
    dry_run: bool = False

    @field_validator("languages")
    @classmethod
    def validate_languages(cls, v: list[Language]) -> list[Language]:
        """Reject empty language lists and drop duplicates, keeping order."""
        if not v:
            raise ValueError("At least one language is required")
        return list(dict.fromkeys(v))

    @classmethod
    def from_defaults(cls, defaults: DefaultsConfig, **overrides: object) -> RunConfig:
        """Build a RunConfig from DefaultsConfig, letting non-None overrides win."""
        values: dict[str, object] = {
            "runs_per_combo": defaults.runs_per_combo,
            "max_concurrent": defaults.max_concurrent,
            "max_output_tokens": defaults.max_output_tokens,
            "temperature": defaults.temperature,
            "rate_limit_attempts": defaults.rate_limit_attempts,
            "rate_limit_base_delay": defaults.rate_limit_base_delay,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(values)
