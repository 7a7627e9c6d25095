"""Result and request types shared across the harness.

These Pydantic models are the currency passed between the orchestrator,
executors and evaluators:

    ExecutionRequest  -> Executor.execute()   -> ExecutionResult   (one per turn)
    response + input  -> Evaluator.evaluate() -> EvaluationResult  (one per turn)
    all turns         -> BenchmarkRunner      -> BenchmarkResult   (one per combination)

BenchmarkResult is frozen; it is created once when a combination finishes and
handed to the result sink unchanged.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class Language(str, Enum):
    """Target language of a task fixture."""

    NODEJS = "nodejs"
    JAVA = "java"
    DOTNET = "dotnet"


class EvaluationType(str, Enum):
    """Closed set of evaluation strategies a task can declare."""

    TEST_EXECUTION = "test-execution"
    RUBRIC = "rubric"
    HYBRID = "hybrid"
    E2E = "e2e"


class ExecutionMode(str, Enum):
    """How the model was reached."""

    API = "api"
    CLI = "cli"


class TokensSource(str, Enum):
    """Provenance of token counts."""

    EXACT = "exact"
    ESTIMATED = "estimated"


class ExecutionRequest(BaseModel):
    """Input for a single executor call (one turn)."""

    model_config = ConfigDict(frozen=True)

    prompt: str = Field(..., description="User prompt built by the task")
    system_prompt: str | None = Field(default=None, description="Optional system instruction")
    max_tokens: int | None = Field(default=None, ge=1, description="Output token limit")
    temperature: float | None = Field(default=None, ge=0.0, description="Sampling temperature")
    workspace: Path | None = Field(
        default=None, description="Project directory for lifecycle (agentic) executors"
    )


class ExecutionResult(BaseModel):
    """Output of a single executor call."""

    content: str = Field(default="", description="Textual answer extracted from the model")
    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)
    latency_ms: int = Field(default=0, ge=0)
    tokens_source: TokensSource = Field(default=TokensSource.EXACT)
    execution_mode: ExecutionMode = Field(default=ExecutionMode.API)
    model_id: str = Field(default="")
    provider: str = Field(default="")
    display_name: str = Field(default="")
    project_dir: Path | None = Field(
        default=None, description="Project directory edited by a lifecycle executor"
    )


class EvaluationResult(BaseModel):
    """Verdict for one response."""

    passed: bool = Field(..., description="Whether the response passed evaluation")
    score: float = Field(default=0.0, ge=0.0, le=5.0, description="Quality score (0-5)")
    notes: str = Field(default="", description="Human-readable evaluation notes")
    error_message: str | None = Field(default=None, description="Error if evaluation failed")


class BenchmarkResult(BaseModel):
    """Terminal record for one combination.

    Token, cost and latency fields are cumulative across all turns used.
    ``passed_on_turn`` is 0 when the combination never passed.
    """

    model_config = ConfigDict(frozen=True)

    # Identification
    timestamp: str
    task_id: str
    task_name: str
    language: Language
    run_number: int = Field(..., ge=1)

    # Executor
    execution_mode: ExecutionMode
    provider: str
    model_id: str
    model_display_name: str

    # Metrics
    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)
    cost_usd: float = Field(default=0.0, ge=0.0)
    tokens_source: TokensSource = TokensSource.ESTIMATED
    latency_ms: int = Field(default=0, ge=0)
    turns: int = Field(default=0, ge=0)

    # Quality
    passed: bool = False
    quality_score: float = Field(default=0.0, ge=0.0, le=5.0)
    quality_notes: str = ""
    error_message: str | None = None
    passed_on_turn: int = Field(default=0, ge=0)
    score_history: tuple[float, ...] = ()

    # Audit trail
    raw_prompt: str = ""
    raw_response: str = ""

    @property
    def is_infrastructure_failure(self) -> bool:
        """True when no answer was produced at all (executor or setup failure)."""
        return self.error_message is not None and self.turns == 0


class TaskInput(BaseModel):
    """Input a task builds its prompt from; constructed fresh per execution."""

    model_config = ConfigDict(frozen=True)

    language: Language
    fixture_code: str = ""
    additional_context: str | None = None


class EvaluationContext(BaseModel):
    """Per-turn facts an evaluation strategy may need beyond the response."""

    model_config = ConfigDict(frozen=True)

    turn: int = Field(default=1, ge=1)
    project_dir: Path | None = None
