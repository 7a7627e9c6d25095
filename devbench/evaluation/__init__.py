"""Evaluation: code runner, e2e lifecycle runner, rubric judge and strategies."""

from devbench.evaluation.code_runner import (
    CodeRunner,
    CodeRunResult,
    SuiteSummary,
    extract_code_block,
    parse_dotnet_output,
    parse_jest_output,
    parse_surefire_reports,
)
from devbench.evaluation.e2e_runner import (
    E2ERunner,
    E2ERunResult,
    E2ESetupError,
    find_free_port,
    parse_playwright_report,
)
from devbench.evaluation.e2e_scoring import score_for_turn
from devbench.evaluation.evaluator import Evaluator
from devbench.evaluation.rubric import JudgeError, RubricJudge, RubricResult, normalize_score
from devbench.evaluation.strategies import STRATEGIES, EvaluationServices, EvaluationStrategy

__all__ = [
    "STRATEGIES",
    "CodeRunResult",
    "CodeRunner",
    "E2ERunResult",
    "E2ERunner",
    "E2ESetupError",
    "EvaluationServices",
    "EvaluationStrategy",
    "Evaluator",
    "JudgeError",
    "RubricJudge",
    "RubricResult",
    "SuiteSummary",
    "extract_code_block",
    "find_free_port",
    "normalize_score",
    "parse_dotnet_output",
    "parse_jest_output",
    "parse_playwright_report",
    "parse_surefire_reports",
    "score_for_turn",
]
