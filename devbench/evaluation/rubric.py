"""LLM rubric judge.

A single judge call scores a free-form response against weighted criteria.
The judge is asked for JSON only; the first JSON object in its reply is
parsed into a RubricResult.
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any

from devbench.adapters.base import AdapterError, ModelAdapter
from devbench.config.models import RubricSpec
from devbench.core.rate_limit import RateLimitError, call_with_rate_limit_retry

logger = logging.getLogger(__name__)

JUDGE_PROMPT_TEMPLATE = """You are evaluating an AI response for a software engineering task.

TASK: {task_id} - {task_name}

RUBRIC (score each criterion independently):
{rubric_text}

RESPONSE TO EVALUATE:
{response}

Return JSON only - no markdown, no explanation:
{{
  "scores": [{{ "criterion": "...", "points": N, "reason": "..." }}],
  "total": N,
  "summary": "one sentence overall assessment"
}}"""


class JudgeError(Exception):
    """Raised when the judge call fails or returns unusable output."""

    pass


@dataclass(frozen=True)
class CriterionScore:
    """Points awarded for one criterion."""

    criterion: str
    points: float
    reason: str = ""


@dataclass(frozen=True)
class RubricResult:
    """Parsed judge verdict."""

    total: float
    max_total: int
    summary: str = ""
    scores: list[CriterionScore] = field(default_factory=list)

    @property
    def normalized_score(self) -> float:
        """Total on the 0-5 scale."""
        return normalize_score(self.total, self.max_total)


def normalize_score(total: float, max_total: int) -> float:
    """Scale ``total`` to 0-5 with one decimal (half rounds up)."""
    if max_total == 0:
        return 0.0
    return math.floor(total / max_total * 5 * 10 + 0.5) / 10


def extract_json_object(output: str) -> dict[str, Any] | None:
    """Extract the first JSON object from LLM output.

    Handles fenced ```json blocks and objects surrounded by prose.

    Examples:
        >>> extract_json_object('{"total": 3}')
        {'total': 3}

        >>> extract_json_object('Verdict: {"total": 3} done')
        {'total': 3}

    """
    block = re.search(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```", output)
    if block:
        try:
            data = json.loads(block.group(1))
            if isinstance(data, dict):
                return data
        except json.JSONDecodeError:
            pass

    decoder = json.JSONDecoder()
    start = output.find("{")
    while start != -1:
        try:
            data, _ = decoder.raw_decode(output[start:])
        except json.JSONDecodeError:
            start = output.find("{", start + 1)
            continue
        return data if isinstance(data, dict) else None
    return None


def format_rubric(rubric: RubricSpec) -> str:
    """One ``- name [0-N pts]: description`` line per criterion."""
    return "\n".join(
        f"- {c.name} [0–{c.max_points} pts]: {c.description}" for c in rubric.criteria
    )


class RubricJudge:
    """Score responses with a judge model at temperature 0."""

    def __init__(
        self,
        adapter: ModelAdapter,
        max_tokens: int = 1024,
        response_char_limit: int = 8000,
        rate_limit_attempts: int = 3,
        rate_limit_base_delay: float = 1.0,
    ) -> None:
        """Initialize the judge.

        Args:
            adapter: Adapter for the judge model.
            max_tokens: Output token limit for the judge.
            response_char_limit: Characters of the candidate response shown to the judge.
            rate_limit_attempts: Attempts when the judge is rate limited.
            rate_limit_base_delay: Base backoff delay in seconds.

        """
        self.adapter = adapter
        self.max_tokens = max_tokens
        self.response_char_limit = response_char_limit
        self.rate_limit_attempts = rate_limit_attempts
        self.rate_limit_base_delay = rate_limit_base_delay

    def build_prompt(self, task_id: str, task_name: str, response: str, rubric: RubricSpec) -> str:
        """Render the judge prompt, truncating the candidate response."""
        return JUDGE_PROMPT_TEMPLATE.format(
            task_id=task_id,
            task_name=task_name,
            rubric_text=format_rubric(rubric),
            response=response[: self.response_char_limit],
        )

    async def score(
        self,
        task_id: str,
        task_name: str,
        response: str,
        rubric: RubricSpec,
    ) -> RubricResult:
        """Ask the judge to score ``response``.

        Raises:
            JudgeError: If the judge call failed or returned no usable JSON.

        """
        prompt = self.build_prompt(task_id, task_name, response, rubric)
        try:
            completion = await call_with_rate_limit_retry(
                lambda: self.adapter.complete(
                    system_prompt="",
                    user_prompt=prompt,
                    max_tokens=self.max_tokens,
                    temperature=0.0,
                ),
                max_attempts=self.rate_limit_attempts,
                base_delay=self.rate_limit_base_delay,
            )
        except (AdapterError, RateLimitError) as e:
            raise JudgeError(f"Judge call failed: {e}") from e

        data = extract_json_object(completion.content)
        if data is None:
            raise JudgeError("Judge did not return valid JSON")
        return self._result_from_dict(data, rubric)

    def _result_from_dict(self, data: dict[str, Any], rubric: RubricSpec) -> RubricResult:
        max_total = rubric.max_total()
        scores = [
            CriterionScore(
                criterion=str(item.get("criterion") or ""),
                points=float(item.get("points") or 0.0),
                reason=str(item.get("reason") or ""),
            )
            for item in data.get("scores") or []
            if isinstance(item, dict)
        ]
        try:
            total = float(data.get("total") or 0.0)
        except (TypeError, ValueError) as e:
            raise JudgeError(f"Judge returned a non-numeric total: {data.get('total')!r}") from e
        # Clamp to the rubric range
        total = min(max(total, 0.0), float(max_total))
        logger.debug(f"Judge total {total}/{max_total}")
        return RubricResult(
            total=total,
            max_total=max_total,
            summary=str(data.get("summary") or ""),
            scores=scores,
        )
